"""
Tests for the idempotent like counter.
"""
import asyncio

import pytest

from domain.likes import LikeSubject
from errors import UpstreamFailure
from services.likes import like, unlike


class TestLike:

    def test_repeat_like_does_not_inflate_count(self, storage):
        """Liking twice counts once and reports the second call as unchanged"""
        first = asyncio.run(like(storage, LikeSubject.POST, "42", "9"))
        second = asyncio.run(like(storage, LikeSubject.POST, "42", "9"))
        assert first.like_count == 1 and first.changed is True
        assert second.like_count == 1 and second.changed is False

    def test_count_is_per_subject_kind(self, storage):
        """A post and a comment sharing an id have separate counts"""
        asyncio.run(like(storage, LikeSubject.POST, "1", "9"))
        result = asyncio.run(like(storage, LikeSubject.COMMENT, "1", "9"))
        assert result.like_count == 1

    def test_count_includes_other_users(self, storage):
        """The reported count is the subject's total"""
        asyncio.run(like(storage, LikeSubject.POST, "42", "1"))
        asyncio.run(like(storage, LikeSubject.POST, "42", "2"))
        assert asyncio.run(like(storage, LikeSubject.POST, "42", "2")).like_count == 2

    def test_storage_failure_propagates(self, storage):
        """Like is not best-effort"""
        storage.fail_on.add("insert_like")
        with pytest.raises(UpstreamFailure):
            asyncio.run(like(storage, LikeSubject.POST, "42", "9"))


class TestUnlike:

    def test_unlike_removes_like(self, storage):
        asyncio.run(like(storage, LikeSubject.COMMENT, "100", "9"))
        result = asyncio.run(unlike(storage, LikeSubject.COMMENT, "100", "9"))
        assert result.like_count == 0
        assert result.changed is True

    def test_unlike_never_liked_is_a_no_op(self, storage):
        """Unliking something never liked succeeds without change"""
        result = asyncio.run(unlike(storage, LikeSubject.POST, "42", "9"))
        assert result.like_count == 0
        assert result.changed is False
