"""
Tests for announcement fanout to channel followers.
"""
import asyncio

import pytest

from errors import UpstreamFailure
from services.fanout import dispatch_fanout, resolve_recipients, send_all


@pytest.fixture
def followed_channel(storage):
    for user_id in ("u1", "u2", "u3", "u4"):
        storage.follows.add(("ceramic", user_id))
        storage.emails[user_id] = f"{user_id}@example.com"
    storage.follows.add(("film", "u9"))
    storage.emails["u9"] = "u9@example.com"
    return "ceramic"


class TestResolveRecipients:

    def test_only_followers_of_channel(self, storage, followed_channel):
        recipients = asyncio.run(resolve_recipients(storage, followed_channel))
        assert sorted(recipients) == [f"u{i}@example.com" for i in range(1, 5)]

    def test_followers_without_email_are_skipped(self, storage, followed_channel):
        """A follower with no address is skipped silently"""
        del storage.emails["u2"]
        recipients = asyncio.run(resolve_recipients(storage, followed_channel))
        assert "u2@example.com" not in recipients
        assert len(recipients) == 3

    def test_unfollowed_channel_has_no_recipients(self, storage):
        assert asyncio.run(resolve_recipients(storage, "nobody")) == []

    def test_storage_failure_propagates(self, storage, followed_channel):
        storage.fail_on.add("fetch_user_email")
        with pytest.raises(UpstreamFailure):
            asyncio.run(resolve_recipients(storage, followed_channel))


class TestSendAll:

    def test_one_failure_does_not_stop_the_rest(self, mailer):
        """Recipient k failing still leaves the other n-1 attempted"""
        recipients = [f"r{i}@example.com" for i in range(5)]
        mailer.failing.add("r2@example.com")
        report = asyncio.run(send_all(mailer, recipients, "Post from: ann", "hello"))
        assert sorted(mailer.attempts) == sorted(recipients)
        assert report.attempted == 5
        assert report.failed == ["r2@example.com"]
        assert len(report.delivered) == 4

    def test_unexpected_errors_are_contained(self):
        """Errors other than UpstreamFailure are also reported, not raised"""
        class BrokenMailer:
            async def send(self, to, subject, body):
                raise RuntimeError("socket closed")

        report = asyncio.run(send_all(BrokenMailer(), ["a@example.com", "b@example.com"], "s", "b"))
        assert report.failed == ["a@example.com", "b@example.com"]
        assert report.delivered == []

    def test_every_mail_carries_subject_and_body(self, mailer):
        asyncio.run(send_all(mailer, ["a@example.com"], "Post from: ann", "new glaze"))
        assert mailer.sent == [("a@example.com", "Post from: ann", "new glaze")]


class TestDispatchFanout:

    def test_dispatch_sends_to_each_follower_once(self, storage, mailer, followed_channel):
        report = asyncio.run(dispatch_fanout(storage, mailer, followed_channel, "Post from: ann", "kiln day"))
        assert sorted(mailer.attempts) == [f"u{i}@example.com" for i in range(1, 5)]
        assert report.attempted == 4
        assert report.failed == []
