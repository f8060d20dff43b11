from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from domain.comments import Comment, CommentTree


def build_comment_tree(comments: Iterable[Comment], max_depth: Optional[int] = None) -> CommentTree:
    """
    Nests a post's flat, chronologically ordered comments into a reply forest.

    Every input comment appears exactly once in the result:
    - a comment whose parent is not among the input (an orphan) is promoted
      to top level at its chronological position;
    - comments whose parent links form a cycle never reach a top-level comment,
      so the earliest of them is promoted and the rest hang below it;
    - if an id occurs twice, its replies attach to only one of the occurrences.

    max_depth caps the rendered nesting (top level is depth 0). Replies that
    would sit deeper are listed, in chronological order, among the replies of
    their deepest ancestor at depth max_depth - 1. parent_comment_id is left
    as stored. None means unbounded.

    Siblings keep input order. The walk uses an explicit stack so reply depth
    is not bounded by the interpreter's recursion limit. Input comments are not
    modified; the returned nodes are copies.
    """
    if max_depth is not None and max_depth < 1:
        raise ValueError("max_depth must be at least 1")

    nodes = [comment.model_copy(update={"replies": []}) for comment in comments]
    known_ids = {node.id for node in nodes}

    children: Dict[str, List[int]] = defaultdict(list)
    top_level: List[int] = []
    for index, node in enumerate(nodes):
        parent_id: Optional[str] = node.parent_comment_id
        if parent_id is None or parent_id not in known_ids or parent_id == node.id:
            top_level.append(index)
        else:
            children[parent_id].append(index)

    placed = [False] * len(nodes)
    replies_of: Dict[int, List[int]] = defaultdict(list)

    def attach_from(root: int) -> None:
        stack = [root]
        placed[root] = True
        while stack:
            index = stack.pop()
            for child in children.pop(nodes[index].id, []):
                if placed[child]:
                    continue
                placed[child] = True
                replies_of[index].append(child)
                stack.append(child)

    def attach_capped(root: int) -> None:
        # (node, its rendered depth, the node it is rendered under)
        stack = [(root, 0, None)]
        placed[root] = True
        while stack:
            index, depth, rendered_parent = stack.pop()
            if depth < max_depth:
                host, child_depth = index, depth + 1
            else:
                host, child_depth = rendered_parent, depth
            for child in children.pop(nodes[index].id, []):
                if placed[child]:
                    continue
                placed[child] = True
                replies_of[host].append(child)
                stack.append((child, child_depth, host))

    attach = attach_from if max_depth is None else attach_capped
    for index in top_level:
        attach(index)

    # Whatever is still unplaced sits in a parent cycle.
    for index in range(len(nodes)):
        if not placed[index]:
            top_level.append(index)
            attach(index)

    for host, reply_indices in replies_of.items():
        nodes[host].replies = [nodes[i] for i in sorted(reply_indices)]

    top_level.sort()
    return CommentTree(
        comments=[nodes[index] for index in top_level],
        total_comments=len(nodes),
    )
