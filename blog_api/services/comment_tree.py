from typing import Dict, Iterable, List, Optional
import logging

from blog_api.schemas.comment_schema import CommentResponse, CommentSort, CommentTreeResponse

logger = logging.getLogger(__name__)

def build_comment_tree(
    comments: Iterable[CommentResponse],
    sort_by: CommentSort = CommentSort.OLDEST,
    max_depth: Optional[int] = None
) -> List[CommentTreeResponse]:
    """Assemble a flat list of comments for one article into reply trees.

    Replies are ordered by creation time, oldest first, at every level.
    Comments whose parent is not in the input are treated as roots, and so
    is the oldest member of any parent cycle. Roots follow ``sort_by``. With
    ``max_depth`` set, replies more than ``max_depth`` levels below a root
    are dropped.
    """
    nodes: Dict[str, CommentTreeResponse] = {}
    for comment in comments:
        data = comment.model_dump(exclude={"replies"})
        nodes[comment.id] = CommentTreeResponse(**data, replies=[])

    parent_of = {
        node.id: node.parent_id
        for node in nodes.values()
        if node.parent_id in nodes and node.parent_id != node.id
    }
    _break_cycles(nodes, parent_of)

    roots: List[CommentTreeResponse] = []
    for node in nodes.values():
        parent_id = parent_of.get(node.id)
        if parent_id is not None:
            nodes[parent_id].replies.append(node)
        else:
            roots.append(node)

    # sorted() is stable, so equal timestamps keep their input order
    for node in nodes.values():
        node.replies = sorted(node.replies, key=lambda c: c.created_at)

    sort_by = CommentSort(sort_by)
    if sort_by == CommentSort.NEWEST:
        roots = sorted(roots, key=lambda c: c.created_at, reverse=True)
    elif sort_by == CommentSort.POPULAR:
        roots = sorted(roots, key=lambda c: (c.likes, c.created_at), reverse=True)
    else:
        roots = sorted(roots, key=lambda c: c.created_at)

    if max_depth is not None:
        for root in roots:
            _limit_depth(root, max_depth)

    return roots

def _break_cycles(nodes: Dict[str, CommentTreeResponse], parent_of: Dict[str, str]) -> None:
    """Detach the oldest comment of each parent cycle so it becomes a root"""
    resolved = set()
    for start in nodes:
        path: List[str] = []
        on_path = set()
        current: Optional[str] = start
        while current is not None and current not in resolved and current not in on_path:
            path.append(current)
            on_path.add(current)
            current = parent_of.get(current)

        if current is not None and current in on_path:
            cycle = path[path.index(current):]
            oldest = min(cycle, key=lambda cid: nodes[cid].created_at)
            logger.warning(f"Comment parent cycle {cycle}; showing {oldest} as a root")
            del parent_of[oldest]

        resolved.update(path)

def _limit_depth(comment: CommentTreeResponse, remaining: int) -> None:
    if remaining <= 0:
        comment.replies = []
        return

    for reply in comment.replies:
        _limit_depth(reply, remaining - 1)
