"""Thread tree construction for one conversation group."""

from xthreads.logging import get_logger
from xthreads.models.post import CanonicalPost

logger = get_logger(__name__)


def _is_local_root(post: CanonicalPost, group_ids: set[str]) -> bool:
    parent_id = post.in_reply_to_id
    return not parent_id or parent_id == post.id or parent_id not in group_ids


def build_threads(posts: list[CanonicalPost]) -> list[CanonicalPost]:
    """
    Turn a flat group of posts into a forest of reply trees.

    A post whose parent is outside the group is shown as a root. Children
    keep the order they have in ``posts``. Every id is placed at most once:
    a branch that reaches an already placed id stops there, and posts that
    only reach each other through a reply cycle are promoted to roots.

    Args:
        posts: Posts of one conversation (or the standalone set)

    Returns:
        Root posts, as copies with ``children`` filled in
    """
    group_ids = {post.id for post in posts}
    children_of: dict[str, list[CanonicalPost]] = {}
    for post in posts:
        if post.in_reply_to_id and post.in_reply_to_id != post.id:
            children_of.setdefault(post.in_reply_to_id, []).append(post)

    placed: set[str] = set()

    def attach(root: CanonicalPost) -> CanonicalPost:
        # Explicit stack; copies are built bottom-up from the placement order.
        placed.add(root.id)
        order = [root]
        kept: dict[str, list[str]] = {root.id: []}
        stack = [(root, iter(children_of.get(root.id, [])))]
        while stack:
            node, pending = stack[-1]
            for child in pending:
                if child.id in placed:
                    continue
                placed.add(child.id)
                order.append(child)
                kept[child.id] = []
                kept[node.id].append(child.id)
                stack.append((child, iter(children_of.get(child.id, []))))
                break
            else:
                stack.pop()

        built: dict[str, CanonicalPost] = {}
        for node in reversed(order):
            children = [built[child_id] for child_id in kept[node.id]]
            built[node.id] = node.model_copy(update={"children": children})
        return built[root.id]

    roots = [attach(post) for post in posts if _is_local_root(post, group_ids) and post.id not in placed]

    for post in posts:
        if post.id not in placed:
            logger.warning("reply_cycle_detected", post_id=post.id, in_reply_to_id=post.in_reply_to_id)
            roots.append(attach(post))

    return roots
