"""Conversation grouping with synthetic conversation-id backfill.

The source tags most posts with a conversation id but leaves it off for
short reply exchanges and for many of the supplementary records. Backfill
is computed as a side table of ``post id -> conversation id`` from the
untouched input first, and only then applied, so the outcome never depends
on which record happened to be rewritten earlier.
"""

from dataclasses import dataclass, field

from xthreads.logging import get_logger
from xthreads.models.post import CanonicalPost

logger = get_logger(__name__)


@dataclass
class ConversationGrouping:
    """Posts partitioned by conversation key."""

    groups: dict[str, list[CanonicalPost]] = field(default_factory=dict)
    standalone: list[CanonicalPost] = field(default_factory=list)
    backfilled: dict[str, str] = field(default_factory=dict)


def _plan_referenced_backfill(posts: list[CanonicalPost]) -> dict[str, str]:
    """
    Keys for supplementary records that a primary post points at.

    The referencing post's conversation id is adopted when it has one.
    Otherwise its own id becomes the conversation id of both records.
    """
    primary = [post for post in posts if post.is_primary]
    assignments: dict[str, str] = {}

    for post in posts:
        if post.is_primary or post.conversation_id:
            continue
        referrer = next(
            (candidate for candidate in primary if candidate.id != post.id and candidate.references(post.id)),
            None,
        )
        if referrer is None:
            continue
        if referrer.conversation_id:
            assignments.setdefault(post.id, referrer.conversation_id)
        else:
            assignments.setdefault(post.id, referrer.id)
            assignments.setdefault(referrer.id, referrer.id)
    return assignments


def _plan_orphan_backfill(posts: list[CanonicalPost], known: dict[str, str]) -> dict[str, str]:
    """
    Keys for keyless replies whose parent is part of the batch.

    Walks up the parent chain until it reaches a keyed ancestor (whose key
    is adopted) or runs out of parents, in which case the topmost ancestor's
    id is used. Every keyless post on the path gets the key.
    """
    by_id = {post.id: post for post in posts}
    assignments: dict[str, str] = {}

    def key_of(post: CanonicalPost) -> str | None:
        return post.conversation_id or known.get(post.id)

    for post in posts:
        if key_of(post) or post.id in assignments:
            continue
        parent_id = post.in_reply_to_id
        if not parent_id or parent_id == post.id or parent_id not in by_id:
            continue

        path = [post]
        visited = {post.id}
        key = None
        current = by_id[parent_id]
        while current.id not in visited:
            visited.add(current.id)
            path.append(current)
            key = key_of(current)
            if key:
                break
            if current.in_reply_to_id not in by_id:
                break
            current = by_id[current.in_reply_to_id]

        if not key:
            key = path[-1].id
        for member in path:
            if not key_of(member):
                assignments.setdefault(member.id, key)
    return assignments


def plan_backfill(posts: list[CanonicalPost]) -> dict[str, str]:
    """Compute every synthetic conversation assignment without touching ``posts``."""
    assignments = _plan_referenced_backfill(posts)
    for post_id, key in _plan_orphan_backfill(posts, assignments).items():
        assignments.setdefault(post_id, key)
    return assignments


def group_conversations(posts: list[CanonicalPost], backfill: bool = True) -> ConversationGrouping:
    """
    Partition posts by conversation id.

    Args:
        posts: Canonical posts in merge order
        backfill: Infer conversation ids the source left out

    Returns:
        ConversationGrouping; groups are keyed in order of first appearance
        and keep merge order inside each group
    """
    assignments = plan_backfill(posts) if backfill else {}
    grouping = ConversationGrouping(backfilled=assignments)

    for post in posts:
        key = post.conversation_id or assignments.get(post.id)
        if not key:
            grouping.standalone.append(post)
            continue
        if key != post.conversation_id:
            post = post.model_copy(update={"conversation_id": key})
        grouping.groups.setdefault(key, []).append(post)

    if assignments:
        logger.debug("conversation_backfilled", assigned=len(assignments), groups=len(grouping.groups))
    return grouping
