"""Deterministic ordering of conversations, threads and replies."""

from datetime import datetime, timezone

from xthreads.core.grouper import ConversationGrouping
from xthreads.core.threader import build_threads
from xthreads.models.forest import ConversationThread, ThreadForest
from xthreads.models.post import CanonicalPost

# Undated posts sort after every dated one
_UNDATED = datetime.max.replace(tzinfo=timezone.utc)


def timeline_key(post: CanonicalPost) -> datetime:
    return post.created_at or _UNDATED


def chronological(posts: list[CanonicalPost]) -> list[CanonicalPost]:
    """Stable oldest-first sort; ties keep their current order."""
    return sorted(posts, key=timeline_key)


def _thread_forest(posts: list[CanonicalPost]) -> list[CanonicalPost]:
    # Children inherit the chronological order of the input.
    return chronological(build_threads(chronological(posts)))


def compose_forest(grouping: ConversationGrouping) -> ThreadForest:
    """
    Order a grouping into the final forest.

    Conversations are ordered by their oldest member, roots and children
    oldest first, and standalone threads come after all conversations.
    """
    ordered_groups = sorted(
        grouping.groups.items(),
        key=lambda item: min(timeline_key(post) for post in item[1]),
    )
    conversations = [
        ConversationThread(conversation_id=conversation_id, threads=_thread_forest(posts))
        for conversation_id, posts in ordered_groups
    ]
    return ThreadForest(
        conversations=conversations,
        standalone=_thread_forest(grouping.standalone),
    )
