"""Pipeline - normalizes, merges, resolves, groups and orders one fetch result."""

from typing import Any

from xthreads.config import ThreadConfig
from xthreads.core.composer import compose_forest
from xthreads.core.grouper import group_conversations
from xthreads.core.merger import merge_batches
from xthreads.core.resolver import resolve_replies
from xthreads.logging import get_logger
from xthreads.models.batch import FetchBatch
from xthreads.models.forest import ThreadForest


class ThreadBuilder:
    """
    High-level interface turning fetched batches into an ordered thread forest.

    Example:
        builder = ThreadBuilder()
        forest = builder.build(FetchBatch.from_response(payload))
        for conversation in forest.conversations:
            print(conversation.conversation_id, len(conversation.threads))
    """

    def __init__(self, config: ThreadConfig | None = None):
        """
        Initialize builder with optional configuration.

        Args:
            config: ThreadConfig instance, uses defaults if None
        """
        self.config = config or ThreadConfig()
        self._log = get_logger("pipeline")

    def build(self, batch: FetchBatch) -> ThreadForest:
        """
        Reconstruct the thread forest for one fetch result.

        Args:
            batch: Primary, included and replied-to raw records

        Returns:
            ThreadForest with conversations first, then standalone threads
        """
        trim = self.config.trim_reply_mentions

        merged = merge_batches(batch.primary, batch.included, batch.replied_to, trim)
        posts = resolve_replies(merged, trim)
        grouping = group_conversations(posts, backfill=self.config.backfill_conversations)
        forest = compose_forest(grouping)

        self._log.info(
            "forest_built",
            records=batch.total_records,
            posts=len(posts),
            conversations=len(forest.conversations),
            standalone=len(forest.standalone),
            backfilled=len(grouping.backfilled),
        )
        return forest

    def build_from_response(self, payload: Any) -> ThreadForest:
        """Reconstruct the forest straight from a decoded API response."""
        return self.build(FetchBatch.from_response(payload))


def build_forest(
    primary: Any,
    included: Any = None,
    replied_to: Any = None,
    config: ThreadConfig | None = None,
) -> ThreadForest:
    """
    Convenience wrapper around ThreadBuilder for the three raw batches.

    Non-list batches are read as empty.
    """
    batch = FetchBatch(primary=primary, included=included, replied_to=replied_to)
    return ThreadBuilder(config).build(batch)
