"""Pydantic models for xthreads."""

from xthreads.models.batch import FetchBatch
from xthreads.models.forest import ConversationThread, ThreadForest
from xthreads.models.post import (
    Author,
    CanonicalPost,
    LinkPreview,
    MediaItem,
    PostSnapshot,
    Provenance,
)

__all__ = [
    "Author",
    "CanonicalPost",
    "ConversationThread",
    "FetchBatch",
    "LinkPreview",
    "MediaItem",
    "PostSnapshot",
    "Provenance",
    "ThreadForest",
]
