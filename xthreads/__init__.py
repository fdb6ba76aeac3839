"""xthreads - reply thread reconstruction for X/Twitter API results."""

from xthreads.models.batch import FetchBatch
from xthreads.models.forest import ConversationThread, ThreadForest
from xthreads.models.post import CanonicalPost, PostSnapshot, Provenance
from xthreads.config import ThreadConfig
from xthreads.core.pipeline import ThreadBuilder, build_forest
from xthreads.core.exporter import to_json, to_dict, save_json, load_json, load_batch

__version__ = "0.1.0"

__all__ = [
    # Main interface
    "ThreadBuilder",
    "ThreadConfig",
    "build_forest",
    # Models
    "FetchBatch",
    "CanonicalPost",
    "PostSnapshot",
    "Provenance",
    "ConversationThread",
    "ThreadForest",
    # Export utilities
    "to_json",
    "to_dict",
    "save_json",
    "load_json",
    "load_batch",
    "__version__",
]
