"""Import/export utilities for fetch results and thread forests."""

import json
from pathlib import Path
from typing import TYPE_CHECKING

from xthreads.exceptions import InputError
from xthreads.models.batch import FetchBatch
from xthreads.models.forest import ThreadForest

if TYPE_CHECKING:
    import pandas as pd

try:
    import pandas as pd
    PANDAS_AVAILABLE = True
except ImportError:
    PANDAS_AVAILABLE = False


def to_json(forest: ThreadForest, indent: int = 2) -> str:
    """
    Convert ThreadForest to JSON string.

    Args:
        forest: ThreadForest to serialize
        indent: JSON indentation level

    Returns:
        JSON string
    """
    return forest.model_dump_json(indent=indent)


def to_dict(forest: ThreadForest) -> dict:
    """
    Convert ThreadForest to dictionary.

    Args:
        forest: ThreadForest to convert

    Returns:
        Dictionary representation
    """
    return forest.model_dump(mode="json")


def save_json(
    forest: ThreadForest,
    filepath: str | Path,
    indent: int = 2,
) -> Path:
    """
    Save ThreadForest to JSON file.

    Args:
        forest: ThreadForest to save
        filepath: Output file path
        indent: JSON indentation level

    Returns:
        Path to saved file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(forest.model_dump_json(indent=indent), encoding="utf-8")
    return path


def load_json(filepath: str | Path) -> ThreadForest:
    """
    Load ThreadForest from JSON file.

    Args:
        filepath: Path to JSON file

    Returns:
        ThreadForest instance
    """
    path = Path(filepath)
    return ThreadForest.model_validate_json(path.read_text(encoding="utf-8"))


def load_batch(filepath: str | Path) -> FetchBatch:
    """
    Load a saved API response (or bare list of records) as a FetchBatch.

    Args:
        filepath: Path to JSON file

    Returns:
        FetchBatch with whatever batches the payload holds

    Raises:
        InputError: If the file is missing or not valid JSON
    """
    path = Path(filepath)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise InputError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise InputError(f"{path} is not valid JSON: {e}") from e
    return FetchBatch.from_response(payload)


def flatten_forest(forest: ThreadForest) -> list[dict]:
    """
    Flatten a forest into one row per node, in display order.

    Each row carries the post fields (without nested children or snapshot)
    plus conversation_id, parent_id, depth, replied_to_id and engagement_rate.
    """
    rows = []
    for post, depth, parent_id, conversation_id in forest.walk():
        row = post.model_dump(
            mode="json",
            exclude={"children", "replied_to", "author", "media", "link_preview", "referenced_ids"},
        )
        row.update(
            conversation_id=conversation_id,
            parent_id=parent_id,
            depth=depth,
            author_username=post.author.username,
            author_display_name=post.author.display_name,
            replied_to_id=post.replied_to.id if post.replied_to else None,
            media_count=len(post.media),
            engagement_rate=post.engagement_rate(),
        )
        rows.append(row)
    return rows


def _check_pandas():
    """Raise ImportError if pandas is not available."""
    if not PANDAS_AVAILABLE:
        raise ImportError(
            "pandas is required for DataFrame export. Install with: pip install pandas"
        )


def to_posts_df(forest: ThreadForest) -> "pd.DataFrame":
    """
    Convert a ThreadForest to a pandas DataFrame.

    Args:
        forest: ThreadForest to convert

    Returns:
        DataFrame with one row per node, in display order

    Raises:
        ImportError: If pandas is not installed
    """
    _check_pandas()
    return pd.DataFrame(flatten_forest(forest))


def save_csv(forest: ThreadForest, filepath: str | Path) -> Path:
    """
    Save a ThreadForest to CSV file.

    Args:
        forest: ThreadForest to save
        filepath: Output file path

    Returns:
        Path to saved file

    Raises:
        ImportError: If pandas is not installed
    """
    _check_pandas()

    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    to_posts_df(forest).to_csv(path, index=False)
    return path
