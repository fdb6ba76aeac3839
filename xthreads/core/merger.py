"""Provenance-aware merge of the three raw batches."""

from dataclasses import dataclass, field
from typing import Any

from xthreads.core.normalizer import get_record_id, nested_records, normalize_post
from xthreads.logging import get_logger
from xthreads.models.post import CanonicalPost, Provenance

logger = get_logger(__name__)


@dataclass
class MergedBatch:
    """Deduplicated canonical posts plus the raw data reply resolution needs."""

    posts: list[CanonicalPost]
    raw_by_id: dict[str, dict] = field(default_factory=dict)
    lookup: dict[str, dict] = field(default_factory=dict)
    primary_raw: list[dict] = field(default_factory=list)


def _as_batch(records: Any) -> list[dict]:
    """Anything that is not a list reads as an empty batch."""
    if not isinstance(records, list):
        return []
    return [record for record in records if isinstance(record, dict)]


def build_lookup(primary: list[dict], included: list[dict], replied_to: list[dict]) -> dict[str, dict]:
    """
    Build the global id -> raw record table used to resolve reply targets.

    Included records go in first and replied-to records overwrite them.
    Primary records and then records embedded inside any batch are only
    added for ids not seen yet, so a partial embed never shadows a full
    record.
    """
    lookup: dict[str, dict] = {}
    for raw in included + replied_to:
        raw_id = get_record_id(raw)
        if raw_id:
            lookup[raw_id] = raw

    for raw in primary:
        raw_id = get_record_id(raw)
        if raw_id:
            lookup.setdefault(raw_id, raw)

    for raw in included + replied_to + primary:
        for embedded in nested_records(raw):
            embedded_id = get_record_id(embedded)
            if embedded_id:
                lookup.setdefault(embedded_id, embedded)
    return lookup


def _normalize_batch(
    records: list[dict],
    provenance: Provenance,
    trim_reply_mentions: bool,
) -> list[tuple[CanonicalPost, dict]]:
    """Normalize one batch, keeping the first occurrence of each id."""
    normalized = []
    seen: set[str] = set()
    for raw in records:
        post = normalize_post(raw, provenance, trim_reply_mentions)
        if post is None:
            continue
        if post.id in seen:
            logger.debug("record_dropped", reason="duplicate_in_batch", post_id=post.id, provenance=provenance.value)
            continue
        seen.add(post.id)
        normalized.append((post, raw))
    return normalized


def merge_batches(
    primary: Any,
    included: Any = None,
    replied_to: Any = None,
    trim_reply_mentions: bool = True,
) -> MergedBatch:
    """
    Merge primary, included and replied-to batches into one canonical set.

    Precedence on id collisions is primary > included > replied_to. The
    result keeps batch order: primary, then surviving included records, then
    surviving replied-to records, each in input order.

    Args:
        primary: Main page of results
        included: Supplementary records returned alongside the results
        replied_to: Records the results reply to
        trim_reply_mentions: Passed through to the normalizer

    Returns:
        MergedBatch with posts, source raw records and the lookup table
    """
    primary_raw = _as_batch(primary)
    included_raw = _as_batch(included)
    replied_to_raw = _as_batch(replied_to)

    primary_posts = _normalize_batch(primary_raw, Provenance.PRIMARY, trim_reply_mentions)
    included_posts = _normalize_batch(included_raw, Provenance.INCLUDED, trim_reply_mentions)
    replied_to_posts = _normalize_batch(replied_to_raw, Provenance.REPLIED_TO, trim_reply_mentions)

    taken = {post.id for post, _ in primary_posts}
    kept_included = [(post, raw) for post, raw in included_posts if post.id not in taken]
    taken.update(post.id for post, _ in kept_included)
    kept_replied_to = [(post, raw) for post, raw in replied_to_posts if post.id not in taken]

    merged = primary_posts + kept_included + kept_replied_to

    logger.debug(
        "merge_complete",
        primary=len(primary_posts),
        included=len(kept_included),
        included_dropped=len(included_posts) - len(kept_included),
        replied_to=len(kept_replied_to),
        replied_to_dropped=len(replied_to_posts) - len(kept_replied_to),
    )

    return MergedBatch(
        posts=[post for post, _ in merged],
        raw_by_id={post.id: raw for post, raw in merged},
        lookup=build_lookup(primary_raw, included_raw, replied_to_raw),
        primary_raw=primary_raw,
    )
