"""Reply resolution: attach a depth-limited snapshot of each reply's parent."""

from xthreads.core.merger import MergedBatch
from xthreads.core.normalizer import (
    ID_FIELDS,
    find_reply_embed,
    find_reply_reference,
    normalize_snapshot,
    reference_embed,
    reference_id,
)
from xthreads.logging import get_logger
from xthreads.models.post import CanonicalPost, PostSnapshot

logger = get_logger(__name__)


def _scan_batch(records: list[dict], target_id: str) -> dict | None:
    """Find a record in a raw batch whose id matches under any id field."""
    for raw in records:
        for name in ID_FIELDS:
            value = raw.get(name)
            if value is not None and not isinstance(value, bool) and str(value).strip() == target_id:
                return raw
    return None


def _find_parent_raw(post: CanonicalPost, raw: dict, merged: MergedBatch) -> dict | None:
    """
    Locate the raw record of the post's parent.

    Tried in order:
        1. an inline embed on the raw record
        2. the reply entry of the references list, inline or by id
        3. the resolved reply-target id, in the lookup table and then the
           primary batch
    """
    embedded = find_reply_embed(raw)
    if embedded is not None:
        return embedded

    reference = find_reply_reference(raw)
    if reference is not None:
        embedded = reference_embed(reference)
        if embedded is not None:
            return embedded
        ref_id = reference_id(reference)
        if ref_id and ref_id in merged.lookup:
            return merged.lookup[ref_id]

    if post.in_reply_to_id:
        found = merged.lookup.get(post.in_reply_to_id)
        if found is not None:
            return found
        return _scan_batch(merged.primary_raw, post.in_reply_to_id)

    return None


def resolve_reply(post: CanonicalPost, raw: dict, merged: MergedBatch, trim_reply_mentions: bool = True) -> PostSnapshot | None:
    """Resolve the snapshot of the record ``post`` replies to, or None."""
    parent_raw = _find_parent_raw(post, raw, merged)
    if parent_raw is None:
        return None
    snapshot = normalize_snapshot(parent_raw, trim_reply_mentions)
    if snapshot is None or snapshot.id == post.id:
        return None
    return snapshot


def resolve_replies(merged: MergedBatch, trim_reply_mentions: bool = True) -> list[CanonicalPost]:
    """
    Attach ``replied_to`` snapshots to every reply in the merged batch.

    Unresolvable parents are expected (the parent often lies outside the
    fetched window) and leave ``replied_to`` empty.

    Returns:
        New list of posts; the merged batch is left untouched
    """
    resolved = []
    unresolved = 0
    for post in merged.posts:
        if not (post.is_reply or post.in_reply_to_id) or post.replied_to is not None:
            resolved.append(post)
            continue

        snapshot = resolve_reply(post, merged.raw_by_id.get(post.id, {}), merged, trim_reply_mentions)
        if snapshot is None:
            unresolved += 1
            logger.debug("reply_unresolved", post_id=post.id, in_reply_to_id=post.in_reply_to_id)
            resolved.append(post)
        else:
            resolved.append(post.model_copy(update={"replied_to": snapshot}))

    logger.debug("replies_resolved", total=len(resolved), unresolved=unresolved)
    return resolved
