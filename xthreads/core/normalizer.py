"""Normalization of raw API records into canonical posts.

The source API is inconsistent about field names: the same attribute may
arrive camelCased, snake_cased, or tucked into a nested metrics object
depending on which endpoint (or which part of a response) a record came
from. Every attribute is therefore resolved from an explicit, ordered list
of candidate keys. The first present, non-empty value wins.
"""

from datetime import datetime, timezone
from typing import Any

from xthreads.logging import get_logger
from xthreads.models.post import (
    Author,
    CanonicalPost,
    LinkPreview,
    MediaItem,
    PostSnapshot,
    Provenance,
)

logger = get_logger(__name__)

# Twitter's date format: "Thu May 14 18:01:35 +0000 2020"
TWITTER_DATE_FORMAT = "%a %b %d %H:%M:%S %z %Y"

ID_FIELDS = ["id", "id_str", "rest_id", "tweetId", "tweet_id"]
TEXT_FIELDS = ["text", "full_text"]
CREATED_AT_FIELDS = ["createdAt", "created_at"]
URL_FIELDS = ["url", "twitterUrl", "tweet_url"]
CONVERSATION_FIELDS = ["conversationId", "conversation_id", "conversation_id_str"]
DISPLAY_RANGE_FIELDS = ["displayTextRange", "display_text_range"]
IS_REPLY_FIELDS = ["isReply", "is_reply"]

AUTHOR_CONTAINERS = [("author",), ("user",), ("core", "user")]
USERNAME_FIELDS = ["userName", "username", "screen_name"]
DISPLAY_NAME_FIELDS = ["name", "displayName", "display_name"]
AVATAR_FIELDS = ["profilePicture", "profile_image_url_https", "profile_image_url", "avatar"]

METRIC_CONTAINERS = ["public_metrics", "publicMetrics", "metrics", "legacy"]
COUNT_FIELDS = {
    "like_count": ["likeCount", "like_count", "favorite_count", "favoriteCount"],
    "retweet_count": ["retweetCount", "retweet_count"],
    "reply_count": ["replyCount", "reply_count"],
    "quote_count": ["quoteCount", "quote_count"],
}
VIEW_COUNT_FIELDS = ["viewCount", "view_count", "impression_count", "impressionCount"]

MEDIA_CONTAINERS = [
    ("entities", "media"),
    ("extendedEntities", "media"),
    ("extended_entities", "media"),
    ("media",),
]
MEDIA_URL_FIELDS = ["media_url_https", "media_url", "url"]
CARD_IMAGE_FIELDS = ["photo_image_full_size_large", "thumbnail_image", "image"]

# Reply target id. The explicit field wins outright; the rest are tried in order.
EXPLICIT_REPLY_TO_ID_FIELD = "inReplyToId"
REPLY_TO_ID_FIELDS = [
    "in_reply_to_id",
    "inReplyToStatusId",
    "in_reply_to_status_id",
    "in_reply_to_status_id_str",
    "inReplyToTweetId",
    "in_reply_to_tweet_id",
    "replyToId",
]
REPLY_TO_USER_ID_FIELDS = ["inReplyToUserId", "in_reply_to_user_id", "in_reply_to_user_id_str"]
REPLY_TO_USERNAME_FIELDS = ["inReplyToUsername", "in_reply_to_username", "in_reply_to_screen_name"]

# Inline copies of the record being replied to.
REPLY_EMBED_FIELDS = [
    "repliedTo",
    "replied_to",
    "inReplyToTweet",
    "in_reply_to_tweet",
    "inReplyToStatus",
    "in_reply_to_status",
]

REFERENCE_LIST_FIELDS = ["referencedTweets", "referenced_tweets", "references"]
REFERENCE_EMBED_FIELDS = ["tweet", "data", "record", "result"]
REPLY_REFERENCE_TYPES = {"replied_to", "repliedto", "reply", "in_reply_to"}


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def first_present(raw: dict, fields: list[str]) -> Any:
    """Return the first non-empty value among ``fields``, or None."""
    for name in fields:
        value = raw.get(name)
        if not _is_empty(value):
            return value
    return None


def _dig(raw: dict, path: tuple[str, ...]) -> Any:
    node: Any = raw
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _as_id(value: Any) -> str | None:
    """Coerce an id-like value to a non-empty string."""
    if _is_empty(value) or isinstance(value, (bool, dict, list)):
        return None
    return str(value).strip()


def _first_id(raw: dict, fields: list[str]) -> str | None:
    for name in fields:
        value = _as_id(raw.get(name))
        if value:
            return value
    return None


def _as_text(value: Any) -> str | None:
    if _is_empty(value) or isinstance(value, (dict, list)):
        return None
    return str(value)


def get_record_id(raw: Any) -> str | None:
    """Resolve the id of a raw record, or None if it has none."""
    if not isinstance(raw, dict):
        return None
    return _first_id(raw, ID_FIELDS)


def normalize_count(value: Any) -> int:
    """
    Convert a raw count to a non-negative integer.

    Examples:
        "1.2K" -> 1200
        "1M" -> 1000000
        "500" -> 500
        "1,234" -> 1234
        42 -> 42
    """
    if value is None or isinstance(value, bool):
        return 0

    if isinstance(value, (int, float)):
        try:
            return max(int(value), 0)
        except (OverflowError, ValueError):
            return 0

    count_str = str(value).strip().upper().replace(",", "")

    if not count_str:
        return 0

    multipliers = {
        "K": 1_000,
        "M": 1_000_000,
        "B": 1_000_000_000,
    }

    for suffix, multiplier in multipliers.items():
        if count_str.endswith(suffix):
            try:
                number = float(count_str[:-1])
                return max(int(number * multiplier), 0)
            except (OverflowError, ValueError):
                return 0

    try:
        return max(int(float(count_str)), 0)
    except (OverflowError, ValueError):
        return 0


def parse_created_at(value: Any) -> datetime | None:
    """
    Parse a post timestamp into an aware UTC datetime.

    Accepted forms:
        - Twitter legacy: "Thu May 14 18:01:35 +0000 2020"
        - ISO 8601: "2026-01-18T18:17:20.000Z"
        - Epoch seconds or milliseconds, as number or digit string
    """
    if _is_empty(value) or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) or (isinstance(value, str) and value.strip().isdigit()):
        try:
            seconds = float(value)
            # Millisecond timestamps
            if seconds > 1e11:
                seconds /= 1000
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        date_str = value.strip()
        try:
            parsed = datetime.strptime(date_str, TWITTER_DATE_FORMAT)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
            except ValueError:
                return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        # Offset pushes the instant past the calendar range
        return None


def _resolve_count(raw: dict, fields: list[str]) -> Any:
    """Top-level candidates first, then the same names inside metric containers."""
    value = first_present(raw, fields)
    if value is not None:
        return value
    for container in METRIC_CONTAINERS:
        nested = raw.get(container)
        if isinstance(nested, dict):
            value = first_present(nested, fields)
            if value is not None:
                return value
    return None


def _extract_author(raw: dict) -> Author:
    for path in AUTHOR_CONTAINERS:
        source = _dig(raw, path)
        if isinstance(source, dict):
            break
    else:
        return Author()

    fields = {}
    username = _as_text(first_present(source, USERNAME_FIELDS))
    if username:
        fields["username"] = username.lstrip("@")
    display_name = _as_text(first_present(source, DISPLAY_NAME_FIELDS))
    if display_name:
        fields["display_name"] = display_name
    avatar = _as_text(first_present(source, AVATAR_FIELDS))
    if avatar:
        fields["avatar_url"] = avatar
    return Author(**fields)


def _extract_media(raw: dict) -> list[MediaItem]:
    for path in MEDIA_CONTAINERS:
        entities = _dig(raw, path)
        if isinstance(entities, list) and entities:
            break
    else:
        return []

    media = []
    for entity in entities:
        if not isinstance(entity, dict):
            continue
        url = _as_text(first_present(entity, MEDIA_URL_FIELDS))
        if url:
            media.append(MediaItem(type=_as_text(entity.get("type")) or "photo", url=url))
    return media


def _extract_link_preview(raw: dict) -> LinkPreview | None:
    card = raw.get("card")
    if not isinstance(card, dict):
        return None
    preview = LinkPreview(
        title=_as_text(card.get("title")),
        description=_as_text(card.get("description")),
        domain=_as_text(card.get("domain")),
        image_url=_as_text(first_present(card, CARD_IMAGE_FIELDS)),
    )
    if preview == LinkPreview():
        return None
    return preview


def find_reply_embed(raw: dict) -> dict | None:
    """Return an inline copy of the replied-to record, if the raw record carries one."""
    for name in REPLY_EMBED_FIELDS:
        candidate = raw.get(name)
        if get_record_id(candidate):
            return candidate
    return None


def _reference_entries(raw: dict) -> list[dict]:
    for name in REFERENCE_LIST_FIELDS:
        entries = raw.get(name)
        if isinstance(entries, list):
            return [entry for entry in entries if isinstance(entry, dict)]
    return []


def reference_embed(entry: dict) -> dict | None:
    """Return the record embedded in a references-list entry, if any."""
    for name in REFERENCE_EMBED_FIELDS:
        candidate = entry.get(name)
        if get_record_id(candidate):
            return candidate
    return None


def reference_id(entry: dict) -> str | None:
    embedded = reference_embed(entry)
    return _first_id(entry, ID_FIELDS) or get_record_id(embedded)


def find_reply_reference(raw: dict) -> dict | None:
    """Return the first references-list entry typed as a reply reference."""
    for entry in _reference_entries(raw):
        kind = _as_text(entry.get("type") or entry.get("kind"))
        if kind and kind.lower().replace("-", "_") in REPLY_REFERENCE_TYPES:
            return entry
    return None


def referenced_ids(raw: dict) -> list[str]:
    """All ids cited by the record's references list, whatever their type."""
    ids: list[str] = []
    for entry in _reference_entries(raw):
        ref = reference_id(entry)
        if ref and ref not in ids:
            ids.append(ref)
    return ids


def nested_records(raw: dict) -> list[dict]:
    """Raw records embedded in ``raw`` that may be targets of a reply lookup."""
    found = []
    embed = find_reply_embed(raw)
    if embed is not None:
        found.append(embed)
    for entry in _reference_entries(raw):
        embedded = reference_embed(entry)
        if embedded is not None:
            found.append(embedded)
    return found


def resolve_reply_target_id(raw: dict) -> str | None:
    """
    Collapse every way a record can say "I reply to X" into one id.

    Order: the explicit reply-target field, the other known id fields, the
    reply entry of the references list, and finally an inline embed.
    """
    explicit = _as_id(raw.get(EXPLICIT_REPLY_TO_ID_FIELD))
    if explicit:
        return explicit

    target = _first_id(raw, REPLY_TO_ID_FIELDS)
    if target:
        return target

    reference = find_reply_reference(raw)
    if reference is not None:
        target = reference_id(reference)
        if target:
            return target

    return get_record_id(find_reply_embed(raw))


def _resolve_is_reply(raw: dict, target_id: str | None) -> bool:
    for name in IS_REPLY_FIELDS:
        value = raw.get(name)
        if isinstance(value, bool):
            return value
    return target_id is not None


def _display_text(raw: dict, text: str, is_reply: bool, trim_reply_mentions: bool) -> str:
    """Slice off the leading @mentions of a reply using the source's display range."""
    if not (trim_reply_mentions and is_reply):
        return text
    bounds = first_present(raw, DISPLAY_RANGE_FIELDS)
    if not isinstance(bounds, list) or len(bounds) < 2:
        return text
    start, end = bounds[0], bounds[1]
    if not all(isinstance(b, int) and not isinstance(b, bool) for b in (start, end)):
        return text
    if 0 <= start < end <= len(text):
        return text[start:end]
    return text


def _snapshot_fields(raw: dict, post_id: str, is_reply: bool, trim_reply_mentions: bool) -> dict:
    text = _as_text(first_present(raw, TEXT_FIELDS)) or ""
    view_count = _resolve_count(raw, VIEW_COUNT_FIELDS)

    fields = {
        "id": post_id,
        "text": text,
        "display_text": _display_text(raw, text, is_reply, trim_reply_mentions),
        "created_at": parse_created_at(first_present(raw, CREATED_AT_FIELDS)),
        "url": _as_text(first_present(raw, URL_FIELDS)),
        "author": _extract_author(raw),
        "view_count": normalize_count(view_count) if view_count is not None else None,
        "media": _extract_media(raw),
        "link_preview": _extract_link_preview(raw),
    }
    for name, candidates in COUNT_FIELDS.items():
        fields[name] = normalize_count(_resolve_count(raw, candidates))
    return fields


def normalize_post(
    raw: Any,
    provenance: Provenance = Provenance.PRIMARY,
    trim_reply_mentions: bool = True,
) -> CanonicalPost | None:
    """
    Normalize one raw record into a CanonicalPost.

    Args:
        raw: Raw record from the API
        provenance: Batch the record came from
        trim_reply_mentions: Apply the source's display range to replies

    Returns:
        CanonicalPost, or None for records without an id
    """
    post_id = get_record_id(raw)
    if not post_id:
        logger.debug("record_dropped", reason="missing_id", provenance=provenance.value)
        return None

    target_id = resolve_reply_target_id(raw)
    is_reply = _resolve_is_reply(raw, target_id)

    try:
        return CanonicalPost(
            **_snapshot_fields(raw, post_id, is_reply, trim_reply_mentions),
            is_reply=is_reply,
            in_reply_to_id=target_id,
            in_reply_to_user_id=_first_id(raw, REPLY_TO_USER_ID_FIELDS),
            in_reply_to_username=_as_text(first_present(raw, REPLY_TO_USERNAME_FIELDS)),
            conversation_id=_first_id(raw, CONVERSATION_FIELDS),
            referenced_ids=referenced_ids(raw),
            provenance=provenance,
        )
    except (OverflowError, ValueError) as e:
        logger.warning("record_dropped", reason="invalid_fields", post_id=post_id, error=str(e))
        return None


def normalize_snapshot(raw: Any, trim_reply_mentions: bool = True) -> PostSnapshot | None:
    """
    Normalize a raw record into the depth-limited PostSnapshot.

    Field resolution is the same as normalize_post, but reply linkage and
    children are never carried, whatever the raw record contains.
    """
    post_id = get_record_id(raw)
    if not post_id:
        return None

    is_reply = _resolve_is_reply(raw, resolve_reply_target_id(raw))
    try:
        return PostSnapshot(**_snapshot_fields(raw, post_id, is_reply, trim_reply_mentions))
    except (OverflowError, ValueError) as e:
        logger.warning("snapshot_dropped", reason="invalid_fields", post_id=post_id, error=str(e))
        return None
