"""Fetch batch input model."""

from typing import Any

from pydantic import BaseModel, field_validator

# Where each batch lives in the response payloads we know about.
# Paths are tried in order; the first one that holds a list wins.
PRIMARY_PATHS = [
    ("data", "tweets"),
    ("tweets",),
    ("data",),
    ("results",),
]

INCLUDED_PATHS = [
    ("includes", "tweets"),
    ("included",),
    ("includes",),
    ("includedTweets",),
    ("included_tweets",),
    ("data", "included"),
]

REPLIED_TO_PATHS = [
    ("repliedTo",),
    ("replied_to",),
    ("repliedToTweets",),
    ("replied_to_tweets",),
    ("includes", "replied_to"),
    ("data", "repliedTo"),
]


def _dig(payload: Any, path: tuple[str, ...]) -> Any:
    node = payload
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _first_list(payload: Any, paths: list[tuple[str, ...]]) -> list:
    for path in paths:
        value = _dig(payload, path)
        if isinstance(value, list):
            return value
    return []


class FetchBatch(BaseModel):
    """
    The three raw record lists delivered by one fetch call.

    Anything that is not a list is read as an empty batch, and entries
    that are not JSON objects are discarded.
    """

    primary: list[dict[str, Any]] = []
    included: list[dict[str, Any]] = []
    replied_to: list[dict[str, Any]] = []

    @field_validator("primary", "included", "replied_to", mode="before")
    @classmethod
    def _coerce_batch(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @property
    def total_records(self) -> int:
        return len(self.primary) + len(self.included) + len(self.replied_to)

    @classmethod
    def from_response(cls, payload: Any) -> "FetchBatch":
        """
        Build a batch from a decoded API response.

        A bare list is taken as the primary batch. For objects, the known
        locations of each batch are probed in turn.
        """
        if isinstance(payload, list):
            return cls(primary=payload)
        if not isinstance(payload, dict):
            return cls()
        return cls(
            primary=_first_list(payload, PRIMARY_PATHS),
            included=_first_list(payload, INCLUDED_PATHS),
            replied_to=_first_list(payload, REPLIED_TO_PATHS),
        )
