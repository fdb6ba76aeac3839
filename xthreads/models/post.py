"""Post data models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Provenance(str, Enum):
    """Which input batch a post came from."""
    PRIMARY = "primary"
    INCLUDED = "included"
    REPLIED_TO = "replied_to"


class Author(BaseModel):
    """Author snapshot attached to a post."""

    username: str = "unknown"
    display_name: str = "Unknown User"
    avatar_url: str = ""


class MediaItem(BaseModel):
    """Media attachment reference."""

    type: str = "photo"
    url: str


class LinkPreview(BaseModel):
    """Link card snapshot."""

    title: str | None = None
    description: str | None = None
    domain: str | None = None
    image_url: str | None = None


class PostSnapshot(BaseModel):
    """
    A post without reply linkage or children.

    Used for the inline ``replied_to`` value of a reply, so an embedded
    parent can never carry a parent of its own.
    """

    id: str
    text: str = ""
    display_text: str = ""
    created_at: datetime | None = None
    url: str | None = None
    author: Author = Field(default_factory=Author)

    # Engagement metrics
    like_count: int = Field(default=0, ge=0)
    retweet_count: int = Field(default=0, ge=0)
    reply_count: int = Field(default=0, ge=0)
    quote_count: int = Field(default=0, ge=0)
    view_count: int | None = Field(default=None, ge=0)

    media: list[MediaItem] = []
    link_preview: LinkPreview | None = None

    @property
    def engagement_count(self) -> int:
        return self.like_count + self.reply_count + self.retweet_count + self.quote_count

    def engagement_rate(self) -> float | None:
        """Engagements per view as a percentage, or None without views."""
        if not self.view_count:
            return None
        return self.engagement_count / self.view_count * 100


class CanonicalPost(PostSnapshot):
    """Normalized post with reply linkage, thread children and provenance."""

    # Reply linkage
    is_reply: bool = False
    in_reply_to_id: str | None = None
    in_reply_to_user_id: str | None = None
    in_reply_to_username: str | None = None
    conversation_id: str | None = None
    referenced_ids: list[str] = []

    replied_to: PostSnapshot | None = None
    children: list["CanonicalPost"] = []
    provenance: Provenance = Provenance.PRIMARY

    @property
    def is_primary(self) -> bool:
        return self.provenance == Provenance.PRIMARY

    def references(self, post_id: str) -> bool:
        """True if this post points at ``post_id`` through any reply or reference field."""
        if self.in_reply_to_id == post_id:
            return True
        if self.replied_to is not None and self.replied_to.id == post_id:
            return True
        return post_id in self.referenced_ids
