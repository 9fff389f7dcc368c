"""Records owned by the services.

Each model is stored in the key-value store as a JSON object with camelCase
keys, the same shape the HTTP API returns. ``to_record`` produces the stored
form; ``model_validate`` reads it back.
"""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SOCIAL_PLATFORMS = ("twitter", "github", "linkedin", "instagram", "youtube")


class RecordModel(BaseModel):
    """Base model for stored records with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    # Fields attached for responses only, never persisted.
    transient_fields: ClassVar[frozenset] = frozenset()

    def to_record(self) -> dict:
        """Serialize to the JSON object written to the store."""
        return self.model_dump(mode="json", by_alias=True, exclude=set(self.transient_fields))


class AuthorSummary(RecordModel):
    """Minimal author projection attached to blogs and comments."""

    id: str
    name: str


class Blog(RecordModel):
    """A markdown post, draft or published."""

    transient_fields: ClassVar[frozenset] = frozenset({"author"})

    id: str
    title: str
    content: str
    slug: str
    tags: List[str] = Field(default_factory=list)
    is_draft: bool = False
    reading_time: int = 1
    author_id: str
    created_at: datetime
    updated_at: datetime
    views: int = 0
    author: Optional[AuthorSummary] = None


class PublishedIndexEntry(RecordModel):
    """Denormalized listing entry, present only while a blog is published."""

    id: str
    title: str
    tags: List[str] = Field(default_factory=list)
    slug: str
    author_id: str
    created_at: datetime

    @classmethod
    def for_blog(cls, blog: Blog) -> PublishedIndexEntry:
        return cls(
            id=blog.id,
            title=blog.title,
            tags=list(blog.tags),
            slug=blog.slug,
            author_id=blog.author_id,
            created_at=blog.created_at,
        )


class Comment(RecordModel):
    """Immutable comment on a published blog."""

    transient_fields: ClassVar[frozenset] = frozenset({"author"})

    id: str
    blog_id: str
    content: str
    author_id: str
    created_at: datetime
    author: Optional[AuthorSummary] = None


class Preferences(RecordModel):
    email_notifications: bool = True
    public_profile: bool = True
    show_email: bool = False
    show_phone: bool = False
    show_location: bool = True


class PreferencesUpdate(RecordModel):
    """Partial preferences; unset keys keep their stored values."""

    email_notifications: Optional[bool] = None
    public_profile: Optional[bool] = None
    show_email: Optional[bool] = None
    show_phone: Optional[bool] = None
    show_location: Optional[bool] = None


class User(RecordModel):
    """Profile record written at signup and edited only by its owner."""

    id: str
    name: str
    email: str = ""
    bio: str = ""
    location: str = ""
    phone: str = ""
    website: str = ""
    avatar: str = ""
    social_links: Dict[str, str] = Field(default_factory=dict)
    preferences: Preferences = Field(default_factory=Preferences)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def summary(self) -> AuthorSummary:
        return AuthorSummary(id=self.id, name=self.name)


class UserSummary(User):
    """Profile as returned by the API, with the computed blog count."""

    blog_count: int = 0


class ProfileUpdate(RecordModel):
    """Profile edit submitted by the owner."""

    name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    avatar: Optional[str] = None
    social_links: Optional[Dict[str, str]] = None
    preferences: Optional[PreferencesUpdate] = None


class TagCount(RecordModel):
    tag: str
    count: int


class BlogPage(RecordModel):
    """Result of a blog listing.

    ``page`` and ``total_pages`` are only set by the paginated search
    listing; the author listing returns every matching blog.
    """

    blogs: List[Blog] = Field(default_factory=list)
    total: int = 0
    page: Optional[int] = None
    total_pages: Optional[int] = None


class IndexRepairReport(RecordModel):
    scanned: int = 0
    written: int = 0
    removed: int = 0
