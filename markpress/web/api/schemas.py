"""Pydantic schemas for API request and response models.

Request and response bodies use camelCase keys. Blog, comment and profile
payloads reuse the service records directly so the stored and returned
shapes cannot drift apart.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from markpress.services.models import Blog, Comment, TagCount, UserSummary


class BaseAPIModel(BaseModel):
    """Base model for all API schemas with common configuration."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        arbitrary_types_allowed=False,
    )


# ============================================================================
# Authentication Schemas
# ============================================================================

class SignupRequest(BaseAPIModel):
    """Request model for account signup."""

    email: Optional[str] = Field(None, description="Account email")
    password: Optional[str] = Field(None, description="Account password")
    name: Optional[str] = Field(None, description="Display name")


class SignupUser(BaseAPIModel):
    id: str = Field(description="User ID issued by the identity provider")
    email: Optional[str] = Field(None, description="Account email")
    name: str = Field(description="Display name")


class SignupResponse(BaseAPIModel):
    user: SignupUser


# ============================================================================
# Blog Schemas
# ============================================================================

class BlogCreate(BaseAPIModel):
    """Request model for creating a blog."""

    title: Optional[str] = Field(None, description="Blog title")
    content: Optional[str] = Field(None, description="Markdown content")
    tags: Optional[List[str]] = Field(None, description="Tags, stored lowercase")
    is_draft: bool = Field(False, description="Keep the blog out of public listings")


class BlogUpdate(BaseAPIModel):
    """Request model for updating a blog.

    Title, content and tags replace the stored values; an omitted
    ``isDraft`` keeps the current draft state.
    """

    title: Optional[str] = Field(None, description="Blog title")
    content: Optional[str] = Field(None, description="Markdown content")
    tags: Optional[List[str]] = Field(None, description="Tags, stored lowercase")
    is_draft: Optional[bool] = Field(None, description="New draft state")


class BlogResponse(BaseAPIModel):
    blog: Blog


class BlogListResponse(BaseAPIModel):
    """Paginated search listing."""

    blogs: List[Blog]
    total: int = Field(ge=0, description="Number of matching blogs")
    page: int = Field(ge=1, description="Current page")
    total_pages: int = Field(ge=1, description="Number of pages")


class AuthorBlogListResponse(BaseAPIModel):
    """Listing of a single author's blogs, not paginated."""

    blogs: List[Blog]
    total: int = Field(ge=0, description="Number of blogs returned")


# ============================================================================
# Comment Schemas
# ============================================================================

class CommentCreate(BaseAPIModel):
    content: Optional[str] = Field(None, description="Comment text")


class CommentResponse(BaseAPIModel):
    comment: Comment


class CommentListResponse(BaseAPIModel):
    comments: List[Comment]


# ============================================================================
# User and Tag Schemas
# ============================================================================

class UserResponse(BaseAPIModel):
    user: UserSummary


class TagListResponse(BaseAPIModel):
    tags: List[TagCount]


# ============================================================================
# Error and Utility Schemas
# ============================================================================

class ErrorDetail(BaseAPIModel):
    """Individual error detail."""

    code: str = Field(description="Error code")
    message: str = Field(description="Human readable error message")
    field: Optional[str] = Field(None, description="Field that caused error")


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(description="Human readable error message")
    detail: str = Field(description="Main error message")
    type: str = Field(description="Error type")
    errors: Optional[List[ErrorDetail]] = Field(None, description="Detailed error list")
    timestamp: datetime = Field(description="Error timestamp")
    request_id: Optional[str] = Field(None, description="Request ID for tracking")

    @field_serializer('timestamp')
    def serialize_timestamp(self, value: datetime) -> str:
        return value.isoformat()


class SuccessResponse(BaseAPIModel):
    """Generic success response."""

    success: bool = Field(default=True, description="Operation success status")


class HealthResponse(BaseAPIModel):
    """Health check response."""

    status: str = Field(description="Service health status")
