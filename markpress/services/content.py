"""Blog and comment operations.

The content service is the only writer of blog, comment and published-index
records. The published index (``blog:published:{id}``) mirrors
``isDraft is False`` for every blog; each write path that changes a blog's
draft state adds or removes its index entry in the same call.

None of the operations are atomic across keys. Concurrent writers to the same
blog or author list race with last-writer-wins on each key, and a failing
cascade delete leaves the steps already done in place.
"""

from __future__ import annotations

import math
import re
from typing import Dict, Iterable, List, Optional
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from markpress.services.base import (
    PUBLISHED_PREFIX,
    BaseService,
    blog_key,
    comment_key,
    comment_prefix,
    published_key,
    user_blogs_key,
)
from markpress.services.exceptions import (
    AuthError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from markpress.services.models import (
    AuthorSummary,
    Blog,
    BlogPage,
    Comment,
    IndexRepairReport,
    PublishedIndexEntry,
)
from markpress.shared.date_provider import DateProvider
from markpress.shared.kv_store import KVStore

WORDS_PER_MINUTE = 200
DEFAULT_PAGE_SIZE = 12
FALLBACK_SLUG = "post"
SLUG_SUFFIX_LENGTH = 8

_DISALLOWED_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHEN_RUNS = re.compile(r"-+")


def slugify(title: str) -> str:
    """Derive a URL-safe slug from a title.

    The result only contains ``[a-z0-9-]`` and never starts, ends or
    doubles a hyphen. Titles without any usable character give ``""``.
    """
    slug = _DISALLOWED_SLUG_CHARS.sub("", title.lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHEN_RUNS.sub("-", slug)
    return slug.strip("-")


def reading_time(content: str) -> int:
    """Estimated minutes to read content at 200 words per minute, at least 1."""
    words = len(content.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Strip and lowercase tags, dropping blanks. Duplicates are kept."""
    if not tags:
        return []
    normalized = []
    for tag in tags:
        tag = tag.strip().lower()
        if tag:
            normalized.append(tag)
    return normalized


class ContentService(BaseService):
    """Blog lifecycle, search, view counting and comments."""

    def __init__(
        self,
        store: KVStore,
        date_provider: Optional[DateProvider] = None,
        page_size: int = DEFAULT_PAGE_SIZE
    ):
        super().__init__(store, date_provider)
        self.page_size = page_size

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _load_blog(self, blog_id: str) -> Optional[Blog]:
        record = await self.store.get(blog_key(blog_id))
        if record is None:
            return None
        return Blog.model_validate(record)

    async def _require_blog(self, blog_id: str) -> Blog:
        blog = await self._load_blog(blog_id)
        if blog is None:
            raise NotFoundError("blog", blog_id)
        return blog

    async def _index_entries(self) -> List[PublishedIndexEntry]:
        return [
            PublishedIndexEntry.model_validate(value)
            for value in await self.store.get_by_prefix(PUBLISHED_PREFIX)
        ]

    async def _published_blogs(self) -> List[Blog]:
        """Resolve every index entry to its full record, in index order."""
        blogs = []
        for entry in await self._index_entries():
            blog = await self._load_blog(entry.id)
            if blog is None:
                self._logger.debug("Skipping orphaned index entry", extra={"blog_id": entry.id})
                continue
            if blog.is_draft:
                self._logger.warning("Index entry points at a draft", extra={"blog_id": entry.id})
                continue
            blogs.append(blog)
        return blogs

    async def _resolve_slug(self, title: str, blog_id: str, is_draft: bool) -> str:
        """Slug for a blog, suffixed with part of its id when another published blog has it."""
        slug = slugify(title) or FALLBACK_SLUG
        if is_draft:
            return slug

        for entry in await self._index_entries():
            if entry.slug == slug and entry.id != blog_id:
                return f"{slug}-{blog_id[:SLUG_SUFFIX_LENGTH]}"
        return slug

    async def _write_index_entry(self, blog: Blog) -> None:
        await self.store.set(published_key(blog.id), PublishedIndexEntry.for_blog(blog).to_record())

    async def _attach_authors(self, blogs: List[Blog]) -> List[Blog]:
        cache: Dict[str, Optional[AuthorSummary]] = {}
        attached = []
        for blog in blogs:
            author = await self._author_summary(blog.author_id, cache)
            attached.append(blog.model_copy(update={"author": author}))
        return attached

    @staticmethod
    def _validate_post(title: Optional[str], content: Optional[str]) -> None:
        if not title or not title.strip():
            raise ValidationError("title", "Title and content are required")
        if not content or not content.strip():
            raise ValidationError("content", "Title and content are required")

    # ------------------------------------------------------------------
    # Blogs
    # ------------------------------------------------------------------

    async def create_blog(
        self,
        author_id: Optional[str],
        title: Optional[str],
        content: Optional[str],
        tags: Optional[Iterable[str]] = None,
        is_draft: bool = False
    ) -> Blog:
        """Create a blog owned by author_id.

        Writes the blog record, appends its id to the author's blog list and,
        for published blogs, writes the index entry with the blog's own
        creation time.

        Raises:
            AuthError: If there is no authenticated author
            ValidationError: If title or content is empty
        """
        if not author_id:
            raise AuthError()
        self._validate_post(title, content)

        blog_id = str(uuid4())
        title = title.strip()
        now = self._now()
        blog = Blog(
            id=blog_id,
            title=title,
            content=content,
            slug=await self._resolve_slug(title, blog_id, is_draft),
            tags=normalize_tags(tags),
            is_draft=is_draft,
            reading_time=reading_time(content),
            author_id=author_id,
            created_at=now,
            updated_at=now,
            views=0,
        )

        await self.store.set(blog_key(blog_id), blog.to_record())

        blog_ids = await self.store.get(user_blogs_key(author_id)) or []
        blog_ids.append(blog_id)
        await self.store.set(user_blogs_key(author_id), blog_ids)

        if not is_draft:
            await self._write_index_entry(blog)

        self._logger.info(
            "Created blog",
            extra={"blog_id": blog_id, "author_id": author_id, "is_draft": is_draft},
        )
        return blog

    async def list_blogs(
        self,
        search: Optional[str] = None,
        tag: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
        author_id: Optional[str] = None,
        viewer_id: Optional[str] = None
    ) -> BlogPage:
        """List blogs.

        With ``author_id`` every blog of that author is returned, drafts
        included only when the viewer is the author, and no pagination is
        applied. Otherwise the published index is searched, sorted newest
        first and paginated.

        Args:
            search: Case-insensitive substring matched against title or content
            tag: Case-insensitive exact tag filter
            page: 1-based page number
            limit: Blogs per page, defaults to the service page size
            author_id: Restrict to one author's blogs
            viewer_id: Authenticated caller, if any

        Returns:
            BlogPage: Matching blogs with totals
        """
        if author_id:
            return await self._list_author_blogs(author_id, viewer_id)

        limit = self.page_size if limit is None else limit
        if page < 1:
            raise ValidationError("page", "Page must be at least 1")
        if limit < 1:
            raise ValidationError("limit", "Limit must be at least 1")

        needle = search.lower() if search else ""
        wanted_tag = tag.strip().lower() if tag else ""

        matches = []
        for blog in await self._published_blogs():
            if needle and needle not in blog.title.lower() and needle not in blog.content.lower():
                continue
            if wanted_tag and wanted_tag not in (t.lower() for t in blog.tags):
                continue
            matches.append(blog)

        # Stable sort keeps index order for equal timestamps.
        matches.sort(key=lambda b: b.created_at, reverse=True)

        total = len(matches)
        start = (page - 1) * limit
        page_blogs = await self._attach_authors(matches[start:start + limit])

        return BlogPage(
            blogs=page_blogs,
            total=total,
            page=page,
            total_pages=max(1, math.ceil(total / limit)),
        )

    async def _list_author_blogs(self, author_id: str, viewer_id: Optional[str]) -> BlogPage:
        is_owner = viewer_id is not None and viewer_id == author_id
        blogs = []
        for blog_id in await self.store.get(user_blogs_key(author_id)) or []:
            blog = await self._load_blog(blog_id)
            if blog is None:
                continue
            if blog.is_draft and not is_owner:
                continue
            blogs.append(blog)

        blogs = await self._attach_authors(blogs)
        return BlogPage(blogs=blogs, total=len(blogs))

    async def get_blog_by_slug(self, slug: str) -> Blog:
        """Fetch a published blog by slug and count a view.

        The oldest published blog wins when several share a slug. Every
        successful fetch increments the view counter, repeated viewers
        included.

        Raises:
            NotFoundError: If no published blog has the slug, or its record is gone
        """
        entries = sorted(await self._index_entries(), key=lambda e: (e.created_at, e.id))
        entry = next((e for e in entries if e.slug == slug), None)
        if entry is None:
            raise NotFoundError("blog", slug)

        blog = await self._load_blog(entry.id)
        if blog is None:
            self._logger.warning("Orphaned index entry", extra={"blog_id": entry.id, "slug": slug})
            raise NotFoundError("blog", slug)
        if blog.is_draft:
            self._logger.warning("Index entry points at a draft", extra={"blog_id": entry.id, "slug": slug})
            raise NotFoundError("blog", slug)

        blog = blog.model_copy(update={"views": blog.views + 1})
        await self.store.set(blog_key(blog.id), blog.to_record())

        author = await self._author_summary(blog.author_id)
        return blog.model_copy(update={"author": author})

    async def get_blog(self, blog_id: str, viewer_id: Optional[str] = None) -> Blog:
        """Fetch a blog by id without counting a view.

        Drafts are only visible to their author.

        Raises:
            NotFoundError: If the blog is missing or is a draft of someone else
        """
        blog = await self._require_blog(blog_id)
        if blog.is_draft and blog.author_id != viewer_id:
            raise NotFoundError("blog", blog_id)
        author = await self._author_summary(blog.author_id)
        return blog.model_copy(update={"author": author})

    async def update_blog(
        self,
        blog_id: str,
        caller_id: str,
        title: Optional[str],
        content: Optional[str],
        tags: Optional[Iterable[str]] = None,
        is_draft: Optional[bool] = None
    ) -> Blog:
        """Replace a blog's title, content, tags and draft state.

        Slug and reading time are recomputed on every update. Publishing
        upserts the index entry with the original creation time; switching
        to draft removes it.

        Args:
            blog_id: Blog to update
            caller_id: Authenticated caller, must be the author
            title: New title
            content: New content
            tags: New tags, None clears them
            is_draft: New draft state, None keeps the current one

        Raises:
            NotFoundError: If the blog doesn't exist
            ForbiddenError: If the caller is not the author
            ValidationError: If title or content is empty
        """
        existing = await self._require_blog(blog_id)
        if existing.author_id != caller_id:
            raise ForbiddenError("blog", blog_id, caller_id)
        self._validate_post(title, content)

        title = title.strip()
        draft = existing.is_draft if is_draft is None else is_draft
        updated = existing.model_copy(update={
            "title": title,
            "content": content,
            "slug": await self._resolve_slug(title, blog_id, draft),
            "tags": normalize_tags(tags),
            "is_draft": draft,
            "reading_time": reading_time(content),
            "updated_at": self._now(),
        })

        await self.store.set(blog_key(blog_id), updated.to_record())

        if updated.is_draft:
            await self.store.delete(published_key(blog_id))
        else:
            await self._write_index_entry(updated)

        self._logger.info(
            "Updated blog",
            extra={"blog_id": blog_id, "author_id": caller_id, "is_draft": updated.is_draft},
        )
        return updated

    async def delete_blog(self, blog_id: str, caller_id: str) -> None:
        """Delete a blog with its index entry, author list slot and comments.

        Steps run in order and are not rolled back if a later one fails.

        Raises:
            NotFoundError: If the blog doesn't exist
            ForbiddenError: If the caller is not the author
        """
        blog = await self._require_blog(blog_id)
        if blog.author_id != caller_id:
            raise ForbiddenError("blog", blog_id, caller_id)

        await self.store.delete(blog_key(blog_id))
        await self.store.delete(published_key(blog_id))

        blog_ids = await self.store.get(user_blogs_key(blog.author_id)) or []
        await self.store.set(
            user_blogs_key(blog.author_id),
            [existing_id for existing_id in blog_ids if existing_id != blog_id],
        )

        comment_keys = [key for key, _ in await self.store.scan_prefix(comment_prefix(blog_id))]
        for key in comment_keys:
            await self.store.delete(key)

        self._logger.info(
            "Deleted blog",
            extra={"blog_id": blog_id, "author_id": caller_id, "comments_deleted": len(comment_keys)},
        )

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def add_comment(self, blog_id: str, author_id: Optional[str], content: Optional[str]) -> Comment:
        """Add a comment to a published blog.

        Raises:
            AuthError: If there is no authenticated author
            ValidationError: If content is blank
            NotFoundError: If the blog is missing or is a draft
        """
        if not author_id:
            raise AuthError()
        text = (content or "").strip()
        if not text:
            raise ValidationError("content", "Comment content is required")

        blog = await self._load_blog(blog_id)
        if blog is None or blog.is_draft:
            raise NotFoundError("blog", blog_id)

        comment = Comment(
            id=str(uuid4()),
            blog_id=blog_id,
            content=text,
            author_id=author_id,
            created_at=self._now(),
        )
        await self.store.set(comment_key(blog_id, comment.id), comment.to_record())

        self._logger.info(
            "Created comment",
            extra={"blog_id": blog_id, "comment_id": comment.id, "author_id": author_id},
        )
        author = await self._author_summary(author_id)
        return comment.model_copy(update={"author": author})

    async def list_comments(self, blog_id: str) -> List[Comment]:
        """Comments on a blog with author projections, newest first."""
        cache: Dict[str, Optional[AuthorSummary]] = {}
        comments = []
        for value in await self.store.get_by_prefix(comment_prefix(blog_id)):
            comment = Comment.model_validate(value)
            author = await self._author_summary(comment.author_id, cache)
            comments.append(comment.model_copy(update={"author": author}))

        comments.sort(key=lambda c: c.created_at, reverse=True)
        return comments

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def rebuild_published_index(self) -> IndexRepairReport:
        """Rebuild the published index from the full blog records.

        Writes an entry for every published blog and removes entries whose
        blog is missing or is a draft.
        """
        blogs: Dict[str, Blog] = {}
        for key, value in await self.store.scan_prefix("blog:"):
            if key.startswith(PUBLISHED_PREFIX):
                continue
            try:
                blog = Blog.model_validate(value)
            except PydanticValidationError:
                self._logger.warning("Skipping malformed blog record", extra={"key": key})
                continue
            blogs[blog.id] = blog

        report = IndexRepairReport(scanned=len(blogs))
        for blog in blogs.values():
            if not blog.is_draft:
                await self._write_index_entry(blog)
                report.written += 1

        for entry in await self._index_entries():
            blog = blogs.get(entry.id)
            if blog is None or blog.is_draft:
                await self.store.delete(published_key(entry.id))
                report.removed += 1

        self._logger.info(
            "Rebuilt published index",
            extra={"scanned": report.scanned, "written": report.written, "removed": report.removed},
        )
        return report
