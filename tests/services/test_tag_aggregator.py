"""Tests for TagAggregator."""

from __future__ import annotations

from markpress.services.base import blog_key


class TestPopularTags:
    """Tag counts over published blogs."""

    async def test_counts_sorted_descending(self, tag_aggregator, content_service, alice):
        await content_service.create_blog(alice.id, "One", "Body", tags=["python", "web"])
        await content_service.create_blog(alice.id, "Two", "Body", tags=["python"])
        await content_service.create_blog(alice.id, "Three", "Body", tags=["python", "web", "redis"])

        tags = await tag_aggregator.popular_tags()

        assert [(t.tag, t.count) for t in tags] == [("python", 3), ("web", 2), ("redis", 1)]

    async def test_duplicate_tags_in_one_blog_count_twice(self, tag_aggregator, content_service, alice):
        await content_service.create_blog(alice.id, "Loud", "Body", tags=["Python", "python"])

        tags = await tag_aggregator.popular_tags()

        assert [(t.tag, t.count) for t in tags] == [("python", 2)]

    async def test_ties_keep_first_seen_order(self, tag_aggregator, content_service, alice):
        await content_service.create_blog(alice.id, "Tied", "Body", tags=["zeta", "alpha", "mid"])

        tags = await tag_aggregator.popular_tags()

        assert [t.tag for t in tags] == ["zeta", "alpha", "mid"]

    async def test_drafts_are_excluded(self, tag_aggregator, content_service, alice):
        await content_service.create_blog(alice.id, "Public", "Body", tags=["shown"])
        await content_service.create_blog(alice.id, "Private", "Body", tags=["hidden"], is_draft=True)

        tags = await tag_aggregator.popular_tags()

        assert [t.tag for t in tags] == ["shown"]

    async def test_unpublished_blog_drops_out(self, tag_aggregator, content_service, alice):
        blog = await content_service.create_blog(alice.id, "Public", "Body", tags=["shown"])

        await content_service.update_blog(blog.id, alice.id, "Public", "Body", tags=["shown"], is_draft=True)

        assert await tag_aggregator.popular_tags() == []

    async def test_orphaned_index_entries_are_skipped(self, tag_aggregator, content_service, kv_store, alice):
        blog = await content_service.create_blog(alice.id, "Gone", "Body", tags=["lost"])
        del kv_store.data[blog_key(blog.id)]

        assert await tag_aggregator.popular_tags() == []

    async def test_limit(self, tag_aggregator, content_service, alice):
        await content_service.create_blog(alice.id, "Many", "Body", tags=[f"tag{i}" for i in range(25)])

        assert len(await tag_aggregator.popular_tags()) == 20
        assert len(await tag_aggregator.popular_tags(limit=3)) == 3

    async def test_no_blogs(self, tag_aggregator):
        assert await tag_aggregator.popular_tags() == []
