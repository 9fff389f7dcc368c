"""Popular tag aggregation over the published index."""

from __future__ import annotations

from collections import Counter
from typing import List

from markpress.services.base import PUBLISHED_PREFIX, BaseService, blog_key
from markpress.services.models import TagCount

DEFAULT_TAG_LIMIT = 20


class TagAggregator(BaseService):
    """Counts tags across published blogs."""

    async def popular_tags(self, limit: int = DEFAULT_TAG_LIMIT) -> List[TagCount]:
        """Most used tags among published blogs.

        Every occurrence in a blog's tag list counts, so a blog that lists a
        tag twice contributes two. Ties keep the order in which tags were
        first seen while scanning the index.
        """
        counts: Counter = Counter()
        for entry in await self.store.get_by_prefix(PUBLISHED_PREFIX):
            record = await self.store.get(blog_key(entry["id"]))
            if record is None or record.get("isDraft", False):
                continue
            for tag in record.get("tags") or []:
                counts[tag] += 1

        return [TagCount(tag=tag, count=count) for tag, count in counts.most_common(limit)]
