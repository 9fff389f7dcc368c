#!/usr/bin/env python3
"""Published index repair script.

Rebuilds the ``blog:published:*`` entries from the authoritative ``blog:*``
records. Entries for deleted or drafted blogs are removed and missing or
stale entries are rewritten.

Usage:
    python scripts/rebuild_published_index.py
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from markpress.services.content import ContentService
from markpress.shared.config import get_settings
from markpress.shared.kv_store import RedisKVStore
from markpress.shared.log_config import configure_logging

logger = logging.getLogger(__name__)


async def main():
    """Main entry point for the index rebuild."""
    settings = get_settings()
    configure_logging(settings)
    logger.info("Rebuilding published index...")

    store = RedisKVStore.from_settings(settings)
    try:
        report = await ContentService(store).rebuild_published_index()
    except Exception as e:
        logger.error(f"Index rebuild failed: {e}")
        sys.exit(1)
    finally:
        await store.close()

    logger.info(
        f"Index rebuilt: {report.scanned} blogs scanned, "
        f"{report.written} entries written, {report.removed} entries removed"
    )


if __name__ == "__main__":
    asyncio.run(main())
