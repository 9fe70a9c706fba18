"""On-disk cache of finished chapters for resumable runs."""

import logging
from pathlib import Path

import aiofiles
import aiofiles.os
from pydantic import ValidationError

from novel_retrieval.models import Chapter, ChapterRef

logger = logging.getLogger(__name__)


class ChapterCache:
    """Store each finished chapter as ``<index>.json`` under a directory.

    A cached chapter is reused only when it was fetched from the same URL,
    so a table of contents that shifted between runs refetches the affected
    chapters.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, index: int) -> Path:
        return self.directory / f"{index:05d}.json"

    async def load(self, ref: ChapterRef) -> Chapter | None:
        """Return the cached chapter for ``ref`` or None."""
        path = self.path_for(ref.index)
        if not await aiofiles.os.path.exists(path):
            return None
        async with aiofiles.open(path, encoding="utf-8") as f:
            data = await f.read()
        try:
            chapter = Chapter.model_validate_json(data)
        except ValidationError:
            logger.warning("Ignoring corrupt cache entry %s", path)
            return None
        if chapter.url != ref.url:
            logger.debug("Cache entry %s is for %s, not %s", path, chapter.url, ref.url)
            return None
        return chapter

    async def store(self, chapter: Chapter) -> None:
        await aiofiles.os.makedirs(self.directory, exist_ok=True)
        async with aiofiles.open(self.path_for(chapter.index), "w", encoding="utf-8") as f:
            await f.write(chapter.model_dump_json())
