"""In-order assembly of chapters into a text sink."""

import asyncio
from collections.abc import Iterable
from typing import Protocol

from novel_retrieval.models import Chapter, ChapterFailure


class ChapterSink(Protocol):
    """Destination accepting text blocks in the order they are written."""

    async def write(self, text: str) -> None: ...


def format_chapter(chapter: Chapter) -> str:
    """Render a chapter as a title line, a blank line, then its paragraphs."""
    return f"{chapter.title}\n\n" + "\n".join(chapter.paragraphs) + "\n\n"


def format_missing(failure: ChapterFailure) -> str:
    """Render the marker line written in place of a failed chapter."""
    label = f": {failure.title}" if failure.title else ""
    return f"[missing chapter {failure.index}{label} ({failure.category.value})]\n\n"


_WRITTEN = object()


class OrderedAssembler:
    """Write chapters to a sink in ascending index order.

    Each index owns one slot that may be filled exactly once, whatever order
    the chapters finish in. Whenever the run of filled slots starting at the
    write cursor grows, it is flushed to the sink, so the sink always holds a
    gap-free prefix of the novel.
    """

    def __init__(self, total: int, sink: ChapterSink, missing_markers: bool = True):
        self.sink = sink
        self.missing_markers = missing_markers
        self._slots: list[Chapter | ChapterFailure | object | None] = [None] * total
        self._cursor = 0
        self._lock = asyncio.Lock()
        self.written: list[int] = []
        self.missing: list[int] = []

    @property
    def total(self) -> int:
        return len(self._slots)

    @property
    def next_index(self) -> int:
        """Lowest index not yet written."""
        return self._cursor

    @property
    def complete(self) -> bool:
        return self._cursor == len(self._slots)

    async def put(self, item: Chapter | ChapterFailure) -> None:
        """Fill the item's slot and flush whatever is now in order.

        Raises:
            ValueError: The index is out of range or its slot was already filled.
        """
        index = item.index
        if not 0 <= index < len(self._slots):
            raise ValueError(f"Chapter index {index} outside 0..{len(self._slots) - 1}")
        if self._slots[index] is not None:
            raise ValueError(f"Chapter index {index} was already delivered")
        self._slots[index] = item
        await self._flush()

    async def write(self, items: Iterable[Chapter | ChapterFailure]) -> None:
        """Deliver a batch of items in any order."""
        for item in items:
            await self.put(item)

    async def _flush(self) -> None:
        async with self._lock:
            while self._cursor < len(self._slots):
                item = self._slots[self._cursor]
                if item is None:
                    break
                if isinstance(item, Chapter):
                    await self.sink.write(format_chapter(item))
                    self.written.append(item.index)
                elif isinstance(item, ChapterFailure):
                    if self.missing_markers:
                        await self.sink.write(format_missing(item))
                    self.missing.append(item.index)
                self._slots[self._cursor] = _WRITTEN
                self._cursor += 1
