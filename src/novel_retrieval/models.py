"""Data models shared by adapters, discovery and output."""

import re

from pydantic import BaseModel, ConfigDict, Field

from novel_retrieval.errors import ErrorCategory

_UNSAFE_FILENAME_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


class ChapterRef(BaseModel):
    """A chapter link taken from a table-of-contents page."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)  # Zero-based position in reading order
    url: str
    title_hint: str | None = None


class Chapter(BaseModel):
    """A fully parsed chapter, ready to be written."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    url: str
    title: str
    paragraphs: tuple[str, ...]


class ChapterPage(BaseModel):
    """Title and body extracted from one fetched chapter page."""

    model_config = ConfigDict(frozen=True)

    title: str
    paragraphs: tuple[str, ...]
    next_url: str | None = None  # Continuation page of the same chapter


class BookInfo(BaseModel):
    """Book metadata found on the table-of-contents page."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    author: str = ""

    def file_stem(self) -> str:
        """Build a filesystem-safe ``author_title`` name."""
        parts = [p.strip() for p in (self.author, self.title) if p and p.strip()]
        stem = "_".join(parts) or "novel"
        return _UNSAFE_FILENAME_RE.sub("_", stem)


class TocPage(BaseModel):
    """Chapter listing extracted from one table-of-contents page."""

    model_config = ConfigDict(frozen=True)

    refs: tuple[ChapterRef, ...]
    next_url: str | None = None
    book: BookInfo | None = None


class ChapterFailure(BaseModel):
    """A chapter that could not be fetched or parsed."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    url: str
    title: str | None = None
    category: ErrorCategory = ErrorCategory.UNKNOWN
    message: str


class Discovery(BaseModel):
    """The merged table of contents of a novel."""

    book: BookInfo
    refs: list[ChapterRef]
    toc_pages: list[str]

    @property
    def chapter_count(self) -> int:
        return len(self.refs)
