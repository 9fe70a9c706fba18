"""Output assembly and writers."""

from novel_retrieval.output.assembler import (
    ChapterSink,
    OrderedAssembler,
    format_chapter,
    format_missing,
)
from novel_retrieval.output.cache import ChapterCache
from novel_retrieval.output.text_file import TextFileSink

__all__ = [
    "ChapterCache",
    "ChapterSink",
    "OrderedAssembler",
    "TextFileSink",
    "format_chapter",
    "format_missing",
]
