"""Main orchestrator that coordinates the download pipeline."""

import asyncio
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from novel_retrieval.config import AppConfig, Strictness
from novel_retrieval.discovery import TocDiscoverer
from novel_retrieval.errors import (
    ChapterError,
    ErrorCategory,
    FetchError,
    HttpError,
    ParseError,
    categorize_error,
)
from novel_retrieval.fetcher import BaseFetcher, HttpFetcher
from novel_retrieval.models import BookInfo, Chapter, ChapterFailure, ChapterRef
from novel_retrieval.output import ChapterCache, OrderedAssembler, TextFileSink
from novel_retrieval.sites import DEFAULT_REGISTRY, SiteAdapter, SiteRegistry
from novel_retrieval.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class ChapterStatus(str, Enum):
    """Status of a chapter in the pipeline."""

    QUEUED = "queued"
    FETCHING = "fetching"
    DONE = "done"
    CACHED = "cached"
    ERROR = "error"


_ERROR_SUGGESTIONS: dict[ErrorCategory, str] = {
    ErrorCategory.NETWORK: "Check your connection, or raise --timeout and --retries",
    ErrorCategory.RATE_LIMITED: "Try --delay 1.0 and a lower --concurrency",
    ErrorCategory.CLIENT_ERROR: "The chapter may have been removed; check it in a browser",
    ErrorCategory.SERVER_ERROR: "The site may be overloaded; rerun later with --cache-dir",
    ErrorCategory.ENCODING: "The page is not valid text in any declared encoding",
    ErrorCategory.PARSE: "The site's markup may have changed",
    ErrorCategory.UNKNOWN: "Rerun with --verbose for details",
}


@dataclass
class ChapterTiming:
    """Timing data for a single chapter through the pipeline."""

    index: int
    url: str
    status: ChapterStatus = ChapterStatus.QUEUED
    start: float = 0.0
    end: float = 0.0
    pages: int = 0
    attempts: int = 0

    @property
    def duration(self) -> float:
        if self.start and self.end:
            return self.end - self.start
        return 0.0


@dataclass
class DownloadResult:
    """Result of one download run."""

    site: str = ""
    book: BookInfo = field(default_factory=BookInfo)
    toc_pages: int = 0
    total: int = 0
    succeeded: list[int] = field(default_factory=list)
    cached: list[int] = field(default_factory=list)
    failures: list[ChapterFailure] = field(default_factory=list)
    timings: list[ChapterTiming] = field(default_factory=list)
    output_path: Path | None = None
    cancelled: bool = False
    pipeline_start: float = 0.0
    pipeline_end: float = 0.0
    discovery_duration: float = 0.0

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def missing_indices(self) -> list[int]:
        return sorted(f.index for f in self.failures)


class Orchestrator:
    """Coordinates discovery, concurrent chapter fetching and output."""

    def __init__(
        self,
        config: AppConfig,
        console: Console | None = None,
        registry: SiteRegistry | None = None,
        fetcher: BaseFetcher | None = None,
    ):
        self.config = config
        self.console = console or Console()
        self.registry = registry or DEFAULT_REGISTRY
        self._fetcher = fetcher
        self.rate_limiter: RateLimiter | None = None

    @property
    def fail_fast(self) -> bool:
        return self.config.strictness == Strictness.FAIL_FAST

    async def run(self) -> DownloadResult:
        """Execute the full download pipeline.

        Raises:
            UnsupportedSiteError: No adapter recognizes the entry URL.
            DiscoveryError: The table of contents could not be read completely.
            ChapterError: A chapter failed in fail-fast mode.
        """
        result = DownloadResult()
        result.pipeline_start = time.monotonic()

        adapter = self.registry.resolve(self.config.entry_url)
        result.site = adapter.display_name
        self.rate_limiter = RateLimiter(
            self.config.rate_limit.delay_seconds,
            self.config.rate_limit.max_concurrent or adapter.max_concurrent,
        )
        fetcher = self._fetcher or HttpFetcher(self.config.fetcher)

        async with fetcher:
            self.console.print(
                f"[blue]Discovering chapters from {escape(self.config.entry_url)}"
                f" ({escape(adapter.display_name)})...[/blue]"
            )
            discovery_start = time.monotonic()
            discoverer = TocDiscoverer(
                self.config.entry_url, adapter, fetcher, self.config.discovery
            )
            discovery = await discoverer.discover()
            result.discovery_duration = time.monotonic() - discovery_start
            result.book = discovery.book
            result.toc_pages = len(discovery.toc_pages)
            result.total = discovery.chapter_count
            result.timings = [ChapterTiming(index=r.index, url=r.url) for r in discovery.refs]

            book_label = discovery.book.title or "novel"
            if discovery.book.author:
                book_label += f" by {discovery.book.author}"
            self.console.print(
                f"[green]Found {result.total} chapters of {escape(book_label)}"
                f" across {result.toc_pages} page(s)[/green]"
            )

            output_path = self._output_path(discovery.book)
            cache = self._create_cache(adapter, discovery.book)
            sink = TextFileSink(output_path)
            await sink.open()
            assembler = OrderedAssembler(
                result.total, sink, missing_markers=self.config.output.missing_markers
            )

            try:
                await self._download_chapters(
                    adapter, discovery.refs, fetcher, assembler, cache, result
                )
            except asyncio.CancelledError:
                result.cancelled = True
                if self.fail_fast:
                    await sink.discard()
                else:
                    result.output_path = await sink.commit()
                    self.console.print(
                        f"[yellow]Cancelled; kept the first {assembler.next_index}"
                        f" chapter(s) in {escape(str(result.output_path))}[/yellow]"
                    )
                raise
            except BaseException:
                await sink.discard()
                raise

            if result.success_count:
                result.output_path = await sink.commit()
            else:
                await sink.discard()

        result.pipeline_end = time.monotonic()

        if result.output_path:
            self.console.print(
                f"[green]Written to {escape(str(result.output_path))}"
                f" ({_format_size(sink.chars_written)} characters,"
                f" {result.success_count} chapters)[/green]"
            )
        self._print_summary(result)
        return result

    async def _download_chapters(
        self,
        adapter: SiteAdapter,
        refs: list[ChapterRef],
        fetcher: BaseFetcher,
        assembler: OrderedAssembler,
        cache: ChapterCache | None,
        result: DownloadResult,
    ) -> None:
        """Fetch all chapters concurrently, bounded by the rate limiter."""
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("•"),
            TimeRemainingColumn(),
            console=self.console,
        )
        with progress:
            task_id = progress.add_task("Downloading...", total=len(refs))
            tasks = [
                asyncio.create_task(
                    self._process_chapter(
                        ref, adapter, fetcher, assembler, cache, result, progress, task_id
                    )
                )
                for ref in refs
            ]
            try:
                await asyncio.gather(*tasks)
            finally:
                for task in tasks:
                    if not task.done():
                        task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)

    async def _process_chapter(
        self,
        ref: ChapterRef,
        adapter: SiteAdapter,
        fetcher: BaseFetcher,
        assembler: OrderedAssembler,
        cache: ChapterCache | None,
        result: DownloadResult,
        progress: Progress,
        task_id: TaskID,
    ) -> None:
        """Fetch, parse and deliver one chapter to the assembler."""
        timing = result.timings[ref.index]
        timing.start = time.monotonic()
        try:
            chapter = await cache.load(ref) if cache else None
            if chapter is not None:
                timing.status = ChapterStatus.CACHED
                result.cached.append(ref.index)
            else:
                timing.status = ChapterStatus.FETCHING
                chapter = await self._fetch_chapter(ref, adapter, fetcher, timing)
                if cache:
                    await cache.store(chapter)
                timing.status = ChapterStatus.DONE
        except (FetchError, ParseError) as e:
            timing.status = ChapterStatus.ERROR
            timing.end = time.monotonic()
            if self.fail_fast:
                raise ChapterError(ref.index, ref.url, e) from e
            logger.debug("Chapter %d failed: %s", ref.index, e)
            failure = ChapterFailure(
                index=ref.index,
                url=ref.url,
                title=ref.title_hint,
                category=categorize_error(e),
                message=str(e),
            )
            result.failures.append(failure)
            await assembler.put(failure)
        else:
            timing.end = time.monotonic()
            result.succeeded.append(ref.index)
            await assembler.put(chapter)
        finally:
            progress.update(task_id, advance=1)

    async def _fetch_chapter(
        self,
        ref: ChapterRef,
        adapter: SiteAdapter,
        fetcher: BaseFetcher,
        timing: ChapterTiming,
    ) -> Chapter:
        """Fetch a chapter, following continuation pages of the same chapter."""
        assert self.rate_limiter is not None
        max_pages = self.config.discovery.max_chapter_pages
        title = ""
        paragraphs: list[str] = []
        visited: set[str] = set()
        url = ref.url

        for page_number in range(max_pages):
            async with self.rate_limiter:
                try:
                    page = await fetcher.fetch_page(url, adapter.encoding)
                except HttpError as e:
                    if e.status == 429:
                        self.rate_limiter.back_off()
                        logger.debug(
                            "429 backoff on %s: delay now %.1fs",
                            url, self.rate_limiter.delay_seconds,
                        )
                    raise
            self.rate_limiter.ease_off()
            timing.attempts += page.attempts
            timing.pages += 1

            parsed = adapter.parse_chapter(page.text, page.final_url)
            if page_number == 0:
                title = parsed.title
            paragraphs.extend(parsed.paragraphs)
            visited.add(url)

            if parsed.next_url is None or parsed.next_url in visited:
                break
            url = parsed.next_url
        else:
            logger.warning(
                "Chapter %d still continues after %d pages; keeping what was fetched",
                ref.index, max_pages,
            )

        return Chapter(
            index=ref.index,
            url=ref.url,
            title=title or ref.title_hint or f"Chapter {ref.index + 1}",
            paragraphs=tuple(paragraphs),
        )

    def _output_path(self, book: BookInfo) -> Path:
        """Resolve the output file, defaulting to ``<author>_<title>.txt``."""
        path = self.config.output.path
        file_name = f"{book.file_stem()}.txt"
        if path is None:
            return Path.cwd() / file_name
        if path.is_dir():
            return path / file_name
        return path

    def _create_cache(self, adapter: SiteAdapter, book: BookInfo) -> ChapterCache | None:
        if self.config.output.cache_dir is None:
            return None
        return ChapterCache(self.config.output.cache_dir / adapter.name / book.file_stem())

    def _print_summary(self, result: DownloadResult) -> None:
        """Print a post-run summary report."""
        self.console.print()
        total_time = result.pipeline_end - result.pipeline_start

        self.console.print("[bold]Download complete[/bold]")
        self.console.print()

        self.console.print(
            f"  Chapters written: [green]{result.success_count}[/green]"
            f" of {result.total} discovered"
        )
        if result.cached:
            self.console.print(f"  From cache:       [cyan]{len(result.cached)}[/cyan]")
        if result.failures:
            self.console.print(f"  Failed:           [red]{result.failure_count}[/red]")
        self.console.print()

        self.console.print("[bold]Timing[/bold]")
        self.console.print(f"  Total:     {total_time:.1f}s")
        if result.discovery_duration:
            self.console.print(
                f"  Discovery: {result.discovery_duration:.1f}s"
                f" ({result.toc_pages} ToC page(s))"
            )
        fetched = [t for t in result.timings if t.status == ChapterStatus.DONE]
        if fetched:
            durations = [t.duration for t in fetched]
            avg = sum(durations) / len(durations)
            self.console.print(f"  Chapter:   avg {avg:.2f}s, max {max(durations):.2f}s")
            multi_page = [t for t in fetched if t.pages > 1]
            if multi_page:
                self.console.print(
                    f"  Multi-page chapters: {len(multi_page)}"
                    f" ({sum(t.pages for t in multi_page)} pages)"
                )

        retried = [t for t in result.timings if t.attempts > t.pages]
        if retried:
            total_retries = sum(t.attempts - t.pages for t in retried)
            self.console.print()
            self.console.print("[bold]Retries[/bold]")
            self.console.print(f"  Chapters retried: {len(retried)}")
            self.console.print(f"  Total retries:    {total_retries}")

        if self.rate_limiter and self.rate_limiter.backoff_count > 0:
            self.console.print()
            self.console.print("[bold]Rate limiting[/bold]")
            self.console.print(f"  429 backoffs:    {self.rate_limiter.backoff_count}")
            self.console.print(f"  Peak delay:      {self.rate_limiter.peak_delay:.1f}s")
            self.console.print(
                f"  Final delay:     {self.rate_limiter.delay_seconds:.1f}s"
                f" (configured {self.rate_limiter.configured_delay:.1f}s)"
            )

        if result.failures:
            self.console.print()
            category_counts: Counter[ErrorCategory] = Counter(
                f.category for f in result.failures
            )
            self.console.print("[bold red]Missing chapters[/bold red]")
            for cat, count in category_counts.most_common():
                self.console.print(f"  {cat.value:<15s} {count}")
            top_cat = category_counts.most_common(1)[0][0]
            self.console.print(f"  [dim]Suggestion: {_ERROR_SUGGESTIONS[top_cat]}[/dim]")
            self.console.print()
            missing = ", ".join(str(i) for i in result.missing_indices)
            self.console.print(f"  Missing indices: {missing}", highlight=False)
            failures = sorted(result.failures, key=lambda f: f.index)
            for failure in failures[:20]:
                label = f" {escape(failure.title)}" if failure.title else ""
                self.console.print(
                    f"  [red]#{failure.index}{label}[/red]: {escape(failure.message)}",
                    markup=True,
                    highlight=False,
                )
            if len(failures) > 20:
                self.console.print(f"  [dim]... and {len(failures) - 20} more[/dim]")


def _format_size(count: int) -> str:
    """Format a character count compactly."""
    if count < 1000:
        return str(count)
    elif count < 1000 * 1000:
        return f"{count / 1000:.1f}K"
    else:
        return f"{count / (1000 * 1000):.1f}M"
