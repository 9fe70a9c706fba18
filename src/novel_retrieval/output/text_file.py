"""UTF-8 text file sink."""

from pathlib import Path

import aiofiles
import aiofiles.os


class TextFileSink:
    """Stream text into ``<path>.part`` and move it into place on commit.

    The final path only ever appears once the caller commits, so an aborted
    run leaves no half-written novel behind.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.part_path = self.path.with_name(self.path.name + ".part")
        self._file = None
        self.chars_written = 0

    async def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = await aiofiles.open(self.part_path, "w", encoding="utf-8", newline="\n")

    async def write(self, text: str) -> None:
        if self._file is None:
            raise RuntimeError("Sink not opened. Call open() or use 'async with'.")
        await self._file.write(text)
        self.chars_written += len(text)

    async def commit(self) -> Path:
        """Close the file and move it to its final path."""
        await self._close()
        await aiofiles.os.replace(self.part_path, self.path)
        return self.path

    async def discard(self) -> None:
        """Close and delete the partial file."""
        await self._close()
        if await aiofiles.os.path.exists(self.part_path):
            await aiofiles.os.remove(self.part_path)

    async def _close(self) -> None:
        if self._file is not None:
            await self._file.close()
            self._file = None

    async def __aenter__(self) -> "TextFileSink":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        # Anything not committed explicitly is thrown away
        if self._file is not None:
            await self.discard()
