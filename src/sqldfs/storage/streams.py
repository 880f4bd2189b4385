"""Byte sources and sinks for store/download requests.

File sources are memory-mapped, so storing a large file hands the driver
a view of the page cache instead of a copy on the Python heap.
"""

from __future__ import annotations

import io
import mmap
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from sqldfs.storage.base import ByteSink, ByteSource, Payload


class FileSource(ByteSource):
    """A local file to be stored."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).absolute()

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    @property
    def description(self) -> str:
        return str(self.path)

    @contextmanager
    def payload(self) -> Iterator[Payload]:
        # Empty files cannot be mapped
        if self.size == 0:
            yield b""
            return

        with open(self.path, "rb") as f:
            mapped = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
        try:
            yield mapped
        finally:
            try:
                mapped.close()
            except BufferError:
                # A failed statement still holds a view; unmapped when that is released
                pass


class BytesSource(ByteSource):
    """In-memory bytes to be stored."""

    def __init__(self, data: bytes, description: str = "<memory>") -> None:
        self._data = data
        self._description = description

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def description(self) -> str:
        return self._description

    @contextmanager
    def payload(self) -> Iterator[Payload]:
        yield self._data


class FileSink(ByteSink):
    """A local file to download into."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).absolute()

    @property
    def description(self) -> str:
        return str(self.path)

    def ensure_parent(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def open(self) -> Iterator[BinaryIO]:
        with open(self.path, "wb") as f:
            yield f


class BufferSink(ByteSink):
    """In-memory download target."""

    def __init__(self) -> None:
        self._buffer: io.BytesIO | None = None

    @property
    def description(self) -> str:
        return "<memory>"

    @property
    def written(self) -> bool:
        """Whether the sink has been opened for writing."""
        return self._buffer is not None

    def getvalue(self) -> bytes:
        return self._buffer.getvalue() if self._buffer is not None else b""

    def ensure_parent(self) -> None:
        pass

    @contextmanager
    def open(self) -> Iterator[BinaryIO]:
        self._buffer = io.BytesIO()
        yield self._buffer
