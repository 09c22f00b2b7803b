from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO

import numpy as np

from .alphabet import FASTA, CharTable
from .errors import ErrorKind, PhylipError

LINE_ALLOC = 2048


class LineBuffer:
    """Growable byte buffer holding the current logical line.

    Capacity only ever grows, in steps of ``LINE_ALLOC`` bytes; ``size`` is the
    number of bytes in use. The contents are only valid until the next fill.
    """

    def __init__(self) -> None:
        self._data = bytearray()
        self.size = 0

    @property
    def capacity(self) -> int:
        return len(self._data)

    def clear(self) -> None:
        self.size = 0

    def append(self, chunk: bytes) -> None:
        needed = self.size + len(chunk)
        if needed > self.capacity:
            steps = -(-(needed - self.capacity) // LINE_ALLOC)
            self._data.extend(bytes(steps * LINE_ALLOC))
        self._data[self.size : needed] = chunk
        self.size = needed

    def endswith_newline(self) -> bool:
        return self.size > 0 and self._data[self.size - 1] == 0x0A

    def take(self, drop_newline: bool) -> bytes:
        end = self.size - 1 if drop_newline else self.size
        return bytes(self._data[:end])


class FileCursor:
    """Open alignment file plus the state the parsers share while reading it."""

    def __init__(self, handle: BinaryIO, table: CharTable = FASTA, *, name: str = "<stream>") -> None:
        self._handle = handle
        self.name = name
        self.table = table
        self.buffer = LineBuffer()
        self.line: bytes | None = None
        self.lineno = 0
        self.stripped = np.zeros(256, dtype=np.int64)
        self.stripped_count = 0
        self.filesize = _stream_size(handle)

    @classmethod
    def open(cls, path: str | Path, table: CharTable = FASTA) -> "FileCursor":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Alignment file not found: {path}")
        handle = path.open("rb")
        cursor = cls(handle, table, name=str(path))
        if cursor.next_line() is None:
            cursor.close()
            raise PhylipError(ErrorKind.EMPTY_INPUT, f"Alignment file is empty: {path}")
        return cursor

    def next_line(self) -> bytes | None:
        """Fetch the next physical line without its trailing newline.

        ``None`` means end of file. A last line lacking a newline is still
        returned.
        """
        self.buffer.clear()
        while True:
            chunk = self._handle.readline(LINE_ALLOC - 1)
            if not chunk:
                break
            self.buffer.append(chunk)
            if self.buffer.endswith_newline():
                self.lineno += 1
                self.line = self.buffer.take(drop_newline=True)
                return self.line

        if not self.buffer.size:
            self.line = None
            return None

        self.lineno += 1
        self.line = self.buffer.take(drop_newline=False)
        return self.line

    def scan(self, data: bytes, limit: int | None = None) -> np.ndarray:
        accepted, tally = self.table.scan(data, self.lineno, limit)
        self.stripped += tally
        self.stripped_count += int(tally.sum())
        return accepted

    def stripped_summary(self) -> dict[str, int]:
        return {
            repr(chr(byte)): int(self.stripped[byte])
            for byte in np.flatnonzero(self.stripped)
        }

    def rewind(self) -> None:
        self._handle.seek(0)
        self.stripped[:] = 0
        self.stripped_count = 0
        self.lineno = 0
        if self.next_line() is None:
            raise PhylipError(ErrorKind.EMPTY_INPUT, f"Unable to rewind and cache data: {self.name}")

    def close(self) -> None:
        self._handle.close()

    def __enter__(self) -> "FileCursor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _stream_size(handle: BinaryIO) -> int:
    try:
        return os.fstat(handle.fileno()).st_size
    except (AttributeError, OSError, ValueError):
        return 0
