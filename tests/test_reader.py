import io
from pathlib import Path

import pytest

from phylipkit.errors import ErrorKind, PhylipError
from phylipkit.reader import LINE_ALLOC, FileCursor


def test_next_line_drops_newline_and_counts_lines() -> None:
    cursor = FileCursor(io.BytesIO(b"first\n\nthird"))
    assert cursor.next_line() == b"first"
    assert cursor.next_line() == b""
    assert cursor.next_line() == b"third"
    assert cursor.lineno == 3
    assert cursor.next_line() is None
    assert cursor.line is None


def test_long_line_grows_buffer_in_fixed_steps() -> None:
    cursor = FileCursor(io.BytesIO(b"x" * 5000 + b"\nshort\n"))
    assert cursor.next_line() == b"x" * 5000
    assert cursor.buffer.capacity == 3 * LINE_ALLOC
    assert cursor.next_line() == b"short"
    # capacity never shrinks
    assert cursor.buffer.capacity == 3 * LINE_ALLOC


def test_open_caches_first_line_and_file_size(tmp_path: Path) -> None:
    path = tmp_path / "a.phy"
    path.write_text("1 4\nt1 ACGT\n", encoding="utf-8")
    with FileCursor.open(path) as cursor:
        assert cursor.line == b"1 4"
        assert cursor.lineno == 1
        assert cursor.filesize == path.stat().st_size


def test_open_rejects_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.phy"
    path.write_text("", encoding="utf-8")
    with pytest.raises(PhylipError) as exc:
        FileCursor.open(path)
    assert exc.value.kind is ErrorKind.EMPTY_INPUT


def test_open_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        FileCursor.open(tmp_path / "nope.phy")


def test_rewind_restarts_at_first_line(tmp_path: Path) -> None:
    path = tmp_path / "a.phy"
    path.write_text("1 4\nt1 ACGT\n", encoding="utf-8")
    with FileCursor.open(path) as cursor:
        cursor.next_line()
        cursor.scan(b" A C")
        cursor.rewind()
        assert cursor.line == b"1 4"
        assert cursor.lineno == 1
        assert cursor.stripped_count == 0


def test_scan_accumulates_stripped_tally() -> None:
    cursor = FileCursor(io.BytesIO(b""))
    assert cursor.scan(b"A C\tG").tobytes() == b"ACG"
    assert cursor.scan(b" T").tobytes() == b"T"
    assert cursor.stripped_count == 3
    assert cursor.stripped_summary() == {"'\\t'": 1, "' '": 2}
