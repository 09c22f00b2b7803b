"""PHYLIP readers: header, sequential and interleaved blocks, multi-locus files.

All parsers work on a :class:`~phylipkit.reader.FileCursor` whose ``line``
attribute holds the line where the next alignment header is expected. Every
byte of sequence data goes through the cursor's character table. A failure
raises :class:`~phylipkit.errors.PhylipError`; the alignment being built at
that point is dropped, so callers only ever see complete alignments.
"""

from __future__ import annotations

import re
from enum import Enum

from .alignment import LABEL_ENCODING, Alignment
from .alphabet import DataType
from .errors import ErrorKind, PhylipError
from .logging_utils import get_logger
from .reader import FileCursor

_WHITESPACE = b" \t\r\n"
_INT_RE = re.compile(rb"[ \t\r\n\x0b\x0c]*([+-]?[0-9]+)")
_LABEL_RE = re.compile(rb"[ \t\r\n]*([^ \t\r\n]+)")
_FORMAT_MARKERS = {b"s", b"i"}


class PhylipFormat(str, Enum):
    SEQUENTIAL = "sequential"
    INTERLEAVED = "interleaved"


def _is_blank(line: bytes) -> bool:
    return not line.strip(_WHITESPACE)


def _scan_int(line: bytes, pos: int) -> tuple[int | None, int]:
    match = _INT_RE.match(line, pos)
    if match is None:
        return None, pos
    return int(match.group(1)), match.end()


def parse_header(
    line: bytes | str,
    fmt: PhylipFormat = PhylipFormat.SEQUENTIAL,
    *,
    lineno: int | None = None,
) -> tuple[int, int]:
    """Read ``(taxon_count, alignment_length)`` from a header line.

    An optional trailing ``S``/``I`` marker is only tolerated for interleaved
    input and must be the last token on the line.
    """
    if isinstance(line, str):
        line = line.encode(LABEL_ENCODING)

    count, pos = _scan_int(line, 0)
    if not count or count < 0:
        raise PhylipError(
            ErrorKind.HEADER_SYNTAX, "Invalid number of sequences in header", lineno=lineno
        )

    length, pos = _scan_int(line, pos)
    if not length or length < 0:
        raise PhylipError(
            ErrorKind.HEADER_SYNTAX, "Invalid sequence length in header", lineno=lineno
        )

    rest = line[pos:].strip(_WHITESPACE)
    if not rest:
        return count, length

    marker = rest.decode(LABEL_ENCODING)
    if fmt == PhylipFormat.SEQUENTIAL:
        raise PhylipError(
            ErrorKind.HEADER_SYNTAX,
            f"Unexpected format marker '{marker}' in header of a sequential alignment",
            lineno=lineno,
        )
    if rest.lower() not in _FORMAT_MARKERS:
        raise PhylipError(
            ErrorKind.HEADER_SYNTAX,
            f"Invalid format marker '{marker}' in header (expected S or I)",
            lineno=lineno,
        )
    return count, length


def _read_header(cursor: FileCursor, fmt: PhylipFormat) -> tuple[int, int]:
    while cursor.line is not None and _is_blank(cursor.line):
        cursor.next_line()
    if cursor.line is None:
        raise PhylipError(
            ErrorKind.HEADER_SYNTAX,
            "Missing alignment header (reached end of file)",
            lineno=cursor.lineno,
        )
    return parse_header(cursor.line, fmt, lineno=cursor.lineno)


def _read_label(aln: Alignment, line: bytes, seqno: int) -> bytes | None:
    """Store the label starting ``line`` and return the data after it.

    ``None`` means the line was blank.
    """
    match = _LABEL_RE.match(line)
    if match is None:
        return None
    aln.labels[seqno] = match.group(1).decode(LABEL_ENCODING)
    return line[match.end() :]


def _taxon_name(aln: Alignment, seqno: int) -> str:
    return f"Sequence {seqno + 1} ({aln.labels[seqno][:100]})"


def parse_sequential(
    cursor: FileCursor, dtype: DataType = DataType.NUCLEOTIDE
) -> Alignment:
    """Parse one sequential alignment starting at the cursor's current line.

    Returns as soon as the last taxon is complete; the cursor is left on that
    taxon's final data line.
    """
    count, length = _read_header(cursor, PhylipFormat.SEQUENTIAL)
    aln = Alignment.allocate(count, length, dtype)

    seqno = 0
    while True:
        line = cursor.next_line()
        if line is None:
            break

        data = _read_label(aln, line, seqno)
        if data is None:
            continue

        filled = 0
        while True:
            accepted = cursor.scan(data, limit=length - filled)
            aln.data[seqno, filled : filled + accepted.size] = accepted
            filled += accepted.size
            if filled == length:
                break

            data = cursor.next_line()
            if data is None:
                raise PhylipError(
                    ErrorKind.SYNTAX,
                    f"{_taxon_name(aln, seqno)} has {filled} characters but expected {length}",
                    lineno=cursor.lineno,
                    taxon=seqno + 1,
                )

        seqno += 1
        if seqno == count:
            return aln

    raise PhylipError(
        ErrorKind.SYNTAX,
        f"Found {seqno} sequence(s) but expected {count}",
        lineno=cursor.lineno,
    )


def _read_block_line(
    cursor: FileCursor,
    aln: Alignment,
    data: bytes | None,
    seqno: int,
    offset: int,
    width: int,
) -> int | None:
    """Append the first line carrying data for taxon ``seqno`` at ``offset``.

    Lines that yield no data are skipped. Returns the number of bytes read,
    or ``None`` at end of file. ``width`` is the block width seen so far
    (0 when this is the first line of a block).
    """
    while data is not None:
        accepted = cursor.scan(data)
        if accepted.size:
            if offset + accepted.size > aln.length:
                raise PhylipError(
                    ErrorKind.LENGTH_MISMATCH,
                    f"{_taxon_name(aln, seqno)} longer than expected",
                    lineno=cursor.lineno,
                    taxon=seqno + 1,
                )
            if width and width != accepted.size:
                raise PhylipError(
                    ErrorKind.NON_ALIGNED,
                    f"{_taxon_name(aln, seqno)} data out of alignment",
                    lineno=cursor.lineno,
                    taxon=seqno + 1,
                )
            aln.data[seqno, offset : offset + accepted.size] = accepted
            return int(accepted.size)
        data = cursor.next_line()
    return None


def parse_interleaved(
    cursor: FileCursor, dtype: DataType = DataType.NUCLEOTIDE
) -> Alignment:
    """Parse one interleaved alignment.

    The first block carries labels; later blocks are data only, in the same
    taxon order. Block widths are only checked for consistency inside each
    block; the total length is checked against the header once the file ends.
    """
    count, length = _read_header(cursor, PhylipFormat.INTERLEAVED)
    aln = Alignment.allocate(count, length, dtype)

    seqno = 0
    width = 0
    while seqno < count:
        line = cursor.next_line()
        if line is None:
            break

        data = _read_label(aln, line, seqno)
        if data is None:
            continue

        read = _read_block_line(cursor, aln, data, seqno, 0, width)
        if read is None:
            break
        width = read
        seqno += 1

    if seqno != count:
        raise PhylipError(
            ErrorKind.SYNTAX,
            f"Found {seqno} sequence(s) but expected {count}",
            lineno=cursor.lineno,
        )

    total = width
    seqno = 0
    width = 0
    block = 2
    while True:
        read = _read_block_line(cursor, aln, cursor.next_line(), seqno, total, width)
        if read is None:
            break
        width = read

        seqno = (seqno + 1) % count
        if not seqno:
            total += width
            width = 0
            block += 1

    if seqno:
        raise PhylipError(
            ErrorKind.SYNTAX,
            f"Found {seqno} sequences in block {block} but expected {count}",
            lineno=cursor.lineno,
        )
    if total != length:
        raise PhylipError(
            ErrorKind.LENGTH_MISMATCH,
            f"Sequence length is {total} but expected {length}",
            lineno=cursor.lineno,
        )
    return aln


def parse_alignment(
    cursor: FileCursor,
    fmt: PhylipFormat = PhylipFormat.SEQUENTIAL,
    dtype: DataType = DataType.NUCLEOTIDE,
) -> Alignment:
    if fmt == PhylipFormat.INTERLEAVED:
        return parse_interleaved(cursor, dtype)
    return parse_sequential(cursor, dtype)


def parse_multi(
    cursor: FileCursor,
    dtype: DataType = DataType.NUCLEOTIDE,
    max_loci: int | None = None,
) -> list[Alignment]:
    """Read back-to-back sequential alignments until end of file.

    The first failing locus aborts the whole read; the error carries the
    0-based index of that locus. A taxon line beyond the declared count
    is read as the next locus header and fails there as a header error.
    """
    logger = get_logger()
    loci: list[Alignment] = []
    while True:
        try:
            aln = parse_sequential(cursor, dtype)
        except PhylipError as exc:
            exc.locus = len(loci)
            raise
        logger.debug("Locus %d: %d taxa x %d sites", len(loci), aln.count, aln.length)
        loci.append(aln)
        if max_loci is not None and len(loci) >= max_loci:
            break

        line = cursor.next_line()
        while line is not None and _is_blank(line):
            line = cursor.next_line()
        if line is None:
            break
    return loci
