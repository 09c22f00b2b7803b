from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Sequence, TextIO

import numpy as np

from .alignment import LABEL_ENCODING, Alignment
from .alphabet import FASTA, NT_NORMAL, CharTable, DataType
from .logging_utils import get_logger
from .phylip import PhylipFormat, parse_alignment, parse_multi
from .reader import FileCursor

PRETTY_EVERY = 10
PRETTY_PAD = 4


@contextmanager
def open_phylip(path: str | Path, table: CharTable = FASTA) -> Iterator[FileCursor]:
    cursor = FileCursor.open(path, table)
    try:
        yield cursor
    finally:
        cursor.close()
        if cursor.stripped_count:
            get_logger().debug(
                "Stripped %d characters from %s: %s",
                cursor.stripped_count,
                cursor.name,
                cursor.stripped_summary(),
            )


def read_phylip(
    path: str | Path,
    *,
    fmt: PhylipFormat = PhylipFormat.SEQUENTIAL,
    table: CharTable = FASTA,
    dtype: DataType = DataType.NUCLEOTIDE,
) -> Alignment:
    """Read the first alignment of a PHYLIP file."""
    with open_phylip(path, table) as cursor:
        return parse_alignment(cursor, fmt, dtype)


def read_loci(
    path: str | Path,
    *,
    table: CharTable = FASTA,
    dtype: DataType = DataType.NUCLEOTIDE,
    max_loci: int | None = None,
) -> list[Alignment]:
    """Read every sequential locus of a multi-locus PHYLIP file."""
    with open_phylip(path, table) as cursor:
        loci = parse_multi(cursor, dtype, max_loci=max_loci)
    get_logger().info("Read %d loci from %s", len(loci), path)
    return loci


def format_phylip(aln: Alignment) -> str:
    lines = [f"{aln.count} {aln.length}"]
    for label, seq in zip(aln.labels, aln.sequences):
        lines.append(f"{label} {seq}")
    return "\n".join(lines) + "\n"


def write_phylip(handle: TextIO, aln: Alignment) -> None:
    handle.write(format_phylip(aln))


def _pretty_row(row: np.ndarray, every: int) -> str:
    text = row.tobytes().decode(LABEL_ENCODING)
    # one space before every block, including the first
    return "".join(" " + text[i : i + every] for i in range(0, len(text), every))


def write_pretty_phylip(
    handle: TextIO,
    loci: Sequence[Alignment],
    weights: Sequence[np.ndarray | Sequence[int] | None] | None = None,
    *,
    every: int = PRETTY_EVERY,
    pad: int = PRETTY_PAD,
) -> None:
    """Write loci in the fixed-width layout with a per-column weight line.

    Labels are padded to a width shared by all loci. Weights default to the
    alignment's own ``weights`` and, failing that, to 1 for every column.
    """
    width = max((len(label) for aln in loci for label in aln.labels), default=0) + pad
    for index, aln in enumerate(loci):
        locus_weights = None if weights is None else weights[index]
        if locus_weights is None:
            locus_weights = aln.weights
        if locus_weights is None:
            locus_weights = np.ones(aln.length, dtype=np.int64)
        if len(locus_weights) != aln.length:
            raise ValueError(
                f"Locus {index} has {aln.length} sites but {len(locus_weights)} weights."
            )

        data = NT_NORMAL[aln.data] if aln.dtype == DataType.NUCLEOTIDE else aln.data
        handle.write(f"{aln.count} {aln.length} P\n")
        for label, row in zip(aln.labels, data):
            handle.write(f"{label:<{width}}{_pretty_row(row, every)}\n")
        handle.write(" ".join(str(int(w)) for w in locus_weights) + "\n")
        handle.write("\n")


def write_loci(path: str | Path, loci: Sequence[Alignment]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding=LABEL_ENCODING, newline="\n") as handle:
        for aln in loci:
            write_phylip(handle, aln)
    return path


def explode(loci: Sequence[Alignment], base: str | Path) -> list[Path]:
    """Write each locus to ``<base>.<index>``; returns the paths written."""
    paths: list[Path] = []
    for index, aln in enumerate(loci):
        paths.append(write_loci(f"{base}.{index}", [aln]))
    return paths
