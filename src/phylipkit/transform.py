from __future__ import annotations

from typing import Callable, Sequence

import numpy as np

from .alignment import LABEL_ENCODING, Alignment
from .alphabet import DataType, ambiguity_map, missing_map
from .errors import ErrorKind, PhylipError

MISSING_PLACEHOLDER = "?"
QUARTET_SIZE = 4

ColumnPredicate = Callable[[np.ndarray], bool]


def stable_partition(flags: Sequence[bool] | np.ndarray) -> np.ndarray:
    """Index order that moves flagged positions to the end.

    Unflagged positions come first; both groups keep their original order.
    """
    flags = np.asarray(flags, dtype=bool)
    return np.concatenate([np.flatnonzero(~flags), np.flatnonzero(flags)])


def flag_columns(aln: Alignment, predicate: ColumnPredicate) -> np.ndarray:
    return np.fromiter(
        (bool(predicate(aln.data[:, i])) for i in range(aln.length)),
        dtype=bool,
        count=aln.length,
    )


def drop_columns(aln: Alignment, flags: np.ndarray) -> int:
    """Remove flagged columns in place, keeping the others in order."""
    removed = int(np.count_nonzero(flags))
    if not removed:
        return 0
    keep = stable_partition(flags)[: aln.length - removed]
    aln.data = np.ascontiguousarray(aln.data[:, keep])
    if aln.weights is not None:
        aln.weights = aln.weights[keep]
    return removed


def mark_ambiguous_sites(aln: Alignment) -> np.ndarray:
    flags = ambiguity_map(aln.dtype)[aln.data].any(axis=0)
    aln.amb_sites_count = int(np.count_nonzero(flags))
    return flags


def count_ambiguous_sites(aln: Alignment) -> int:
    if aln.dtype == DataType.AMINO_ACID:
        aln.amb_sites_count = 0
        return 0
    mark_ambiguous_sites(aln)
    return aln.amb_sites_count


def remove_ambiguous_sites(aln: Alignment) -> int:
    """Drop every column holding at least one ambiguous character.

    Returns the number of columns removed. Running it again on the result
    removes nothing.
    """
    flags = mark_ambiguous_sites(aln)
    if aln.amb_sites_count == aln.length:
        raise PhylipError(
            ErrorKind.AMBIGUOUS_ALL,
            f"Cannot remove ambiguous sites: all {aln.length} sites contain ambiguous characters",
        )
    return drop_columns(aln, flags)


def remove_missing_sequences(aln: Alignment) -> int:
    """Drop rows made only of missing-data characters; returns how many."""
    missing = missing_map(aln.dtype)[aln.data].all(axis=1)
    deleted = int(np.count_nonzero(missing))
    if deleted == aln.count:
        raise PhylipError(
            ErrorKind.MISSING_ALL,
            f"Cannot remove missing sequences: all {aln.count} sequences consist of missing data",
        )
    if deleted:
        keep = np.flatnonzero(~missing)
        aln.labels = [aln.labels[i] for i in keep]
        aln.data = aln.data[keep]
    return deleted


def _union_labels(loci: Sequence[Alignment], taxa_count: int) -> list[str]:
    labels: list[str] = []
    for index, locus in enumerate(loci):
        if locus.count > taxa_count:
            raise PhylipError(
                ErrorKind.CONCAT_TAXA,
                f"More than {taxa_count} sequences in alignment {index}",
                locus=index,
            )
        if len(set(locus.labels)) != locus.count:
            raise PhylipError(
                ErrorKind.CONCAT_TAXA,
                f"Duplicate sequence labels in alignment {index}",
                locus=index,
            )
        for label in locus.labels:
            if label in labels:
                continue
            if len(labels) == taxa_count:
                raise PhylipError(
                    ErrorKind.CONCAT_TAXA,
                    f"More than {taxa_count} sequences in full alignment",
                    locus=index,
                )
            labels.append(label)

    if len(labels) != taxa_count:
        raise PhylipError(
            ErrorKind.CONCAT_TAXA,
            f"Only {len(labels)} sequences in alignments. Need {taxa_count} sequences.",
        )
    return labels


def concatenate(
    loci: Sequence[Alignment],
    taxa_count: int = QUARTET_SIZE,
    placeholder: str = MISSING_PLACEHOLDER,
) -> Alignment:
    """Join loci side by side into one ``taxa_count``-row alignment.

    A taxon absent from a locus gets ``placeholder`` over that locus' range.
    Taxa are matched by exact label and ordered as first seen.
    """
    if not loci:
        raise PhylipError(ErrorKind.CONCAT_TAXA, "No alignments to concatenate")
    if len(placeholder) != 1:
        raise ValueError("Missing-data placeholder must be a single character.")

    labels = _union_labels(loci, taxa_count)
    total = sum(locus.length for locus in loci)
    fill = placeholder.encode(LABEL_ENCODING)[0]
    data = np.full((taxa_count, total), fill, dtype=np.uint8)

    bounds: list[tuple[int, int]] = []
    offset = 0
    for locus in loci:
        end = offset + locus.length
        for row, label in enumerate(labels):
            source = locus.index_of(label)
            if source is not None:
                data[row, offset:end] = locus.data[source]
        bounds.append((offset, end))
        offset = end

    return Alignment(
        labels=labels,
        data=data,
        dtype=loci[0].dtype,
        partition_bounds=bounds,
    )
