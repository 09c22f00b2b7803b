from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np

from .alphabet import DataType

LABEL_ENCODING = "latin-1"


@dataclass(eq=False)
class Alignment:
    """One locus: labelled rows of equal length stored as a byte matrix.

    ``data`` has shape ``(count, length)`` and dtype ``uint8``. Rows follow
    the order in which taxa were found in the file.
    """

    labels: list[str]
    data: np.ndarray
    dtype: DataType = DataType.NUCLEOTIDE
    amb_sites_count: int = 0
    original_length: int = 0
    weights: np.ndarray | None = None
    freqs: np.ndarray | None = None
    partition_bounds: list[tuple[int, int]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.data.ndim != 2:
            raise ValueError("Alignment data must be a 2D byte matrix.")
        if len(self.labels) != self.data.shape[0]:
            raise ValueError("Alignment labels and sequences are misaligned.")
        if not self.original_length:
            self.original_length = self.length

    @classmethod
    def allocate(cls, count: int, length: int, dtype: DataType = DataType.NUCLEOTIDE) -> "Alignment":
        return cls(
            labels=[""] * count,
            data=np.zeros((count, length), dtype=np.uint8),
            dtype=dtype,
        )

    @classmethod
    def from_sequences(
        cls,
        labels: Iterable[str],
        sequences: Iterable[str],
        dtype: DataType = DataType.NUCLEOTIDE,
    ) -> "Alignment":
        labels = list(labels)
        rows = [seq.encode(LABEL_ENCODING) for seq in sequences]
        if not rows:
            raise ValueError("Alignment has no sequences.")
        lengths = {len(row) for row in rows}
        if len(lengths) != 1:
            raise ValueError("All sequences in an alignment must have equal length.")
        data = np.frombuffer(b"".join(rows), dtype=np.uint8).reshape(len(rows), lengths.pop())
        return cls(labels=labels, data=data.copy(), dtype=dtype)

    @property
    def count(self) -> int:
        return int(self.data.shape[0])

    @property
    def length(self) -> int:
        return int(self.data.shape[1])

    @property
    def sequences(self) -> tuple[str, ...]:
        return tuple(self.sequence(i) for i in range(self.count))

    def sequence(self, index: int) -> str:
        return self.data[index].tobytes().decode(LABEL_ENCODING)

    def index_of(self, label: str) -> int | None:
        try:
            return self.labels.index(label)
        except ValueError:
            return None

    def column(self, index: int) -> str:
        return self.data[:, index].tobytes().decode(LABEL_ENCODING)

    def iter_columns(self) -> Iterable[str]:
        for i in range(self.length):
            yield self.column(i)

    def take_rows(self, rows: Sequence[int]) -> "Alignment":
        return Alignment(
            labels=[self.labels[i] for i in rows],
            data=self.data[list(rows)].copy(),
            dtype=self.dtype,
            amb_sites_count=self.amb_sites_count,
            original_length=self.original_length,
            weights=None if self.weights is None else self.weights.copy(),
            freqs=None if self.freqs is None else self.freqs.copy(),
            partition_bounds=list(self.partition_bounds),
        )

