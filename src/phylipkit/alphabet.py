from __future__ import annotations

import string
from dataclasses import dataclass
from enum import Enum, IntEnum

import numpy as np

from .errors import ErrorKind, PhylipError


class CharClass(IntEnum):
    STRIP = 0
    ACCEPT = 1
    FATAL = 2
    SILENT_SKIP = 3


class DataType(str, Enum):
    NUCLEOTIDE = "nt"
    AMINO_ACID = "aa"


STRIPPED_BYTES = b" \t\r\x0b\x0c"
SILENT_BYTES = b"\n"


@dataclass(frozen=True, eq=False)
class CharTable:
    """Byte -> CharClass lookup used while reading sequence data."""

    name: str
    codes: np.ndarray

    def classify(self, byte: int) -> CharClass:
        return CharClass(int(self.codes[byte]))

    def scan(
        self,
        data: bytes,
        lineno: int,
        limit: int | None = None,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Classify ``data`` and return ``(accepted_bytes, stripped_tally)``.

        With ``limit`` the scan ends at the byte that brings the number of
        accepted bytes to ``limit``; anything after it is not looked at.
        """
        raw = np.frombuffer(data, dtype=np.uint8)
        if limit is not None:
            if limit <= 0:
                return raw[:0], np.zeros(256, dtype=np.int64)
            hits = np.cumsum(self.codes[raw] == CharClass.ACCEPT)
            if hits.size and hits[-1] >= limit:
                stop = int(np.searchsorted(hits, limit, side="left")) + 1
                raw = raw[:stop]
        classes = self.codes[raw]

        fatal = np.flatnonzero(classes == CharClass.FATAL)
        if fatal.size:
            _raise_fatal(int(raw[fatal[0]]), lineno)

        tally = np.bincount(raw[classes == CharClass.STRIP], minlength=256).astype(np.int64)
        return raw[classes == CharClass.ACCEPT], tally


def _raise_fatal(byte: int, lineno: int) -> None:
    if byte >= 32:
        raise PhylipError(
            ErrorKind.ILLEGAL_CHAR,
            f"illegal character '{chr(byte)}' on line {lineno} in the alignment file",
            lineno=lineno,
        )
    raise PhylipError(
        ErrorKind.UNPRINTABLE_CHAR,
        f"illegal unprintable character {byte:#04x} (hexadecimal) on line {lineno} "
        "in the alignment file",
        lineno=lineno,
    )


def classify(table: CharTable, byte: int) -> CharClass:
    return table.classify(byte)


def _build_table(name: str, accepted: str) -> CharTable:
    codes = np.full(256, CharClass.FATAL, dtype=np.uint8)
    for byte in STRIPPED_BYTES:
        codes[byte] = CharClass.STRIP
    for byte in SILENT_BYTES:
        codes[byte] = CharClass.SILENT_SKIP
    for char in accepted:
        codes[ord(char)] = CharClass.ACCEPT
    codes.setflags(write=False)
    return CharTable(name=name, codes=codes)


def _both_cases(symbols: str) -> str:
    return symbols.upper() + symbols.lower()


FASTA = _build_table("fasta", string.ascii_letters + "-?.*~!'")
NUCLEOTIDE = _build_table("nt", _both_cases("ACGTURYSWKMBDHVNXO") + "-?.")
AMINO_ACID = _build_table("aa", _both_cases("ACDEFGHIKLMNPQRSTVWYBZJUOX") + "*-?.")

TABLES: dict[str, CharTable] = {
    FASTA.name: FASTA,
    NUCLEOTIDE.name: NUCLEOTIDE,
    AMINO_ACID.name: AMINO_ACID,
}


def get_table(name: str) -> CharTable:
    try:
        return TABLES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown alphabet table: {name} (choose from {', '.join(sorted(TABLES))})"
        ) from None


def _byte_map(values: dict[str, int], default: int = 0) -> np.ndarray:
    out = np.full(256, default, dtype=np.uint8)
    for chars, value in values.items():
        for char in chars:
            out[ord(char)] = value
    out.setflags(write=False)
    return out


# 4-bit nucleotide state sets: A=1, C=2, G=4, T=8.
NT_CODES = _byte_map(
    {
        "Aa": 1,
        "Cc": 2,
        "Gg": 4,
        "TtUu": 8,
        "Mm": 3,
        "Rr": 5,
        "Ss": 6,
        "Vv": 7,
        "Ww": 9,
        "Yy": 10,
        "Hh": 11,
        "Kk": 12,
        "Dd": 13,
        "Bb": 14,
        "NnXxOo?-": 15,
    }
)

NT_AMBIGUOUS = _byte_map({"AaCcGgTtUu": 0}, default=1)
AA_AMBIGUOUS = _byte_map({"BbZzJjXx?-*": 1})

NT_MISSING = _byte_map({"NnXxOo?-": 1})
AA_MISSING = _byte_map({"Xx?-": 1})


def _normal_map() -> np.ndarray:
    out = np.arange(256, dtype=np.uint8)
    for char in "ABCDGHKMNORSTVWXY":
        out[ord(char.lower())] = ord(char)
    out[ord("U")] = ord("T")
    out[ord("u")] = ord("T")
    out.setflags(write=False)
    return out


NT_NORMAL = _normal_map()


def ambiguity_map(dtype: DataType) -> np.ndarray:
    return NT_AMBIGUOUS if dtype == DataType.NUCLEOTIDE else AA_AMBIGUOUS


def missing_map(dtype: DataType) -> np.ndarray:
    return NT_MISSING if dtype == DataType.NUCLEOTIDE else AA_MISSING
