from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    HEADER_SYNTAX = "header_syntax"
    SYNTAX = "syntax"
    NON_ALIGNED = "non_aligned"
    LENGTH_MISMATCH = "length_mismatch"
    ILLEGAL_CHAR = "illegal_char"
    UNPRINTABLE_CHAR = "unprintable_char"
    EMPTY_INPUT = "empty_input"
    AMBIGUOUS_ALL = "ambiguous_all"
    MISSING_ALL = "missing_all"
    CONCAT_TAXA = "concat_taxa"


class PhylipError(ValueError):
    """Parse or transformation failure with its kind and location.

    ``lineno`` is the physical line the parser was on, ``taxon`` the 1-based
    taxon index and ``locus`` the 0-based locus index inside a multi-locus
    file. Any of them may be ``None`` when not applicable.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        lineno: int | None = None,
        taxon: int | None = None,
        locus: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.lineno = lineno
        self.taxon = taxon
        self.locus = locus

    def __str__(self) -> str:
        text = self.message
        if self.locus is not None:
            text = f"locus {self.locus}: {text}"
        return text
