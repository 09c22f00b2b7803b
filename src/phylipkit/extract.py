from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .alignment import Alignment

SUFFIX_MARK = "^"


@dataclass(frozen=True)
class TaxonTokens:
    """Label patterns: ``prefixes`` match label starts, ``suffixes`` label ends.

    Suffix tokens keep their leading ``^`` so that ``^sp1`` matches the
    ``label^sp1`` naming convention.
    """

    prefixes: tuple[str, ...]
    suffixes: tuple[str, ...]

    def matches(self, label: str) -> bool:
        return label.endswith(self.suffixes) or label.startswith(self.prefixes)


def parse_tokens(text: str) -> TaxonTokens:
    tokens = text.split(",")
    if any(not token for token in tokens):
        raise ValueError("Cannot parse tokens")
    return TaxonTokens(
        prefixes=tuple(t for t in tokens if not t.startswith(SUFFIX_MARK)),
        suffixes=tuple(t for t in tokens if t.startswith(SUFFIX_MARK)),
    )


def select_taxa(
    loci: Sequence[Alignment],
    tokens: TaxonTokens,
    *,
    invert: bool = False,
) -> list[Alignment]:
    """Keep the taxa matching ``tokens`` (or the others with ``invert``).

    Loci left without any taxon are dropped.
    """
    selected: list[Alignment] = []
    for aln in loci:
        rows = [i for i, label in enumerate(aln.labels) if tokens.matches(label) != invert]
        if rows:
            selected.append(aln.take_rows(rows))
    return selected
