"""ABBA-BABA (Patterson's D) test on four-taxon nucleotide alignments.

Taxa are given in tree order ``P1,P2,P3,O`` for the rooted topology
``(((P1,P2),P3),O)``. A site is scored by enumerating every resolved ACGT
pattern compatible with its (possibly ambiguous) characters; the ABBA and
BABA scores of the site are the fractions of those patterns that are ABBA
(``P1 == O``, ``P2 == P3``) and BABA (``P1 == P3``, ``P2 == O``).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Sequence

import numpy as np
import pandas as pd
from scipy.stats import norm

from .alignment import Alignment
from .alphabet import NT_CODES
from .logging_utils import get_logger
from .transform import QUARTET_SIZE, concatenate

TABLE_SIZE = 1 << 16


def split_taxa(text: str) -> tuple[str, str, str, str]:
    """Split ``"P1,P2,P3,O"`` into four taxon labels."""
    parts = text.split(",")
    if len(parts) != QUARTET_SIZE:
        raise ValueError("ABBA-BABA test requires exactly four taxa")
    if any(not part for part in parts):
        raise ValueError("Erroneous format in --dstat (taxon missing)")
    return parts[0], parts[1], parts[2], parts[3]


def _state_bits() -> np.ndarray:
    codes = np.arange(16)
    return ((codes[:, None] >> np.arange(4)[None, :]) & 1).astype(np.int64)


def abba_baba_score(codes: Sequence[int]) -> tuple[float, float, int]:
    """Score one site given the 4-bit state sets of P1, P2, P3 and O."""
    bits = _state_bits()
    s0, s1, s2, s3 = (bits[int(code)] for code in codes)
    pats = int(s0.sum() * s1.sum() * s2.sum() * s3.sum())
    if not pats:
        return 0.0, 0.0, 0
    abba = 0
    baba = 0
    for a in range(4):
        for b in range(4):
            if a == b:
                continue
            abba += int(s0[a] * s1[b] * s2[b] * s3[a])
            baba += int(s0[a] * s1[b] * s2[a] * s3[b])
    return abba / pats, baba / pats, pats


@lru_cache(maxsize=1)
def precompute_tables() -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """ABBA, BABA and pattern-count tables indexed by packed site code.

    The index of a site is ``c0 | c1 << 4 | c2 << 8 | c3 << 12`` where ``ci``
    is the state set of the i-th taxon.
    """
    bits = _state_bits()
    sizes = bits.sum(axis=1)

    # axes are (c3, c2, c1, c0) so that a C-order ravel gives the packed index
    pats = np.einsum("l,k,j,i->lkji", sizes, sizes, sizes, sizes)
    same = np.einsum("ia,ja,ka,la->lkji", bits, bits, bits, bits)
    abba = np.einsum("ia,jb,kb,la->lkji", bits, bits, bits, bits) - same
    baba = np.einsum("ia,jb,ka,lb->lkji", bits, bits, bits, bits) - same

    pats = pats.reshape(TABLE_SIZE)
    with np.errstate(divide="ignore", invalid="ignore"):
        abba_tbl = np.where(pats > 0, abba.reshape(TABLE_SIZE) / pats, 0.0)
        baba_tbl = np.where(pats > 0, baba.reshape(TABLE_SIZE) / pats, 0.0)
    for table in (abba_tbl, baba_tbl, pats):
        table.setflags(write=False)
    return abba_tbl, baba_tbl, pats


def site_codes(aln: Alignment, taxa: Sequence[str]) -> np.ndarray:
    """Packed site codes of ``aln`` with rows taken in ``taxa`` order."""
    rows: list[int] = []
    for taxon in taxa:
        index = aln.index_of(taxon)
        if index is None:
            raise ValueError(f"Taxon {taxon} not found in alignments")
        rows.append(index)
    states = NT_CODES[aln.data[rows]].astype(np.int64)
    return states[0] | (states[1] << 4) | (states[2] << 8) | (states[3] << 12)


def _d_value(abba: float, baba: float) -> float:
    total = abba + baba
    if total <= 0:
        return math.nan
    return (abba - baba) / total


@dataclass
class DStatResult:
    taxa: tuple[str, str, str, str]
    sites: int
    abba: float
    baba: float
    d: float
    loci: pd.DataFrame
    jackknife_se: float | None = None
    z_score: float | None = None
    p_value: float | None = None

    @property
    def tree(self) -> str:
        p1, p2, p3, outgroup = self.taxa
        return f"((({p1},{p2}),{p3}),{outgroup});"

    def to_dict(self) -> dict[str, Any]:
        return {
            "taxa": list(self.taxa),
            "tree": self.tree,
            "sites": self.sites,
            "loci": int(len(self.loci)),
            "abba": self.abba,
            "baba": self.baba,
            "d": None if math.isnan(self.d) else self.d,
            "jackknife_se": self.jackknife_se,
            "z_score": self.z_score,
            "p_value": self.p_value,
        }


def _jackknife(abba: np.ndarray, baba: np.ndarray) -> float | None:
    """Delete-one-locus jackknife standard error of D."""
    g = abba.size
    loo_abba = abba.sum() - abba
    loo_baba = baba.sum() - baba
    denom = loo_abba + loo_baba
    if g < 2 or np.any(denom <= 0):
        return None
    loo = (loo_abba - loo_baba) / denom
    return float(math.sqrt((g - 1) / g * float(np.sum((loo - loo.mean()) ** 2))))


def compute_dstat(loci: Sequence[Alignment], taxa: Sequence[str]) -> DStatResult:
    """Concatenate ``loci`` into a 4-taxon matrix and compute D.

    Taxa missing from a locus are filled with missing data, which spreads
    their site score evenly over all patterns.
    """
    taxa = tuple(taxa)
    if len(taxa) != QUARTET_SIZE:
        raise ValueError("ABBA-BABA test requires exactly four taxa")
    if len(set(taxa)) != QUARTET_SIZE:
        raise ValueError("ABBA-BABA taxa must be distinct")

    logger = get_logger()
    concat = concatenate(loci)
    abba_tbl, baba_tbl, _ = precompute_tables()
    codes = site_codes(concat, taxa)
    site_abba = abba_tbl[codes]
    site_baba = baba_tbl[codes]

    rows: list[dict[str, Any]] = []
    for index, (start, end) in enumerate(concat.partition_bounds):
        abba = float(site_abba[start:end].sum())
        baba = float(site_baba[start:end].sum())
        rows.append(
            {
                "locus": index,
                "sites": end - start,
                "abba": abba,
                "baba": baba,
                "d": _d_value(abba, baba),
            }
        )
    table = pd.DataFrame(rows, columns=["locus", "sites", "abba", "baba", "d"])

    abba_sum = float(site_abba.sum())
    baba_sum = float(site_baba.sum())
    d = _d_value(abba_sum, baba_sum)
    logger.debug("ABBA %.6f BABA %.6f over %d sites", abba_sum, baba_sum, concat.length)

    result = DStatResult(
        taxa=taxa,  # type: ignore[arg-type]
        sites=concat.length,
        abba=abba_sum,
        baba=baba_sum,
        d=d,
        loci=table,
    )
    if math.isnan(d):
        logger.warning("No informative ABBA or BABA sites; D is undefined")
        return result

    se = _jackknife(table["abba"].to_numpy(), table["baba"].to_numpy())
    if se is not None and se > 0:
        result.jackknife_se = se
        result.z_score = d / se
        result.p_value = float(2.0 * norm.sf(abs(result.z_score)))
    return result
