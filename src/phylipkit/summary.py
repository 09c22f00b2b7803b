from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from .alignment import Alignment
from .alphabet import missing_map
from .transform import count_ambiguous_sites

SUMMARY_COLUMNS = ["locus", "taxa", "length", "ambiguous_sites", "missing_taxa"]


def summarize_loci(loci: Sequence[Alignment]) -> pd.DataFrame:
    """One row per locus with its shape and missing-data counts."""
    rows = []
    for index, aln in enumerate(loci):
        missing = missing_map(aln.dtype)[aln.data].all(axis=1)
        rows.append(
            {
                "locus": index,
                "taxa": aln.count,
                "length": aln.length,
                "ambiguous_sites": count_ambiguous_sites(aln),
                "missing_taxa": int(np.count_nonzero(missing)),
            }
        )
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
