import io
from pathlib import Path

import numpy as np
import pytest

from phylipkit.alignment import Alignment
from phylipkit.io import (
    explode,
    format_phylip,
    read_loci,
    read_phylip,
    write_loci,
    write_pretty_phylip,
)


def test_plain_format_round_trip(tmp_path: Path) -> None:
    aln = Alignment.from_sequences(["alpha", "beta^sp1"], ["AC-T?", "acgtn"])
    assert format_phylip(aln) == "2 5\nalpha AC-T?\nbeta^sp1 acgtn\n"

    path = write_loci(tmp_path / "out.phy", [aln])
    again = read_phylip(path)
    assert again.labels == aln.labels
    assert again.sequences == aln.sequences


def test_pretty_format_pads_labels_and_groups_columns() -> None:
    aln = Alignment.from_sequences(["a", "long"], ["acgtacgtacgt", "ACGTACGTACGU"])
    handle = io.StringIO()
    write_pretty_phylip(handle, [aln])
    assert handle.getvalue() == (
        "2 12 P\n"
        "a        ACGTACGTAC GT\n"
        "long     ACGTACGTAC GT\n"
        "1 1 1 1 1 1 1 1 1 1 1 1\n"
        "\n"
    )


def test_pretty_format_uses_supplied_or_attached_weights() -> None:
    first = Alignment.from_sequences(["a"], ["AC"])
    second = Alignment.from_sequences(["bb"], ["G"])
    second.weights = np.array([7])
    handle = io.StringIO()
    write_pretty_phylip(handle, [first, second], weights=[[3, 4], None])
    lines = handle.getvalue().splitlines()
    assert lines == ["1 2 P", "a      AC", "3 4", "", "1 1 P", "bb     G", "7", ""]


def test_pretty_format_rejects_wrong_weight_count() -> None:
    aln = Alignment.from_sequences(["a"], ["ACG"])
    with pytest.raises(ValueError, match="weights"):
        write_pretty_phylip(io.StringIO(), [aln], weights=[[1, 1]])


def test_explode_writes_one_file_per_locus(tmp_path: Path) -> None:
    loci = [
        Alignment.from_sequences(["a", "b"], ["ACGT", "ACGA"]),
        Alignment.from_sequences(["c"], ["GG"]),
    ]
    base = tmp_path / "parts" / "loci.phy"
    paths = explode(loci, base)
    assert [p.name for p in paths] == ["loci.phy.0", "loci.phy.1"]
    assert read_loci(paths[1])[0].sequences == ("GG",)
    assert paths[0].read_text(encoding="utf-8") == "2 4\na ACGT\nb ACGA\n"
