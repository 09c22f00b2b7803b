import numpy as np
import pytest

from phylipkit.alignment import Alignment
from phylipkit.alphabet import DataType
from phylipkit.errors import ErrorKind, PhylipError
from phylipkit.transform import (
    concatenate,
    count_ambiguous_sites,
    drop_columns,
    flag_columns,
    remove_ambiguous_sites,
    remove_missing_sequences,
    stable_partition,
)


def test_stable_partition_keeps_both_groups_in_order() -> None:
    order = stable_partition([False, True, False, True, False])
    assert order.tolist() == [0, 2, 4, 1, 3]


def test_remove_ambiguous_sites_is_idempotent() -> None:
    aln = Alignment.from_sequences(["a", "b"], ["ACNGTa", "AC-GRc"])
    assert count_ambiguous_sites(aln) == 2
    assert remove_ambiguous_sites(aln) == 2
    assert aln.sequences == ("ACGa", "ACGc")
    assert aln.original_length == 6

    assert remove_ambiguous_sites(aln) == 0
    assert aln.amb_sites_count == 0
    assert aln.sequences == ("ACGa", "ACGc")


def test_remove_ambiguous_sites_slices_weights() -> None:
    aln = Alignment.from_sequences(["a"], ["ANCNG"])
    aln.weights = np.array([1, 2, 3, 4, 5])
    remove_ambiguous_sites(aln)
    assert aln.weights.tolist() == [1, 3, 5]


def test_remove_ambiguous_sites_fails_when_all_ambiguous() -> None:
    aln = Alignment.from_sequences(["a", "b"], ["NA", "AR"])
    with pytest.raises(PhylipError, match="all 2 sites") as exc:
        remove_ambiguous_sites(aln)
    assert exc.value.kind is ErrorKind.AMBIGUOUS_ALL
    assert aln.sequences == ("NA", "AR")


def test_amino_acid_ambiguity() -> None:
    aln = Alignment.from_sequences(["a", "b"], ["AXCW", "ACC*"], DataType.AMINO_ACID)
    assert count_ambiguous_sites(aln) == 0
    assert remove_ambiguous_sites(aln) == 2
    assert aln.sequences == ("AC", "AC")


def test_flag_columns_with_custom_predicate() -> None:
    aln = Alignment.from_sequences(["a", "b"], ["A-GT", "ACG-"])
    flags = flag_columns(aln, lambda column: bool((column == ord("-")).any()))
    assert flags.tolist() == [False, True, False, True]
    assert drop_columns(aln, flags) == 2
    assert aln.sequences == ("AG", "AG")


def test_remove_missing_sequences_keeps_survivors_untouched() -> None:
    aln = Alignment.from_sequences(["a", "b", "c"], ["ACGT", "NN?-", "A-GT"])
    assert remove_missing_sequences(aln) == 1
    assert aln.labels == ["a", "c"]
    assert aln.sequences == ("ACGT", "A-GT")
    assert remove_missing_sequences(aln) == 0


def test_remove_missing_sequences_fails_when_all_missing() -> None:
    aln = Alignment.from_sequences(["a", "b"], ["NN", "?-"])
    with pytest.raises(PhylipError) as exc:
        remove_missing_sequences(aln)
    assert exc.value.kind is ErrorKind.MISSING_ALL
    assert aln.count == 2


def test_concatenate_fills_absent_taxa_with_placeholder() -> None:
    first = Alignment.from_sequences(["W", "X"], ["ACGTA", "CCCCC"])
    second = Alignment.from_sequences(["Y", "Z"], ["GGG", "TTT"])
    concat = concatenate([first, second])
    assert concat.length == 8
    assert concat.labels == ["W", "X", "Y", "Z"]
    assert concat.sequences == ("ACGTA???", "CCCCC???", "?????GGG", "?????TTT")
    assert concat.partition_bounds == [(0, 5), (5, 8)]


def test_concatenate_matches_taxa_by_label() -> None:
    first = Alignment.from_sequences(["W", "X", "Y", "Z"], ["A", "C", "G", "T"])
    second = Alignment.from_sequences(["Z", "W"], ["AA", "CC"])
    concat = concatenate([first, second], placeholder="-")
    assert concat.sequences == ("ACC", "C--", "G--", "TAA")


def test_concatenate_rejects_too_many_taxa_in_one_locus() -> None:
    aln = Alignment.from_sequences(list("VWXYZ"), ["A"] * 5)
    with pytest.raises(PhylipError, match="More than 4 sequences in alignment 0") as exc:
        concatenate([aln])
    assert exc.value.kind is ErrorKind.CONCAT_TAXA


def test_concatenate_rejects_union_above_four() -> None:
    first = Alignment.from_sequences(list("WXYZ"), ["A"] * 4)
    second = Alignment.from_sequences(["V"], ["A"])
    with pytest.raises(PhylipError, match="More than 4 sequences in full alignment"):
        concatenate([first, second])


def test_concatenate_rejects_union_below_four() -> None:
    aln = Alignment.from_sequences(list("WXY"), ["A"] * 3)
    with pytest.raises(PhylipError, match="Only 3 sequences in alignments. Need 4 sequences."):
        concatenate([aln])


def test_concatenate_rejects_duplicate_labels_in_a_locus() -> None:
    first = Alignment.from_sequences(["W", "W"], ["A", "C"])
    second = Alignment.from_sequences(["X", "Y", "Z"], ["A", "C", "G"])
    with pytest.raises(PhylipError, match="Duplicate sequence labels in alignment 0"):
        concatenate([first, second])


def test_concatenate_requires_loci() -> None:
    with pytest.raises(PhylipError, match="No alignments"):
        concatenate([])
