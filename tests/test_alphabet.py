import numpy as np
import pytest

from phylipkit.alphabet import (
    AMINO_ACID,
    FASTA,
    NT_CODES,
    NT_NORMAL,
    NUCLEOTIDE,
    CharClass,
    classify,
    get_table,
)
from phylipkit.errors import ErrorKind, PhylipError


def test_classify_outcomes_in_fasta_table() -> None:
    assert classify(FASTA, ord("A")) is CharClass.ACCEPT
    assert classify(FASTA, ord("-")) is CharClass.ACCEPT
    assert classify(FASTA, ord(" ")) is CharClass.STRIP
    assert classify(FASTA, ord("\t")) is CharClass.STRIP
    assert classify(FASTA, ord("\n")) is CharClass.SILENT_SKIP
    assert classify(FASTA, ord("1")) is CharClass.FATAL
    assert classify(FASTA, 0x01) is CharClass.FATAL


def test_nucleotide_and_amino_acid_tables_differ() -> None:
    assert classify(NUCLEOTIDE, ord("E")) is CharClass.FATAL
    assert classify(AMINO_ACID, ord("E")) is CharClass.ACCEPT
    assert classify(NUCLEOTIDE, ord("n")) is CharClass.ACCEPT


def test_scan_returns_accepted_bytes_and_strip_tally() -> None:
    accepted, tally = FASTA.scan(b"AC GT\t", lineno=3)
    assert accepted.tobytes() == b"ACGT"
    assert tally[ord(" ")] == 1
    assert tally[ord("\t")] == 1
    assert int(tally.sum()) == 2


def test_scan_stops_at_limit_without_examining_rest() -> None:
    accepted, tally = FASTA.scan(b"ACGT 1%", lineno=1, limit=4)
    assert accepted.tobytes() == b"ACGT"
    assert int(tally.sum()) == 0


def test_scan_reports_illegal_printable_character() -> None:
    with pytest.raises(PhylipError, match="illegal character '1' on line 7") as exc:
        FASTA.scan(b"AC1T", lineno=7)
    assert exc.value.kind is ErrorKind.ILLEGAL_CHAR
    assert exc.value.lineno == 7


def test_scan_reports_unprintable_character_in_hex() -> None:
    with pytest.raises(PhylipError, match="0x01") as exc:
        FASTA.scan(b"A\x01", lineno=2)
    assert exc.value.kind is ErrorKind.UNPRINTABLE_CHAR


def test_tables_are_read_only() -> None:
    with pytest.raises(ValueError):
        FASTA.codes[0] = CharClass.ACCEPT


def test_nucleotide_code_maps() -> None:
    assert NT_CODES[ord("A")] == 1
    assert NT_CODES[ord("u")] == 8
    assert NT_CODES[ord("R")] == 5
    assert NT_CODES[ord("-")] == 15
    normal = NT_NORMAL[np.frombuffer(b"acgu-N", dtype=np.uint8)].tobytes()
    assert normal == b"ACGT-N"


def test_get_table_rejects_unknown_name() -> None:
    assert get_table("NT") is NUCLEOTIDE
    with pytest.raises(ValueError, match="Unknown alphabet table"):
        get_table("rna")
