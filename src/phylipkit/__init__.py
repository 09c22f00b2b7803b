"""phylipkit: PHYLIP multi-locus alignment parsing and transformations."""

from .alignment import Alignment
from .alphabet import AMINO_ACID, FASTA, NUCLEOTIDE, CharClass, CharTable, DataType, classify
from .errors import ErrorKind, PhylipError
from .io import explode, read_loci, read_phylip, write_phylip, write_pretty_phylip
from .phylip import PhylipFormat, parse_header, parse_interleaved, parse_multi, parse_sequential
from .transform import (
    concatenate,
    count_ambiguous_sites,
    remove_ambiguous_sites,
    remove_missing_sequences,
    stable_partition,
)

__all__ = [
    "AMINO_ACID",
    "Alignment",
    "CharClass",
    "CharTable",
    "DataType",
    "ErrorKind",
    "FASTA",
    "NUCLEOTIDE",
    "PhylipError",
    "PhylipFormat",
    "classify",
    "concatenate",
    "count_ambiguous_sites",
    "explode",
    "parse_header",
    "parse_interleaved",
    "parse_multi",
    "parse_sequential",
    "read_loci",
    "read_phylip",
    "remove_ambiguous_sites",
    "remove_missing_sequences",
    "stable_partition",
    "write_phylip",
    "write_pretty_phylip",
]

__version__ = "0.1.0"
