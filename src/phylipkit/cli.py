from __future__ import annotations

import argparse
import io
import json
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, TextIO

from . import __version__
from .alignment import LABEL_ENCODING, Alignment
from .alphabet import DataType, get_table
from .errors import PhylipError
from .logging_utils import configure_logging, get_logger


def _emit_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


@contextmanager
def _open_output(path: str | None) -> Iterator[TextIO]:
    if path is None:
        # labels and data are latin-1, so bypass the locale encoding of stdout
        sys.stdout.flush()
        handle = io.TextIOWrapper(sys.stdout.buffer, encoding=LABEL_ENCODING, newline="\n")
        try:
            yield handle
        finally:
            handle.flush()
            handle.detach()
        return
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding=LABEL_ENCODING, newline="\n") as handle:
        yield handle


def _read_loci(args: argparse.Namespace) -> list[Alignment]:
    from .io import read_loci

    return read_loci(
        args.msa,
        table=get_table(args.alphabet),
        dtype=DataType(args.data_type),
        max_loci=getattr(args, "max_loci", None),
    )


def _write_manifest(args: argparse.Namespace, outputs: list[str | Path]) -> None:
    from .manifest import build_manifest, write_manifest

    if not args.manifest:
        return
    payload = build_manifest(args.command, args._argv, [args.msa], outputs)
    write_manifest(args.manifest, payload)


def _add_common(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("--msa", required=True, metavar="PHYLIP")
    sub.add_argument("--alphabet", choices=["fasta", "nt", "aa"], default="fasta")
    sub.add_argument("--data-type", choices=["nt", "aa"], default="nt")
    sub.add_argument("--manifest", default=None, metavar="JSON")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="phylipkit",
        description="phylipkit: read, filter and concatenate multi-locus PHYLIP alignments.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors.")
    parser.add_argument("--verbose", action="store_true", help="Log debug messages.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # explode
    explode = subparsers.add_parser("explode", help="Write each locus to its own file.")
    _add_common(explode)
    explode.add_argument("--prefix", default=None, metavar="PATH")

    # extract / remove
    extract = subparsers.add_parser("extract", help="Keep taxa matching label tokens.")
    _add_common(extract)
    extract.add_argument("--taxa", required=True, metavar="TOKENS")
    extract.add_argument("--output", default=None, metavar="PHYLIP")

    remove = subparsers.add_parser("remove", help="Drop taxa matching label tokens.")
    _add_common(remove)
    remove.add_argument("--taxa", required=True, metavar="TOKENS")
    remove.add_argument("--output", default=None, metavar="PHYLIP")

    # dstat
    dstat = subparsers.add_parser("dstat", help="ABBA-BABA test on four taxa.")
    _add_common(dstat)
    dstat.add_argument("--taxa", required=True, metavar="P1,P2,P3,O")
    dstat.add_argument("--loci-tsv", default=None, metavar="TSV")
    dstat.add_argument("--output", default=None, metavar="JSON")
    dstat.add_argument("--json", action="store_true")

    # summary
    summary = subparsers.add_parser("summary", help="Per-locus summary table.")
    _add_common(summary)
    summary.add_argument("--output", default=None, metavar="TSV")

    # convert
    convert = subparsers.add_parser("convert", help="Re-write loci, optionally filtered.")
    _add_common(convert)
    convert.add_argument("--interleaved", action="store_true")
    convert.add_argument("--max-loci", type=int, default=None)
    convert.add_argument("--remove-ambiguous", action="store_true")
    convert.add_argument("--remove-missing", action="store_true")
    convert.add_argument("--pretty", action="store_true")
    convert.add_argument("--output", default=None, metavar="PHYLIP")
    return parser


def _cmd_explode(args: argparse.Namespace) -> int:
    from .io import explode

    loci = _read_loci(args)
    paths = explode(loci, args.prefix or args.msa)
    get_logger().info("Wrote %d loci", len(paths))
    _write_manifest(args, paths)
    return 0


def _cmd_extract(args: argparse.Namespace, invert: bool) -> int:
    from .extract import parse_tokens, select_taxa
    from .io import write_phylip

    tokens = parse_tokens(args.taxa)
    loci = select_taxa(_read_loci(args), tokens, invert=invert)
    get_logger().info("Kept %d loci", len(loci))
    with _open_output(args.output) as handle:
        for aln in loci:
            write_phylip(handle, aln)
    _write_manifest(args, [args.output] if args.output else [])
    return 0


def _cmd_dstat(args: argparse.Namespace) -> int:
    from .dstat import compute_dstat, split_taxa

    taxa = split_taxa(args.taxa)
    logger = get_logger()
    logger.info("Tree: (((%s,%s),%s),%s);", *taxa)
    logger.info(
        "Testing introgression between %s and %s, and between %s and %s",
        taxa[0],
        taxa[2],
        taxa[1],
        taxa[2],
    )
    result = compute_dstat(_read_loci(args), taxa)
    payload = result.to_dict()

    outputs: list[str | Path] = []
    if args.loci_tsv:
        Path(args.loci_tsv).parent.mkdir(parents=True, exist_ok=True)
        result.loci.to_csv(args.loci_tsv, sep="\t", index=False)
        outputs.append(args.loci_tsv)
    if args.output:
        from .manifest import write_json_file

        write_json_file(args.output, payload)
        outputs.append(args.output)
    if args.json:
        _emit_json(payload)
    else:
        for key, value in payload.items():
            print(f"{key}: {value}")
    _write_manifest(args, outputs)
    return 0


def _cmd_summary(args: argparse.Namespace) -> int:
    from .summary import summarize_loci

    df = summarize_loci(_read_loci(args))
    if args.output:
        Path(args.output).parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(args.output, sep="\t", index=False)
    else:
        df.to_csv(sys.stdout, sep="\t", index=False)
    _write_manifest(args, [args.output] if args.output else [])
    return 0


def _cmd_convert(args: argparse.Namespace) -> int:
    from .io import read_phylip, write_phylip, write_pretty_phylip
    from .phylip import PhylipFormat
    from .transform import remove_ambiguous_sites, remove_missing_sequences

    logger = get_logger()
    if args.interleaved:
        loci = [
            read_phylip(
                args.msa,
                fmt=PhylipFormat.INTERLEAVED,
                table=get_table(args.alphabet),
                dtype=DataType(args.data_type),
            )
        ]
    else:
        loci = _read_loci(args)

    for index, aln in enumerate(loci):
        try:
            if args.remove_missing:
                removed = remove_missing_sequences(aln)
                if removed:
                    logger.info("Locus %d: removed %d missing sequences", index, removed)
            if args.remove_ambiguous:
                removed = remove_ambiguous_sites(aln)
                if removed:
                    logger.info("Locus %d: removed %d ambiguous sites", index, removed)
        except PhylipError as exc:
            exc.locus = index
            raise

    with _open_output(args.output) as handle:
        if args.pretty:
            write_pretty_phylip(handle, loci)
        else:
            for aln in loci:
                write_phylip(handle, aln)
    _write_manifest(args, [args.output] if args.output else [])
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    args._argv = list(argv if argv is not None else sys.argv[1:])
    configure_logging(verbose=args.verbose, quiet=args.quiet)
    try:
        from .system_info import program_header

        get_logger().info(program_header(__version__))
        if args.command == "explode":
            return _cmd_explode(args)
        if args.command == "extract":
            return _cmd_extract(args, invert=False)
        if args.command == "remove":
            return _cmd_extract(args, invert=True)
        if args.command == "dstat":
            return _cmd_dstat(args)
        if args.command == "summary":
            return _cmd_summary(args)
        if args.command == "convert":
            return _cmd_convert(args)
    except Exception as exc:  # pragma: no cover
        parser.exit(status=2, message=f"error: {exc}\n")
    parser.exit(status=2, message="error: unknown command\n")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
