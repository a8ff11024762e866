from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .genome import GenomeReference
from .models import Segment, SourceInfo
from .ploidy import PloidyInfo, load_ploidy_vcf, ploidy_vcf_samples
from .segments_io import load_segments
from .toy_data import make_toy_data
from .utils import ensure_outdir, write_json
from .writer import write_multi_sample_segments


def _setup_logging(verbosity: int, *, logfile: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)

    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def _path_exists(p: str) -> str:
    if not Path(p).exists():
        raise argparse.ArgumentTypeError(f"Path does not exist: {p}")
    return p


def _log_path(out_vcf: Path) -> Path:
    name = out_vcf.name
    for suffix in (".gz", ".vcf"):
        if name.endswith(suffix):
            name = name[: -len(suffix)]
    return out_vcf.parent / f"{name}.log"


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    logging.getLogger("cnvvcf").debug("Command failed", exc_info=err)
    sys.stderr.write(f"{err.__class__.__name__}: {err}\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    return 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cnvvcf",
        description=(
            "cnvvcf: write per-sample copy-number segment calls as a single VCF 4.1 file, "
            "reconciling sample genotypes into one record per interval."
        ),
    )
    p.add_argument("--version", action="version", version=f"cnvvcf {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # -----------------
    # quickstart
    # -----------------
    sub.add_parser(
        "quickstart",
        help="Print ready-to-run recipes for common scenarios.",
    )

    # -----------------
    # make-toy-data
    # -----------------
    t = sub.add_parser(
        "make-toy-data",
        help="Generate a tiny reference, segment tables and ploidy VCF for demos/tests.",
    )
    t.add_argument("--outdir", required=True, help="Output directory for toy data.")
    t.add_argument("--dry-run", action="store_true", help="Validate paths without writing files.")

    # -----------------
    # write
    # -----------------
    w = sub.add_parser(
        "write",
        help="Write one or more samples' segment tables as a CNV VCF.",
    )
    w.add_argument(
        "--segments",
        required=True,
        nargs="+",
        type=_path_exists,
        help="Segment table(s) (.tsv/.tsv.gz), one per sample, all covering the same intervals.",
    )
    w.add_argument(
        "--sample-name",
        required=True,
        nargs="+",
        help="Sample name(s), in the same order as --segments.",
    )
    w.add_argument("--fasta", required=True, type=_path_exists, help="Reference FASTA (indexed or indexable).")
    w.add_argument("--out", required=True, help="Output VCF (.vcf or bgzipped .vcf.gz).")
    w.add_argument(
        "--ploidy-vcf",
        default=None,
        type=_path_exists,
        help="Expected copy numbers per sample (CN format field). Samples absent from it are diploid.",
    )
    w.add_argument(
        "--diploid-coverage",
        type=float,
        nargs="+",
        default=None,
        help="Coverage of diploid regions, one value per sample; the mean is reported.",
    )
    w.add_argument(
        "--extra-header",
        action="append",
        default=[],
        help="Extra '##' header line (repeatable).",
    )
    w.add_argument(
        "--quality-threshold",
        type=int,
        default=10,
        help="Quality threshold named in the q<threshold> FILTER declaration.",
    )
    w.add_argument(
        "--denovo-quality-threshold",
        type=int,
        default=None,
        help="Report de novo quality (DQ) and declare this threshold in the header.",
    )
    w.add_argument(
        "--pedigree",
        action="store_true",
        help="Family relationships are known; do not rescue FILTER from other samples.",
    )
    w.add_argument(
        "--tabix",
        action="store_true",
        help=(
            "Tabix-index the output (.vcf.gz only). A CNV starting at base 0 of a contig is "
            "written with POS 0; htslib warns 'Coordinate <= 0 detected' and reads it with start -1."
        ),
    )
    w.add_argument("--summary-json", default=None, help="Optional path for a JSON run summary.")
    w.add_argument("--source-name", default="Canvas", help="Program name for the ##source header line.")
    w.add_argument("--dry-run", action="store_true", help="Validate inputs and print planned outputs.")
    w.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")

    return p


# -----------------
# Command handlers
# -----------------

def cmd_quickstart() -> int:
    lines = [
        "cnvvcf quickstart (copy/paste):",
        "",
        "1) Single sample:",
        "   cnvvcf write \\",
        "     --segments sample.segments.tsv \\",
        "     --sample-name SAMPLE \\",
        "     --fasta genome.fa \\",
        "     --out CNV.vcf.gz --tabix",
        "",
        "2) Small pedigree (proband first):",
        "   cnvvcf write \\",
        "     --segments proband.tsv mother.tsv father.tsv \\",
        "     --sample-name proband mother father \\",
        "     --fasta genome.fa \\",
        "     --ploidy-vcf ploidy.vcf.gz \\",
        "     --pedigree --denovo-quality-threshold 20 \\",
        "     --out CNV.vcf.gz",
        "",
        "3) Try it on toy data:",
        "   cnvvcf make-toy-data --outdir toy/",
        "",
        "Tip: use --dry-run to validate inputs and print planned outputs.",
    ]
    print("\n".join(lines))
    return 0


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    if args.dry_run:
        print("Dry-run: would create toy data in:")
        print(f"  {outdir}")
        return 0
    paths = make_toy_data(outdir=outdir)
    for key in sorted(paths):
        print(f"{key}\t{paths[key]}")
    return 0


def _load_ploidies(ploidy_vcf: Optional[str], sample_names: List[str]) -> List[Optional[PloidyInfo]]:
    logger = logging.getLogger("cnvvcf")
    if ploidy_vcf is None:
        return [None] * len(sample_names)
    available = set(ploidy_vcf_samples(ploidy_vcf))
    ploidies: List[Optional[PloidyInfo]] = []
    for name in sample_names:
        if name not in available:
            logger.warning("Sample %s not found in ploidy VCF %s; assuming diploid", name, ploidy_vcf)
            ploidies.append(None)
            continue
        ploidies.append(load_ploidy_vcf(ploidy_vcf, sample=name))
    return ploidies


def cmd_write(args: argparse.Namespace) -> int:
    out_vcf = Path(args.out).expanduser().resolve()
    log_path = _log_path(out_vcf)
    _setup_logging(args.verbose, logfile=None if args.dry_run else log_path)

    logger = logging.getLogger("cnvvcf")
    logger.info("cnvvcf %s", __version__)

    try:
        if len(args.segments) != len(args.sample_name):
            raise ValueError(
                f"Got {len(args.segments)} --segments tables but {len(args.sample_name)} --sample-name values"
            )
        if args.diploid_coverage is not None and len(args.diploid_coverage) != len(args.sample_name):
            raise ValueError("Provide one --diploid-coverage value per sample")
        if args.tabix and not str(out_vcf).endswith(".gz"):
            raise ValueError("--tabix requires a bgzipped output path ending in .vcf.gz")

        genome = GenomeReference.from_fasta(args.fasta)

        if args.dry_run:
            print("Dry-run: inputs look OK.")
            print(f"Samples: {', '.join(args.sample_name)}")
            print(f"Reference contigs: {len(genome)}")
            print("Planned outputs:")
            print(f"  VCF -> {out_vcf}")
            if args.tabix:
                print(f"  index -> {out_vcf}.tbi")
            if args.summary_json:
                print(f"  summary -> {args.summary_json}")
            return 0

        ensure_outdir(out_vcf.parent)
        segments: List[List[Segment]] = [load_segments(p) for p in args.segments]
        ploidies = _load_ploidies(args.ploidy_vcf, list(args.sample_name))

        summary = write_multi_sample_segments(
            out_vcf,
            segments,
            args.diploid_coverage,
            genome,
            list(args.sample_name),
            list(args.extra_header),
            ploidies,
            int(args.quality_threshold),
            is_pedigree_info_supplied=bool(args.pedigree),
            denovo_quality_threshold=args.denovo_quality_threshold,
            source=SourceInfo(name=args.source_name, version=__version__),
            index=bool(args.tabix),
            progress=args.verbose > 0,
        )

        if args.summary_json:
            write_json(args.summary_json, summary)

        logger.info("VCF written: %s", out_vcf)
        print(str(out_vcf))
        return 0
    except Exception as e:
        return _handle_error(e, log_path=None if args.dry_run else log_path)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "quickstart":
        return cmd_quickstart()
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)
    if args.cmd == "write":
        return cmd_write(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
