from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Tuple

import pysam

from .models import Segment
from .segments_io import write_segment_table
from .utils import ensure_outdir, write_json

# (contig, length)
_TOY_CONTIGS: List[Tuple[str, int]] = [("chr1", 12_000), ("chrX", 8_000)]


def _write_fasta(path: Path, contigs: List[Tuple[str, int]]) -> None:
    lines: List[str] = []
    for contig, length in contigs:
        seq = ("ACGT" * (length // 4 + 1))[:length]
        lines.append(f">{contig}")
        for i in range(0, len(seq), 60):
            lines.append(seq[i : i + 60])
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _toy_segment(chrom: str, begin: int, end: int, cn: int, **kwargs) -> Segment:
    bins = (end - begin) // 100
    return Segment(
        chrom=chrom,
        begin=begin,
        end=end,
        copy_number=cn,
        bin_count=bins,
        mean_count=50.0 * cn / 2,
        median_count=50.0 * cn / 2,
        qscore=kwargs.pop("qscore", 30.0),
        **kwargs,
    )


def _toy_segments() -> Dict[str, List[Segment]]:
    proband = [
        _toy_segment("chr1", 0, 4_000, 2, major_chromosome_count=1),
        _toy_segment("chr1", 4_000, 8_000, 3, major_chromosome_count=2, start_confidence_interval=(-50, 50)),
        _toy_segment("chr1", 8_000, 12_000, 1, filter="q10", qscore=5.0, dq_score=12.5),
        _toy_segment("chrX", 100, 8_000, 1),
    ]
    parent = [
        _toy_segment("chr1", 0, 4_000, 2, major_chromosome_count=1),
        _toy_segment("chr1", 4_000, 8_000, 2, major_chromosome_count=1),
        _toy_segment("chr1", 8_000, 12_000, 3, major_chromosome_count=2, major_chromosome_count_score=20.0),
        _toy_segment("chrX", 100, 8_000, 2, major_chromosome_count=2, is_heterogeneous=True),
    ]
    return {"proband": proband, "parent": parent}


def _write_ploidy_vcf(path: Path, contigs: List[Tuple[str, int]]) -> Path:
    header = pysam.VariantHeader()
    header.add_meta("fileformat", "VCFv4.2")
    for contig, length in contigs:
        header.contigs.add(contig, length=length)
    header.info.add("END", number=1, type="Integer", description="End position of the region")
    header.formats.add("CN", number=1, type="Integer", description="Expected copy number")
    header.add_sample("proband")
    header.add_sample("parent")

    with pysam.VariantFile(str(path), "w", header=header) as vcf:
        rec = vcf.new_record(
            contig="chrX",
            start=0,
            stop=8_000,
            alleles=("N", "<CNV>"),
            filter="PASS",
        )
        rec.samples["proband"]["CN"] = 1
        rec.samples["parent"]["CN"] = 2
        vcf.write(rec)

    vcf_gz = path.with_suffix(path.suffix + ".gz")
    pysam.tabix_compress(str(path), str(vcf_gz), force=True)
    pysam.tabix_index(str(vcf_gz), preset="vcf", force=True)
    return vcf_gz


def make_toy_data(*, outdir: str | Path) -> Dict[str, str]:
    """Create a tiny reference, two aligned segment tables and a ploidy VCF.

    The outputs include:
    - toy_ref.fa (+ .fai)
    - proband.segments.tsv, parent.segments.tsv
    - ploidy.vcf.gz (+ .tbi), haploid chrX for the proband

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = ensure_outdir(outdir)

    ref_fa = outdir_p / "toy_ref.fa"
    _write_fasta(ref_fa, _TOY_CONTIGS)
    pysam.faidx(str(ref_fa))

    tables: Dict[str, str] = {}
    for sample, segments in _toy_segments().items():
        table = outdir_p / f"{sample}.segments.tsv"
        write_segment_table(table, segments)
        tables[sample] = str(table)

    ploidy_vcf = _write_ploidy_vcf(outdir_p / "ploidy.vcf", _TOY_CONTIGS)

    summary = {
        "ref_fa": str(ref_fa),
        "proband_segments": tables["proband"],
        "parent_segments": tables["parent"],
        "ploidy_vcf": str(ploidy_vcf),
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
