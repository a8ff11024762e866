from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence, TextIO, Union

from .errors import IntegrityCheckError
from .genome import GenomeReference
from .models import Segment, SourceInfo

logger = logging.getLogger(__name__)

VCF_COLUMNS = ("#CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO", "FORMAT")

_STATIC_DECLARATIONS = (
    '##FILTER=<ID=L10kb,Description="Length shorter than 10kb">',
    '##INFO=<ID=CIEND,Number=2,Type=Integer,Description="Confidence interval around END for imprecise variants">',
    '##INFO=<ID=CIPOS,Number=2,Type=Integer,Description="Confidence interval around POS for imprecise variants">',
    '##INFO=<ID=CNVLEN,Number=1,Type=Integer,Description="Number of reference positions spanned by this CNV">',
    '##INFO=<ID=END,Number=1,Type=Integer,Description="End position of the variant described in this record">',
    '##INFO=<ID=SVTYPE,Number=1,Type=String,Description="Type of structural variant">',
    '##INFO=<ID=SUBCLONAL,Number=0,Type=Flag,Description="Subclonal variant">',
    '##INFO=<ID=COMMONCNV,Number=0,Type=Flag,Description="Common CNV variant identified from pre-specified bed intervals">',
    '##FORMAT=<ID=RC,Number=1,Type=Float,Description="Mean counts per bin in the region">',
    '##FORMAT=<ID=BC,Number=1,Type=Float,Description="Number of bins in the region">',
    '##FORMAT=<ID=CN,Number=1,Type=Integer,Description="Copy number genotype for imprecise events">',
    '##FORMAT=<ID=MCC,Number=1,Type=Integer,Description="Major chromosome count (equal to copy number for LOH regions)">',
    '##FORMAT=<ID=MCCQ,Number=1,Type=Float,Description="Major chromosome count quality score">',
    '##FORMAT=<ID=QS,Number=1,Type=Float,Description="Phred-scaled quality score. '
    'If CN is reference then this is -10log10(prob(variant)) otherwise this is -10log10(prob(no variant).">',
)


def _writeline(out: TextIO, line: str) -> None:
    out.write(line + "\n")


def resolve_genome(genome: Union[GenomeReference, str, Path]) -> GenomeReference:
    if isinstance(genome, GenomeReference):
        return genome
    return GenomeReference.from_fasta(genome)


def check_chromosome_names(genome: GenomeReference, segments: Sequence[Segment]) -> None:
    """Ensure every segment lies on a contig of the reference (case-insensitive).

    Catches segment calls made against a different reference build than the
    FASTA used for the header.
    """
    names = genome.contig_names()
    for segment in segments:
        if segment.chrom.lower() not in names:
            raise IntegrityCheckError(segment.chrom)


def add_ploidy_and_coverage_headers(
    out: TextIO,
    segments: Sequence[Segment],
    diploid_coverage: Optional[float],
) -> None:
    """Write length-weighted mean copy number of PASS segments, and diploid coverage."""
    total_ploidy = 0.0
    total_weight = 0.0
    for segment in segments:
        if not segment.is_pass:
            continue
        total_weight += segment.length
        total_ploidy += segment.copy_number * segment.length
    if total_weight > 0:
        _writeline(out, f"##OverallPloidy={total_ploidy / total_weight:.2f}")
        if diploid_coverage is not None:
            _writeline(out, f"##DiploidCoverage={diploid_coverage:.2f}")


def write_alt_copy_number_tags(out: TextIO, max_copy_number: int = 5) -> None:
    for copy_number in range(max_copy_number + 1):
        if copy_number == 1:
            continue
        _writeline(out, f'##ALT=<ID=CN{copy_number},Description="Copy number allele: {copy_number} copies">')


def write_vcf_header(
    out: TextIO,
    segments: Sequence[Segment],
    diploid_coverage: Optional[float],
    genome: Union[GenomeReference, str, Path],
    sample_names: Sequence[str],
    extra_headers: Optional[Sequence[str]],
    quality_threshold: int,
    denovo_quality_threshold: Optional[int] = None,
    *,
    source: SourceInfo,
) -> GenomeReference:
    """Write the VCF 4.1 header and validate segment chromosomes.

    Parameters
    ----------
    out:
        Text sink; only ``write`` is used.
    segments:
        Segments of the first sample; used for the overall ploidy line and the
        integrity check.
    diploid_coverage:
        Coverage of a diploid region, if known.
    genome:
        Genome reference, or a FASTA path to load it from.
    sample_names:
        Sample columns, in record order.
    extra_headers:
        Caller-supplied ``##`` lines, written verbatim.
    quality_threshold:
        Embedded in the ``q<threshold>`` FILTER declaration.
    denovo_quality_threshold:
        If set, the DQ FORMAT field is declared.
    source:
        Program name and version for the ``##source`` line.

    Returns
    -------
    GenomeReference
        The resolved reference, reused to order records.

    Raises
    ------
    IntegrityCheckError
        If a segment lies on a chromosome missing from ``genome``. The header
        has been written by then.
    """
    genome_ref = resolve_genome(genome)

    _writeline(out, "##fileformat=VCFv4.1")
    _writeline(out, f"##source={source}")
    _writeline(out, f"##reference={genome_ref.fasta_path}")
    add_ploidy_and_coverage_headers(out, segments, diploid_coverage)
    for line in extra_headers or []:
        _writeline(out, line)

    for contig in genome_ref:
        _writeline(out, f"##contig=<ID={contig.name},length={contig.length}>")

    _writeline(out, '##ALT=<ID=CNV,Description="Copy number variable region">')
    write_alt_copy_number_tags(out)
    _writeline(out, f'##FILTER=<ID=q{quality_threshold},Description="Quality below {quality_threshold}">')
    for line in _STATIC_DECLARATIONS:
        _writeline(out, line)
    if denovo_quality_threshold is not None:
        _writeline(
            out,
            "##FORMAT=<ID=DQ,Number=1,Type=Float,Description=\"De novo quality. "
            f'Threshold for passing de novo call: {denovo_quality_threshold}">',
        )

    _writeline(out, "\t".join(list(VCF_COLUMNS) + list(sample_names)))
    check_chromosome_names(genome_ref, segments)
    return genome_ref
