from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from . import __version__

PASS_FILTER = "PASS"

# Symbolic ALT allele for every non-reference record.
CNV_ALLELE = "<CNV>"
REFERENCE_ALLELE = "."


class CnvType(Enum):
    """Copy-number variant type of one record (or one sample's call)."""

    REFERENCE = "REF"
    GAIN = "GAIN"
    LOSS = "LOSS"
    LOSS_OF_HETEROZYGOSITY = "LOH"
    COMPLEX_CNV = "COMPLEXCNV"

    def to_vcf_id(self) -> str:
        """Token used in the synthetic VCF ID, e.g. ``Canvas:GAIN:chr1:1-100``."""
        return self.value

    def to_sv_type(self) -> str:
        if self is CnvType.REFERENCE:
            raise ValueError("Reference records carry no SVTYPE")
        return _SV_TYPES[self]

    def to_alt_allele(self) -> str:
        if self is CnvType.REFERENCE:
            return REFERENCE_ALLELE
        return CNV_ALLELE


_SV_TYPES = {
    CnvType.GAIN: "DUP",
    CnvType.LOSS: "DEL",
    CnvType.LOSS_OF_HETEROZYGOSITY: "LOH",
    CnvType.COMPLEX_CNV: "CNV",
}


def elementary_cnv_type(
    copy_number: int,
    major_chromosome_count: Optional[int],
    reference_copy_number: int,
) -> CnvType:
    """Classify a single sample's call against its expected copy number.

    A call at the reference copy number whose major chromosome count equals the
    copy number (all copies from one haplotype) is copy-neutral LOH.
    """
    if copy_number < reference_copy_number:
        return CnvType.LOSS
    if copy_number > reference_copy_number:
        return CnvType.GAIN
    if copy_number > 1 and major_chromosome_count is not None and major_chromosome_count == copy_number:
        return CnvType.LOSS_OF_HETEROZYGOSITY
    return CnvType.REFERENCE


@dataclass
class Segment:
    """A copy-number call for one sample over one genomic interval.

    Coordinates are 0-based half-open.

    Attributes
    ----------
    chrom:
        Contig name; must be present in the genome reference (any letter case).
    begin, end:
        Interval bounds, ``begin <= end``.
    copy_number:
        Called total copy number.
    filter:
        VCF FILTER label, ``PASS`` or a named filter (``;``-joined if several).
    bin_count:
        Number of coverage bins in the segment.
    mean_count, median_count:
        Mean / median read counts per bin.
    major_chromosome_count:
        Copies carried by the more abundant haplotype (MCC), if estimated.
    major_chromosome_count_score:
        Quality of the MCC estimate (MCCQ).
    qscore:
        Phred-scaled call quality (QS / QUAL).
    dq_score:
        De novo quality (DQ), pedigree calling only.
    start_confidence_interval, end_confidence_interval:
        CIPOS / CIEND offsets.
    is_heterogeneous:
        Subclonal call.
    is_common_cnv:
        Call overlaps a pre-specified common CNV interval.
    """

    chrom: str
    begin: int
    end: int
    copy_number: int
    filter: str = PASS_FILTER
    bin_count: int = 0
    mean_count: float = 0.0
    median_count: float = 0.0
    major_chromosome_count: Optional[int] = None
    major_chromosome_count_score: Optional[float] = None
    qscore: float = 0.0
    dq_score: Optional[float] = None
    start_confidence_interval: Optional[Tuple[int, int]] = None
    end_confidence_interval: Optional[Tuple[int, int]] = None
    is_heterogeneous: bool = False
    is_common_cnv: bool = False

    def __post_init__(self) -> None:
        if self.begin > self.end:
            raise ValueError(
                f"Segment {self.chrom}:{self.begin}-{self.end} has begin greater than end"
            )

    @property
    def length(self) -> int:
        return self.end - self.begin

    @property
    def is_pass(self) -> bool:
        return self.filter == PASS_FILTER

    def cnv_type(self, reference_copy_number: int) -> CnvType:
        return elementary_cnv_type(self.copy_number, self.major_chromosome_count, reference_copy_number)


@dataclass(frozen=True)
class SourceInfo:
    """Program name and version written to the ``##source`` header line."""

    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name} {self.version}"

    @classmethod
    def default(cls) -> "SourceInfo":
        return cls(name="Canvas", version=__version__)
