from __future__ import annotations

from typing import List, Optional, Sequence, TextIO

from .models import CnvType, Segment

MISSING = "."
REF_BASE = "N"
ID_PREFIX = "Canvas"

SINGLE_SAMPLE_FORMAT = "RC:BC:CN:MCC"
MULTI_SAMPLE_FORMAT = "RC:BC:CN:MCC:MCCQ:QS"


def _fmt_score(value: Optional[float]) -> str:
    return MISSING if value is None else f"{value:.2f}"


def _fmt_int(value: Optional[int]) -> str:
    return MISSING if value is None else str(value)


def is_symbolic_allele(allele: str) -> bool:
    return allele.startswith("<") and allele.endswith(">")


def vcf_position(segment: Segment, alternate_allele: str) -> int:
    """1-based POS of a record.

    Symbolic alleles need the padding base, so POS is the base preceding the
    event (``begin`` in 0-based coordinates); otherwise the first base itself.
    """
    if is_symbolic_allele(alternate_allele):
        return segment.begin
    return segment.begin + 1


def variant_id(segment: Segment, cnv_type: CnvType) -> str:
    return f"{ID_PREFIX}:{cnv_type.to_vcf_id()}:{segment.chrom}:{segment.begin + 1}-{segment.end}"


def info_entries(segment: Segment, cnv_type: CnvType) -> List[str]:
    entries: List[str] = []
    if cnv_type is not CnvType.REFERENCE:
        entries.append(f"SVTYPE={cnv_type.to_sv_type()}")
    if segment.is_heterogeneous:
        entries.append("SUBCLONAL")
    if segment.is_common_cnv:
        entries.append("COMMONCNV")
    entries.append(f"END={segment.end}")
    if cnv_type is not CnvType.REFERENCE:
        entries.append(f"CNVLEN={segment.length}")
    if segment.start_confidence_interval is not None:
        lo, hi = segment.start_confidence_interval
        entries.append(f"CIPOS={lo},{hi}")
    if segment.end_confidence_interval is not None:
        lo, hi = segment.end_confidence_interval
        entries.append(f"CIEND={lo},{hi}")
    return entries


def write_info_field(out: TextIO, segment: Segment, cnv_type: CnvType, is_multisample: bool) -> None:
    """Write the fixed columns CHROM..INFO of one record, without a newline.

    The FORMAT and sample columns follow via :func:`write_format_field` or
    :func:`write_single_sample_format`.
    """
    alt = cnv_type.to_alt_allele()
    qual = MISSING if is_multisample else f"{segment.qscore:.2f}"
    columns = [
        segment.chrom,
        str(vcf_position(segment, alt)),
        variant_id(segment, cnv_type),
        REF_BASE,
        alt,
        qual,
        segment.filter,
        ";".join(info_entries(segment, cnv_type)),
    ]
    out.write("\t".join(columns))


def write_single_sample_format(out: TextIO, segment: Segment, report_dq: bool) -> None:
    tags = SINGLE_SAMPLE_FORMAT + (":DQ" if report_dq else "")
    values = [
        f"{segment.median_count:.2f}",
        str(segment.bin_count),
        str(segment.copy_number),
        _fmt_int(segment.major_chromosome_count),
    ]
    if report_dq:
        values.append(_fmt_score(segment.dq_score))
    out.write(f"\t{tags}\t{':'.join(values)}\n")


def write_format_field(out: TextIO, segments: Sequence[Segment], report_dq: bool) -> None:
    """Write FORMAT and one sample column per segment, in sample order."""
    tags = MULTI_SAMPLE_FORMAT + (":DQ" if report_dq else "")
    out.write(f"\t{tags}")
    for segment in segments:
        values = [
            f"{segment.mean_count:.2f}",
            str(segment.bin_count),
            str(segment.copy_number),
            _fmt_int(segment.major_chromosome_count),
            _fmt_score(segment.major_chromosome_count_score),
            f"{segment.qscore:.2f}",
        ]
        if report_dq:
            values.append(_fmt_score(segment.dq_score))
        out.write("\t" + ":".join(values))
    out.write("\n")
