from __future__ import annotations

import dataclasses
import logging
import statistics
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, TextIO, Union

import pysam
from tqdm import tqdm

from .classifier import assign_cnv_type
from .errors import SegmentAlignmentError
from .genome import Contig, GenomeReference
from .header import write_vcf_header
from .models import PASS_FILTER, CnvType, Segment, SourceInfo
from .ploidy import DEFAULT_REFERENCE_COPY_NUMBER, PloidyInfo
from .records import write_format_field, write_info_field, write_single_sample_format

logger = logging.getLogger(__name__)

SegmentSets = Union[Sequence[Sequence[Segment]], Mapping[str, Sequence[Segment]]]


class BgzipOrTextWriter:
    """Text sink writing block-gzip (``.gz`` paths) or plain UTF-8 text."""

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        self.compressed = self.path.endswith(".gz")
        if self.compressed:
            self._fh = pysam.BGZFile(self.path, "wb")
        else:
            self._fh = open(self.path, "wt", encoding="utf-8")

    def write(self, text: str) -> int:
        if self.compressed:
            return self._fh.write(text.encode("utf-8"))
        return self._fh.write(text)

    def close(self) -> None:
        self._fh.close()


@contextmanager
def open_vcf_writer(path: str | Path) -> Iterator[BgzipOrTextWriter]:
    writer = BgzipOrTextWriter(path)
    try:
        yield writer
    finally:
        writer.close()


def _as_sample_lists(segments: SegmentSets) -> List[Sequence[Segment]]:
    if isinstance(segments, Mapping):
        return list(segments.values())
    return list(segments)


def check_segment_alignment(segments: Sequence[Sequence[Segment]]) -> None:
    """Ensure every sample's list describes the same intervals in the same order."""
    if not segments:
        raise SegmentAlignmentError("No sample segment lists given")
    first = segments[0]
    for sample_index, other in enumerate(segments[1:], start=1):
        if len(other) != len(first):
            raise SegmentAlignmentError(
                f"Sample {sample_index} has {len(other)} segments; sample 0 has {len(first)}"
            )
        for segment_index, (a, b) in enumerate(zip(first, other)):
            if a.chrom.lower() != b.chrom.lower() or a.begin != b.begin or a.end != b.end:
                raise SegmentAlignmentError(
                    f"Segment {segment_index} of sample {sample_index} "
                    f"({b.chrom}:{b.begin}-{b.end}) does not match sample 0 ({a.chrom}:{a.begin}-{a.end})"
                )


def _empty_counts() -> Dict[str, int]:
    counts = {"records_total": 0}
    for cnv_type in CnvType:
        counts[f"records_{cnv_type.to_vcf_id().lower()}"] = 0
    return counts


def write_variants(
    out: TextIO,
    segments: Sequence[Sequence[Segment]],
    ploidies: Sequence[Optional[PloidyInfo]],
    genome: GenomeReference,
    is_pedigree_info_supplied: bool = True,
    denovo_quality_threshold: Optional[int] = None,
    *,
    progress: bool = False,
) -> Dict[str, int]:
    """Write one record per aligned interval, in genome contig order.

    Parameters
    ----------
    out:
        Text sink positioned after the header.
    segments:
        One list per sample; lists must be aligned index by index.
    ploidies:
        One lookup per sample; ``None`` means diploid everywhere.
    genome:
        Defines the contig order of the records.
    is_pedigree_info_supplied:
        Without family relationships, an interval called PASS in any sample
        is written with FILTER=PASS.
    denovo_quality_threshold:
        If set, the DQ field is written per sample.
    progress:
        Show a per-contig progress bar.

    Returns
    -------
    dict
        Record counts, total and per CNV type.
    """
    n_samples = len(segments)
    if len(ploidies) != n_samples:
        raise SegmentAlignmentError(f"Got {len(ploidies)} ploidy lookups for {n_samples} samples")
    check_segment_alignment(segments)

    report_dq = denovo_quality_threshold is not None
    is_multisample = n_samples > 1
    counts = _empty_counts()
    first_sample = segments[0]

    contigs: Iterable[Contig] = genome
    if progress:
        contigs = tqdm(genome.contigs, unit="contig", desc="Writing CNV records")

    for contig in contigs:
        contig_name = contig.name.lower()
        n_contig = 0
        for segment_index in range(len(first_sample)):
            representative = first_sample[segment_index]
            if representative.chrom.lower() != contig_name:
                continue
            current = [sample[segment_index] for sample in segments]

            if (
                not is_pedigree_info_supplied
                and is_multisample
                and not representative.is_pass
                and any(s.is_pass for s in current)
            ):
                representative = dataclasses.replace(representative, filter=PASS_FILTER)

            cnv_types = []
            for segment, ploidy in zip(current, ploidies):
                reference_cn = DEFAULT_REFERENCE_COPY_NUMBER
                if ploidy is not None:
                    reference_cn = ploidy.reference_copy_number(segment)
                cnv_types.append(segment.cnv_type(reference_cn))
            cnv_type = assign_cnv_type(cnv_types)

            write_info_field(out, representative, cnv_type, is_multisample=is_multisample)
            if is_multisample:
                write_format_field(out, current, report_dq)
            else:
                write_single_sample_format(out, representative, report_dq)

            counts["records_total"] += 1
            counts[f"records_{cnv_type.to_vcf_id().lower()}"] += 1
            n_contig += 1
        logger.debug("Wrote %d records on %s", n_contig, contig.name)

    return counts


def _tabix_index(path: str) -> str:
    pysam.tabix_index(path, preset="vcf", force=True)
    index_path = path + ".tbi"
    logger.info("Indexed %s", index_path)
    return index_path


def write_multi_sample_segments(
    out_path: str | Path,
    segments: SegmentSets,
    diploid_coverages: Optional[Sequence[float]],
    genome: Union[GenomeReference, str, Path],
    sample_names: Sequence[str],
    extra_headers: Optional[Sequence[str]],
    ploidies: Sequence[Optional[PloidyInfo]],
    quality_threshold: int,
    is_pedigree_info_supplied: bool = True,
    denovo_quality_threshold: Optional[int] = None,
    *,
    source: Optional[SourceInfo] = None,
    index: bool = False,
    progress: bool = False,
) -> Dict[str, object]:
    """Write aligned per-sample segment lists as one multi-sample VCF.

    Paths ending in ``.gz`` are block-gzip compressed, and tabix indexed when
    ``index`` is set. The output file is closed on every exit path; a write
    that fails part-way leaves the partial file in place.

    Returns
    -------
    dict
        Run summary: output path, samples, record counts, runtime.
    """
    t0 = time.time()
    sample_lists = _as_sample_lists(segments)
    if not sample_lists:
        raise SegmentAlignmentError("No sample segment lists given")
    if len(sample_names) != len(sample_lists):
        raise SegmentAlignmentError(
            f"Got {len(sample_names)} sample names for {len(sample_lists)} segment lists"
        )
    if source is None:
        source = SourceInfo.default()
    diploid_coverage = statistics.mean(diploid_coverages) if diploid_coverages else None

    out_path = str(out_path)
    logger.info("Writing %d sample(s) to %s", len(sample_lists), out_path)
    with open_vcf_writer(out_path) as out:
        genome_ref = write_vcf_header(
            out,
            sample_lists[0],
            diploid_coverage,
            genome,
            sample_names,
            extra_headers,
            quality_threshold,
            denovo_quality_threshold,
            source=source,
        )
        counts = write_variants(
            out,
            sample_lists,
            ploidies,
            genome_ref,
            is_pedigree_info_supplied,
            denovo_quality_threshold,
            progress=progress,
        )
    logger.info("Wrote %d records to %s", counts["records_total"], out_path)

    index_path: Optional[str] = None
    if index:
        if not out_path.endswith(".gz"):
            raise ValueError(f"Only bgzip-compressed VCFs (.vcf.gz) can be tabix indexed: {out_path}")
        index_path = _tabix_index(out_path)

    return {
        "vcf_path": out_path,
        "index_path": index_path,
        "samples": list(sample_names),
        "reference": genome_ref.fasta_path,
        "counts": counts,
        "runtime_seconds": float(time.time() - t0),
    }


def write_segments(
    out_path: str | Path,
    segments: Sequence[Segment],
    diploid_coverage: Optional[float],
    genome: Union[GenomeReference, str, Path],
    sample_name: str,
    extra_headers: Optional[Sequence[str]],
    ploidy: Optional[PloidyInfo],
    quality_threshold: int,
    is_pedigree_info_supplied: bool,
    denovo_quality_threshold: Optional[int] = None,
    *,
    source: Optional[SourceInfo] = None,
    index: bool = False,
    progress: bool = False,
) -> Dict[str, object]:
    """Single-sample front end for :func:`write_multi_sample_segments`."""
    return write_multi_sample_segments(
        out_path,
        [segments],
        [diploid_coverage] if diploid_coverage is not None else None,
        genome,
        [sample_name],
        extra_headers,
        [ploidy],
        quality_threshold,
        is_pedigree_info_supplied,
        denovo_quality_threshold,
        source=source,
        index=index,
        progress=progress,
    )
