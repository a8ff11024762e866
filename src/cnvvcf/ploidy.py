from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pysam

from .models import Segment

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_COPY_NUMBER = 2


@dataclass(frozen=True)
class PloidyInterval:
    """Expected copy number over a region (0-based half-open)."""

    chrom: str
    start: int
    end: int
    ploidy: int


class PloidyInfo:
    """Per-sample lookup of the reference (non-variant) copy number.

    Regions without an interval are diploid. Chromosome names are matched
    case-insensitively, like the genome integrity check.
    """

    def __init__(self, intervals: Iterable[PloidyInterval] = (), *, sample: Optional[str] = None) -> None:
        self.sample = sample
        self._by_chrom: Dict[str, List[PloidyInterval]] = {}
        for interval in intervals:
            self._by_chrom.setdefault(interval.chrom.lower(), []).append(interval)

    def __len__(self) -> int:
        return sum(len(v) for v in self._by_chrom.values())

    def reference_copy_number(self, segment: Segment) -> int:
        """Copy number covering most of ``segment``; ties go to the lower copy number.

        Where intervals overlap, each base counts once, for the interval that
        starts first.
        """
        base_counts: Dict[int, int] = {DEFAULT_REFERENCE_COPY_NUMBER: segment.length}
        intervals = sorted(
            self._by_chrom.get(segment.chrom.lower(), []), key=lambda i: (i.start, i.end)
        )
        claimed_end = segment.begin
        for interval in intervals:
            start = max(segment.begin, interval.start, claimed_end)
            end = min(segment.end, interval.end)
            if end <= start:
                continue
            claimed_end = end
            if interval.ploidy == DEFAULT_REFERENCE_COPY_NUMBER:
                continue
            overlap = end - start
            base_counts[DEFAULT_REFERENCE_COPY_NUMBER] -= overlap
            base_counts[interval.ploidy] = base_counts.get(interval.ploidy, 0) + overlap

        best_cn = DEFAULT_REFERENCE_COPY_NUMBER
        best_count = 0
        for cn in sorted(base_counts):
            if base_counts[cn] > best_count:
                best_cn, best_count = cn, base_counts[cn]
        return best_cn


def load_ploidy_vcf(vcf_path: str | Path, *, sample: Optional[str] = None) -> PloidyInfo:
    """Load a sample's expected copy numbers from a ploidy VCF.

    Parameters
    ----------
    vcf_path:
        VCF whose records span regions (``END``) and carry a per-sample ``CN``.
    sample:
        Sample column to read. If None, uses the first sample.

    Returns
    -------
    PloidyInfo
        Lookup built from every record with a called CN.
    """
    with pysam.VariantFile(str(vcf_path)) as vcf:
        samples = list(vcf.header.samples)
        if sample is None:
            if not samples:
                raise ValueError(f"Ploidy VCF has no samples: {vcf_path}")
            sample = samples[0]
            logger.info("No ploidy sample given; using first VCF sample: %s", sample)
        if sample not in samples:
            raise ValueError(f"Sample '{sample}' not found in ploidy VCF samples: {samples}")
        if "CN" not in vcf.header.formats:
            raise ValueError(f"Ploidy VCF does not declare a CN format field: {vcf_path}")

        intervals: List[PloidyInterval] = []
        skipped = 0
        for rec in vcf:
            cn = rec.samples[sample]["CN"]
            if cn is None:
                skipped += 1
                continue
            intervals.append(
                PloidyInterval(chrom=str(rec.contig), start=int(rec.start), end=int(rec.stop), ploidy=int(cn))
            )

    if skipped:
        logger.debug("Skipped %d ploidy records without CN for %s", skipped, sample)
    logger.info("Loaded %d ploidy intervals for %s", len(intervals), sample)
    return PloidyInfo(intervals, sample=sample)


def ploidy_vcf_samples(vcf_path: str | Path) -> List[str]:
    with pysam.VariantFile(str(vcf_path)) as vcf:
        return list(vcf.header.samples)
