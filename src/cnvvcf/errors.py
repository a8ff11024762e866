"""Exceptions raised while writing CNV segments as VCF.

All of them signal malformed input rather than transient failures; nothing in
this package retries. They derive from ``ValueError`` so callers that already
guard input validation with ``except ValueError`` keep working.
"""

from __future__ import annotations


class CnvVcfError(ValueError):
    """Base class for cnvvcf input errors."""


class IntegrityCheckError(CnvVcfError):
    """A segment references a chromosome missing from the genome reference."""

    def __init__(self, chrom: str) -> None:
        super().__init__(f"Integrity check error: Segment found at unknown chromosome '{chrom}'")
        self.chrom = chrom


class InvalidCnvTypeError(CnvVcfError):
    """Per-sample CNV types cannot be reconciled into one VCF record."""


class SegmentAlignmentError(CnvVcfError):
    """Per-sample segment lists do not describe the same intervals."""
