from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Set

import pysam

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Contig:
    """One reference sequence."""

    name: str
    length: int
    fasta_path: str


@dataclass(frozen=True)
class GenomeReference:
    """Ordered contigs of a reference genome.

    Contig order defines the order in which VCF records are written.
    """

    fasta_path: str
    contigs: List[Contig] = field(default_factory=list)

    def __iter__(self) -> Iterator[Contig]:
        return iter(self.contigs)

    def __len__(self) -> int:
        return len(self.contigs)

    def contig_names(self) -> Set[str]:
        """Lower-cased contig names, for case-insensitive membership tests."""
        return {c.name.lower() for c in self.contigs}

    @classmethod
    def from_fasta(cls, fasta_path: str | Path) -> "GenomeReference":
        """Read contig names and lengths from a FASTA and its ``.fai`` index.

        pysam builds the index next to the FASTA when it is missing.
        """
        path = str(fasta_path)
        with pysam.FastaFile(path) as fasta:
            contigs = [
                Contig(name=name, length=int(length), fasta_path=path)
                for name, length in zip(fasta.references, fasta.lengths)
            ]
        if not contigs:
            raise ValueError(f"Reference FASTA has no sequences: {path}")
        logger.debug("Loaded %d contigs from %s", len(contigs), path)
        return cls(fasta_path=path, contigs=contigs)
