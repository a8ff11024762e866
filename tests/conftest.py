from pathlib import Path

import pytest

from cnvvcf.genome import Contig, GenomeReference


@pytest.fixture
def genome() -> GenomeReference:
    fa = "/ref/genome.fa"
    return GenomeReference(
        fasta_path=fa,
        contigs=[
            Contig(name="chr1", length=100_000, fasta_path=fa),
            Contig(name="chr2", length=50_000, fasta_path=fa),
            Contig(name="chrX", length=30_000, fasta_path=fa),
        ],
    )


@pytest.fixture
def toy_fasta(tmp_path: Path) -> Path:
    fa = tmp_path / "ref.fa"
    fa.write_text(">chr1\n" + "ACGT" * 25 + "\n>chr2\n" + "GGCC" * 10 + "\n", encoding="utf-8")
    return fa
