import pytest

from cnvvcf.genome import GenomeReference


def test_from_fasta_reads_contigs_in_order(toy_fasta):
    genome = GenomeReference.from_fasta(toy_fasta)
    assert [(c.name, c.length) for c in genome] == [("chr1", 100), ("chr2", 40)]
    assert genome.fasta_path == str(toy_fasta)
    assert len(genome) == 2


def test_contig_names_are_lower_cased(genome):
    assert genome.contig_names() == {"chr1", "chr2", "chrx"}


def test_missing_fasta(tmp_path):
    with pytest.raises((OSError, ValueError)):
        GenomeReference.from_fasta(tmp_path / "missing.fa")
