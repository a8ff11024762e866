"""cnvvcf: write per-sample copy-number segment calls as a single multi-sample VCF.

Public API is intentionally small; most users should use the CLI:

    cnvvcf write --segments proband.tsv --sample-name proband --fasta genome.fa --out CNV.vcf.gz

"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
