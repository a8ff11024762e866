import gzip
import json
import subprocess
import sys
from pathlib import Path

import pysam

from cnvvcf.cli import main
from cnvvcf.toy_data import make_toy_data


def _run_cli(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", "cnvvcf"] + args,
        check=False,
        capture_output=True,
        text=True,
    )


def _data_lines(path: Path) -> list[list[str]]:
    with gzip.open(path, "rt") as fh:
        return [line.rstrip("\n").split("\t") for line in fh if not line.startswith("#")]


def test_quickstart_output() -> None:
    cp = _run_cli(["quickstart"])
    assert cp.returncode == 0
    assert "cnvvcf write" in cp.stdout
    assert "cnvvcf make-toy-data" in cp.stdout


def test_make_toy_data(tmp_path: Path) -> None:
    toy_dir = tmp_path / "toy"
    cp = _run_cli(["make-toy-data", "--outdir", str(toy_dir)])
    assert cp.returncode == 0
    assert (toy_dir / "toy_ref.fa.fai").exists()
    assert (toy_dir / "proband.segments.tsv").exists()
    assert (toy_dir / "ploidy.vcf.gz.tbi").exists()


def test_write_dry_run_does_not_write_outputs(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    out = tmp_path / "out" / "CNV.vcf.gz"
    cp = _run_cli(
        [
            "write",
            "--segments",
            toy["proband_segments"],
            "--sample-name",
            "proband",
            "--fasta",
            toy["ref_fa"],
            "--out",
            str(out),
            "--dry-run",
        ]
    )
    assert cp.returncode == 0
    assert "Dry-run" in cp.stdout
    assert not out.exists()


def test_write_pedigree(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    out = tmp_path / "out" / "CNV.vcf.gz"
    summary = tmp_path / "out" / "summary.json"
    rc = main(
        [
            "write",
            "--segments",
            toy["proband_segments"],
            toy["parent_segments"],
            "--sample-name",
            "proband",
            "parent",
            "--fasta",
            toy["ref_fa"],
            "--ploidy-vcf",
            toy["ploidy_vcf"],
            "--diploid-coverage",
            "30",
            "32",
            "--denovo-quality-threshold",
            "20",
            "--pedigree",
            "--tabix",
            "--summary-json",
            str(summary),
            "--out",
            str(out),
        ]
    )
    assert rc == 0
    assert Path(str(out) + ".tbi").exists()

    records = _data_lines(out)
    assert [r[2].split(":")[1] for r in records] == ["REF", "GAIN", "COMPLEXCNV", "LOH"]
    assert records[2][6] == "q10"
    assert all(len(r) == 11 for r in records)

    with pysam.VariantFile(str(out)) as vcf:
        assert list(vcf.header.samples) == ["proband", "parent"]
        assert "DQ" in vcf.header.formats

    counts = json.loads(summary.read_text())["counts"]
    assert counts["records_total"] == 4
    assert counts["records_loh"] == 1


def test_write_without_pedigree_rescues_filter(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    out = tmp_path / "CNV.vcf.gz"
    rc = main(
        [
            "write",
            "--segments",
            toy["proband_segments"],
            toy["parent_segments"],
            "--sample-name",
            "proband",
            "parent",
            "--fasta",
            toy["ref_fa"],
            "--out",
            str(out),
        ]
    )
    assert rc == 0
    records = _data_lines(out)
    assert records[2][6] == "PASS"
    # without a ploidy VCF the proband's single chrX copy is a loss
    assert records[3][2].startswith("Canvas:COMPLEXCNV:chrX")


def test_mismatched_sample_names(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    cp = _run_cli(
        [
            "write",
            "--segments",
            toy["proband_segments"],
            toy["parent_segments"],
            "--sample-name",
            "proband",
            "--fasta",
            toy["ref_fa"],
            "--out",
            str(tmp_path / "CNV.vcf.gz"),
        ]
    )
    assert cp.returncode == 2
    assert "sample-name" in cp.stderr


def test_unknown_chromosome_message(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    table = tmp_path / "bad.tsv"
    table.write_text("chrom\tstart\tend\tcopy_number\tfilter\nchr9\t0\t100\t2\tPASS\n", encoding="utf-8")
    cp = _run_cli(
        [
            "write",
            "--segments",
            str(table),
            "--sample-name",
            "S1",
            "--fasta",
            toy["ref_fa"],
            "--out",
            str(tmp_path / "bad.vcf"),
        ]
    )
    assert cp.returncode == 2
    assert "IntegrityCheckError" in cp.stderr
    assert "chr9" in cp.stderr
