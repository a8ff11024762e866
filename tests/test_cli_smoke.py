import subprocess
import sys


def test_cli_help() -> None:
    cp = subprocess.run(
        [sys.executable, "-m", "cnvvcf", "--help"],
        check=True,
        capture_output=True,
        text=True,
    )
    assert "cnvvcf" in cp.stdout.lower()


def test_write_help_mentions_pos_zero_tabix_warning() -> None:
    cp = subprocess.run(
        [sys.executable, "-m", "cnvvcf", "write", "--help"],
        check=True,
        capture_output=True,
        text=True,
    )
    assert "--tabix" in cp.stdout
    assert "Coordinate" in cp.stdout
