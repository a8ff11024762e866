import gzip

import pytest

from cnvvcf.models import Segment
from cnvvcf.segments_io import load_segments, write_segment_table


def test_load_minimal_table(tmp_path):
    path = tmp_path / "s.tsv"
    path.write_text(
        "# produced upstream\n"
        "chrom\tstart\tend\tcopy_number\tfilter\n"
        "chr1\t0\t1000\t2\tPASS\n"
        "chr1\t1000\t3000\t3\t.\n",
        encoding="utf-8",
    )
    segments = load_segments(path)
    assert [(s.chrom, s.begin, s.end, s.copy_number, s.filter) for s in segments] == [
        ("chr1", 0, 1000, 2, "PASS"),
        ("chr1", 1000, 3000, 3, "PASS"),
    ]
    assert segments[0].major_chromosome_count is None
    assert segments[0].start_confidence_interval is None


def test_optional_columns(tmp_path):
    path = tmp_path / "s.tsv.gz"
    with gzip.open(path, "wt") as fh:
        fh.write("chrom\tstart\tend\tcopy_number\tfilter\tmcc\tmcc_score\tdq_score\tcipos\tciend\tsubclonal\tcommon_cnv\n")
        fh.write("chr2\t10\t20\t1\tq10;L10kb\t1\t12.5\t.\t-5,5\t\ttrue\t0\n")
    (s,) = load_segments(path)
    assert s.filter == "q10;L10kb"
    assert s.major_chromosome_count == 1
    assert s.major_chromosome_count_score == 12.5
    assert s.dq_score is None
    assert s.start_confidence_interval == (-5, 5)
    assert s.end_confidence_interval is None
    assert s.is_heterogeneous is True
    assert s.is_common_cnv is False


def test_missing_required_column(tmp_path):
    path = tmp_path / "s.tsv"
    path.write_text("chrom\tstart\tend\tfilter\nchr1\t0\t10\tPASS\n", encoding="utf-8")
    with pytest.raises(ValueError, match="copy_number"):
        load_segments(path)


def test_bad_row_names_line(tmp_path):
    path = tmp_path / "s.tsv"
    path.write_text("chrom\tstart\tend\tcopy_number\tfilter\nchr1\t0\tten\t2\tPASS\n", encoding="utf-8")
    with pytest.raises(ValueError, match=r"s\.tsv:2"):
        load_segments(path)


def test_inverted_interval_rejected(tmp_path):
    path = tmp_path / "s.tsv"
    path.write_text("chrom\tstart\tend\tcopy_number\tfilter\nchr1\t50\t10\t2\tPASS\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_segments(path)


def test_written_table_reads_back(tmp_path):
    original = [
        Segment(
            chrom="chrX",
            begin=5,
            end=500,
            copy_number=4,
            filter="PASS",
            bin_count=12,
            mean_count=88.5,
            median_count=87.0,
            major_chromosome_count=3,
            major_chromosome_count_score=9.5,
            qscore=44.0,
            dq_score=2.5,
            start_confidence_interval=(-1, 2),
            end_confidence_interval=(-3, 4),
            is_heterogeneous=True,
            is_common_cnv=True,
        )
    ]
    path = tmp_path / "t.tsv"
    write_segment_table(path, original)
    assert load_segments(path) == original
