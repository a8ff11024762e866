"""Tab-separated segment tables.

One row per segment, with a header row naming the columns. Only the first
five columns are required; ``.`` or an empty cell means "not available".

    chrom  start  end  copy_number  filter  bin_count  mean_count  median_count
    mcc  mcc_score  qscore  dq_score  cipos  ciend  subclonal  common_cnv

``start``/``end`` are 0-based half-open. ``cipos``/``ciend`` hold two
comma-separated integers. Lines starting with ``#`` are ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from .models import PASS_FILTER, Segment
from .utils import is_missing, open_textmaybe_gzip, parse_flag

logger = logging.getLogger(__name__)

T = TypeVar("T")

REQUIRED_COLUMNS = ("chrom", "start", "end", "copy_number", "filter")
COLUMNS = REQUIRED_COLUMNS + (
    "bin_count",
    "mean_count",
    "median_count",
    "mcc",
    "mcc_score",
    "qscore",
    "dq_score",
    "cipos",
    "ciend",
    "subclonal",
    "common_cnv",
)


def _optional(value: Optional[str], conv: Callable[[str], T]) -> Optional[T]:
    if is_missing(value):
        return None
    return conv(value.strip())  # type: ignore[union-attr]


def _interval(value: str) -> Tuple[int, int]:
    parts = value.split(",")
    if len(parts) != 2:
        raise ValueError(f"expected two comma-separated integers, got '{value}'")
    return int(parts[0]), int(parts[1])


def parse_segment_row(row: Dict[str, str]) -> Segment:
    """Build a Segment from one table row keyed by column name."""
    bin_count = _optional(row.get("bin_count"), int)
    mean_count = _optional(row.get("mean_count"), float)
    median_count = _optional(row.get("median_count"), float)
    qscore = _optional(row.get("qscore"), float)
    return Segment(
        chrom=row["chrom"],
        begin=int(row["start"]),
        end=int(row["end"]),
        copy_number=int(row["copy_number"]),
        filter=row["filter"].strip() if not is_missing(row["filter"]) else PASS_FILTER,
        bin_count=bin_count if bin_count is not None else 0,
        mean_count=mean_count if mean_count is not None else 0.0,
        median_count=median_count if median_count is not None else 0.0,
        major_chromosome_count=_optional(row.get("mcc"), int),
        major_chromosome_count_score=_optional(row.get("mcc_score"), float),
        qscore=qscore if qscore is not None else 0.0,
        dq_score=_optional(row.get("dq_score"), float),
        start_confidence_interval=_optional(row.get("cipos"), _interval),
        end_confidence_interval=_optional(row.get("ciend"), _interval),
        is_heterogeneous=parse_flag(row.get("subclonal")),
        is_common_cnv=parse_flag(row.get("common_cnv")),
    )


def load_segments(path: str | Path) -> List[Segment]:
    """Read a segment table (plain or gzip).

    Raises
    ------
    ValueError
        If the header lacks a required column or a row cannot be parsed; the
        message names the file and line.
    """
    segments: List[Segment] = []
    header: Optional[List[str]] = None
    with open_textmaybe_gzip(path, "rt") as fh:
        for line_no, line in enumerate(fh, start=1):
            line = line.rstrip("\r\n")
            if not line or line.startswith("#"):
                continue
            fields = line.split("\t")
            if header is None:
                header = [f.strip() for f in fields]
                missing = [c for c in REQUIRED_COLUMNS if c not in header]
                if missing:
                    raise ValueError(f"{path}:{line_no}: segment table is missing columns {missing}")
                continue
            if len(fields) != len(header):
                raise ValueError(
                    f"{path}:{line_no}: expected {len(header)} columns, found {len(fields)}"
                )
            try:
                segments.append(parse_segment_row(dict(zip(header, fields))))
            except ValueError as e:
                raise ValueError(f"{path}:{line_no}: {e}") from e

    logger.info("Loaded %d segments from %s", len(segments), path)
    return segments


def _cell(value: object) -> str:
    if value is None:
        return "."
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, tuple):
        return ",".join(str(v) for v in value)
    return str(value)


def write_segment_table(path: str | Path, segments: Sequence[Segment]) -> None:
    with open_textmaybe_gzip(path, "wt") as fh:
        fh.write("\t".join(COLUMNS) + "\n")
        for s in segments:
            row = [
                s.chrom,
                s.begin,
                s.end,
                s.copy_number,
                s.filter,
                s.bin_count,
                s.mean_count,
                s.median_count,
                s.major_chromosome_count,
                s.major_chromosome_count_score,
                s.qscore,
                s.dq_score,
                s.start_confidence_interval,
                s.end_confidence_interval,
                s.is_heterogeneous,
                s.is_common_cnv,
            ]
            fh.write("\t".join(_cell(v) for v in row) + "\n")
