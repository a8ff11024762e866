from __future__ import annotations

import gzip
import json
import logging
from pathlib import Path
from typing import Any, Optional, TextIO

logger = logging.getLogger(__name__)

_MISSING_TOKENS = {"", "."}
_TRUE_TOKENS = {"1", "true", "yes", "y", "t"}


def ensure_outdir(path: str | Path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def open_textmaybe_gzip(path: str | Path, mode: str = "rt") -> TextIO:
    p = str(path)
    if p.endswith(".gz"):
        return gzip.open(p, mode, encoding="utf-8")  # type: ignore[return-value]
    return open(p, mode, encoding="utf-8")


def write_json(path: str | Path, obj: Any) -> None:
    with open(path, "wt", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, sort_keys=True)


def is_missing(value: Optional[str]) -> bool:
    return value is None or value.strip() in _MISSING_TOKENS


def parse_flag(value: Optional[str]) -> bool:
    if is_missing(value):
        return False
    return value.strip().lower() in _TRUE_TOKENS  # type: ignore[union-attr]
