from __future__ import annotations

import math
import re
from dataclasses import dataclass
from pathlib import Path

import numpy as np


UNOBSERVED_TOKEN = "-"

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class UtilityData:
    min_rating: float
    max_rating: float
    matrix: np.ndarray  # float64, NaN = unobserved

    @property
    def n_users(self) -> int:
        return int(self.matrix.shape[0])

    @property
    def n_items(self) -> int:
        return int(self.matrix.shape[1])


def _parse_bound(text: str, name: str) -> float:
    try:
        value = float(text)
    except ValueError as exc:
        raise ValueError(f"{name} rating is not a valid number: {text!r}") from exc
    if not math.isfinite(value):
        raise ValueError(f"{name} rating is not a valid number: {text!r}")
    return value


def _parse_cell(token: str, *, line_no: int, col_no: int) -> float:
    if token == UNOBSERVED_TOKEN:
        return np.nan
    try:
        value = float(token)
    except ValueError as exc:
        raise ValueError(
            f"Line {line_no}, column {col_no}: expected a rating or {UNOBSERVED_TOKEN!r}, got {token!r}"
        ) from exc
    if not math.isfinite(value):
        raise ValueError(f"Line {line_no}, column {col_no}: rating must be finite, got {token!r}")
    return value


def parse_utility_text(content: str) -> UtilityData:
    """Parse the utility-matrix text format.

    Layout
    ------
    line 1: minimum rating
    line 2: maximum rating
    rest:   one whitespace-separated row per user, `-` marks an unobserved cell

    Blank lines are ignored. Line numbers in error messages count blank lines too.
    """
    content = "" if content is None else str(content)
    lines = [
        (i + 1, line.strip())
        for i, line in enumerate(content.replace("\r", "").split("\n"))
        if line.strip()
    ]
    if len(lines) < 3:
        raise ValueError("Invalid file: expected min rating, max rating and at least one matrix row.")

    min_rating = _parse_bound(lines[0][1], "Minimum")
    max_rating = _parse_bound(lines[1][1], "Maximum")
    if min_rating >= max_rating:
        raise ValueError(f"Minimum rating ({min_rating:g}) must be lower than maximum rating ({max_rating:g}).")

    rows: list[list[float]] = []
    width: int | None = None
    first_line_no = lines[2][0]
    for line_no, line in lines[2:]:
        tokens = _WHITESPACE_RE.split(line)
        row = [_parse_cell(tok, line_no=line_no, col_no=j + 1) for j, tok in enumerate(tokens)]
        if width is None:
            width = len(row)
        elif len(row) != width:
            raise ValueError(
                f"All rows must have the same number of columns: line {first_line_no} has {width}, "
                f"line {line_no} has {len(row)}."
            )
        rows.append(row)

    matrix = np.array(rows, dtype=np.float64)
    validate_utility_matrix(matrix)
    return UtilityData(min_rating=min_rating, max_rating=max_rating, matrix=matrix)


def load_utility_file(path: Path) -> UtilityData:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Utility matrix file not found: {path}")
    return parse_utility_text(path.read_text(encoding="utf-8"))


def validate_utility_matrix(matrix: np.ndarray) -> None:
    """Reject matrices the engine cannot work on (it does not check shape itself)."""
    matrix = np.asarray(matrix)
    if matrix.ndim != 2:
        raise ValueError(f"Utility matrix must be 2-D, got ndim={matrix.ndim}")
    if matrix.shape[0] == 0:
        raise ValueError("Utility matrix has no users")
    if matrix.shape[1] == 0:
        raise ValueError("Utility matrix has no items")
    observed = matrix[~np.isnan(matrix)]
    if not np.isfinite(observed).all():
        raise ValueError("Utility matrix contains non-finite ratings")
