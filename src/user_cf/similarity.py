"""Pairwise user similarity over co-rated items."""

from __future__ import annotations

import logging
from typing import Callable, Literal, Sequence

import numpy as np

from .neighbors import Neighbor, select_neighbors

logger = logging.getLogger(__name__)

Metric = Literal["pearson", "cosine", "euclidean"]

METRICS: tuple[str, ...] = ("pearson", "cosine", "euclidean")


def as_rating_matrix(matrix: Sequence[Sequence[float | None]] | np.ndarray) -> np.ndarray:
    """Copy a utility matrix into a float64 array with NaN marking unobserved cells.

    Accepts a 2-D numpy array (NaN = unobserved) or nested sequences where `None`
    marks an unobserved cell. The input is never modified.
    """
    if isinstance(matrix, np.ndarray):
        return np.array(matrix, dtype=np.float64, copy=True)
    rows = [[np.nan if v is None else float(v) for v in row] for row in matrix]
    arr = np.array(rows, dtype=np.float64)
    if arr.ndim != 2:
        # Empty input (no rows) comes back 1-D; normalise to shape (0, 0).
        arr = arr.reshape(len(rows), -1) if len(rows) else np.zeros((0, 0), dtype=np.float64)
    return arr


def co_rated_mask(user_a: np.ndarray, user_b: np.ndarray) -> np.ndarray:
    """Boolean mask of items rated by both users."""
    return ~np.isnan(user_a) & ~np.isnan(user_b)


def pearson_similarity(user_a: np.ndarray, user_b: np.ndarray) -> float:
    """Pearson correlation centred on the co-rated-set mean (not the global user mean)."""
    mask = co_rated_mask(user_a, user_b)
    if not mask.any():
        return 0.0

    a = user_a[mask]
    b = user_b[mask]
    da = a - a.mean()
    db = b - b.mean()

    denominator = np.sqrt(np.sum(da * da)) * np.sqrt(np.sum(db * db))
    if denominator == 0.0:
        return 0.0
    return float(np.clip(np.sum(da * db) / denominator, -1.0, 1.0))


def cosine_similarity(user_a: np.ndarray, user_b: np.ndarray) -> float:
    """Cosine of raw ratings restricted to the co-rated set."""
    mask = co_rated_mask(user_a, user_b)
    if not mask.any():
        return 0.0

    a = user_a[mask]
    b = user_b[mask]
    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator == 0.0:
        return 0.0
    return float(np.clip(np.dot(a, b) / denominator, -1.0, 1.0))


def euclidean_similarity(user_a: np.ndarray, user_b: np.ndarray) -> float:
    """Inverse Euclidean distance, 1 / (1 + d), over the co-rated set."""
    mask = co_rated_mask(user_a, user_b)
    if not mask.any():
        return 0.0

    dist = float(np.linalg.norm(user_a[mask] - user_b[mask]))
    return 1.0 / (1.0 + dist)


SIMILARITY_FUNCTIONS: dict[str, Callable[[np.ndarray, np.ndarray], float]] = {
    "pearson": pearson_similarity,
    "cosine": cosine_similarity,
    "euclidean": euclidean_similarity,
}


def get_similarity_fn(metric: str) -> Callable[[np.ndarray, np.ndarray], float]:
    try:
        return SIMILARITY_FUNCTIONS[metric]
    except KeyError as exc:
        raise ValueError(f"Unsupported metric: {metric!r} (expected one of {list(METRICS)})") from exc


def compute_similarity_matrix(matrix, metric: str) -> np.ndarray:
    """N x N symmetric user similarity matrix.

    Only pairs (a, b) with a < b are computed; the diagonal is left at 0 since
    neighbour lists never include the user itself.
    """
    ratings = as_rating_matrix(matrix)
    similarity_fn = get_similarity_fn(metric)

    n_users = int(ratings.shape[0])
    sim = np.zeros((n_users, n_users), dtype=np.float64)
    for a in range(n_users):
        for b in range(a + 1, n_users):
            s = similarity_fn(ratings[a], ratings[b])
            sim[a, b] = s
            sim[b, a] = s

    logger.debug("Similarity matrix computed: metric=%s users=%d", metric, n_users)
    return sim


def compute_similarities(
    matrix, metric: str, k: int | None = None
) -> tuple[np.ndarray, list[tuple[Neighbor, ...]]]:
    """Similarity matrix plus each user's ranked neighbour list (truncated to k if given)."""
    sim = compute_similarity_matrix(matrix, metric)
    return sim, select_neighbors(sim, k)
