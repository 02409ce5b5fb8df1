from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from ..config import RecommenderConfig, load_config
from .neighbors import NEIGHBOR_POLICIES, Neighbor, neighbors_for_item, rank_peers
from .predict import PredictionDetail, normalize_formula, predict_cell
from .similarity import as_rating_matrix, compute_similarities


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecommendedItem:
    item: int
    predicted: float


@dataclass(frozen=True)
class UserRecommendations:
    user: int
    recommendations: tuple[RecommendedItem, ...]


@dataclass(frozen=True)
class RecommenderResult:
    completed_matrix: np.ndarray
    sim_matrix: np.ndarray
    neighbors: list[tuple[Neighbor, ...]]
    predictions: list[PredictionDetail]
    recommendations: list[UserRecommendations]

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready payload (camelCase keys, plain floats/ints)."""
        predictions = []
        for p in self.predictions:
            used = []
            for c in p.neighbors_used:
                row: dict[str, Any] = {
                    "neighborIndex": int(c.index),
                    "similarity": float(c.similarity),
                    "rating": float(c.rating),
                }
                if c.neighbor_mean is not None:
                    row["neighborMean"] = float(c.neighbor_mean)
                used.append(row)
            predictions.append(
                {
                    "user": int(p.user),
                    "item": int(p.item),
                    "neighborsUsed": used,
                    "rawPrediction": float(p.raw_prediction),
                    "finalPrediction": float(p.final_prediction),
                    "formula": p.formula,
                }
            )

        return {
            "completedMatrix": self.completed_matrix.tolist(),
            "simMatrix": self.sim_matrix.tolist(),
            "neighbors": [
                [{"neighborIndex": int(n.index), "similarity": float(n.similarity)} for n in lst]
                for lst in self.neighbors
            ],
            "predictions": predictions,
            "recommendations": [
                {
                    "user": int(r.user),
                    "recommendations": [
                        {"item": int(x.item), "predicted": float(x.predicted)} for x in r.recommendations
                    ],
                }
                for r in self.recommendations
            ],
        }


def rank_recommendations(ratings: np.ndarray, completed: np.ndarray) -> list[UserRecommendations]:
    """Per user, every originally unobserved item ranked by its completed value (desc).

    Ties keep the lower item index first. No top-N cutoff is applied here.
    """
    out: list[UserRecommendations] = []
    for user in range(int(ratings.shape[0])):
        unseen = np.flatnonzero(np.isnan(ratings[user]))
        scores = completed[user, unseen]
        order = np.argsort(-scores, kind="mergesort")
        out.append(
            UserRecommendations(
                user=user,
                recommendations=tuple(
                    RecommendedItem(item=int(unseen[i]), predicted=float(scores[i])) for i in order
                ),
            )
        )
    return out


def predict_matrix(
    matrix,
    metric: str,
    k: int | None,
    formula: str,
    min_rating: float | None = None,
    max_rating: float | None = None,
    *,
    neighbor_policy: str = "fixed",
) -> RecommenderResult:
    """Complete every unobserved cell of `matrix` and rank unseen items per user.

    Cells are visited row-major; `predictions` keeps that order. With the default
    "fixed" policy each user's top-k pool is chosen once and filtered per item;
    "expand" picks, per cell, the top-k peers among those who rated the item.
    """
    if neighbor_policy not in NEIGHBOR_POLICIES:
        raise ValueError(
            f"Unsupported neighbor_policy: {neighbor_policy!r} (expected one of {list(NEIGHBOR_POLICIES)})"
        )
    formula = normalize_formula(formula)

    ratings = as_rating_matrix(matrix)
    n_users, n_items = (int(x) for x in ratings.shape)

    sim_matrix, neighbors = compute_similarities(ratings, metric, k)
    full_pools = (
        [rank_peers(sim_matrix, u) for u in range(n_users)] if neighbor_policy == "expand" else None
    )

    completed = ratings.copy()
    predictions: list[PredictionDetail] = []
    for user in range(n_users):
        for item in range(n_items):
            if not np.isnan(ratings[user, item]):
                continue
            if full_pools is not None:
                pool = neighbors_for_item(ratings, full_pools[user], item, k)
            else:
                pool = neighbors[user]
            detail = predict_cell(ratings, user, item, pool, formula, min_rating, max_rating)
            completed[user, item] = detail.final_prediction
            predictions.append(detail)

    return RecommenderResult(
        completed_matrix=completed,
        sim_matrix=sim_matrix,
        neighbors=neighbors,
        predictions=predictions,
        recommendations=rank_recommendations(ratings, completed),
    )


class UserUserCFRecommender:
    """User-user neighbourhood CF with configured defaults.

    Holds no per-request state: every `run` builds and returns fresh structures.
    """

    def __init__(self, config: RecommenderConfig | None = None) -> None:
        self.config = config if config is not None else RecommenderConfig()

    @classmethod
    def from_config_file(cls, config_path: Path | str | None = None) -> "UserUserCFRecommender":
        return cls(load_config(config_path).recommender)

    def run(
        self,
        matrix,
        *,
        min_rating: float | None = None,
        max_rating: float | None = None,
        metric: str | None = None,
        k: int | None = None,
        formula: str | None = None,
        neighbor_policy: str | None = None,
    ) -> RecommenderResult:
        metric = metric or self.config.metric
        k = int(k) if k is not None else int(self.config.k)
        formula = normalize_formula(formula or self.config.formula)
        neighbor_policy = neighbor_policy or self.config.neighbor_policy
        if not self.config.clamp_to_bounds:
            min_rating = max_rating = None

        started = time.perf_counter()
        result = predict_matrix(
            matrix,
            metric,
            k,
            formula,
            min_rating,
            max_rating,
            neighbor_policy=neighbor_policy,
        )
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        n_users, n_items = result.completed_matrix.shape
        logger.info(
            "UserCF run: users=%d items=%d metric=%s k=%d formula=%s policy=%s predictions=%d elapsed_ms=%.1f",
            n_users,
            n_items,
            metric,
            k,
            formula,
            neighbor_policy,
            len(result.predictions),
            elapsed_ms,
        )
        return result
