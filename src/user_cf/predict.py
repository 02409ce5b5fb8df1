"""Single-cell rating prediction from a user's neighbours."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

import numpy as np

from .neighbors import Neighbor

Formula = Literal["simple", "mean-diff"]

FORMULAS: tuple[str, ...] = ("simple", "mean-diff")

_FORMULA_ALIASES = {"mean-difference": "mean-diff", "mean_diff": "mean-diff"}


@dataclass(frozen=True)
class NeighborContribution:
    index: int
    similarity: float
    rating: float
    neighbor_mean: float | None = None


@dataclass(frozen=True)
class PredictionDetail:
    user: int
    item: int
    neighbors_used: tuple[NeighborContribution, ...]
    raw_prediction: float
    final_prediction: float
    formula: str


def normalize_formula(formula: str) -> str:
    name = str(formula).strip().lower()
    name = _FORMULA_ALIASES.get(name, name)
    if name not in FORMULAS:
        raise ValueError(f"Unsupported formula: {formula!r} (expected one of {list(FORMULAS)})")
    return name


def mean_of_observed(ratings: np.ndarray) -> float:
    """Mean of the non-NaN entries; 0.0 when nothing is observed."""
    observed = ratings[~np.isnan(ratings)]
    if observed.size == 0:
        return 0.0
    return float(observed.mean())


def clamp_rating(value: float, min_rating: float | None = None, max_rating: float | None = None) -> float:
    if min_rating is not None:
        value = max(value, float(min_rating))
    if max_rating is not None:
        value = min(value, float(max_rating))
    return float(value)


def predict_cell(
    ratings: np.ndarray,
    user: int,
    item: int,
    neighbors: Sequence[Neighbor],
    formula: str,
    min_rating: float | None = None,
    max_rating: float | None = None,
) -> PredictionDetail:
    """Predict the rating of `user` for `item` from neighbours that rated the item.

    Formulas
    --------
    simple:
        sum(sim * r) / sum(|sim|)
    mean-diff:
        mean(user) + sum(sim * (r - mean(neighbor))) / sum(|sim|)

    With no usable neighbour, or when sum(|sim|) is 0, the raw prediction is the
    user's own mean rating (0 if the user has rated nothing). The final value is
    the raw one clipped into [min_rating, max_rating] for whichever bounds are given.
    """
    formula = normalize_formula(formula)
    user = int(user)
    item = int(item)

    used: list[NeighborContribution] = []
    for n in neighbors:
        r = ratings[n.index, item]
        if np.isnan(r):
            continue
        neighbor_mean = mean_of_observed(ratings[n.index]) if formula == "mean-diff" else None
        used.append(
            NeighborContribution(
                index=int(n.index),
                similarity=float(n.similarity),
                rating=float(r),
                neighbor_mean=neighbor_mean,
            )
        )

    user_mean = mean_of_observed(ratings[user])
    raw = user_mean

    if used:
        sim_abs_sum = float(sum(abs(c.similarity) for c in used))
        if sim_abs_sum != 0.0:
            if formula == "simple":
                raw = float(sum(c.similarity * c.rating for c in used)) / sim_abs_sum
            else:
                weighted_diff = float(sum(c.similarity * (c.rating - c.neighbor_mean) for c in used))
                raw = user_mean + weighted_diff / sim_abs_sum

    return PredictionDetail(
        user=user,
        item=item,
        neighbors_used=tuple(used),
        raw_prediction=float(raw),
        final_prediction=clamp_rating(raw, min_rating, max_rating),
        formula=formula,
    )
