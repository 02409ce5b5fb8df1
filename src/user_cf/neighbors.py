"""Nearest-neighbour selection from a user similarity matrix."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

import numpy as np

NeighborPolicy = Literal["fixed", "expand"]

# "fixed": one top-k pool per user, filtered at prediction time.
# "expand": per cell, the top-k peers among those who rated the item.
NEIGHBOR_POLICIES: tuple[str, ...] = ("fixed", "expand")


@dataclass(frozen=True)
class Neighbor:
    index: int
    similarity: float


def _check_k(k: int | None) -> None:
    if k is not None and int(k) < 1:
        raise ValueError(f"k must be >= 1, got {k}")


def rank_peers(sim_matrix: np.ndarray, user: int) -> tuple[Neighbor, ...]:
    """All peers of `user` by similarity desc; ties keep the lower peer index first."""
    sims = np.asarray(sim_matrix, dtype=np.float64)[int(user)]
    peers = np.array([j for j in range(len(sims)) if j != int(user)], dtype=np.int64)
    if len(peers) == 0:
        return ()
    order = np.argsort(-sims[peers], kind="mergesort")
    return tuple(Neighbor(index=int(peers[i]), similarity=float(sims[peers[i]])) for i in order)


def select_neighbors(sim_matrix: np.ndarray, k: int | None = None) -> list[tuple[Neighbor, ...]]:
    """Ranked neighbour list per user, truncated to the first `k` when given.

    The list is fixed per user and does not depend on the item later predicted.
    """
    _check_k(k)
    n_users = int(np.asarray(sim_matrix).shape[0])
    out: list[tuple[Neighbor, ...]] = []
    for user in range(n_users):
        ranked = rank_peers(sim_matrix, user)
        out.append(ranked[: int(k)] if k is not None else ranked)
    return out


def neighbors_for_item(
    ratings: np.ndarray,
    ranked_peers: Sequence[Neighbor],
    item: int,
    k: int | None = None,
) -> tuple[Neighbor, ...]:
    """First `k` peers from a full ranked list that have an observed rating for `item`."""
    _check_k(k)
    rated = [n for n in ranked_peers if not np.isnan(ratings[n.index, int(item)])]
    return tuple(rated[: int(k)] if k is not None else rated)
