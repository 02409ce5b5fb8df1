from __future__ import annotations

import math

import numpy as np
import pytest

from src.user_cf.similarity import (
    METRICS,
    as_rating_matrix,
    compute_similarities,
    compute_similarity_matrix,
    cosine_similarity,
    euclidean_similarity,
    pearson_similarity,
)

NAN = np.nan


def test_as_rating_matrix_maps_none_to_nan_and_copies() -> None:
    rows = [[5, None, 1], [None, 2, 3]]
    arr = as_rating_matrix(rows)
    assert arr.dtype == np.float64
    assert arr.shape == (2, 3)
    assert np.isnan(arr[0, 1]) and np.isnan(arr[1, 0])

    src = np.array([[1.0, NAN]])
    out = as_rating_matrix(src)
    out[0, 0] = 9.0
    assert src[0, 0] == 1.0


def test_pearson_uses_co_rated_mean() -> None:
    a = np.array([4.0, NAN, 2.0])
    b = np.array([5.0, 3.0, 1.0])
    c = np.array([1.0, 5.0, 3.0])
    assert pearson_similarity(a, b) == pytest.approx(1.0)
    assert pearson_similarity(a, c) == pytest.approx(-1.0)


def test_pearson_zero_variance_is_zero() -> None:
    a = np.array([3.0, 3.0, NAN])
    b = np.array([1.0, 5.0, 2.0])
    assert pearson_similarity(a, b) == 0.0


def test_cosine_restricted_to_co_rated_items() -> None:
    a = np.array([5.0, 3.0, NAN])
    b = np.array([4.0, NAN, 2.0])
    # Only item 0 is shared -> vectors [5] and [4] are parallel.
    assert cosine_similarity(a, b) == pytest.approx(1.0)

    a = np.array([1.0, 0.0, 9.0])
    b = np.array([0.0, 1.0, NAN])
    assert cosine_similarity(a, b) == pytest.approx(0.0)


def test_cosine_zero_norm_is_zero() -> None:
    assert cosine_similarity(np.array([0.0, 0.0]), np.array([3.0, 4.0])) == 0.0


def test_euclidean_inverse_distance() -> None:
    a = np.array([5.0, 3.0, NAN])
    b = np.array([4.0, 1.0, 2.0])
    assert euclidean_similarity(a, b) == pytest.approx(1.0 / (1.0 + math.sqrt(5.0)))
    assert euclidean_similarity(a, a) == pytest.approx(1.0)


@pytest.mark.parametrize("metric", METRICS)
def test_no_overlap_is_exactly_zero(metric: str) -> None:
    m = np.array([[5.0, NAN], [NAN, 4.0]])
    sim = compute_similarity_matrix(m, metric)
    assert sim[0, 1] == 0.0
    assert sim[1, 0] == 0.0


@pytest.mark.parametrize("metric", METRICS)
def test_similarity_matrix_symmetric_bounded_zero_diagonal(metric: str, sparse_matrix: np.ndarray) -> None:
    sim = compute_similarity_matrix(sparse_matrix, metric)
    n = sparse_matrix.shape[0]
    assert sim.shape == (n, n)
    assert np.array_equal(sim, sim.T)
    assert np.all(np.diag(sim) == 0.0)

    off_diag = sim[~np.eye(n, dtype=bool)]
    if metric == "euclidean":
        assert np.all((off_diag > 0.0) & (off_diag <= 1.0))
    else:
        assert np.all((off_diag >= -1.0) & (off_diag <= 1.0))


def test_similarity_does_not_mutate_input(sparse_matrix: np.ndarray) -> None:
    before = sparse_matrix.copy()
    compute_similarities(sparse_matrix, "pearson", k=2)
    np.testing.assert_array_equal(before, sparse_matrix)


def test_unknown_metric_raises() -> None:
    with pytest.raises(ValueError, match="Unsupported metric"):
        compute_similarity_matrix([[1.0, 2.0]], "jaccard")


def test_compute_similarities_returns_truncated_neighbors(small_matrix: np.ndarray) -> None:
    sim, neighbors = compute_similarities(small_matrix, "cosine", k=2)
    assert sim[0, 1] == pytest.approx(1.0)
    assert sim[0, 2] == pytest.approx(1.0)
    assert sim[1, 2] == pytest.approx(1.0)
    assert [len(lst) for lst in neighbors] == [2, 2, 2]
