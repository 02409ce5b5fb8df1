from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure `import src...` works when pytest uses importlib import mode.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from src.paths import ProjectPaths  # noqa: E402

NAN = np.nan


@pytest.fixture
def repo_root() -> Path:
    return REPO_ROOT


@pytest.fixture
def config_path() -> Path:
    return REPO_ROOT / "config.yaml"


@pytest.fixture
def samples_dir() -> Path:
    return ProjectPaths.from_repo_root(REPO_ROOT).samples_dir


@pytest.fixture
def small_matrix() -> np.ndarray:
    """3 users x 3 items; every pair of users shares exactly one rated item."""
    return np.array(
        [
            [5.0, 3.0, NAN],
            [4.0, NAN, 2.0],
            [NAN, 4.0, 5.0],
        ]
    )


@pytest.fixture
def sparse_matrix() -> np.ndarray:
    return np.array(
        [
            [5.0, 3.0, 4.0, 4.0, NAN],
            [3.0, 1.0, 2.0, 3.0, 3.0],
            [4.0, 3.0, 4.0, 3.0, 5.0],
            [3.0, 3.0, 1.0, 5.0, 4.0],
            [1.0, 5.0, 5.0, 2.0, 1.0],
            [NAN, NAN, 2.0, NAN, 4.0],
        ]
    )
