"""Application configuration loaded from `config.yaml`."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .paths import ProjectPaths, get_repo_root
from .user_cf.neighbors import NEIGHBOR_POLICIES
from .user_cf.predict import normalize_formula
from .user_cf.similarity import METRICS
from .utils import load_yaml, resolve_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecommenderConfig:
    metric: str = "pearson"
    k: int = 3
    formula: str = "simple"
    neighbor_policy: str = "fixed"
    clamp_to_bounds: bool = True

    def __post_init__(self) -> None:
        if self.metric not in METRICS:
            raise ValueError(f"Unsupported metric: {self.metric!r} (expected one of {list(METRICS)})")
        if int(self.k) < 1:
            raise ValueError(f"k must be >= 1, got {self.k}")
        if self.neighbor_policy not in NEIGHBOR_POLICIES:
            raise ValueError(
                f"Unsupported neighbor_policy: {self.neighbor_policy!r} (expected one of {list(NEIGHBOR_POLICIES)})"
            )
        # Normalize aliases such as "mean-difference" -> "mean-diff".
        object.__setattr__(self, "formula", normalize_formula(self.formula))


@dataclass(frozen=True)
class DocumentsConfig:
    stopwords: tuple[str, ...] = ()
    lemmatizer: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AppConfig:
    recommender: RecommenderConfig = field(default_factory=RecommenderConfig)
    documents: DocumentsConfig = field(default_factory=DocumentsConfig)
    config_path: Path | None = None


def _section(cfg: dict[str, Any], name: str) -> dict[str, Any]:
    raw = cfg.get(name, {})
    return raw if isinstance(raw, dict) else {}


def config_from_mapping(cfg: dict[str, Any], *, config_path: Path | None = None) -> AppConfig:
    """Build an AppConfig from a parsed YAML mapping; missing keys use defaults."""
    rec_raw = _section(cfg, "recommender")
    defaults = RecommenderConfig()
    recommender = RecommenderConfig(
        metric=str(rec_raw.get("metric", defaults.metric)),
        k=int(rec_raw.get("k", defaults.k)),
        formula=str(rec_raw.get("formula", defaults.formula)),
        neighbor_policy=str(rec_raw.get("neighbor_policy", defaults.neighbor_policy)),
        clamp_to_bounds=bool(rec_raw.get("clamp_to_bounds", defaults.clamp_to_bounds)),
    )

    docs_raw = _section(cfg, "documents")
    stopwords = docs_raw.get("stopwords") or []
    lemmatizer = docs_raw.get("lemmatizer") or {}
    if not isinstance(stopwords, list):
        raise ValueError("documents.stopwords must be a list")
    if not isinstance(lemmatizer, dict):
        raise ValueError("documents.lemmatizer must be a mapping")
    documents = DocumentsConfig(
        stopwords=tuple(str(w) for w in stopwords),
        lemmatizer={str(k): str(v) for k, v in lemmatizer.items()},
    )

    return AppConfig(recommender=recommender, documents=documents, config_path=config_path)


def load_config(config_path: Path | str | None = None) -> AppConfig:
    """Load configuration from `config_path`, `$CONFIG_PATH` or `<repo_root>/config.yaml`."""
    if config_path is None:
        raw = os.getenv("CONFIG_PATH")
        if raw is None or str(raw).strip() == "":
            config_path = ProjectPaths.from_repo_root(get_repo_root()).config_path
        else:
            config_path = resolve_path(get_repo_root(), str(raw))

    path = Path(config_path).resolve()
    cfg = load_yaml(path)
    app_config = config_from_mapping(cfg, config_path=path)
    logger.info("Loaded config from %s: %s", path, app_config.recommender)
    return app_config
