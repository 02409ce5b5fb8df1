"""Run user-user collaborative filtering over a utility-matrix text file.

Example:
    python -m src.user_cf.cli --file data/samples/utility_small.txt --metric cosine --k 2
"""
from __future__ import annotations

import argparse
import json
from pathlib import Path

import pandas as pd

from ..config import load_config
from ..data import load_utility_file
from ..paths import ProjectPaths, get_repo_root
from ..utils import setup_logging
from .neighbors import NEIGHBOR_POLICIES
from .predict import FORMULAS
from .recommender import RecommenderResult, UserUserCFRecommender
from .similarity import METRICS


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="User-user collaborative filtering over a utility matrix file")
    p.add_argument("--file", type=Path, required=True, help="Utility file (min, max, then rows with '-')")
    p.add_argument("--metric", choices=list(METRICS), default=None, help="Similarity metric; default from config")
    p.add_argument("--k", type=int, default=None, help="Neighbourhood size; default from config")
    p.add_argument(
        "--formula",
        choices=[*FORMULAS, "mean-difference"],
        default=None,
        help="Prediction formula; default from config",
    )
    p.add_argument("--neighbor-policy", choices=list(NEIGHBOR_POLICIES), default=None, help="fixed or expand")
    p.add_argument("--top-n", type=int, default=None, help="Show only the first N recommendations per user")
    p.add_argument("--no-clamp", action="store_true", help="Do not clip predictions into [min, max]")
    p.add_argument("--json", action="store_true", help="Print the full result payload as JSON")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    p.add_argument("--log-level", type=str, default="WARNING", help="Logging level")
    return p


def _print_tables(result: RecommenderResult, *, top_n: int | None) -> None:
    n_users = result.sim_matrix.shape[0]
    labels = [f"u{i}" for i in range(n_users)]

    print("\n=== Similarity Matrix ===")
    print(pd.DataFrame(result.sim_matrix, index=labels, columns=labels).round(4).to_string())

    print("\n=== Neighbours ===")
    rows = [
        {"user": u, "rank": r + 1, "neighbor": n.index, "similarity": round(n.similarity, 4)}
        for u, lst in enumerate(result.neighbors)
        for r, n in enumerate(lst)
    ]
    print(pd.DataFrame(rows).to_string(index=False) if rows else "No neighbours (single user).")

    print("\n=== Predictions ===")
    if result.predictions:
        df_p = pd.DataFrame(
            [
                {
                    "user": p.user,
                    "item": p.item,
                    "neighbors_used": ",".join(str(c.index) for c in p.neighbors_used) or "-",
                    "raw": round(p.raw_prediction, 4),
                    "final": round(p.final_prediction, 4),
                    "formula": p.formula,
                }
                for p in result.predictions
            ]
        )
        print(df_p.to_string(index=False))
    else:
        print("Nothing to predict: every cell is observed.")

    print("\n=== Completed Matrix ===")
    items = [f"i{j}" for j in range(result.completed_matrix.shape[1])]
    print(pd.DataFrame(result.completed_matrix, index=labels, columns=items).round(3).to_string())

    print("\n=== Recommendations ===")
    rec_rows = [
        {"user": r.user, "rank": rank + 1, "item": x.item, "predicted": round(x.predicted, 4)}
        for r in result.recommendations
        for rank, x in enumerate(r.recommendations[:top_n] if top_n is not None else r.recommendations)
    ]
    print(pd.DataFrame(rec_rows).to_string(index=False) if rec_rows else "No recommendations found.")


def _resolve_input(path: Path) -> Path:
    """Bare names that do not exist locally are looked up in `data/samples`."""
    if path.exists() or path.is_absolute():
        return path
    candidate = ProjectPaths.from_repo_root(get_repo_root()).samples_dir / path
    return candidate if candidate.exists() else path


def main(argv: list[str] | None = None) -> None:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.k is not None and args.k < 1:
        parser.error("--k must be >= 1")
    if args.top_n is not None and args.top_n < 1:
        parser.error("--top-n must be >= 1")

    try:
        utility = load_utility_file(_resolve_input(args.file))
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    rec = UserUserCFRecommender(load_config(args.config).recommender)
    clamp = not bool(args.no_clamp)
    result = rec.run(
        utility.matrix,
        min_rating=utility.min_rating if clamp else None,
        max_rating=utility.max_rating if clamp else None,
        metric=args.metric,
        k=args.k,
        formula=args.formula,
        neighbor_policy=args.neighbor_policy,
    )

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return
    _print_tables(result, top_n=args.top_n)


if __name__ == "__main__":
    main()
