from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.user_cf.cli import main


def _args(repo_root: Path, samples_dir: Path, *extra: str) -> list[str]:
    return [
        "--file",
        str(samples_dir / "utility_small.txt"),
        "--config",
        str(repo_root / "config.yaml"),
        *extra,
    ]


def test_cli_prints_tables(repo_root: Path, samples_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(_args(repo_root, samples_dir, "--metric", "cosine", "--k", "2"))
    out = capsys.readouterr().out
    for header in ("Similarity Matrix", "Neighbours", "Predictions", "Completed Matrix", "Recommendations"):
        assert f"=== {header} ===" in out


def test_cli_json_payload(repo_root: Path, samples_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(_args(repo_root, samples_dir, "--metric", "cosine", "--k", "2", "--formula", "simple", "--json"))
    payload = json.loads(capsys.readouterr().out)
    assert payload["completedMatrix"][0][2] == pytest.approx(3.5)
    assert len(payload["predictions"]) == 3


def test_cli_sparse_sample_expand_policy(
    repo_root: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    # A bare file name is looked up in data/samples.
    monkeypatch.chdir(repo_root)
    main(
        [
            "--file",
            "utility_sparse.txt",
            "--config",
            str(repo_root / "config.yaml"),
            "--neighbor-policy",
            "expand",
            "--json",
        ]
    )
    payload = json.loads(capsys.readouterr().out)
    assert len(payload["completedMatrix"]) == 6
    assert [len(r["recommendations"]) for r in payload["recommendations"]] == [1, 0, 0, 0, 0, 3]


def test_cli_rejects_missing_file(tmp_path: Path, repo_root: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--file", str(tmp_path / "missing.txt"), "--config", str(repo_root / "config.yaml")])
    assert excinfo.value.code == 2


def test_cli_rejects_bad_k(repo_root: Path, samples_dir: Path) -> None:
    with pytest.raises(SystemExit):
        main(_args(repo_root, samples_dir, "--k", "0"))
