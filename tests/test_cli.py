from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
import pytest

from conftest import institution_rows
from ucass_paygap import cli


def _write_source(path: Path, rows: list[tuple]) -> Path:
    frame = pd.DataFrame(rows, columns=["University", "Gender", "Statistics", "2021/2022"])
    frame.to_csv(path, index=False, encoding="utf-8-sig")
    return path


@pytest.fixture
def source_csv(tmp_path: Path) -> Path:
    rows = (
        institution_rows("McGill University", "1,100", "700", "150,000", "141,000")
        + institution_rows("Brock University", "300", "200", "130,000", "124,000")
        + institution_rows("Trent University", "150", "140", "x", "118,000")
    )
    return _write_source(tmp_path / "ucass.csv", rows)


def test_main_writes_tables_and_figures(tmp_path: Path, source_csv: Path) -> None:
    out_dir, fig_dir = tmp_path / "out", tmp_path / "figs"

    code = cli.main(["--csv", str(source_csv), "--out-dir", str(out_dir), "--fig-dir", str(fig_dir)])

    assert code == 0
    for name in ("gender_rows", "institution_summary", "cohort_comparison", "cohort_aggregate"):
        assert (out_dir / f"{name}.csv").exists()
    assert sorted(p.name for p in fig_dir.glob("*.png")) == [
        "gap_by_institution.png",
        "relative_gap_vs_percent_female.png",
        "u15_vs_non_cohort.png",
    ]

    summary = pd.read_csv(out_dir / "institution_summary.csv", keep_default_na=False)
    trent = summary.set_index("institution").loc["Trent University"]
    assert "male_median:missing" in trent["issues"]
    assert trent["absolute_gap"] == ""

    aggregate = pd.read_csv(out_dir / "cohort_aggregate.csv").iloc[0]
    assert aggregate["method"] == "legacy"
    assert aggregate["n_cohort"] == 1


def test_main_corrected_se_and_no_figures(tmp_path: Path, source_csv: Path) -> None:
    out_dir, fig_dir = tmp_path / "out", tmp_path / "figs"

    code = cli.main([
        "--csv", str(source_csv),
        "--out-dir", str(out_dir),
        "--fig-dir", str(fig_dir),
        "--corrected-se",
        "--no-figures",
    ])

    assert code == 0
    assert not fig_dir.exists()
    aggregate = pd.read_csv(out_dir / "cohort_aggregate.csv").iloc[0]
    assert aggregate["method"] == "corrected"


def test_main_missing_csv_returns_2(tmp_path: Path) -> None:
    assert cli.main(["--csv", str(tmp_path / "nope.csv"), "--out-dir", str(tmp_path)]) == 2


def test_main_without_csv_and_nothing_found(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "DEFAULT_CSV", tmp_path / "missing.csv")
    monkeypatch.setattr(cli, "PROJECT_ROOT", tmp_path)

    assert cli.main(["--out-dir", str(tmp_path / "out")]) == 2


def test_main_uses_auto_detected_csv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    raw_dir = tmp_path / "data" / "raw"
    raw_dir.mkdir(parents=True)
    _write_source(raw_dir / "ucass_2022.csv", institution_rows("Brock University", 300, 200, 130000, 124000))
    monkeypatch.setattr(cli, "DEFAULT_CSV", tmp_path / "missing.csv")
    monkeypatch.setattr(cli, "PROJECT_ROOT", tmp_path)

    assert cli.main(["--out-dir", str(tmp_path / "out"), "--no-figures"]) == 0
    assert (tmp_path / "out" / "institution_summary.csv").exists()


def test_main_consistency_error_returns_1(tmp_path: Path) -> None:
    rows = institution_rows("Brock University", 300, 200, 130000, 124000)
    rows[3] = ("Brock", "Female", "Median", 124000)
    path = _write_source(tmp_path / "bad.csv", rows)

    assert cli.main(["--csv", str(path), "--out-dir", str(tmp_path / "out")]) == 1
    assert not (tmp_path / "out").exists()


def test_main_shape_error_returns_1(tmp_path: Path) -> None:
    path = tmp_path / "drift.csv"
    pd.DataFrame({"Institution": ["A"], "Gender": ["Male"], "2021": ["1"]}).to_csv(path, index=False)

    assert cli.main(["--csv", str(path), "--out-dir", str(tmp_path / "out")]) == 1


def test_stage_messages_are_logged_once(
    tmp_path: Path, source_csv: Path, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="ucass_paygap")

    code = cli.main(["--csv", str(source_csv), "--out-dir", str(tmp_path / "out"), "--no-figures"])

    assert code == 0
    split = [r for r in caplog.records if r.getMessage().startswith("Split ")]
    assert len(split) == 1
    for name in ("ucass_paygap.loading", "ucass_paygap.preparation", "ucass_paygap.metrics"):
        logger, n_handlers = logging.getLogger(name), 0
        while logger is not None and logger.name != "root":
            n_handlers += len(logger.handlers)
            logger = logger.parent
        assert n_handlers == 1, name
