"""
FT-UCASS salary gap by gender: tables and figures.

Usage:
    ucass-paygap --csv "D:/path/to/ft_ucass.csv"
    ucass-paygap --csv "https://host/path/ft_ucass.csv" --year 2021/2022
    # or just: ucass-paygap  (default CSV, else auto-search under data/)

Outputs:
- Tables -> <project_root>/eda_output
- Figures -> <project_root>/figs
"""

from __future__ import annotations

import argparse
from pathlib import Path

import pandas as pd

from ucass_paygap import figures
from ucass_paygap.loading import auto_find_csv, load_csv, to_raw_records
from ucass_paygap.metrics import run_pipeline
from ucass_paygap.preparation import PipelineError
from ucass_paygap.settings import DEFAULT_CSV, FIG_DIR, PROJECT_ROOT, TABLE_DIR, get_logger

log = get_logger("ucass_paygap")


def save_table(df: pd.DataFrame, out_dir: Path, name: str) -> Path:
    """Save dataframe to out_dir as CSV."""
    path = out_dir / f"{name}.csv"
    path.write_text(df.to_csv(index=False), encoding="utf-8")
    return path


def resolve_source(arg: str | None) -> str | Path | None:
    """--csv value, else the default CSV, else the best CSV found under data/."""
    if arg:
        log.info("Using --csv: %s", arg)
        return arg if arg.startswith(("http://", "https://")) else Path(arg)
    if DEFAULT_CSV.exists():
        log.info("Using default CSV: %s", DEFAULT_CSV)
        return DEFAULT_CSV
    log.warning("Default CSV not found. Auto-detecting CSV under data/...")
    auto = auto_find_csv(PROJECT_ROOT / "data")
    if auto is not None:
        log.info("Auto-detected CSV: %s", auto)
    return auto


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Salary gap by gender for FT-UCASS institutions.")
    parser.add_argument("--csv", type=str, default=None, help="Path or URL of the source CSV.")
    parser.add_argument("--year", type=str, default=None, help="Reporting year column (default: latest).")
    parser.add_argument("--out-dir", type=Path, default=TABLE_DIR, help="Directory for CSV tables.")
    parser.add_argument("--fig-dir", type=Path, default=FIG_DIR, help="Directory for PNG figures.")
    parser.add_argument(
        "--corrected-se",
        action="store_true",
        help="Divide the non-cohort SD by the non-cohort count instead of the cohort count.",
    )
    parser.add_argument("--no-figures", action="store_true", help="Skip drawing figures.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the pipeline and write summary tables and figures."""
    args = build_parser().parse_args(argv)

    source = resolve_source(args.csv)
    if source is None or (isinstance(source, Path) and not source.exists()):
        log.error("Could not find the source CSV. Provide --csv PATH or URL.")
        return 2

    try:
        raw = to_raw_records(load_csv(source), year=args.year)
        result = run_pipeline(raw, corrected_se=args.corrected_se)
    except PipelineError as exc:
        log.error("Pipeline failed: %s", exc)
        return 1

    args.out_dir.mkdir(parents=True, exist_ok=True)
    save_table(result.gender_rows, args.out_dir, "gender_rows")
    save_table(result.summary, args.out_dir, "institution_summary")
    save_table(result.comparison, args.out_dir, "cohort_comparison")
    save_table(pd.DataFrame([result.aggregate._asdict()]), args.out_dir, "cohort_aggregate")

    if not args.no_figures:
        args.fig_dir.mkdir(parents=True, exist_ok=True)
        figures.save_gap_by_institution(result.summary, args.fig_dir / "gap_by_institution.png")
        figures.save_relative_gap_vs_share(
            result.summary, args.fig_dir / "relative_gap_vs_percent_female.png"
        )
        figures.save_cohort_comparison(result.comparison, args.fig_dir / "u15_vs_non_cohort.png")

    log.info("Pay gap analysis complete.")
    log.info(" - Input : %s", source)
    log.info(" - Tables: %s", args.out_dir.resolve())
    if not args.no_figures:
        log.info(" - Figures: %s", args.fig_dir.resolve())
    return 0
