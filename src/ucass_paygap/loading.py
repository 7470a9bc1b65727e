"""Read the published FT-UCASS table and standardise it into raw records."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import pandas as pd

from ucass_paygap.preparation import DataShapeError
from ucass_paygap.settings import RAW_COLUMNS, STAFF_COUNT_COLUMN, YEAR_COLUMN_PATTERN

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# IO helpers
# ---------------------------------------------------------------------
def auto_find_csv(start: Path) -> Path | None:
    """Find a likely CSV (prefer data/raw, then shortest path)."""
    patterns = ["*ucass*.csv", "*salar*.csv", "*.csv"]
    bad_parts = {".venv", ".git", "node_modules", "__pycache__", ".pytest_cache"}
    for pat in patterns:
        cands = sorted(
            (p for p in start.rglob(pat) if not any(b in p.parts for b in bad_parts)),
            key=lambda p: (0 if {"data", "raw"} <= set(p.parts) else 1, len(str(p))),
        )
        if cands:
            return cands[0]
    return None


def load_csv(source: str | Path) -> pd.DataFrame:
    """Read a local CSV or an http(s) URL with utf-8-sig fallback."""
    # Keep cells as text; numeric coercion is a pipeline stage.
    try:
        return pd.read_csv(source, encoding="utf-8-sig", dtype=str, keep_default_na=False)
    except UnicodeDecodeError:
        return pd.read_csv(source, dtype=str, keep_default_na=False)


# ---------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------
def year_columns(df: pd.DataFrame) -> list[str]:
    """Reporting-year value columns, in source order."""
    return [c for c in df.columns if re.match(YEAR_COLUMN_PATTERN, str(c).strip())]


def to_raw_records(df: pd.DataFrame, year: str | None = None) -> pd.DataFrame:
    """
    Select one reporting year and return RawRecord columns.

    Output columns: institution, gender, statistic, value and, when the
    source repeats the staff total per row, staff_count. Values stay text.
    """
    missing = set(RAW_COLUMNS) - set(df.columns)
    if missing:
        raise DataShapeError(f"Source is missing required columns: {sorted(missing)}")

    years = year_columns(df)
    if not years:
        raise DataShapeError("Source has no reporting-year value columns.")
    if year is None:
        year = years[-1]
    elif year not in years:
        raise DataShapeError(f"Year {year!r} not in source; available: {years}")

    cols = list(RAW_COLUMNS) + [year]
    rename = dict(RAW_COLUMNS, **{year: "value"})
    if STAFF_COUNT_COLUMN in df.columns:
        cols.append(STAFF_COUNT_COLUMN)
        rename[STAFF_COUNT_COLUMN] = "staff_count"

    out = df[cols].rename(columns=rename).reset_index(drop=True)
    for c in ("institution", "gender", "statistic"):
        out[c] = out[c].astype(str).str.strip()
    log.info("Loaded %d raw records for reporting year %s.", len(out), year)
    return out
