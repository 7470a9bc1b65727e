"""
Data preparation: from raw records to one clean row per institution and gender.

Stages (each returns a new frame, inputs are never modified):
- filter_and_split: keep Male/Female rows, one stream per statistic type.
- verify_streams: keyed identity and repeated staff-count checks.
- normalize_rows: keyed merge, numeric coercion, institution-name cleanup.
"""

from __future__ import annotations

import logging
import re

import numpy as np
import pandas as pd

from ucass_paygap.settings import (
    ENCODING_FIXES,
    EXCLUDING_MEDICAL_PATTERN,
    GENDERS,
    INCLUDING_MEDICAL_PATTERN,
    MANUAL_RENAMES,
    STATISTIC_PREFIXES,
    STATISTIC_TYPES,
    SUPPRESSED_VALUES,
)

log = logging.getLogger(__name__)

KEY = ["institution", "gender"]
GENDER_ROW_COLUMNS = KEY + ["headcount", "median_salary", "average_salary"]


# ---------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------
class PipelineError(ValueError):
    """Fatal problem with the input table; the run cannot continue."""


class DataShapeError(PipelineError):
    """Source schema drift: missing columns or streams of different length."""


class ConsistencyError(PipelineError):
    """Streams disagree on which institutions they describe or on staff counts."""


# ---------------------------------------------------------------------
# Coercions
# ---------------------------------------------------------------------
def to_number(x: object) -> float:
    """Convert '1,234', '$98,500' or '95000' to float; anything else is NaN."""
    if pd.isna(x):
        return np.nan
    s = str(x).replace("$", "").replace(",", "").replace("\xa0", "").replace(" ", "")
    if s in SUPPRESSED_VALUES:
        return np.nan
    try:
        v = float(s)
    except ValueError:
        return np.nan
    return v if np.isfinite(v) else np.nan


def statistic_type(label: object) -> str | None:
    """Map a published statistic label to headcount/median/average."""
    s = str(label).strip().lower()
    for prefix, kind in STATISTIC_PREFIXES.items():
        if s.startswith(prefix):
            return kind
    return None


def clean_institution_name(name: object) -> str | None:
    """
    Canonical institution name, or None for an "excluding medical/dental" row.

    Repairs the known mis-encoded accents, drops the "including
    medical/dental" qualifier and applies the manual renames. Idempotent.
    """
    s = str(name)
    for bad, good in ENCODING_FIXES.items():
        s = s.replace(bad, good)
    s = " ".join(s.split())
    if re.search(EXCLUDING_MEDICAL_PATTERN, s, flags=re.IGNORECASE):
        return None
    s = re.sub(INCLUDING_MEDICAL_PATTERN, "", s, flags=re.IGNORECASE)
    s = " ".join(s.split())
    return MANUAL_RENAMES.get(s, s)


# ---------------------------------------------------------------------
# Filter-and-Split
# ---------------------------------------------------------------------
def _check_lengths(streams: dict[str, pd.DataFrame]) -> None:
    n_head = len(streams["headcount"])
    n_med = len(streams["median"])
    n_avg = len(streams["average"])
    if n_head != n_med or (n_avg and n_avg != n_head):
        raise DataShapeError(
            "Statistic streams differ in length "
            f"(headcount={n_head}, median={n_med}, average={n_avg})."
        )


def filter_and_split(raw: pd.DataFrame) -> dict[str, pd.DataFrame]:
    """Keep Male/Female rows and split them into one frame per statistic type."""
    d = raw[raw["gender"].isin(GENDERS)].copy()
    kinds = d["statistic"].map(statistic_type)
    if kinds.isna().any():
        log.info(
            "Ignoring %d rows with other statistics: %s",
            int(kinds.isna().sum()),
            sorted(d.loc[kinds.isna(), "statistic"].astype(str).unique()),
        )
    d = d.assign(statistic=kinds).dropna(subset=["statistic"])

    streams = {
        kind: d[d["statistic"] == kind].drop(columns="statistic").reset_index(drop=True)
        for kind in STATISTIC_TYPES
    }
    _check_lengths(streams)
    log.info(
        "Split %d of %d raw rows into %s.",
        len(d),
        len(raw),
        {k: len(v) for k, v in streams.items()},
    )
    return streams


# ---------------------------------------------------------------------
# Consistency-Checker
# ---------------------------------------------------------------------
def verify_streams(streams: dict[str, pd.DataFrame]) -> pd.DataFrame:
    """
    Check that every statistic stream describes the same (institution, gender) rows.

    Returns the headcount stream's keys with a boolean ``verified`` column.
    Raises ConsistencyError on duplicate keys, on keys missing from another
    stream, or when a repeated staff_count disagrees with the headcount.
    """
    _check_lengths(streams)
    for kind, s in streams.items():
        dup = s.duplicated(KEY)
        if dup.any():
            i = int(dup.idxmax())
            raise ConsistencyError(
                f"Duplicate key {tuple(s.loc[i, KEY])} in {kind} stream at index {i}."
            )

    head = streams["headcount"]
    head_count = head["value"].map(to_number).astype(float)
    out = head[KEY].copy()
    out["verified"] = True
    reasons = pd.Series("", index=head.index)
    counts_compared = False

    for kind in ("median", "average"):
        other = streams[kind]
        if other.empty:
            continue
        cols = KEY + (["staff_count"] if "staff_count" in other.columns else [])
        m = head[KEY].merge(other[cols], on=KEY, how="left", indicator=True)
        found = (m["_merge"] == "both").to_numpy()
        ok = found.copy()
        if "staff_count" in other.columns:
            a = head_count.to_numpy()
            b = m["staff_count"].map(to_number).astype(float).to_numpy()
            same = (a == b) | (np.isnan(a) & np.isnan(b))
            ok &= same
            counts_compared = True
            reasons[found & ~same & (reasons == "")] = f"staff count differs in {kind} stream"
        reasons[~found & (reasons == "")] = f"missing from {kind} stream"
        out["verified"] &= ok

        if found.all() and not other[KEY].equals(head[KEY]):
            log.info("The %s stream is ordered differently; joining by key.", kind)

    if not counts_compared:
        log.info("No repeated staff count in source; verified identity only.")
    if not out["verified"].all():
        i = int((~out["verified"]).idxmax())
        raise ConsistencyError(
            f"Streams disagree at index {i} "
            f"({out.loc[i, 'institution']!r}, {out.loc[i, 'gender']!r}): {reasons[i]}."
        )
    log.info("Verified %d (institution, gender) rows across streams.", len(out))
    return out


# ---------------------------------------------------------------------
# Column-Normalizer
# ---------------------------------------------------------------------
def normalize_rows(streams: dict[str, pd.DataFrame]) -> pd.DataFrame:
    """Merge verified streams into one numeric row per (institution, gender)."""
    out = streams["headcount"][KEY + ["value"]].rename(columns={"value": "headcount"})
    for kind, col in (("median", "median_salary"), ("average", "average_salary")):
        s = streams[kind]
        if s.empty:
            out = out.assign(**{col: np.nan})
        else:
            out = out.merge(
                s[KEY + ["value"]].rename(columns={"value": col}), on=KEY, how="left"
            )

    for col in ("headcount", "median_salary", "average_salary"):
        out[col] = out[col].map(to_number).astype(float)

    names = out["institution"].map(clean_institution_name)
    excluded = names.isna()
    if excluded.any():
        log.info(
            "Dropping %d 'excluding medical/dental' rows: %s",
            int(excluded.sum()),
            sorted(out.loc[excluded, "institution"].unique()),
        )
    out = out.assign(institution=names)[~excluded].reset_index(drop=True)

    dup = out.duplicated(KEY)
    if dup.any():
        i = int(dup.idxmax())
        raise ConsistencyError(
            f"Institution name cleanup produced a duplicate key {tuple(out.loc[i, KEY])}."
        )

    n_missing = int(out["median_salary"].isna().sum())
    if n_missing:
        log.warning("%d rows have no usable median salary.", n_missing)
    return out[GENDER_ROW_COLUMNS]
