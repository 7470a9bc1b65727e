"""
Per-institution pay-gap metrics and the U15 cohort comparison.

pivot_by_gender -> compute_metrics -> tag_cohort -> cohort_aggregate.
run_pipeline chains these after the preparation stages.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np
import pandas as pd

from ucass_paygap.preparation import filter_and_split, normalize_rows, verify_streams
from ucass_paygap.settings import NON_COHORT_LABEL, U15

log = logging.getLogger(__name__)

INPUT_COLUMNS = ["male_median", "female_median", "male_headcount", "female_headcount"]
METRIC_COLUMNS = ["absolute_gap", "relative_gap", "total_headcount", "percent_female"]
SUMMARY_COLUMNS = ["institution"] + INPUT_COLUMNS + METRIC_COLUMNS + ["in_cohort", "issues"]


class CohortAggregate(NamedTuple):
    label: str
    mean_absolute_gap: float
    standard_error: float
    n_cohort: int
    n_non_cohort: int
    method: str


class PipelineResult(NamedTuple):
    gender_rows: pd.DataFrame
    summary: pd.DataFrame
    aggregate: CohortAggregate
    comparison: pd.DataFrame


# ---------------------------------------------------------------------
# Pivoter
# ---------------------------------------------------------------------
def pivot_by_gender(rows: pd.DataFrame) -> pd.DataFrame:
    """One row per institution with male/female headcount and median columns.

    Institutions without both a Male and a Female row are dropped.
    """
    n_genders = rows.groupby("institution")["gender"].nunique()
    incomplete = n_genders.index[n_genders < 2]
    if len(incomplete):
        log.info(
            "Dropping %d institutions without both gender rows: %s",
            len(incomplete),
            sorted(incomplete),
        )
    d = rows[~rows["institution"].isin(incomplete)]

    def side(gender: str, prefix: str) -> pd.DataFrame:
        return (
            d[d["gender"] == gender]
            .set_index("institution")[["headcount", "median_salary"]]
            .rename(columns={"headcount": f"{prefix}_headcount", "median_salary": f"{prefix}_median"})
        )

    wide = side("Male", "male").join(side("Female", "female"), how="inner")
    return wide.reset_index()[["institution"] + INPUT_COLUMNS]


# ---------------------------------------------------------------------
# Metric-Calculator
# ---------------------------------------------------------------------
def compute_metrics(wide: pd.DataFrame) -> pd.DataFrame:
    """
    Add absolute_gap, relative_gap, total_headcount, percent_female and issues.

    Metrics are independent: a missing female median leaves the headcount
    metrics intact. Undefined values are NaN and named in ``issues``.
    """
    out = wide.copy()
    out["absolute_gap"] = out["male_median"] - out["female_median"]

    medians_ok = (out["male_median"] > 0) & (out["female_median"] > 0)
    out["relative_gap"] = out["female_median"].where(medians_ok) / out["male_median"].where(
        medians_ok
    )

    out["total_headcount"] = out["male_headcount"] + out["female_headcount"]
    total_ok = out["total_headcount"] > 0
    out["percent_female"] = out["female_headcount"].where(total_ok) / out[
        "total_headcount"
    ].where(total_ok)

    flags = {f"{c}:missing": out[c].isna() for c in INPUT_COLUMNS}
    flags.update({f"{c}:undefined": out[c].isna() for c in METRIC_COLUMNS})
    flags = pd.DataFrame(flags)
    out["issues"] = [";".join(k for k, v in r.items() if v) for r in flags.to_dict("records")]

    n_flagged = int((out["issues"] != "").sum())
    if n_flagged:
        log.warning("%d institutions have missing inputs or undefined metrics.", n_flagged)
    return out


# ---------------------------------------------------------------------
# Cohort-Tagger
# ---------------------------------------------------------------------
def tag_cohort(summary: pd.DataFrame, cohort: frozenset[str] = U15) -> pd.DataFrame:
    """Set in_cohort by exact match of the cleaned institution name."""
    out = summary.copy()
    out["in_cohort"] = out["institution"].isin(cohort)
    absent = sorted(set(cohort) - set(out["institution"]))
    if absent:
        log.warning("Cohort institutions absent from summary: %s", absent)
    return out[[c for c in SUMMARY_COLUMNS if c in out.columns]]


def cohort_aggregate(tagged: pd.DataFrame, corrected: bool = False) -> CohortAggregate:
    """
    Mean absolute gap of non-cohort institutions and its standard error.

    The published figure divides the standard deviation by sqrt of the
    cohort count (``corrected=False``); ``corrected=True`` uses the
    non-cohort count instead.
    """
    gaps = tagged.loc[~tagged["in_cohort"], "absolute_gap"].dropna()
    n_cohort = int(tagged["in_cohort"].sum())
    n = len(gaps) if corrected else n_cohort
    se = float(gaps.std()) / np.sqrt(n) if n > 0 else np.nan
    return CohortAggregate(
        label=NON_COHORT_LABEL,
        mean_absolute_gap=float(gaps.mean()),
        standard_error=float(se),
        n_cohort=n_cohort,
        n_non_cohort=len(gaps),
        method="corrected" if corrected else "legacy",
    )


def comparison_table(tagged: pd.DataFrame, aggregate: CohortAggregate) -> pd.DataFrame:
    """Cohort institutions plus the synthetic non-cohort row."""
    rows = tagged.loc[tagged["in_cohort"], ["institution", "absolute_gap"]].assign(
        standard_error=np.nan, is_aggregate=False
    )
    agg = pd.DataFrame(
        [
            {
                "institution": aggregate.label,
                "absolute_gap": aggregate.mean_absolute_gap,
                "standard_error": aggregate.standard_error,
                "is_aggregate": True,
            }
        ]
    )
    if rows.empty:
        return agg
    return pd.concat([rows, agg], ignore_index=True)


# ---------------------------------------------------------------------
# Whole run
# ---------------------------------------------------------------------
def run_pipeline(
    raw: pd.DataFrame,
    cohort: frozenset[str] = U15,
    corrected_se: bool = False,
) -> PipelineResult:
    """Raw records -> verified gender rows -> institution summary -> cohort comparison."""
    streams = filter_and_split(raw)
    verify_streams(streams)
    gender_rows = normalize_rows(streams)

    summary = tag_cohort(compute_metrics(pivot_by_gender(gender_rows)), cohort)
    aggregate = cohort_aggregate(summary, corrected=corrected_se)
    log.info(
        "Summary: %d institutions (%d in cohort); non-cohort mean gap %.0f (SE %.0f, %s).",
        len(summary),
        aggregate.n_cohort,
        aggregate.mean_absolute_gap,
        aggregate.standard_error,
        aggregate.method,
    )
    return PipelineResult(
        gender_rows=gender_rows,
        summary=summary,
        aggregate=aggregate,
        comparison=comparison_table(summary, aggregate),
    )
