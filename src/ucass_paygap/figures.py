"""Single-plot-per-file charts drawn from the institution summary."""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

COHORT_COLOR = "tab:red"
OTHER_COLOR = "tab:gray"


def save_gap_by_institution(summary: pd.DataFrame, out_path: Path) -> Path | None:
    """Horizontal bars of absolute gap per institution, cohort highlighted."""
    tmp = summary.dropna(subset=["absolute_gap"]).sort_values("absolute_gap")
    if tmp.empty:
        return None
    colors = [COHORT_COLOR if c else OTHER_COLOR for c in tmp["in_cohort"]]
    plt.figure(figsize=(8, max(4, 0.22 * len(tmp))))
    plt.barh(tmp["institution"], tmp["absolute_gap"], color=colors)
    plt.axvline(0, color="black", linewidth=0.8)
    plt.title("Median Salary Gap (Male - Female) by Institution")
    plt.xlabel("Absolute Gap")
    plt.yticks(fontsize=7)
    plt.tight_layout()
    plt.savefig(out_path, dpi=160)
    plt.close()
    return out_path


def save_relative_gap_vs_share(summary: pd.DataFrame, out_path: Path) -> Path | None:
    """Scatter of relative gap against the share of female staff."""
    tmp = summary.dropna(subset=["relative_gap", "percent_female"])
    if tmp.empty:
        return None
    plt.figure()
    for in_cohort, label, color in [(False, "Other", OTHER_COLOR), (True, "U15", COHORT_COLOR)]:
        part = tmp[tmp["in_cohort"] == in_cohort]
        if not part.empty:
            plt.scatter(part["percent_female"], part["relative_gap"], label=label, color=color)
    plt.axhline(1.0, color="black", linewidth=0.8, linestyle="--")
    plt.title("Relative Gap vs Share of Female Staff")
    plt.xlabel("Percent Female")
    plt.ylabel("Female / Male Median Salary")
    plt.legend()
    plt.tight_layout()
    plt.savefig(out_path, dpi=160)
    plt.close()
    return out_path


def save_cohort_comparison(comparison: pd.DataFrame, out_path: Path) -> Path | None:
    """Cohort institutions next to the non-cohort mean with its SE bar."""
    tmp = comparison.dropna(subset=["absolute_gap"])
    if tmp.empty:
        return None
    tmp = pd.concat(
        [
            tmp[~tmp["is_aggregate"]].sort_values("absolute_gap", ascending=False),
            tmp[tmp["is_aggregate"]],
        ]
    )
    colors = [OTHER_COLOR if a else COHORT_COLOR for a in tmp["is_aggregate"]]
    plt.figure(figsize=(8, 5))
    plt.bar(
        tmp["institution"],
        tmp["absolute_gap"],
        yerr=tmp["standard_error"].fillna(0),
        color=colors,
        capsize=4,
    )
    plt.title("U15 Median Salary Gap vs Non-cohort Mean")
    plt.ylabel("Absolute Gap")
    plt.xticks(rotation=60, ha="right", fontsize=7)
    plt.tight_layout()
    plt.savefig(out_path, dpi=160)
    plt.close()
    return out_path
