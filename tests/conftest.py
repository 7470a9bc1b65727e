from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest


def raw_frame(rows: list[tuple]) -> pd.DataFrame:
    """Build RawRecord columns from (institution, gender, statistic, value) tuples."""
    return pd.DataFrame(rows, columns=["institution", "gender", "statistic", "value"])


def institution_rows(
    name: str,
    male_n: object,
    female_n: object,
    male_median: object,
    female_median: object,
    male_avg: object = 1,
    female_avg: object = 1,
) -> list[tuple]:
    return [
        (name, "Male", "Headcount", male_n),
        (name, "Female", "Headcount", female_n),
        (name, "Male", "Median", male_median),
        (name, "Female", "Median", female_median),
        (name, "Male", "Average", male_avg),
        (name, "Female", "Average", female_avg),
    ]


@pytest.fixture
def sample_raw() -> pd.DataFrame:
    """Three institutions, one of them in the U15, plus rows the filter drops."""
    rows = (
        institution_rows("University of Toronto, including medical/dental", "1,500", "900", "180,000", "165,000")
        + institution_rows("Brock University", 300, 200, 130000, 124000)
        + institution_rows("Université du Québec à Montréal", 500, 450, 120000, 121000)
        + [
            ("Brock University", "Total, gender", "Headcount", 500),
            ("Brock University", "Male", "Lower quartile salary", 110000),
        ]
    )
    return raw_frame(rows)
