"""
Project settings: paths, source schema, label tables and logging.

Everything here is a plain constant so a run can be reproduced from the
code alone; the CLI overrides paths per run.
"""

from __future__ import annotations

import logging
from pathlib import Path

# ---------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parents[2]
RAW_DIR = PROJECT_ROOT / "data" / "raw"
TABLE_DIR = PROJECT_ROOT / "eda_output"
FIG_DIR = PROJECT_ROOT / "figs"
DEFAULT_CSV = RAW_DIR / "ft_ucass_salaries_by_gender.csv"

# ---------------------------------------------------------------------
# Source schema
# ---------------------------------------------------------------------
# Raw header -> standard RawRecord column.
RAW_COLUMNS = {
    "University": "institution",
    "Gender": "gender",
    "Statistics": "statistic",
}
# Optional repeated staff total printed next to every statistic row.
STAFF_COUNT_COLUMN = "Staff count"

YEAR_COLUMN_PATTERN = r"^\d{4}(?:/\d{4})?$"

GENDERS = ("Male", "Female")

# Label prefix (lower-case) -> statistic type.
STATISTIC_PREFIXES = {
    "number": "headcount",
    "headcount": "headcount",
    "median": "median",
    "average": "average",
}
STATISTIC_TYPES = ("headcount", "median", "average")

# Values published in place of a number.
SUPPRESSED_VALUES = {"", "..", "...", "x", "X", "F", "E"}

# ---------------------------------------------------------------------
# Institution names
# ---------------------------------------------------------------------
# Closed list of UTF-8 accents that were decoded as latin-1 upstream.
ENCODING_FIXES = {
    "Ã©": "é",
    "Ã¨": "è",
    "Ã‰": "É",
    "Ã´": "ô",
}

EXCLUDING_MEDICAL_PATTERN = r"excluding\s+medical\s*/\s*dental"
INCLUDING_MEDICAL_PATTERN = r"\s*(?:,\s*|\(\s*)including\s+medical\s*/\s*dental\s*\)?"

MANUAL_RENAMES = {
    "University of Ontario Institute of Technology": "UOIT",
}

# Group of Canadian Research Universities, as named after cleanup.
U15 = frozenset(
    {
        "University of Alberta",
        "University of British Columbia",
        "University of Calgary",
        "Dalhousie University",
        "Université Laval",
        "University of Manitoba",
        "McGill University",
        "McMaster University",
        "Université de Montréal",
        "University of Ottawa",
        "Queen's University",
        "University of Saskatchewan",
        "University of Toronto",
        "University of Waterloo",
        "University of Western Ontario",
    }
)

NON_COHORT_LABEL = "Non-cohort Universities"


# ---------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------
def get_logger(name: str) -> logging.Logger:
    """Return a logger with a single plain stream handler at INFO.

    Called once for the package logger; stage modules log through
    logging.getLogger(__name__) and propagate to it.
    """
    log = logging.getLogger(name)
    if not log.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        log.addHandler(h)
    log.setLevel(logging.INFO)
    return log
