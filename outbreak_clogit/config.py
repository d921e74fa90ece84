"""
Study constants for the matched case-control food analysis.

Survey coding, the 20 food exposures, the records known to break 1:1
matching and the externally computed result used when a food's model
cannot be fitted.
"""

import logging, sys
from collections import namedtuple

# ---------- survey coding ----------------------------------------------------
SURVEY_CODES = {
    0: "unexposed",
    1: "exposed",
    8: "unsure",
    9: "missing",
}
MISSING_MEANINGS = {"missing", "unsure"}      # "unsure" is treated as missing

EXPOSURE_VALUES = {"unexposed": 0.0, "exposed": 1.0}

# ---------- food exposures ---------------------------------------------------
FOODS = {
    "chicken"      : "Chicken",
    "beef"         : "Beef",
    "pork"         : "Pork",
    "ham"          : "Ham",
    "eggs"         : "Eggs",
    "lettuce"      : "Lettuce",
    "tomatoes"     : "Tomatoes",
    "cucumber"     : "Cucumber",
    "onions"       : "Onions",
    "sprouts"      : "Bean sprouts",
    "cheese"       : "Cheese",
    "milk"         : "Milk",
    "ice_cream"    : "Ice cream",
    "mayonnaise"   : "Mayonnaise",
    "melon"        : "Melon",
    "strawberries" : "Strawberries",
    "rice"         : "Rice",
    "pasta"        : "Pasta",
    "fish"         : "Fish",
    "shrimp"       : "Shrimp",
}

ID_COLUMNS = ["subject_id", "case_id", "case"]

# ---------- matching ---------------------------------------------------------
# participants without a matched counterpart
EXCLUDED_IDS = {"S075", "S076", "S077"}
# second control recorded for pair 12
DUPLICATE_CONTROL_ID = "S074"

EXPECTED_STRATA = 36

# ---------- model ------------------------------------------------------------
Z_95 = 1.96
MAX_ABS_BETA = 15.0      # |log OR| beyond this is a separated fit
SCORE_TOL = 1e-4         # max per-observation score at a converged estimate

Correction = namedtuple("Correction", "odds_ratio p ci_low ci_high source")

# Exact conditional logistic regression (median unbiased estimate) for the
# one food whose maximum-likelihood fit does not converge.
CORRECTIONS = {
    "sprouts": Correction(odds_ratio=13.97, p=0.0001, ci_low=2.34, ci_high=999.0,
                          source="exact conditional logistic regression (median unbiased)"),
}

ROUNDING = {
    "OR"              : 2,
    "CI_low"          : 2,
    "CI_high"         : 2,
    "p"               : 4,
    "cases_percent"   : 2,
    "controls_percent": 2,
}


def setup_logging(level="INFO"):
    """Configure root logging for command-line runs."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    return logging.getLogger("outbreak_clogit")
