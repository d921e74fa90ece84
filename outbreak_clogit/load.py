"""
Read the survey spreadsheet and reduce it to valid 1:1 matched pairs.

Cleaned table
-------------
subject_id : participant identifier
case_id    : identifier of the case the participant is matched to
case       : 1 = ill (case), 0 = control
stratum    : numeric suffix of case_id, one per matched pair
<food>     : raw survey code for each food exposure
"""

import logging, re
from pathlib import Path

import numpy as np
import pandas as pd

from . import config
from .errors import SchemaError, StrataError

log = logging.getLogger(__name__)

NA_STRINGS = {"Na": np.nan, "NA": np.nan, "na": np.nan, "": np.nan}


# ---------- reading ----------------------------------------------------------
def read_survey(path):
    """Read a .csv or .xlsx survey export; anything else is a SchemaError."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path)
    if suffix == ".xlsx":
        return pd.read_excel(path)
    raise SchemaError(f"unsupported survey file type: {path.name}")


def normalize_columns(df):
    """'Subject ID' -> 'subject_id', 'Ice Cream' -> 'ice_cream'."""
    def norm(name):
        name = re.sub(r"[^0-9a-z]+", "_", str(name).strip().lower())
        return name.strip("_")
    out = df.copy()
    out.columns = [norm(c) for c in df.columns]
    return out


def check_schema(df, foods=config.FOODS):
    missing = [c for c in config.ID_COLUMNS + list(foods) if c not in df.columns]
    if missing:
        raise SchemaError(f"survey is missing columns: {', '.join(missing)}")


def stratum_from_case_id(value):
    """Matched-pair number from the trailing digits of a case id ('CASE-07' -> 7)."""
    m = re.search(r"(\d+)\s*$", str(value))
    if m is None:
        raise SchemaError(f"case id without a numeric suffix: {value!r}")
    return int(m.group(1))


def to_numeric_codes(df, columns):
    """Convert survey codes to numbers; text other than the NA spellings is an error."""
    out = df.copy()
    for c in columns:
        raw = out[c].replace(NA_STRINGS)
        num = pd.to_numeric(raw, errors="coerce")
        bad = raw.notna() & num.isna()
        if bad.any():
            raise SchemaError(f"non-numeric values in {c!r}: {sorted(raw[bad].astype(str).unique())}")
        out[c] = num
    return out


# ---------- matching checks --------------------------------------------------
def check_strata(df, expected=config.EXPECTED_STRATA):
    """Fail unless every stratum is one case + one control and the count is `expected`."""
    bad = df.groupby("stratum", group_keys=False)\
            .filter(lambda g: not (len(g) == 2 and g["case"].sum() == 1))
    if len(bad):
        raise StrataError(f"strata not matched 1:1: {sorted(bad['stratum'].unique().tolist())}")

    n = df["stratum"].nunique()
    if expected is not None and n != expected:
        raise StrataError(f"expected {expected} matched pairs, found {n}")
    return n


# ---------- main entry -------------------------------------------------------
def load_clean(path_or_frame, foods=config.FOODS,
               excluded_ids=config.EXCLUDED_IDS,
               duplicate_control_id=config.DUPLICATE_CONTROL_ID,
               expected_strata=config.EXPECTED_STRATA):
    """Read, normalise, drop unmatched records and number the strata."""
    if isinstance(path_or_frame, pd.DataFrame):
        df = path_or_frame
    else:
        df = read_survey(path_or_frame)

    df = normalize_columns(df)
    check_schema(df, foods)
    df = to_numeric_codes(df, ["case"] + list(foods))
    df["subject_id"] = df["subject_id"].astype(str).str.strip()
    if not df["case"].isin([0, 1]).all():
        raise SchemaError("case flag must be 0 or 1 for every participant")

    n0 = len(df)
    df = df[~df["subject_id"].isin(excluded_ids)]
    log.info("Dropped %d unmatched participant(s) on the exclusion list", n0 - len(df))

    if duplicate_control_id is not None:
        dup = df["subject_id"] == duplicate_control_id
        if dup.any():
            log.info("Dropped duplicate control %s", duplicate_control_id)
        df = df[~dup]

    df = df.assign(stratum=df["case_id"].map(stratum_from_case_id))\
           .sort_values(["stratum", "case"], ascending=[True, False], kind="mergesort")\
           .reset_index(drop=True)

    n = check_strata(df, expected_strata)
    log.info("%d participants in %d matched pairs", len(df), n)
    return df
