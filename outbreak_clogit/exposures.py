"""Food-exposure columns: sentinel recoding, wide -> long, descriptive counts."""

import logging

import numpy as np
import pandas as pd

from . import config
from .errors import SchemaError

log = logging.getLogger(__name__)


def recode(s, codes=config.SURVEY_CODES, missing=config.MISSING_MEANINGS):
    """Survey code -> 1.0 / 0.0 / NaN. Codes outside `codes` are rejected."""
    unknown = s.dropna()[~s.dropna().isin(list(codes))]
    if len(unknown):
        raise SchemaError(f"unknown survey code(s) in {s.name!r}: {sorted(unknown.unique().tolist())}")

    values = {}
    for code, meaning in codes.items():
        if meaning in missing:
            values[code] = np.nan
        elif meaning in config.EXPOSURE_VALUES:
            values[code] = config.EXPOSURE_VALUES[meaning]
        else:
            raise SchemaError(f"survey code {code} has no exposure meaning: {meaning!r}")
    return s.map(values).astype(float)


def select_exposures(df, foods=config.FOODS, codes=config.SURVEY_CODES,
                     missing=config.MISSING_MEANINGS):
    """stratum, case and one recoded column per food."""
    wide = df[["stratum", "case"] + list(foods)].copy()
    for c in foods:
        wide[c] = recode(wide[c], codes, missing)
    wide["case"] = wide["case"].astype(int)
    return wide


def to_long(wide):
    """One row per (stratum, participant, food)."""
    foods = [c for c in wide.columns if c not in ("stratum", "case")]
    long = wide.melt(id_vars=["stratum", "case"], value_vars=foods,
                     var_name="food", value_name="exposure")\
               .sort_values(["food", "stratum", "case"], ascending=[True, True, False],
                            kind="mergesort")\
               .reset_index(drop=True)

    if len(long) != len(wide) * len(foods):
        raise SchemaError(f"reshape produced {len(long)} rows, expected {len(wide) * len(foods)}")
    log.info("Long table: %d rows (%d participants x %d foods)", len(long), len(wide), len(foods))
    return long


def exposure_counts(long):
    """Exposed count, arm size and share among cases and controls, per food."""
    arm = np.where(long["case"] == 1, "cases", "controls")
    g = long.assign(arm=arm).groupby(["food", "arm"])["exposure"]
    tbl = pd.DataFrame({
        "exposed": g.sum(min_count=0).astype(int),
        "total"  : g.size(),
    }).unstack("arm")

    out = pd.DataFrame(index=tbl.index)
    for a in ("cases", "controls"):
        out[f"{a}_exposed"] = tbl[("exposed", a)].fillna(0).astype(int)
        out[f"{a}_total"]   = tbl[("total", a)].fillna(0).astype(int)
        out[f"{a}_percent"] = (out[f"{a}_exposed"] / out[f"{a}_total"]).round(2)
    return out.reset_index()
