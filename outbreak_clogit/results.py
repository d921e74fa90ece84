"""
Per-food model results and the summary table.

A food's result is one of
    Fitted              conditional-logit estimate from this data
    Overridden          externally supplied estimate replacing a failed fit
    ConvergenceFailure  no trustworthy estimate and no replacement
"""

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from . import config

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fitted:
    food: str
    odds_ratio: float
    ci_low: float
    ci_high: float
    p: float
    beta: float
    se: float
    strata: int
    discordant: tuple = (0, 0)
    kind: str = field(default="fitted", init=False)


@dataclass(frozen=True)
class Overridden:
    food: str
    odds_ratio: float
    ci_low: float
    ci_high: float
    p: float
    source: str
    reason: str
    strata: int = 0
    kind: str = field(default="corrected", init=False)


@dataclass(frozen=True)
class ConvergenceFailure:
    food: str
    reason: str
    strata: int = 0
    discordant: tuple = (0, 0)
    kind: str = field(default="not_converged", init=False)


def apply_corrections(fits, corrections=config.CORRECTIONS):
    """Swap failed fits for their external correction, logging every swap."""
    out = {}
    for food, res in fits.items():
        fix = corrections.get(food)
        if isinstance(res, ConvergenceFailure) and fix is not None:
            log.warning("%s: model not used (%s); substituting OR=%s, 95%% CI %s-%s, p=%s from %s",
                        food, res.reason, fix.odds_ratio, fix.ci_low, fix.ci_high, fix.p, fix.source)
            out[food] = Overridden(food, fix.odds_ratio, fix.ci_low, fix.ci_high, fix.p,
                                   source=fix.source, reason=res.reason, strata=res.strata)
        elif isinstance(res, ConvergenceFailure):
            log.error("%s: model did not converge (%s) and no correction is available",
                      food, res.reason)
            out[food] = res
        else:
            if fix is not None:
                log.info("%s: model converged, correction not applied", food)
            out[food] = res
    return out


def result_row(res):
    if isinstance(res, ConvergenceFailure):
        return {"OR": np.nan, "CI_low": np.nan, "CI_high": np.nan, "p": np.nan,
                "source": res.kind, "strata": res.strata}
    return {
        "OR"     : res.odds_ratio,
        "CI_low" : res.ci_low,
        "CI_high": res.ci_high,
        "p"      : res.p,
        "source" : res.kind,
        "strata" : res.strata,
    }


def summarize(results, counts, labels=config.FOODS):
    """One row per food: model result + exposure counts, ascending by OR."""
    rows = []
    for food in sorted(results):
        row = {"food": food, "label": labels.get(food, food)}
        row.update(result_row(results[food]))
        rows.append(row)

    out = pd.DataFrame(rows).merge(counts, on="food", how="left", validate="1:1")
    return out.sort_values(["OR", "food"], kind="mergesort", na_position="last")\
              .reset_index(drop=True)


def format_table(summary, rounding=config.ROUNDING):
    return summary.round({k: v for k, v in rounding.items() if k in summary.columns})
