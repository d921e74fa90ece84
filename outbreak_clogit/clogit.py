#!/usr/bin/env python3
"""
Univariate conditional logistic regression, one model per food.

Outcome   : case (1 = ill, 0 = control)
Stratum   : stratum (matched pair number)
Exposure  : each food column, 1 = eaten, 0 = not eaten, NaN = missing/unsure

A food whose matched pairs are all discordant in the same direction has no
maximum-likelihood estimate; that fit is reported as a ConvergenceFailure
and replaced with the external correction from config.CORRECTIONS.
"""

import argparse, logging, warnings
from pathlib import Path

import numpy as np
from statsmodels.discrete.conditional_models import ConditionalLogit
from statsmodels.tools.sm_exceptions import ConvergenceWarning

from . import config
from .exposures import exposure_counts, select_exposures, to_long
from .load import load_clean
from .results import (ConvergenceFailure, Fitted, apply_corrections,
                      format_table, summarize)

log = logging.getLogger(__name__)


# ---------- helper functions -------------------------------------------------
def discordant_pairs(d):
    """(case exposed / control not, control exposed / case not) over complete pairs."""
    pairs = d.pivot(index="stratum", columns="case", values="exposure").dropna()
    if pairs.empty or 0 not in pairs.columns or 1 not in pairs.columns:
        return 0, 0, 0
    n10 = int(((pairs[1] == 1) & (pairs[0] == 0)).sum())
    n01 = int(((pairs[1] == 0) & (pairs[0] == 1)).sum())
    return n10, n01, len(pairs)


def fit_clogit(d, food, z=config.Z_95, max_abs_beta=config.MAX_ABS_BETA,
               score_tol=config.SCORE_TOL, maxiter=100):
    """Fit conditional logit for one food partition; Fitted or ConvergenceFailure."""
    d = d[["case", "stratum", "exposure"]].dropna()
    n10, n01, n_pairs = discordant_pairs(d)

    # the likelihood has a finite maximum only with discordant pairs both ways
    if n10 == 0 or n01 == 0:
        reason = f"separation: {n10} case-exposed vs {n01} control-exposed discordant pairs"
        log.warning("%s: %s", food, reason)
        return ConvergenceFailure(food, reason, strata=n_pairs, discordant=(n10, n01))

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            m = ConditionalLogit(d["case"], d[["exposure"]], groups=d["stratum"])\
                    .fit(disp=False, maxiter=maxiter)
        except np.linalg.LinAlgError as exc:
            log.warning("%s: fit failed: %s", food, exc)
            return ConvergenceFailure(food, f"fit failed: {exc}", strata=n_pairs,
                                      discordant=(n10, n01))

    issues = []
    for w in caught:
        if issubclass(w.category, ConvergenceWarning):
            if "ConvergenceWarning raised" not in issues:
                issues.append("ConvergenceWarning raised")
        else:
            log.info("%s: %s", food, w.message)

    b, se = float(m.params["exposure"]), float(m.bse["exposure"])
    # per-observation gradient of the log-likelihood at the estimate
    score = np.abs(m.model.score(np.asarray(m.params, dtype=float))).max() / len(d)
    if not np.isfinite(score) or score > score_tol:
        issues.append(f"score {score:.3g} above tolerance {score_tol}")
    if not (np.isfinite(b) and np.isfinite(se) and se > 0):
        issues.append("coefficient or standard error not finite")
    elif abs(b) > max_abs_beta:
        issues.append(f"|beta| = {abs(b):.3g} exceeds {max_abs_beta}")
    if issues:
        reason = "; ".join(issues)
        log.warning("%s: %s", food, reason)
        return ConvergenceFailure(food, reason, strata=n_pairs, discordant=(n10, n01))

    res = Fitted(
        food       = food,
        odds_ratio = float(np.exp(b)),
        ci_low     = float(np.exp(b - z*se)),
        ci_high    = float(np.exp(b + z*se)),
        p          = float(m.pvalues["exposure"]),
        beta       = b,
        se         = se,
        strata     = n_pairs,
        discordant = (n10, n01),
    )
    log.info("%s: OR=%.2f (%.2f-%.2f) p=%.4f", food, res.odds_ratio, res.ci_low, res.ci_high, res.p)
    return res


def fit_all(long):
    """{food: Fitted | ConvergenceFailure} over every food in the long table."""
    return {food: fit_clogit(d, food) for food, d in long.groupby("food", sort=True)}


# ---------- pipeline ---------------------------------------------------------
def run(path_or_frame, foods=config.FOODS, corrections=config.CORRECTIONS, **load_kw):
    """Clean -> select -> reshape -> model -> assemble. Returns the unrounded summary."""
    df   = load_clean(path_or_frame, foods=foods, **load_kw)
    wide = select_exposures(df, foods)
    long = to_long(wide)

    results = apply_corrections(fit_all(long), corrections)
    return summarize(results, exposure_counts(long), labels=foods)


def main(fp_in, fp_out, fp_plot=None):
    summary = run(fp_in)
    out = format_table(summary)

    Path(fp_out).parent.mkdir(parents=True, exist_ok=True)
    out.to_csv(fp_out, index=False)
    print(out.to_string(index=False))

    if fp_plot:
        from .report import plot_odds_ratios
        plot_odds_ratios(summary, fp_plot)
    return out


def cli(argv=None):
    ap = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    ap.add_argument("--in",   default="data/food_survey.xlsx")
    ap.add_argument("--out",  default="results/clogit_results.csv")
    ap.add_argument("--plot", default=None, help="write the odds-ratio chart here")
    ap.add_argument("--log-level", default="INFO")
    args = ap.parse_args(argv)

    config.setup_logging(args.log_level)
    main(getattr(args, "in"), args.out, args.plot)


if __name__ == "__main__":
    cli()
