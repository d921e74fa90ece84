"""Odds-ratio chart for the summary table."""

import logging
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

log = logging.getLogger(__name__)

FITTED_COLOR    = "#3498db"
CORRECTED_COLOR = "#e74c3c"


def plot_odds_ratios(summary, path, title="Food exposures, matched case-control analysis"):
    """Horizontal OR / 95% CI chart, most commonly eaten by cases at the top."""
    d = summary.dropna(subset=["OR"])\
               .sort_values(["cases_percent", "food"], ascending=[True, False], kind="mergesort")\
               .reset_index(drop=True)

    y = np.arange(len(d))
    x = d["OR"].to_numpy(dtype=float)
    err = [x - d["CI_low"].to_numpy(dtype=float), d["CI_high"].to_numpy(dtype=float) - x]
    colors = np.where(d["source"] == "corrected", CORRECTED_COLOR, FITTED_COLOR)

    fig, ax = plt.subplots(figsize=(8, max(4.0, 0.4 * len(d))))
    # bars start at the null value, OR = 1
    ax.barh(y, x - 1.0, left=1.0, color=colors, alpha=0.35, height=0.6)
    ax.errorbar(x, y, xerr=err, fmt="o", color="#333333", ecolor="#333333",
                capsize=3, elinewidth=1.2, markersize=4)
    ax.axvline(1.0, color="gray", linestyle="--", linewidth=1.0)

    ax.set_xscale("log")
    ax.set_yticks(y)
    ax.set_yticklabels([f"{l} ({p:.0%} of cases)" for l, p in zip(d["label"], d["cases_percent"])],
                       fontsize=9)
    ax.set_xlabel("Odds ratio (95% CI, log scale)")
    ax.set_title(title, fontsize=11, fontweight="bold")
    ax.grid(axis="x", linestyle=":", alpha=0.35)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, bbox_inches="tight", dpi=150)
    plt.close(fig)
    log.info("Saved odds-ratio chart to %s", path)
    return path
