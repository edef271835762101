"""
ucc_algorithms/reporting.py
===========================
Tabular export, console summaries and the per-level lattice plot.
"""

from __future__ import annotations

from pathlib import Path

import matplotlib
matplotlib.use("Agg")           # non-interactive backend; must precede pyplot import
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
import numpy as np
import pandas as pd

from .ind import IND
from .ucc import UCC

_SEP  = "=" * 72
_DASH = "-" * 72

UCC_COLUMNS = ["relation", "size", "columns", "indices"]


# ── Tables ───────────────────────────────────────────────────────────────────

def uccs_to_frame(uccs: list[UCC]) -> pd.DataFrame:
    """
    One row per UCC.  ``columns`` and ``indices`` are ``|``- and
    space-joined so the frame round-trips through CSV unchanged.
    """
    rows = [
        {
            "relation": u.relation.name,
            "size":     u.size(),
            "columns":  "|".join(u.column_names),
            "indices":  " ".join(str(i) for i in u.attributes),
        }
        for u in uccs
    ]
    return pd.DataFrame(rows, columns=UCC_COLUMNS)


def inds_to_frame(inds: list[IND]) -> pd.DataFrame:
    return pd.DataFrame(
        [ind.to_dict() for ind in inds],
        columns=[
            "dependent_relation", "dependent_column",
            "referenced_relation", "referenced_column",
        ],
    )


def levels_to_frame(stats: dict) -> pd.DataFrame:
    """Per-level counters of one :func:`~ucc_algorithms.ucc.discover` run."""
    return pd.DataFrame(
        stats.get("levels", []),
        columns=["level", "candidates", "uccs", "frontier"],
    )


def save_results(frame: pd.DataFrame, out_path: str | Path) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(out_path, index=False)
    return out_path


# ── Console reporting ────────────────────────────────────────────────────────

def format_summary(relation_name: str, uccs: list[UCC], stats: dict) -> str:
    """Render the run summary printed by ``run_ucc_discovery.py``."""
    lines = [
        _SEP,
        f"  {relation_name}  ──  {stats['n_rows']:,} rows x {stats['n_attributes']} cols",
        _SEP,
    ]

    def _row(label: str, value) -> str:
        return f"  {label:<42}  {str(value):>14}"

    metrics: list[tuple[str, object]] = [
        ("Minimal UCCs",                   stats["n_uccs"]),
        ("Lattice levels evaluated",       stats["n_levels"]),
        ("Candidate pairs",                stats["n_candidates"]),
        ("PLI intersections",              stats["n_intersections"]),
        ("Pruned (size)",                  stats["n_pruned_size"]),
        ("Pruned (contains a UCC)",        stats["n_pruned_non_minimal"]),
        ("Pruned (duplicate)",             stats["n_pruned_duplicate"]),
        ("Search truncated",               "yes" if stats["truncated"] else "no"),
        ("Wall-clock time (s)",            f"{stats['elapsed_s']:.3f}"),
    ]
    lines.extend(_row(label, value) for label, value in metrics)

    lines.append(f"  {_DASH}")
    if not uccs:
        lines.append("  (no unique column combination)")
    for u in uccs:
        lines.append(f"  {u.size():>3}  {', '.join(u.column_names)}")
    lines.append("")
    return "\n".join(lines)


# ── Plot ─────────────────────────────────────────────────────────────────────

def plot_levels(stats: dict, out_path: str | Path, title: str = "") -> Path:
    """
    Grouped bar chart: X-axis = lattice level, Y-axis = count.

    Three bars per level: candidate pairs examined, new UCCs, and the size
    of the non-unique frontier carried to the next level.  The Y-axis is
    logarithmic because candidate counts grow much faster than UCC counts.

    Parameters
    ----------
    stats : dict
        Output of :func:`~ucc_algorithms.ucc.discover`.
    out_path : Path
        File path for the output PNG.
    """
    out_path = Path(out_path)
    levels = levels_to_frame(stats)
    x = np.arange(len(levels))

    C_CAND = "#1565C0"   # candidates (Material Blue 800)
    C_UCC  = "#BF360C"   # UCCs       (Material Deep-Orange 900)
    C_FRON = "#757575"   # frontier   (Grey 600)

    bar_w = 0.26
    fig, ax = plt.subplots(figsize=(10, 5.5))

    series = (
        (-bar_w, levels["candidates"], "Candidates", C_CAND),
        (0.0,    levels["uccs"],       "New UCCs",   C_UCC),
        (bar_w,  levels["frontier"],   "Frontier",   C_FRON),
    )
    for offset, values, label, colour in series:
        # log scale cannot show zero; draw zero-height bars at 0.8 instead
        heights = np.maximum(values.to_numpy(dtype=float), 0.8)
        bars = ax.bar(
            x + offset, heights, bar_w,
            label=label, color=colour, alpha=0.87, zorder=3,
            edgecolor="white", linewidth=0.6,
        )
        for bar, v in zip(bars, values):
            ax.text(
                bar.get_x() + bar.get_width() / 2,
                bar.get_height() * 1.08,
                f"{int(v):,}",
                ha="center", va="bottom", fontsize=8, color=colour,
            )

    ax.set_yscale("log")
    ax.set_xlabel("Lattice level (combination size)", fontsize=12, labelpad=6)
    ax.set_ylabel("Count", fontsize=12, labelpad=6)
    ax.set_title(
        title or (
            f"Minimal UCC discovery  ·  {stats['n_rows']:,} rows  ·  "
            f"{stats['n_attributes']} columns  ·  {stats['n_uccs']} UCCs"
        ),
        fontsize=12, pad=10,
    )
    ax.set_xticks(x)
    ax.set_xticklabels([str(level) for level in levels["level"]], fontsize=11)
    ax.yaxis.set_major_formatter(mticker.FuncFormatter(lambda v, _: f"{v:,.0f}"))
    ax.grid(axis="y", which="major", linestyle="--", alpha=0.45, zorder=0)
    ax.legend(fontsize=10, loc="upper right", framealpha=0.93, edgecolor="#cccccc")
    ax.spines[["top", "right"]].set_visible(False)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    fig.savefig(str(out_path), dpi=150, bbox_inches="tight")
    plt.close(fig)
    return out_path
