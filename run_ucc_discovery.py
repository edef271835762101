"""
run_ucc_discovery.py
====================
Minimal UCC discovery over one or more CSV files.

Usage
-----
  python run_ucc_discovery.py data/people.csv data/orders.csv
  python run_ucc_discovery.py --config configs/default.yaml --workers 4 \
      --plot results/levels.png --inds --verify data/*.csv

Pipeline
--------
  For each input CSV:
    1. Load it as a relation of strings (empty cells stay empty strings).
    2. Discover minimal UCCs level by level.
    3. Optionally re-check every UCC against the raw data (--verify).
    4. Print the run summary.
  Then write all UCCs to one CSV, optionally discover unary INDs across all
  inputs (--inds) and plot the per-level counters of the last relation
  (--plot).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ucc_algorithms import ind, load_config
from ucc_algorithms.config import ProfilerConfig
from ucc_algorithms.exceptions import UCCProfilingError
from ucc_algorithms.relation import Relation
from ucc_algorithms.reporting import (
    format_summary,
    inds_to_frame,
    plot_levels,
    save_results,
    uccs_to_frame,
)
from ucc_algorithms.ucc import UCCProfiler, verify_ucc

log = logging.getLogger("run_ucc_discovery")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Discover minimal unique column combinations.")
    p.add_argument("csv", nargs="+", type=Path, help="input CSV file(s)")
    p.add_argument("--config", type=Path, default=None, help="YAML config file")
    p.add_argument("--max-level", type=int, default=None, help="largest combination size")
    p.add_argument("--time-budget", type=float, default=None, help="seconds per relation")
    p.add_argument("--workers", type=int, default=None, help="threads per lattice level")
    p.add_argument("--out", type=Path, default=None, help="results CSV path")
    p.add_argument("--plot", type=Path, default=None, help="per-level chart (PNG)")
    p.add_argument("--inds", action="store_true", help="also discover unary INDs")
    p.add_argument("--verify", action="store_true", help="re-check UCCs on raw data")
    return p.parse_args(argv)


def build_profiler_config(cfg: dict, args: argparse.Namespace) -> ProfilerConfig:
    """Config file values, overridden by command-line flags."""
    section = dict(cfg["profiler"])
    if args.max_level is not None:
        section["max_level"] = args.max_level
    if args.time_budget is not None:
        section["time_budget_s"] = args.time_budget
    if args.workers is not None:
        section["n_workers"] = args.workers
    return ProfilerConfig.from_dict(section)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        cfg = load_config(args.config)
        profiler_cfg = build_profiler_config(cfg, args)
    except (OSError, UCCProfilingError) as exc:
        sys.exit(f"[ERROR] Invalid configuration: {exc}")

    logging.basicConfig(
        level=getattr(logging, str(cfg["logging"]["level"]).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    missing = [p for p in args.csv if not p.exists()]
    if missing:
        sys.exit(f"[ERROR] Dataset not found: {', '.join(map(str, missing))}")

    profiler = UCCProfiler(profiler_cfg)
    relations: list[Relation] = []
    all_uccs = []
    n_unsound = 0
    last_stats: dict | None = None      # counters of the last relation actually profiled

    for path in args.csv:
        try:
            relation = Relation.read_csv(
                path,
                delimiter=cfg["input"]["delimiter"],
                encoding=cfg["input"]["encoding"],
            )
            uccs = profiler.profile(relation)
        except UCCProfilingError as exc:
            log.error("Skipping %s: %s", path, exc)
            continue
        last_stats = profiler.stats
        relations.append(relation)
        all_uccs.extend(uccs)

        if args.verify:
            for u in uccs:
                if not verify_ucc(relation, u.attributes):
                    n_unsound += 1
                    log.error("UCC %s does not hold on the raw data", u)

        print(format_summary(relation.name, uccs, profiler.stats))

    out_path = args.out or Path(cfg["output"]["results_csv"])
    save_results(uccs_to_frame(all_uccs), out_path)
    print(f"  UCC results saved  ->  {out_path}")

    if args.inds and relations:
        inds, ind_stats = ind.discover(relations)
        ind_path = Path(cfg["output"]["inds_csv"])
        save_results(inds_to_frame(inds), ind_path)
        print(f"  {ind_stats['n_inds']} INDs ({ind_stats['n_checks']} checks) saved  ->  {ind_path}")

    plot_path = args.plot or cfg["output"]["plot"]
    if plot_path and last_stats:
        plot_levels(last_stats, plot_path)
        print(f"  Plot saved  ->  {plot_path}")

    return 1 if n_unsound else 0


if __name__ == "__main__":
    sys.exit(main())
