"""
ucc_algorithms/config.py
========================
YAML configuration for profiling runs.

Layout of a config file (see ``configs/default.yaml``)::

    profiler:            # → ProfilerConfig
      max_level: null
      time_budget_s: null
      n_workers: 1
      min_pairs_per_worker: 64
    input:
      delimiter: ","
      encoding: utf-8
    output:
      results_csv: results/uccs.csv
      plot: null
    logging:
      level: INFO
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, fields
from pathlib import Path

import yaml

from .exceptions import InvalidInput

DEFAULTS: dict = {
    "profiler": {
        "max_level":            None,
        "time_budget_s":        None,
        "n_workers":            1,
        "min_pairs_per_worker": 64,
    },
    "input": {
        "delimiter": ",",
        "encoding":  "utf-8",
    },
    "output": {
        "results_csv": "results/uccs.csv",
        "inds_csv":    "results/inds.csv",
        "plot":        None,
    },
    "logging": {
        "level": "INFO",
    },
}


@dataclass
class ProfilerConfig:
    """Search limits and parallelism for :class:`~ucc_algorithms.ucc.UCCProfiler`."""

    max_level: int | None = None
    time_budget_s: float | None = None
    n_workers: int = 1
    min_pairs_per_worker: int = 64

    def __post_init__(self) -> None:
        # type checks first; a quoted YAML number must not reach the comparisons
        for name in ("max_level", "time_budget_s", "n_workers", "min_pairs_per_worker"):
            value = getattr(self, name)
            if value is None and name in ("max_level", "time_budget_s"):
                continue
            kind, allowed = (
                ("a number", (int, float)) if name == "time_budget_s" else ("an integer", int)
            )
            if isinstance(value, bool) or not isinstance(value, allowed):
                raise InvalidInput(
                    f"{name} must be {kind}, got {type(value).__name__} {value!r}"
                )
        if self.max_level is not None and self.max_level < 1:
            raise InvalidInput(f"max_level must be >= 1, got {self.max_level}")
        if self.time_budget_s is not None and self.time_budget_s < 0:
            raise InvalidInput(f"time_budget_s must be >= 0, got {self.time_budget_s}")
        if self.n_workers < 1:
            raise InvalidInput(f"n_workers must be >= 1, got {self.n_workers}")
        if self.min_pairs_per_worker < 1:
            raise InvalidInput(
                f"min_pairs_per_worker must be >= 1, got {self.min_pairs_per_worker}"
            )

    @classmethod
    def from_dict(cls, d: dict | None) -> ProfilerConfig:
        d = d or {}
        known = {f.name for f in fields(cls)}
        unknown = set(d) - known
        if unknown:
            raise InvalidInput(f"unknown profiler option(s): {', '.join(sorted(unknown))}")
        return cls(**d)

    def to_dict(self) -> dict:
        return asdict(self)


def _merge(base: dict, override: dict) -> dict:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_config(config_path: str | Path | None = None) -> dict:
    """
    Read a YAML config and merge it over :data:`DEFAULTS`.

    ``None`` returns a copy of the defaults.  The ``profiler`` section is
    checked eagerly so that a typo fails before any data is loaded.
    """
    if config_path is None:
        return copy.deepcopy(DEFAULTS)

    cfg = yaml.safe_load(Path(config_path).read_text(encoding="utf-8")) or {}
    if not isinstance(cfg, dict):
        raise InvalidInput(f"{config_path}: top level must be a mapping")
    merged = _merge(DEFAULTS, cfg)
    ProfilerConfig.from_dict(merged["profiler"])
    return merged
