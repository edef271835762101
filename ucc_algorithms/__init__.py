"""
ucc_algorithms
==============
Pure-Python discovery of minimal Unique Column Combinations (UCCs), built
on stripped partitions (Position List Indexes), plus unary inclusion
dependency discovery over the same relation abstraction.

Public API
----------
  from ucc_algorithms import Relation, ucc, ind

  rel          = Relation.read_csv("people.csv")
  uccs, stats  = ucc.discover(rel, n_workers=4)
  inds, stats  = ind.discover([rel, other_rel])

``ucc.discover`` returns:
  uccs  : list[UCC]   – minimal UCCs, by size then column index
  stats : dict        – internal counters for analysis

See the individual module docstrings for full algorithm descriptions.
"""

from . import ind, ucc
from .attributes import AttributeList, AttributeTrie
from .config import ProfilerConfig, load_config
from .exceptions import InvalidInput, PreconditionViolation, UCCProfilingError
from .partition import PositionListIndex
from .relation import Relation
from .ucc import UCC, UCCProfiler, verify_ucc

__all__ = [
    "ucc",
    "ind",
    "AttributeList",
    "AttributeTrie",
    "PositionListIndex",
    "Relation",
    "UCC",
    "UCCProfiler",
    "verify_ucc",
    "ProfilerConfig",
    "load_config",
    "UCCProfilingError",
    "PreconditionViolation",
    "InvalidInput",
]
