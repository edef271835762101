"""
ucc_algorithms/exceptions.py
============================
Error taxonomy for UCC profiling.

  PreconditionViolation – the relation is unusable (no rows, no columns,
                          ragged columns).  Raised once, before any search.
  InvalidInput          – a caller handed in a malformed value (negative
                          column index, index past the last column, bad
                          config entry).
"""

from __future__ import annotations


class UCCProfilingError(Exception):
    """Base class for every error raised by :mod:`ucc_algorithms`."""


class PreconditionViolation(UCCProfilingError, ValueError):
    """The relation handed to a profiler does not satisfy its preconditions."""


class InvalidInput(UCCProfilingError, ValueError):
    """An argument or configuration value is out of range."""
