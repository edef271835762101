"""
ucc_algorithms/ucc.py
=====================
Level-wise discovery of minimal Unique Column Combinations (UCCs).

Algorithm outline
-----------------
A breadth-first traversal of the power-set lattice of columns, processing
combinations in order of increasing size.

  Level 1  :  PLI of every single column.  Unique → unary UCC; otherwise the
              PLI joins the *frontier*.
  Level k+1:  join frontier pairs that share a (k-1)-index prefix, intersect
              their PLIs, and test the result for uniqueness.

Pruning
~~~~~~~
  (a) size     – the union of a joined pair must have exactly k+1 columns.
  (b) minimal  – a candidate containing a confirmed UCC is never minimal.
                 Confirmed UCCs live in an AttributeTrie, so the check does
                 not scan every earlier UCC.
  (c) repeat   – a candidate already confirmed unique at this level is not
                 intersected again.
  Unique PLIs never re-enter the frontier, so no superset of a UCC is ever
  generated from it; only non-unique PLIs are carried upward.

Level parallelism
~~~~~~~~~~~~~~~~~
Within one level every candidate is independent.  The frontier is cut into
prefix blocks (runs of lists with equal prefix), and blocks are cut into
slices of the outer pair index holding similar pair counts.  Level 2 is one
block, so slicing is what spreads it.  Slices are dealt to worker threads,
each filling a private buffer.  Buffers are merged, de-duplicated
and sorted at the level boundary, so results do not depend on the number of
workers.  Level k+1 starts only once level k is merged, because pruning (b)
needs every UCC of level k.

Termination
~~~~~~~~~~~
The frontier is empty, every column is already in play (level = number of
columns), or a caller-imposed ``max_level`` / ``time_budget_s`` is reached.
"""

from __future__ import annotations

import heapq
import logging
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .attributes import AttributeList, AttributeTrie
from .config import ProfilerConfig
from .partition import PositionListIndex
from .relation import Relation

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class UCC:
    """A (minimal) unique column combination of *relation*."""

    relation: Relation
    attributes: AttributeList

    @property
    def column_names(self) -> list[str]:
        return self.relation.names_of(self.attributes)

    def size(self) -> int:
        return self.attributes.size()

    def to_dict(self) -> dict:
        return {
            "relation": self.relation.name,
            "columns":  self.column_names,
            "indices":  list(self.attributes.indices),
        }

    def __str__(self) -> str:
        return f"{self.relation.name}[{', '.join(self.column_names)}]"


def verify_ucc(relation: Relation, attributes: AttributeList) -> bool:
    """Brute-force soundness check: the projection has no duplicate rows."""
    return relation.has_unique_projection(attributes.check_bounds(relation.n_columns))


# ── Level evaluation ─────────────────────────────────────────────────────────

@dataclass
class _LevelBuffer:
    """Private output of one worker for one lattice level."""

    uniques:     list[AttributeList] = field(default_factory=list)
    non_uniques: list[PositionListIndex] = field(default_factory=list)
    counters:    Counter = field(default_factory=Counter)


def _prefix_blocks(frontier: list[PositionListIndex]) -> list[tuple[int, int]]:
    """
    Cut the (sorted) frontier into maximal runs of joinable attribute lists.

    Returns
    -------
    list[tuple[int, int]]
        Half-open ``(start, stop)`` ranges holding at least two entries;
        singleton runs produce no pair and are omitted.
    """
    blocks: list[tuple[int, int]] = []
    start = 0
    for i in range(1, len(frontier) + 1):
        if i == len(frontier) or not frontier[start].attributes.same_prefix_as(
            frontier[i].attributes
        ):
            if i - start >= 2:
                blocks.append((start, i))
            start = i
    return blocks


def _n_pairs(block: tuple[int, int]) -> int:
    b = block[1] - block[0]
    return b * (b - 1) // 2


def _slice_pairs(piece: tuple[int, int, int]) -> int:
    """Pairs ``(i, j)`` with ``i_lo <= i < i_hi`` and ``i < j < stop``."""
    i_lo, i_hi, stop = piece
    return sum(stop - i - 1 for i in range(i_lo, i_hi))


def _split_block(block: tuple[int, int], target: int) -> list[tuple[int, int, int]]:
    """
    Cut one prefix block into ``(i_lo, i_hi, stop)`` slices of the outer
    index, each holding roughly *target* pairs.
    """
    start, stop = block
    pieces: list[tuple[int, int, int]] = []
    lo, load = start, 0
    for i in range(start, stop - 1):
        load += stop - i - 1
        if load >= target:
            pieces.append((lo, i + 1, stop))
            lo, load = i + 1, 0
    if lo < stop - 1:
        pieces.append((lo, stop - 1, stop))
    return pieces


def _deal_blocks(
    blocks: list[tuple[int, int]],
    n_workers: int,
    min_pairs_per_worker: int,
) -> list[list[tuple[int, int, int]]]:
    """
    Distribute the pairs of *blocks* over at most *n_workers* chunks.

    Blocks are cut into outer-index slices of about ``total / n_chunks``
    pairs, so a single block (level 2 has exactly one) still spans several
    workers.  Slices are dealt largest first onto the least-loaded chunk.
    """
    total = sum(_n_pairs(b) for b in blocks)
    n_chunks = max(1, min(n_workers, total // max(1, min_pairs_per_worker)))
    if n_chunks == 1:
        return [[(start, stop - 1, stop) for start, stop in blocks]]

    target = -(-total // n_chunks)
    pieces = [p for b in blocks for p in _split_block(b, target)]

    heap = [(0, c) for c in range(n_chunks)]
    chunks: list[list[tuple[int, int, int]]] = [[] for _ in range(n_chunks)]
    for piece in sorted(pieces, key=_slice_pairs, reverse=True):
        load, c = heapq.heappop(heap)
        chunks[c].append(piece)
        heapq.heappush(heap, (load + _slice_pairs(piece), c))
    return [c for c in chunks if c]


def _evaluate_blocks(
    frontier: list[PositionListIndex],
    pieces: list[tuple[int, int, int]],
    level: int,
    confirmed: AttributeTrie,
) -> _LevelBuffer:
    """Test every joinable pair inside *pieces*; read-only on shared state."""
    out = _LevelBuffer()
    promoted: set[AttributeList] = set()

    for i_lo, i_hi, stop in pieces:
        for i in range(i_lo, i_hi):
            pli_x = frontier[i]
            for j in range(i + 1, stop):
                pli_y = frontier[j]
                if not pli_x.attributes.same_prefix_as(pli_y.attributes):
                    break
                out.counters["n_candidates"] += 1

                combined = pli_x.attributes.union(pli_y.attributes)
                if combined.size() != level + 1:
                    out.counters["n_pruned_size"] += 1
                    continue
                if confirmed.contains_subset_of(combined):
                    out.counters["n_pruned_non_minimal"] += 1
                    continue
                if combined in promoted:
                    out.counters["n_pruned_duplicate"] += 1
                    continue

                pli_xy = pli_x.intersect(pli_y)
                out.counters["n_intersections"] += 1
                if pli_xy.is_unique():
                    promoted.add(combined)
                    out.uniques.append(combined)
                else:
                    out.non_uniques.append(pli_xy)
    return out


def _merge_buffers(buffers: list[_LevelBuffer]) -> _LevelBuffer:
    """
    Level-boundary merge: de-duplicate and sort the worker buffers.

    Equal candidates reached by two workers are kept once; the surplus is
    counted under ``n_pruned_duplicate``.
    """
    merged = _LevelBuffer()
    for buf in buffers:
        merged.counters.update(buf.counters)

    uniques = {u for buf in buffers for u in buf.uniques}
    n_raw = sum(len(buf.uniques) for buf in buffers)
    merged.counters["n_pruned_duplicate"] += n_raw - len(uniques)
    merged.uniques = sorted(uniques)

    by_attrs: dict[AttributeList, PositionListIndex] = {}
    for buf in buffers:
        for pli in buf.non_uniques:
            by_attrs.setdefault(pli.attributes, pli)
    merged.non_uniques = [by_attrs[a] for a in sorted(by_attrs)]
    return merged


# ── Main algorithm ───────────────────────────────────────────────────────────

_COUNTERS = (
    "n_candidates",
    "n_intersections",
    "n_pruned_size",
    "n_pruned_non_minimal",
    "n_pruned_duplicate",
)


def discover(
    relation: Relation,
    max_level: int | None = None,
    time_budget_s: float | None = None,
    n_workers: int = 1,
    min_pairs_per_worker: int = 64,
) -> tuple[list[UCC], dict]:
    """
    Discover all minimal UCCs of *relation*.

    Parameters
    ----------
    relation : Relation
        Input table; validated before the search starts.
    max_level : int | None
        Largest combination size to examine.  ``None`` searches the whole
        lattice.
    time_budget_s : float | None
        Wall-clock budget, checked at level boundaries.  The level in
        progress always completes.
    n_workers : int
        Worker threads per level.  1 evaluates in the calling thread.
    min_pairs_per_worker : int
        Levels with fewer candidate pairs per worker run on fewer workers.

    Returns
    -------
    uccs : list[UCC]
        Minimal UCCs ordered by size, then by column indices.
    stats : dict
        Counters for analysis:
          - n_attributes, n_rows    : relation shape
          - n_levels                : deepest lattice level evaluated
          - n_candidates            : joinable pairs examined (levels ≥ 2)
          - n_intersections         : PLI intersections computed
          - n_pruned_size           : pairs whose union is not one level up
          - n_pruned_non_minimal    : candidates containing a known UCC
          - n_pruned_duplicate      : candidates already confirmed this level
          - n_uccs                  : UCCs returned
          - truncated               : True iff a cutoff ended the search
          - elapsed_s               : wall-clock time
          - levels                  : per-level {level, frontier, candidates, uccs}

    Raises
    ------
    PreconditionViolation
        The relation has no rows, no columns, or ragged columns.
    """
    relation.validate()
    t_start = time.perf_counter()
    n_attr = relation.n_columns

    stats: dict = {
        "n_attributes": n_attr,
        "n_rows":       relation.n_rows,
        "n_levels":     1,
        **{name: 0 for name in _COUNTERS},
        "n_uccs":       0,
        "truncated":    False,
        "elapsed_s":    0.0,
        "levels":       [],
    }
    log.info(
        "Profiling %s: %d rows x %d cols",
        relation.name, relation.n_rows, n_attr,
    )

    uccs: list[UCC] = []
    confirmed = AttributeTrie()

    # ── Level 1: unary PLIs ──────────────────────────────────────────────────
    frontier: list[PositionListIndex] = []
    for attribute in range(n_attr):
        attrs = AttributeList(attribute)
        pli = PositionListIndex.from_array(attrs, relation.columns[attribute])
        if pli.is_unique():
            uccs.append(UCC(relation, attrs))
            confirmed.add(attrs)
            log.debug("UCC %s", uccs[-1])
        else:
            frontier.append(pli)

    stats["levels"].append({
        "level":      1,
        "frontier":   len(frontier),
        "candidates": n_attr,
        "uccs":       len(uccs),
    })
    log.info("Level 1: %d unary UCCs, frontier %d", len(uccs), len(frontier))

    # ── Level-wise traversal ─────────────────────────────────────────────────
    pool = ThreadPoolExecutor(max_workers=n_workers) if n_workers > 1 else None
    level = 1
    try:
        while frontier and level < n_attr:
            if max_level is not None and level >= max_level:
                stats["truncated"] = True
                log.warning("Stopping at level %d (max_level=%d)", level, max_level)
                break
            elapsed = time.perf_counter() - t_start
            if time_budget_s is not None and elapsed >= time_budget_s:
                stats["truncated"] = True
                log.warning(
                    "Stopping at level %d: time budget %.2fs exhausted", level, time_budget_s,
                )
                break

            blocks = _prefix_blocks(frontier)
            chunks = _deal_blocks(blocks, n_workers, min_pairs_per_worker)

            if pool is not None and len(chunks) > 1:
                for pli in frontier:
                    pli.probe_table()       # build caches before threads share them
                futures = [
                    pool.submit(_evaluate_blocks, frontier, chunk, level, confirmed)
                    for chunk in chunks
                ]
                buffers = [f.result() for f in futures]
            else:
                pieces = [piece for chunk in chunks for piece in chunk]
                buffers = [_evaluate_blocks(frontier, pieces, level, confirmed)]

            merged = _merge_buffers(buffers)
            for name in _COUNTERS:
                stats[name] += merged.counters[name]

            for attrs in merged.uniques:
                confirmed.add(attrs)
                uccs.append(UCC(relation, attrs))
                log.debug("UCC %s", uccs[-1])

            frontier = merged.non_uniques
            level += 1
            stats["levels"].append({
                "level":      level,
                "frontier":   len(frontier),
                "candidates": merged.counters["n_candidates"],
                "uccs":       len(merged.uniques),
            })
            log.info(
                "Level %d: %d candidates, %d new UCCs, frontier %d",
                level, merged.counters["n_candidates"], len(merged.uniques), len(frontier),
            )
    finally:
        if pool is not None:
            pool.shutdown()

    stats["n_levels"] = level
    stats["n_uccs"] = len(uccs)
    stats["elapsed_s"] = time.perf_counter() - t_start
    log.info(
        "Found %d minimal UCCs in %s (%.3fs)",
        len(uccs), relation.name, stats["elapsed_s"],
    )
    return uccs, stats


class UCCProfiler:
    """
    Configured entry point around :func:`discover`.

    The counters of the most recent run are kept in ``stats``.
    """

    def __init__(self, config: ProfilerConfig | None = None) -> None:
        self.config = config or ProfilerConfig()
        self.stats: dict = {}

    def profile(self, relation: Relation) -> list[UCC]:
        uccs, self.stats = discover(
            relation,
            max_level=self.config.max_level,
            time_budget_s=self.config.time_budget_s,
            n_workers=self.config.n_workers,
            min_pairs_per_worker=self.config.min_pairs_per_worker,
        )
        return uccs
