"""
ucc_algorithms/partition.py
===========================
Position List Index (PLI) – the stripped partition behind UCC discovery.

A partition π(X) groups rows by their combined X-values into equivalence
classes.  The *stripped* variant discards singleton classes, because a row
whose X-value occurs once can never be a duplicate under X.

Theory
------
  X is a unique column combination  ⟺  π(X) has only singletons
                                    ⟺  PLI(X).clusters is empty

  PLI(X ∪ Y) is computed from PLI(X) and PLI(Y) alone:
    probe[r] = id of the cluster of PLI(Y) holding row r  (absent if none)
    for each cluster C ∈ PLI(X):
      split C by probe[r]; rows without a probe entry are singletons in Y
      keep sub-groups of size ≥ 2 → clusters of PLI(X ∪ Y)

  Two rows end up together iff they agree on every column of X and on
  every column of Y.  The split only touches rows already clustered in X,
  so the cost is O(|PLI(X)| + |PLI(Y)|), never a rescan of the relation.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from .attributes import AttributeList


@dataclass
class PositionListIndex:
    """
    Stripped partition of row positions induced by an attribute list.

    Attributes
    ----------
    attributes : AttributeList
        Columns whose combined value defines the partition.
    clusters : list[tuple[int, ...]]
        Pairwise-disjoint equivalence classes (ascending row indices) of
        size ≥ 2.  Owned by this PLI; never shared with its parents.
    n_rows : int
        Total number of rows in the relation.
    """

    attributes: AttributeList
    clusters: list[tuple[int, ...]]
    n_rows: int
    _probe: dict[int, int] | None = field(
        default=None, init=False, repr=False, compare=False
    )

    # ── Construction ─────────────────────────────────────────────────────────

    @classmethod
    def from_array(
        cls,
        attributes: AttributeList,
        values: Sequence | np.ndarray,
    ) -> PositionListIndex:
        """
        Build the PLI of one column (or of pre-combined column values).

        Parameters
        ----------
        attributes : AttributeList
            Columns that *values* represents.
        values : np.ndarray, shape (n_rows,)
            Cell values; any hashable dtype.

        Returns
        -------
        PositionListIndex
            Groups of row indices sharing the same value, singletons removed.

        Complexity
        ----------
        O(n_rows) with a value → rows mapping.
        """
        groups: dict = defaultdict(list)
        for idx, value in enumerate(values):
            groups[value].append(idx)

        return cls(
            attributes=attributes,
            clusters=[tuple(g) for g in groups.values() if len(g) >= 2],
            n_rows=len(values),
        )

    # ── Metrics ──────────────────────────────────────────────────────────────

    @property
    def sum_size(self) -> int:
        """Total number of rows across all clusters."""
        return sum(len(c) for c in self.clusters)

    @property
    def n_clusters(self) -> int:
        return len(self.clusters)

    def is_unique(self) -> bool:
        """True iff the attribute combination has no duplicate rows."""
        return not self.clusters

    # ── Core operations ──────────────────────────────────────────────────────

    def probe_table(self) -> dict[int, int]:
        """
        Map every clustered row to the index of its cluster.

        Built on first use and cached; rows in no cluster are absent.
        """
        if self._probe is None:
            self._probe = {
                row: cid
                for cid, cluster in enumerate(self.clusters)
                for row in cluster
            }
        return self._probe

    def intersect(self, other: PositionListIndex) -> PositionListIndex:
        """
        Compute PLI(X ∪ Y) from PLI(X) = self and PLI(Y) = other.

        Each cluster of *self* is split by cluster membership in *other*.
        Rows that are singletons in *other* are dropped, and sub-groups of
        size 1 are stripped.

        Returns
        -------
        PositionListIndex
            A new PLI over ``self.attributes.union(other.attributes)``.
        """
        probe = other.probe_table()
        new_clusters: list[tuple[int, ...]] = []

        for cluster in self.clusters:
            sub_groups: dict[int, list[int]] = defaultdict(list)
            for row in cluster:
                cid = probe.get(row)
                if cid is not None:
                    sub_groups[cid].append(row)
            for sub in sub_groups.values():
                if len(sub) >= 2:
                    new_clusters.append(tuple(sub))

        return PositionListIndex(
            attributes=self.attributes.union(other.attributes),
            clusters=new_clusters,
            n_rows=self.n_rows,
        )

    def canonical_clusters(self) -> frozenset[frozenset[int]]:
        """Order-free view of the clusters, for comparing partitions."""
        return frozenset(frozenset(c) for c in self.clusters)
