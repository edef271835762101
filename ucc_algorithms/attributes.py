"""
ucc_algorithms/attributes.py
============================
AttributeList – a canonical (sorted, de-duplicated) set of column indices.

Every node of the column-combination lattice is identified by one
AttributeList.  Instances are immutable: combining two lists produces a new
one, so a list can be shared freely between partitions, UCCs and indexes.

Lattice join
------------
  Two lists X, Y of size k are *joinable* iff they agree on their first k-1
  indices (``same_prefix_as``).  Their union then has size k+1, and every
  (k+1)-set is produced by exactly one joinable pair: the two k-subsets
  obtained by dropping either of its two largest indices.

AttributeTrie
-------------
  A prefix tree over stored lists, answering "is some stored list a subset
  of X?" by walking only the branches labelled with indices of X.  The
  profiler keeps the confirmed UCCs in one, so minimality pruning does not
  rescan every known UCC for every candidate.
"""

from __future__ import annotations

import operator
from typing import Iterable, Iterator

from .exceptions import InvalidInput


class AttributeList:
    """
    Immutable sorted tuple of distinct, non-negative column indices.

    Examples
    --------
    >>> AttributeList(3, 1, 3)
    AttributeList(1, 3)
    >>> AttributeList(0, 1).union(AttributeList(0, 2))
    AttributeList(0, 1, 2)
    """

    __slots__ = ("_indices", "_hash")

    def __init__(self, *indices: int) -> None:
        normalised: set[int] = set()
        for i in indices:
            if isinstance(i, bool):
                raise InvalidInput(f"column index must be an int, got {i!r}")
            try:
                i = operator.index(i)       # accepts numpy integers too
            except TypeError:
                raise InvalidInput(f"column index must be an int, got {i!r}") from None
            if i < 0:
                raise InvalidInput(f"column index must be non-negative, got {i}")
            normalised.add(i)
        self._indices: tuple[int, ...] = tuple(sorted(normalised))
        self._hash = hash(self._indices)

    @classmethod
    def of(cls, indices: Iterable[int]) -> AttributeList:
        return cls(*indices)

    # ── Value semantics ──────────────────────────────────────────────────────

    @property
    def indices(self) -> tuple[int, ...]:
        return self._indices

    def size(self) -> int:
        return len(self._indices)

    def __len__(self) -> int:
        return len(self._indices)

    def __iter__(self) -> Iterator[int]:
        return iter(self._indices)

    def __contains__(self, index: object) -> bool:
        return index in self._indices

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributeList):
            return NotImplemented
        return self._indices == other._indices

    def __hash__(self) -> int:
        return self._hash

    def __lt__(self, other: AttributeList) -> bool:
        # Lattice order: smaller sets first, then lexicographic.
        return (len(self._indices), self._indices) < (len(other._indices), other._indices)

    def __repr__(self) -> str:
        return f"AttributeList({', '.join(map(str, self._indices))})"

    # ── Set algebra ──────────────────────────────────────────────────────────

    def union(self, other: AttributeList) -> AttributeList:
        return AttributeList(*self._indices, *other._indices)

    def subset_of(self, other: AttributeList) -> bool:
        """True iff every index of *self* also occurs in *other* (non-strict)."""
        if len(self._indices) > len(other._indices):
            return False
        return set(self._indices).issubset(other._indices)

    def superset_of(self, other: AttributeList) -> bool:
        return other.subset_of(self)

    def same_prefix_as(self, other: AttributeList) -> bool:
        """
        True iff both lists have the same size and agree on all but their
        last index.  Any two unary lists share the (empty) prefix.
        """
        if len(self._indices) != len(other._indices) or not self._indices:
            return False
        return self._indices[:-1] == other._indices[:-1]

    def prefix(self) -> tuple[int, ...]:
        """All indices but the last; the block key of the prefix join."""
        return self._indices[:-1]

    def check_bounds(self, n_columns: int) -> AttributeList:
        """Raise :class:`InvalidInput` if an index is not a column of the relation."""
        if self._indices and self._indices[-1] >= n_columns:
            raise InvalidInput(
                f"column index {self._indices[-1]} out of range for "
                f"{n_columns} columns"
            )
        return self


class _TrieNode:
    __slots__ = ("children", "terminal")

    def __init__(self) -> None:
        self.children: dict[int, _TrieNode] = {}
        self.terminal = False


class AttributeTrie:
    """
    Set of AttributeLists supporting sub-linear subset queries.

    Each stored list is a root-to-node path labelled by its ascending
    indices.  ``contains_subset_of(X)`` only descends along labels that
    occur in X, and only in ascending order, so the work is bounded by the
    number of stored prefixes drawn from X rather than by the number of
    stored lists.
    """

    def __init__(self, items: Iterable[AttributeList] = ()) -> None:
        self._root = _TrieNode()
        self._size = 0
        for item in items:
            self.add(item)

    def __len__(self) -> int:
        return self._size

    def add(self, attrs: AttributeList) -> bool:
        """Insert *attrs*; return False if it was already stored."""
        node = self._root
        for i in attrs:
            node = node.children.setdefault(i, _TrieNode())
        if node.terminal:
            return False
        node.terminal = True
        self._size += 1
        return True

    def __contains__(self, attrs: object) -> bool:
        if not isinstance(attrs, AttributeList):
            return False
        node = self._root
        for i in attrs:
            node = node.children.get(i)
            if node is None:
                return False
        return node.terminal

    def contains_subset_of(self, attrs: AttributeList) -> bool:
        """True iff some stored list is a (non-strict) subset of *attrs*."""
        indices = attrs.indices

        def walk(node: _TrieNode, start: int) -> bool:
            if node.terminal:
                return True
            for pos in range(start, len(indices)):
                child = node.children.get(indices[pos])
                if child is not None and walk(child, pos + 1):
                    return True
            return False

        return walk(self._root, 0)

    def __iter__(self) -> Iterator[AttributeList]:
        stack: list[tuple[_TrieNode, tuple[int, ...]]] = [(self._root, ())]
        while stack:
            node, path = stack.pop()
            if node.terminal:
                yield AttributeList(*path)
            for i, child in node.children.items():
                stack.append((child, path + (i,)))
