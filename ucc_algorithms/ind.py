"""
ucc_algorithms/ind.py
=====================
Unary Inclusion Dependency (IND) discovery.

  A ⊆ B  holds  ⟺  every value of column A also occurs in column B.

Each column's value set is materialised once; then every ordered pair of
columns across all relations (a column with itself excepted) is checked
with a set-containment test.  Value sets are compared as strings, like
every other check in this package.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .relation import Relation

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class IND:
    """``dependent[dependent_column] ⊆ referenced[referenced_column]``."""

    dependent: Relation
    dependent_column: int
    referenced: Relation
    referenced_column: int

    def to_dict(self) -> dict:
        return {
            "dependent_relation":  self.dependent.name,
            "dependent_column":    self.dependent.attributes[self.dependent_column],
            "referenced_relation": self.referenced.name,
            "referenced_column":   self.referenced.attributes[self.referenced_column],
        }

    def __str__(self) -> str:
        d = self.to_dict()
        return (
            f"{d['dependent_relation']}.{d['dependent_column']} ⊆ "
            f"{d['referenced_relation']}.{d['referenced_column']}"
        )


def discover(
    relations: list[Relation],
    nary: bool = False,
) -> tuple[list[IND], dict]:
    """
    Discover all non-trivial unary INDs among *relations*.

    Parameters
    ----------
    relations : list[Relation]
        Relations to compare; each is validated first.
    nary : bool
        Request n-ary INDs as well.  Not supported.

    Returns
    -------
    inds : list[IND]
        In relation order, then dependent column, then referenced column.
    stats : dict
        - n_columns : columns across all relations
        - n_checks  : containment tests performed
        - n_inds    : INDs found
    """
    if nary:
        raise NotImplementedError("n-ary IND discovery is not supported")
    for relation in relations:
        relation.validate()

    value_sets = [[set(col) for col in rel.columns] for rel in relations]
    inds: list[IND] = []
    n_checks = 0

    for i, rel_a in enumerate(relations):
        for col_a, values_a in enumerate(value_sets[i]):
            for j, rel_b in enumerate(relations):
                for col_b, values_b in enumerate(value_sets[j]):
                    if i == j and col_a == col_b:
                        continue
                    n_checks += 1
                    if len(values_a) <= len(values_b) and values_a <= values_b:
                        inds.append(IND(rel_a, col_a, rel_b, col_b))

    stats = {
        "n_columns": sum(len(v) for v in value_sets),
        "n_checks":  n_checks,
        "n_inds":    len(inds),
    }
    log.info("Found %d unary INDs across %d relations", len(inds), len(relations))
    return inds, stats
