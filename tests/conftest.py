from itertools import combinations

import numpy as np
import pandas as pd
import pytest

from ucc_algorithms import AttributeList, Relation


@pytest.fixture
def staff():
    # ID is unique on its own; Name and Dept only together
    return Relation.from_records(
        [(1, "A", "X"), (2, "B", "X"), (3, "A", "Y")],
        attributes=["ID", "Name", "Dept"],
        name="staff",
    )


@pytest.fixture
def duplicated():
    # rows 0 and 2 agree on every column → no UCC at all
    return Relation.from_records(
        [("a", "x", "1"), ("b", "y", "1"), ("a", "x", "1")],
        attributes=["c0", "c1", "c2"],
        name="dup",
    )


def random_relation(seed: int, n_rows: int = 10, n_cols: int = 5, n_values: int = 3) -> Relation:
    rng = np.random.default_rng(seed)
    data = rng.integers(0, n_values, size=(n_rows, n_cols))
    df = pd.DataFrame(data, columns=[f"c{i}" for i in range(n_cols)])
    return Relation.from_dataframe(df, name=f"random_{seed}")


def brute_force_minimal_uccs(relation: Relation) -> set:
    """Every minimal UCC, by enumerating all column subsets."""
    found: list[AttributeList] = []
    for k in range(1, relation.n_columns + 1):
        for combo in combinations(range(relation.n_columns), k):
            attrs = AttributeList(*combo)
            if any(f.subset_of(attrs) for f in found):
                continue
            if relation.has_unique_projection(attrs):
                found.append(attrs)
    return set(found)
