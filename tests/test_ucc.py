import threading

import pandas as pd
import pytest

from ucc_algorithms import (
    AttributeList,
    PreconditionViolation,
    ProfilerConfig,
    Relation,
    UCC,
    UCCProfiler,
    verify_ucc,
)
from ucc_algorithms import ucc
from ucc_algorithms.partition import PositionListIndex

from conftest import brute_force_minimal_uccs, random_relation


def _names(uccs):
    return [u.column_names for u in uccs]


def test_staff_example(staff):
    uccs, stats = ucc.discover(staff)
    assert _names(uccs) == [["ID"], ["Name", "Dept"]]
    assert stats["n_uccs"] == 2
    assert not stats["truncated"]


def test_full_duplicate_row_yields_no_ucc(duplicated):
    uccs, stats = ucc.discover(duplicated)
    assert uccs == []
    assert stats["n_levels"] == duplicated.n_columns


def test_single_row_every_column_unique():
    rel = Relation.from_records([("a", "b")], attributes=["x", "y"])
    uccs, _ = ucc.discover(rel)
    assert _names(uccs) == [["x"], ["y"]]


def test_only_full_width_combination_unique():
    # all eight bit patterns: every pair of columns repeats, the triple does not
    bits = [(str(i >> 2 & 1), str(i >> 1 & 1), str(i & 1)) for i in range(8)]
    rel = Relation.from_records(bits, attributes=["a", "b", "c"])
    uccs, _ = ucc.discover(rel)
    assert _names(uccs) == [["a", "b", "c"]]


@pytest.mark.parametrize("seed", range(25))
def test_matches_brute_force(seed):
    rel = random_relation(seed, n_rows=9, n_cols=5, n_values=3)
    uccs, _ = ucc.discover(rel)
    assert {u.attributes for u in uccs} == brute_force_minimal_uccs(rel)


@pytest.mark.parametrize("seed", range(10))
def test_results_minimal_sound_and_ordered(seed):
    rel = random_relation(100 + seed, n_rows=14, n_cols=6, n_values=2)
    uccs, _ = ucc.discover(rel)
    attrs = [u.attributes for u in uccs]
    for u in uccs:
        assert verify_ucc(rel, u.attributes)
    for a in attrs:
        assert not any(b != a and b.subset_of(a) for b in attrs)
    assert attrs == sorted(attrs)
    assert len(attrs) == len(set(attrs))


def test_idempotent():
    rel = random_relation(7, n_rows=20, n_cols=6, n_values=3)
    first, _ = ucc.discover(rel)
    second, _ = ucc.discover(rel)
    assert set(first) == set(second)


@pytest.mark.parametrize("seed", range(6))
def test_worker_count_does_not_change_result(seed):
    rel = random_relation(200 + seed, n_rows=25, n_cols=7, n_values=2)
    serial, s_stats = ucc.discover(rel, n_workers=1)
    parallel, p_stats = ucc.discover(rel, n_workers=4, min_pairs_per_worker=1)
    assert [u.attributes for u in serial] == [u.attributes for u in parallel]
    assert s_stats["n_intersections"] == p_stats["n_intersections"]
    assert s_stats["levels"] == p_stats["levels"]


def test_max_level_cuts_search(duplicated):
    uccs, stats = ucc.discover(duplicated, max_level=1)
    assert uccs == []
    assert stats["truncated"]
    assert stats["n_levels"] == 1


def test_max_level_keeps_smaller_uccs(staff):
    uccs, stats = ucc.discover(staff, max_level=1)
    assert _names(uccs) == [["ID"]]
    assert stats["truncated"]


def test_zero_time_budget_stops_after_level_one(staff):
    uccs, stats = ucc.discover(staff, time_budget_s=0)
    assert _names(uccs) == [["ID"]]
    assert stats["truncated"]


def test_stats_levels(staff):
    _, stats = ucc.discover(staff)
    assert stats["levels"][0] == {"level": 1, "frontier": 2, "candidates": 3, "uccs": 1}
    assert stats["levels"][1] == {"level": 2, "frontier": 0, "candidates": 1, "uccs": 1}
    assert stats["n_intersections"] == 1
    assert stats["n_attributes"] == 3 and stats["n_rows"] == 3


def test_unique_column_never_joins_frontier():
    # c0 unique; {c1, c2} not unique; {c0, ...} never examined
    rel = Relation.from_records(
        [("1", "a", "x"), ("2", "a", "x"), ("3", "b", "y")],
        attributes=["c0", "c1", "c2"],
    )
    uccs, stats = ucc.discover(rel)
    assert _names(uccs) == [["c0"]]
    assert stats["n_candidates"] == 1
    assert stats["n_pruned_non_minimal"] == 0


def test_superset_of_known_ucc_is_pruned():
    # {c1, c2} is confirmed at level 2; joining {c0, c1} and {c0, c2} then
    # yields {c0, c1, c2}, which contains it and is skipped unintersected
    rel = Relation.from_records(
        [("z", "a", "x"), ("z", "a", "y"), ("z", "b", "x"), ("z", "b", "y")],
        attributes=["c0", "c1", "c2"],
    )
    uccs, stats = ucc.discover(rel)
    assert _names(uccs) == [["c1", "c2"]]
    assert stats["n_pruned_non_minimal"] == 1
    assert stats["n_intersections"] == 3
    assert stats["levels"][2]["uccs"] == 0


@pytest.mark.parametrize(
    "relation",
    [
        Relation("empty", [], []),
        Relation.from_dataframe(pd.DataFrame({"a": pd.Series([], dtype=str)}), name="no_rows"),
        Relation("ragged", ["a", "b"], [["x", "y"], ["x"]], n_rows=2),
        Relation("mismatch", ["a", "b"], [["x", "y"]], n_rows=2),
    ],
)
def test_preconditions(relation):
    with pytest.raises(PreconditionViolation):
        ucc.discover(relation)


def test_profiler_uses_config_and_keeps_stats(staff):
    profiler = UCCProfiler(ProfilerConfig(max_level=1))
    uccs = profiler.profile(staff)
    assert _names(uccs) == [["ID"]]
    assert profiler.stats["truncated"]

    default = UCCProfiler()
    assert len(default.profile(staff)) == 2
    assert default.stats["n_uccs"] == 2


def test_ucc_serialisation(staff):
    u = UCC(staff, AttributeList(1, 2))
    assert u.to_dict() == {"relation": "staff", "columns": ["Name", "Dept"], "indices": [1, 2]}
    assert str(u) == "staff[Name, Dept]"
    assert u.size() == 2
    assert u == UCC(staff, AttributeList(2, 1))


def test_verify_ucc(staff):
    assert verify_ucc(staff, AttributeList(0))
    assert not verify_ucc(staff, AttributeList(1))


# ── Internals ────────────────────────────────────────────────────────────────

def _frontier(*lists):
    return [PositionListIndex(AttributeList(*l), [(0, 1)], 2) for l in lists]


def test_prefix_blocks():
    frontier = _frontier((0, 1), (0, 2), (0, 3), (1, 2), (2, 3), (2, 4))
    assert ucc._prefix_blocks(frontier) == [(0, 3), (4, 6)]
    assert ucc._prefix_blocks(_frontier((0,))) == []
    assert ucc._prefix_blocks([]) == []


def _pairs_of(chunks):
    return sorted(
        (i, j)
        for chunk in chunks
        for i_lo, i_hi, stop in chunk
        for i in range(i_lo, i_hi)
        for j in range(i + 1, stop)
    )


def _block_pairs(blocks):
    return sorted((i, j) for start, stop in blocks for i in range(start, stop) for j in range(i + 1, stop))


def test_deal_blocks_balances_pairs():
    blocks = [(0, 5), (5, 7), (7, 10), (10, 12)]        # 10, 1, 3, 1 pairs
    chunks = ucc._deal_blocks(blocks, n_workers=2, min_pairs_per_worker=1)
    assert len(chunks) == 2
    assert _pairs_of(chunks) == _block_pairs(blocks)
    assert sorted(sum(ucc._slice_pairs(p) for p in c) for c in chunks) == [6, 9]

    whole = ucc._deal_blocks(blocks, n_workers=8, min_pairs_per_worker=100)
    assert whole == [[(0, 4, 5), (5, 6, 7), (7, 9, 10), (10, 11, 12)]]


def test_deal_blocks_splits_a_single_block():
    chunks = ucc._deal_blocks([(0, 30)], n_workers=8, min_pairs_per_worker=1)
    assert len(chunks) > 1
    pairs = _pairs_of(chunks)
    assert pairs == _block_pairs([(0, 30)])
    assert len(pairs) == len(set(pairs))
    loads = [sum(ucc._slice_pairs(p) for p in c) for c in chunks]
    assert max(loads) < len(pairs) // 4


def test_level_two_runs_on_several_workers(monkeypatch):
    rel = random_relation(3, n_rows=60, n_cols=12, n_values=2)
    calls = []
    evaluate = ucc._evaluate_blocks

    def recording(frontier, pieces, level, confirmed):
        calls.append((level, threading.current_thread().name, sum(map(ucc._slice_pairs, pieces))))
        return evaluate(frontier, pieces, level, confirmed)

    monkeypatch.setattr(ucc, "_evaluate_blocks", recording)
    parallel, stats = ucc.discover(rel, n_workers=4, min_pairs_per_worker=1, max_level=2)

    level_two = [c for c in calls if c[0] == 1]
    assert len(level_two) > 1
    assert any(name != threading.main_thread().name for _, name, _ in level_two)
    assert sum(n for _, _, n in level_two) == stats["levels"][1]["candidates"]

    monkeypatch.setattr(ucc, "_evaluate_blocks", evaluate)
    serial, _ = ucc.discover(rel, n_workers=1, max_level=2)
    assert [u.attributes for u in serial] == [u.attributes for u in parallel]


def test_merge_dedups_across_workers():
    a = ucc._LevelBuffer(uniques=[AttributeList(0, 1)])
    b = ucc._LevelBuffer(uniques=[AttributeList(0, 1), AttributeList(0, 2)])
    merged = ucc._merge_buffers([a, b])
    assert merged.uniques == [AttributeList(0, 1), AttributeList(0, 2)]
    assert merged.counters["n_pruned_duplicate"] == 1
