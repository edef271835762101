import pandas as pd
import pytest

import run_ucc_discovery


@pytest.fixture
def csv_inputs(tmp_path):
    staff = tmp_path / "staff.csv"
    staff.write_text("ID,Name,Dept\n1,A,X\n2,B,X\n3,A,Y\n", encoding="utf-8")
    depts = tmp_path / "depts.csv"
    depts.write_text("code,floor\nX,1\nY,2\n", encoding="utf-8")
    return staff, depts


def test_end_to_end(tmp_path, monkeypatch, csv_inputs, capsys):
    monkeypatch.chdir(tmp_path)
    staff, depts = csv_inputs
    out = tmp_path / "out" / "uccs.csv"
    plot = tmp_path / "out" / "levels.png"

    rc = run_ucc_discovery.main([
        str(staff), str(depts),
        "--out", str(out), "--plot", str(plot),
        "--workers", "2", "--verify", "--inds",
    ])

    assert rc == 0
    df = pd.read_csv(out, dtype=str)
    assert df[df["relation"] == "staff"]["columns"].tolist() == ["ID", "Name|Dept"]
    assert df[df["relation"] == "depts"]["columns"].tolist() == ["code", "floor"]
    assert plot.exists()

    inds = pd.read_csv(tmp_path / "results" / "inds.csv", dtype=str)
    pairs = set(zip(inds["dependent_column"], inds["referenced_column"]))
    assert ("Dept", "code") in pairs
    assert "Minimal UCCs" in capsys.readouterr().out


def test_max_level_flag(tmp_path, csv_inputs):
    staff, _ = csv_inputs
    out = tmp_path / "uccs.csv"
    assert run_ucc_discovery.main([str(staff), "--out", str(out), "--max-level", "1"]) == 0
    assert pd.read_csv(out, dtype=str)["columns"].tolist() == ["ID"]


def test_missing_input_exits(tmp_path):
    with pytest.raises(SystemExit, match="Dataset not found"):
        run_ucc_discovery.main([str(tmp_path / "nope.csv")])


def test_bad_flag_value_exits(tmp_path, csv_inputs):
    staff, _ = csv_inputs
    with pytest.raises(SystemExit, match="Invalid configuration"):
        run_ucc_discovery.main([str(staff), "--workers", "0"])


def test_empty_relation_is_skipped(tmp_path, csv_inputs):
    staff, _ = csv_inputs
    empty = tmp_path / "empty.csv"
    empty.write_text("a,b\n", encoding="utf-8")
    out = tmp_path / "uccs.csv"
    assert run_ucc_discovery.main([str(empty), str(staff), "--out", str(out)]) == 0
    assert set(pd.read_csv(out, dtype=str)["relation"]) == {"staff"}


def test_blank_csv_is_skipped(tmp_path, csv_inputs, caplog):
    staff, _ = csv_inputs
    blank = tmp_path / "blank.csv"
    blank.write_text("", encoding="utf-8")
    out = tmp_path / "uccs.csv"
    assert run_ucc_discovery.main([str(blank), str(staff), "--out", str(out)]) == 0
    assert set(pd.read_csv(out, dtype=str)["relation"]) == {"staff"}
    assert "has no columns" in caplog.text


def test_plot_uses_last_profiled_relation(tmp_path, monkeypatch, csv_inputs):
    staff, _ = csv_inputs
    empty = tmp_path / "empty.csv"
    empty.write_text("a,b\n", encoding="utf-8")
    plotted = []
    monkeypatch.setattr(
        run_ucc_discovery, "plot_levels", lambda stats, path: plotted.append(stats)
    )

    rc = run_ucc_discovery.main([
        str(staff), str(empty),
        "--out", str(tmp_path / "uccs.csv"), "--plot", str(tmp_path / "levels.png"),
    ])

    assert rc == 0
    assert len(plotted) == 1
    assert plotted[0]["n_attributes"] == 3
    assert plotted[0]["n_uccs"] == 2


def test_no_plot_when_nothing_profiled(tmp_path, monkeypatch):
    empty = tmp_path / "empty.csv"
    empty.write_text("a,b\n", encoding="utf-8")
    plotted = []
    monkeypatch.setattr(
        run_ucc_discovery, "plot_levels", lambda stats, path: plotted.append(stats)
    )
    rc = run_ucc_discovery.main([
        str(empty), "--out", str(tmp_path / "uccs.csv"), "--plot", str(tmp_path / "levels.png"),
    ])
    assert rc == 0
    assert plotted == []
