"""
ucc_algorithms/relation.py
==========================
Relation – the read-only, column-major table every profiler consumes.

Cells are compared as strings.  CSVs are therefore read with
``dtype=str, keep_default_na=False`` so that an empty cell is the empty
string rather than NaN (NaN != NaN would silently split equal rows).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import pandas as pd

from .exceptions import PreconditionViolation

log = logging.getLogger(__name__)


def _read_only(values) -> np.ndarray:
    # own copy; the caller's array stays writable and cannot alter the relation
    col = np.array(values, dtype=object)
    col.flags.writeable = False
    return col


@dataclass(eq=False)
class Relation:
    """
    A named, fixed-size table of string values stored column by column.

    Attributes
    ----------
    name : str
        Relation name, used when results are serialised.
    attributes : list[str]
        Column names, one per column.
    columns : list[np.ndarray]
        One object array of strings per column.
    n_rows : int
        Declared number of rows.  Defaults to the length of the first column.
    """

    name: str
    attributes: list[str]
    columns: list[np.ndarray]
    n_rows: int = field(default=-1)

    def __post_init__(self) -> None:
        self.attributes = list(self.attributes)
        self.columns = [_read_only(c) for c in self.columns]
        if self.n_rows < 0:
            self.n_rows = len(self.columns[0]) if self.columns else 0

    # ── Construction ─────────────────────────────────────────────────────────

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, name: str = "relation") -> Relation:
        """
        Build a relation from *df*, converting every cell to ``str``.

        Parameters
        ----------
        df : pd.DataFrame
            Source table; never modified.
        name : str
            Relation name.
        """
        as_str = df.astype(str)
        return cls(
            name=name,
            attributes=[str(c) for c in df.columns],
            columns=[
                as_str.iloc[:, i].to_numpy(dtype=object)
                for i in range(as_str.shape[1])
            ],
            n_rows=len(df),
        )

    @classmethod
    def from_records(
        cls,
        records: list[tuple],
        attributes: list[str],
        name: str = "relation",
    ) -> Relation:
        """Build a relation from row tuples (mostly for tests and small inputs)."""
        df = pd.DataFrame.from_records(records, columns=attributes)
        return cls.from_dataframe(df, name=name)

    @classmethod
    def read_csv(
        cls,
        path: str | Path,
        name: str | None = None,
        delimiter: str = ",",
        encoding: str = "utf-8",
    ) -> Relation:
        """
        Load a CSV file as a relation of strings.

        The relation name defaults to the file stem.  A file without even a
        header line has no columns and raises :class:`PreconditionViolation`.
        """
        path = Path(path)
        name = name or path.stem
        try:
            df = pd.read_csv(
                path,
                sep=delimiter,
                encoding=encoding,
                dtype=str,
                keep_default_na=False,
            )
        except pd.errors.EmptyDataError:
            raise PreconditionViolation(f"relation {name!r} has no columns") from None
        log.info("Loaded %s: %d rows x %d cols", path.name, len(df), len(df.columns))
        return cls.from_dataframe(df, name=name)

    # ── Shape ────────────────────────────────────────────────────────────────

    @property
    def n_columns(self) -> int:
        return len(self.attributes)

    @property
    def shape(self) -> tuple[int, int]:
        return self.n_rows, self.n_columns

    def validate(self) -> None:
        """
        Raise :class:`PreconditionViolation` unless the relation can be profiled.

        A relation must have at least one row and one column, one value array
        per attribute name, and every array must hold exactly ``n_rows`` values.
        """
        if self.n_columns == 0:
            raise PreconditionViolation(f"relation {self.name!r} has no columns")
        if len(self.columns) != self.n_columns:
            raise PreconditionViolation(
                f"relation {self.name!r} declares {self.n_columns} attributes "
                f"but carries {len(self.columns)} columns"
            )
        if self.n_rows == 0:
            raise PreconditionViolation(f"relation {self.name!r} has no rows")
        for attr, col in zip(self.attributes, self.columns):
            if len(col) != self.n_rows:
                raise PreconditionViolation(
                    f"column {attr!r} of relation {self.name!r} has {len(col)} "
                    f"values, expected {self.n_rows}"
                )

    # ── Views ────────────────────────────────────────────────────────────────

    def to_frame(self) -> pd.DataFrame:
        """Row-major view as a DataFrame (copies the data)."""
        return pd.DataFrame(
            {i: col for i, col in enumerate(self.columns)}
        ).set_axis(self.attributes, axis=1)

    def names_of(self, indices) -> list[str]:
        """Resolve column indices to attribute names."""
        return [self.attributes[i] for i in indices]

    def has_unique_projection(self, indices) -> bool:
        """
        Brute-force check: True iff projecting onto *indices* leaves no
        duplicate rows.  Re-reads the raw data; use for verification only.
        """
        cols = list(indices)
        if not cols:
            return self.n_rows <= 1
        frame = pd.DataFrame({i: self.columns[i] for i in cols})
        return not frame.duplicated().any()

    def __repr__(self) -> str:
        return f"Relation({self.name!r}, {self.n_rows} rows x {self.n_columns} cols)"
