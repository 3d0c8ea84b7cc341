# ---------------------------------------------------------------------
# Sparse incidence matrices with stable, first-occurrence labels.
# ---------------------------------------------------------------------
from __future__ import annotations
from collections.abc import Iterable
from dataclasses import dataclass, replace

import numpy as np
import pandas as pd
import scipy.sparse as sp

from .errors import InvalidInputError


def as_labels(values: Iterable) -> np.ndarray:
    """1‑D object array, safe for tuple labels (numpy would broadcast them)."""
    values = list(values)
    out = np.empty(len(values), dtype=object)
    out[:] = values
    return out


def factorize(values: Iterable, name: str) -> tuple[np.ndarray, np.ndarray]:
    """Return (codes, labels) with labels in order of first appearance."""
    series = pd.Series(as_labels(values), dtype=object)
    codes, uniques = pd.factorize(series, sort=False)
    if (codes < 0).any():
        raise InvalidInputError(name, "contains null values")
    return codes.astype(np.int64), as_labels(uniques)


@dataclass(frozen=True, eq=False)
class LabeledMatrix:
    """A CSR matrix whose rows and columns carry distinct labels."""

    matrix: sp.csr_matrix
    rows: np.ndarray
    columns: np.ndarray

    def __post_init__(self):
        n_rows, n_cols = self.matrix.shape
        if len(self.rows) != n_rows or len(self.columns) != n_cols:
            raise InvalidInputError(
                "matrix",
                f"shape {self.matrix.shape} does not match "
                f"{len(self.rows)} row and {len(self.columns)} column labels",
            )

    @property
    def shape(self) -> tuple[int, int]:
        return self.matrix.shape

    @property
    def nnz(self) -> int:
        return self.matrix.nnz

    def with_matrix(self, matrix, rows=None, columns=None) -> "LabeledMatrix":
        """Copy with a new matrix body; labels are kept unless given."""
        return replace(
            self,
            matrix=sp.csr_matrix(matrix, dtype=float),
            rows=self.rows if rows is None else as_labels(rows),
            columns=self.columns if columns is None else as_labels(columns),
        )

    def transpose(self) -> "LabeledMatrix":
        return LabeledMatrix(self.matrix.T.tocsr(), self.columns, self.rows)

    def row_sums(self) -> np.ndarray:
        return np.asarray(self.matrix.sum(axis=1)).ravel()

    def to_dict(self) -> dict:
        """``{(row_label, column_label): value}`` for all stored non-zeros."""
        coo = self.matrix.tocoo()
        return {
            (self.rows[i], self.columns[j]): float(v)
            for i, j, v in zip(coo.row, coo.col, coo.data)
            if v != 0
        }

    def to_frame(self) -> pd.DataFrame:
        """Dense DataFrame view. Only meant for small, final results."""
        return pd.DataFrame(
            self.matrix.toarray(),
            index=pd.Index(self.rows, dtype=object, tupleize_cols=False),
            columns=pd.Index(self.columns, dtype=object, tupleize_cols=False),
        )


def cast_sparse_matrix(
    rows: Iterable, columns: Iterable, values: Iterable | None = None
) -> LabeledMatrix:
    """Cast (row, column, value) triples to a labelled sparse matrix.

    Row and column labels follow the first appearance of each key. Values at
    duplicate coordinates are summed. Without ``values`` every triple counts
    as 1.
    """
    rows = as_labels(rows)
    columns = as_labels(columns)
    if len(columns) != len(rows):
        raise InvalidInputError(
            "columns", f"expected {len(rows)} values (one per row), got {len(columns)}"
        )
    if values is None:
        values = np.ones(len(rows), dtype=float)
    else:
        values = np.asarray(list(values), dtype=float)
        if len(values) != len(rows):
            raise InvalidInputError(
                "values", f"expected {len(rows)} values (one per row), got {len(values)}"
            )

    row_codes, row_labels = factorize(rows, "rows")
    col_codes, col_labels = factorize(columns, "columns")

    matrix = sp.coo_matrix(
        (values, (row_codes, col_codes)),
        shape=(len(row_labels), len(col_labels)),
    ).tocsr()
    matrix.sum_duplicates()
    return LabeledMatrix(matrix, row_labels, col_labels)


def as_labeled_matrix(mat) -> LabeledMatrix:
    """Wrap a DataFrame, ndarray or scipy matrix as a LabeledMatrix.

    DataFrames keep their index and columns as labels; anything else is
    labelled by position.
    """
    if isinstance(mat, LabeledMatrix):
        return mat
    if isinstance(mat, pd.DataFrame):
        return LabeledMatrix(
            sp.csr_matrix(mat.to_numpy(dtype=float)),
            as_labels(mat.index),
            as_labels(mat.columns),
        )
    matrix = sp.csr_matrix(mat, dtype=float)
    n_rows, n_cols = matrix.shape
    return LabeledMatrix(matrix, as_labels(range(n_rows)), as_labels(range(n_cols)))
