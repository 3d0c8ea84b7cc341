# ---------------------------------------------------------------------
# Rollup: reduce the rows of a sparse matrix by one or more grouping vars.
# ---------------------------------------------------------------------
from __future__ import annotations
from collections.abc import Callable, Mapping
from dataclasses import dataclass
import logging

import numpy as np
import pandas as pd
import scipy.sparse as sp
from tqdm import tqdm

from .config import SHOW_PROGRESS
from .errors import InvalidInputError
from .sparse import LabeledMatrix, as_labeled_matrix, as_labels, factorize

logger = logging.getLogger(__name__)

REDUCTIONS = ("sum", "mean", "max", "min")


@dataclass(frozen=True, eq=False)
class AggregateResult:
    """Rolled‑up matrix plus one row of grouping values (and ``n``) per group."""

    matrix: LabeledMatrix
    vars: pd.DataFrame


def _grouping_frame(grouping_vars, n_rows: int) -> pd.DataFrame:
    if isinstance(grouping_vars, pd.DataFrame):
        frame = grouping_vars.reset_index(drop=True)
    elif isinstance(grouping_vars, Mapping):
        columns = {name: as_labels(v) for name, v in grouping_vars.items()}
        for name, values in columns.items():
            if len(values) != n_rows:
                raise InvalidInputError(
                    f"grouping_vars[{name!r}]",
                    f"expected {n_rows} values (one per row), got {len(values)}",
                )
        frame = pd.DataFrame({name: pd.Series(v, dtype=object) for name, v in columns.items()})
    else:
        frame = pd.DataFrame({"group": pd.Series(as_labels(grouping_vars), dtype=object)})

    if frame.shape[1] == 0:
        raise InvalidInputError("grouping_vars", "needs at least one grouping variable")
    if len(frame) != n_rows:
        raise InvalidInputError(
            "grouping_vars", f"expected {n_rows} values (one per row), got {len(frame)}"
        )
    return frame


def _group_keys(frame: pd.DataFrame) -> list:
    if frame.shape[1] == 1:
        return frame.iloc[:, 0].tolist()
    return list(zip(*(frame[c].tolist() for c in frame.columns)))


def _reduce_groups(matrix: sp.csr_matrix, codes: np.ndarray, n_groups: int, fun) -> sp.csr_matrix:
    """Apply ``fun`` to the sub‑matrix of every group, one group at a time."""
    n_cols = matrix.shape[1]
    if n_groups == 0:
        return sp.csr_matrix((0, n_cols))

    order = np.argsort(codes, kind="stable")
    bounds = np.cumsum(np.bincount(codes, minlength=n_groups))[:-1]
    reduced = []
    for rows in tqdm(
        np.split(order, bounds),
        total=n_groups,
        desc="Aggregating groups",
        disable=not SHOW_PROGRESS,
    ):
        sub = matrix[rows]
        if fun == "max":
            row = sub.max(axis=0)
        elif fun == "min":
            row = sub.min(axis=0)
        else:
            row = fun(sub)
        row = sp.csr_matrix(row.toarray() if sp.issparse(row) else np.asarray(row), dtype=float)
        if row.shape != (1, n_cols):
            row = row.reshape(1, n_cols)
        reduced.append(row)
    return sp.vstack(reduced, format="csr")


def matrix_aggregate(
    mat, grouping_vars, fun: str | Callable = "sum"
) -> AggregateResult:
    """
    Roll up rows of a (sparse) matrix by the unique values of grouping_vars.

    Args:
        mat: LabeledMatrix, DataFrame, ndarray or scipy sparse matrix.
        grouping_vars: one grouping value per row. A single sequence, a
            mapping of name -> sequence, or a DataFrame for composite keys.
        fun: "sum" (default), "mean", "max", "min", or a callable that takes
            the sparse sub‑matrix of a group and returns a single row.

    Returns:
        AggregateResult whose matrix has one row per group (first‑occurrence
        order) and the original columns. Row labels are the group value, or a
        tuple of values for composite keys. ``vars`` holds the grouping
        values and the number of contributing rows ``n``.
    """
    mat = as_labeled_matrix(mat)
    n_rows = mat.shape[0]
    frame = _grouping_frame(grouping_vars, n_rows)

    if not callable(fun) and fun not in REDUCTIONS:
        raise InvalidInputError("fun", f"unknown reduction {fun!r}; use one of {REDUCTIONS} or a callable")

    codes, labels = factorize(_group_keys(frame), "grouping_vars")
    n_groups = len(labels)
    counts = np.bincount(codes, minlength=n_groups).astype(float)

    if fun in ("sum", "mean"):
        indicator = sp.csr_matrix(
            (np.ones(n_rows), (codes, np.arange(n_rows))), shape=(n_groups, n_rows)
        )
        if fun == "mean":
            indicator = sp.diags(1.0 / np.maximum(counts, 1.0)) @ indicator
        reduced = (indicator @ mat.matrix).tocsr()
    else:
        reduced = _reduce_groups(mat.matrix, codes, n_groups, fun)

    _, first = np.unique(codes, return_index=True)
    group_vars = frame.iloc[first].reset_index(drop=True)
    group_vars["n"] = counts

    logger.debug("Aggregated %d rows into %d groups", n_rows, n_groups)
    return AggregateResult(
        matrix=LabeledMatrix(sp.csr_matrix(reduced, dtype=float), labels, mat.columns),
        vars=group_vars,
    )
