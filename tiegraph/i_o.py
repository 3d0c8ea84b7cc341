# ---------------------------------------------------------------------
# Input utilities: align and validate communication-event records.
# ---------------------------------------------------------------------
from __future__ import annotations
from collections.abc import Iterable, Sequence
import logging

import numpy as np
import pandas as pd

from .errors import InvalidInputError

logger = logging.getLogger(__name__)

EVENT_COLUMNS = ("unit", "context", "order", "value")


def _as_list(values: Iterable | None) -> list | None:
    if values is None:
        return None
    if isinstance(values, (pd.Series, pd.Index, np.ndarray)):
        return values.tolist()
    return list(values)


def events_frame(
    unit: Iterable,
    context: Iterable | None = None,
    order: Iterable | None = None,
    value: Iterable | None = None,
    require: Sequence[str] = (),
) -> pd.DataFrame:
    """Align parallel event sequences into a DataFrame.

    Returns a frame with the columns ``unit``, ``context``, ``order`` and
    ``value`` in input order. ``value`` defaults to 1 for every event,
    missing ``context`` / ``order`` columns are filled with NA.

    Args:
        unit: acting unit per event (any hashable value).
        context: grouping key per event (e.g. a conversation id).
        order: position of the event inside its context.
        value: event weight.
        require: names of columns that must be given and free of nulls.

    Raises:
        InvalidInputError: when lengths differ, a required column is missing
            or null, or order/value are not numeric.
    """
    columns = {
        "unit": _as_list(unit),
        "context": _as_list(context),
        "order": _as_list(order),
        "value": _as_list(value),
    }
    n = len(columns["unit"])

    for name, col in columns.items():
        if col is not None and len(col) != n:
            raise InvalidInputError(
                name, f"expected {n} values (one per unit), got {len(col)}"
            )
    for name in require:
        if name not in EVENT_COLUMNS:
            raise InvalidInputError("require", f"unknown event column {name!r}")
        if columns[name] is None:
            raise InvalidInputError(name, "is required for this construction")

    df = pd.DataFrame(
        {
            "unit": pd.Series(columns["unit"], dtype=object),
            "context": pd.Series(
                columns["context"] if columns["context"] is not None else [pd.NA] * n,
                dtype=object,
            ),
            "order": (
                pd.to_numeric(pd.Series(columns["order"], dtype=object), errors="coerce")
                if columns["order"] is not None
                else pd.Series([np.nan] * n, dtype=float)
            ),
            "value": (
                pd.Series(columns["value"], dtype=object)
                if columns["value"] is not None
                else pd.Series(np.ones(n), dtype=float)
            ),
        }
    )

    if df["unit"].isna().any():
        raise InvalidInputError("unit", "contains null values")

    if columns["order"] is not None:
        bad = pd.Series(columns["order"], dtype=object).notna() & df["order"].isna()
        if bad.any():
            raise InvalidInputError("order", "must be numeric")

    try:
        df["value"] = df["value"].astype(float)
    except (TypeError, ValueError) as e:
        raise InvalidInputError("value", f"must be numeric: {e}") from e

    for name in require:
        if df[name].isna().any():
            raise InvalidInputError(
                name, f"contains null values at positions {np.flatnonzero(df[name].isna()).tolist()[:5]}"
            )

    logger.debug("Aligned %d events (required: %s)", n, ", ".join(require) or "-")
    return df


def validate_events(
    df: pd.DataFrame,
    unit: str = "unit",
    context: str | None = "context",
    order: str | None = "order",
    value: str | None = "value",
    require: Sequence[str] = (),
) -> pd.DataFrame:
    """Validate a tabular event source and rename it to the event schema.

    Column arguments name the columns of ``df`` that hold each field; pass
    ``None`` (or name a column that does not exist, for the optional ones)
    to leave that field unset. The returned columns feed the pipeline
    builders directly, e.g.
    ``author_coincidence_graph(ev["context"], ev["unit"], value=ev["value"])``.
    """
    if not isinstance(df, pd.DataFrame):
        raise TypeError("Events must be a pandas.DataFrame")
    if unit not in df.columns:
        raise InvalidInputError("unit", f"column {unit!r} not found in DataFrame")
    for name, col in (("context", context), ("order", order), ("value", value)):
        if name in require and (col is None or col not in df.columns):
            raise InvalidInputError(name, f"column {col!r} not found in DataFrame")

    def pick(col: str | None):
        return df[col] if col is not None and col in df.columns else None

    return events_frame(
        df[unit], pick(context), pick(order), pick(value), require=require
    )
