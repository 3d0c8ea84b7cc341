# ---------------------------------------------------------------------
# Input preparation: one row per author from delimited author strings.
# ---------------------------------------------------------------------
from __future__ import annotations
from collections.abc import Iterable
import re

import pandas as pd

from .errors import InvalidInputError
from .sparse import as_labels


def split_to_rows(x: Iterable[str], id: Iterable | None = None, split_by: str = ";") -> pd.DataFrame:
    """
    Split strings into rows that keep the id of the string they came from.

    Meant for co-author style data, where an unknown number of authors per
    document is stored as one delimited string.

    Args:
        x: strings to split.
        id: id per string; defaults to 1..len(x).
        split_by: regular expression to split on.

    Returns:
        DataFrame with columns ``id``, ``order`` (1-based position within the
        original string) and ``substring``. Empty parts and duplicate rows are
        dropped.
    """
    x = pd.Series(as_labels(x), dtype=object)
    ids = as_labels(range(1, len(x) + 1) if id is None else id)
    if len(ids) != len(x):
        raise InvalidInputError("id", f"expected {len(x)} values (one per string), got {len(ids)}")

    pattern = re.compile(split_by)
    rows = []
    for ident, text in zip(ids, x):
        if pd.isna(text):
            continue
        for position, part in enumerate(pattern.split(str(text)), start=1):
            if part:
                rows.append((ident, position, part))

    d = pd.DataFrame(rows, columns=["id", "order", "substring"])
    return d.drop_duplicates().reset_index(drop=True)
