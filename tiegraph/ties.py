# ---------------------------------------------------------------------
# Windowed ties: who acted within `window_size` positions after whom,
# inside the same context (e.g. a conversation thread).
# ---------------------------------------------------------------------
from __future__ import annotations
from collections.abc import Iterable
from enum import Enum
import logging
import numbers

import numpy as np
import pandas as pd
import scipy.sparse as sp
from tqdm import tqdm

from .aggregate import matrix_aggregate
from .config import COUNT_ONCE, FIRST_AUTHOR_COUNT_ONCE, SHOW_PROGRESS, WINDOW_SIZE
from .errors import InvalidInputError
from .i_o import events_frame
from .sparse import LabeledMatrix, factorize

logger = logging.getLogger(__name__)

# position of the opening event of a context
FIRST_ORDER = 1.0


class Direction(str, Enum):
    """Orientation of windowed ties.

    UP keeps later author → earlier author, DOWN reverses it, UNDIRECTED
    adds both orientations together.
    """

    UNDIRECTED = "undirected"
    DIRECTED_UP = "directed.up"
    DIRECTED_DOWN = "directed.down"

    @classmethod
    def parse(cls, value: "str | Direction") -> "Direction":
        try:
            return cls(value)
        except ValueError:
            names = ", ".join(d.value for d in cls)
            raise InvalidInputError("direction", f"unknown direction {value!r}; use one of {names}") from None

    @property
    def directed(self) -> bool:
        return self is not Direction.UNDIRECTED


def validate_window(window_size) -> int:
    if isinstance(window_size, bool) or not isinstance(window_size, numbers.Integral):
        raise InvalidInputError("window_size", f"must be an integer >= 1, got {window_size!r}")
    if window_size < 1:
        raise InvalidInputError("window_size", f"must be an integer >= 1, got {window_size}")
    return int(window_size)


# --------------------------------------------------  per-event ties
def ties_per_message(
    context_codes: np.ndarray,
    author_codes: np.ndarray,
    order: np.ndarray,
    target_order,
    n_authors: int,
) -> sp.csr_matrix:
    """
    Events × authors matrix with a 1 at [e, a] when author ``a`` holds
    position ``target_order[e]`` in the context of event ``e``.

    If several events share a (context, order) position the first one wins.
    """
    n_events = len(author_codes)
    target_order = np.broadcast_to(np.asarray(target_order, dtype=float), (n_events,))

    positions = pd.DataFrame(
        {"context": context_codes, "order": np.asarray(order, dtype=float), "target": author_codes}
    ).drop_duplicates(["context", "order"], keep="first")
    lookups = pd.DataFrame(
        {"event": np.arange(n_events), "context": context_codes, "order": target_order}
    )
    hits = lookups.merge(positions, on=["context", "order"], how="inner")

    return sp.csr_matrix(
        (np.ones(len(hits)), (hits["event"].to_numpy(), hits["target"].to_numpy())),
        shape=(n_events, n_authors),
    )


def binarize_ties(m: sp.spmatrix) -> sp.csr_matrix:
    """Clamp every positive entry to 1."""
    out = sp.csr_matrix(m, dtype=float, copy=True)
    out.data = (out.data > 0).astype(float)
    out.eliminate_zeros()
    return out


# --------------------------------------------------  aggregation
def _by_author(result, n_authors: int) -> sp.csr_matrix:
    """Rows of an author-grouped aggregate, put back in author-code order."""
    codes = np.asarray(result.matrix.rows, dtype=np.int64)
    placement = sp.csr_matrix(
        (np.ones(len(codes)), (codes, np.arange(len(codes)))), shape=(n_authors, len(codes))
    )
    return (placement @ result.matrix.matrix).tocsr()


def dedupe_by_context_then_aggregate(
    m: sp.spmatrix, context_codes: np.ndarray, author_codes: np.ndarray, n_authors: int
) -> sp.csr_matrix:
    """
    Count each (source author, target author) tie at most once per context.

    Aggregates event ties by (context, author), clamps the result to
    presence, then aggregates again by author alone.
    """
    per_context = matrix_aggregate(m, {"context": context_codes, "author": author_codes})
    present = per_context.matrix.with_matrix(binarize_ties(per_context.matrix.matrix))
    per_author = matrix_aggregate(present, {"author": per_context.vars["author"].tolist()})
    return _by_author(per_author, n_authors)


def aggregate_ties(
    m: sp.spmatrix,
    context_codes: np.ndarray,
    author_codes: np.ndarray,
    n_authors: int,
    count_once: bool = COUNT_ONCE,
) -> sp.csr_matrix:
    """Collapse event × author ties into an author × author count matrix."""
    m = binarize_ties(m)  # one tie per event and target author, whatever the lag
    if count_once:
        return dedupe_by_context_then_aggregate(m, context_codes, author_codes, n_authors)
    return _by_author(matrix_aggregate(m, {"author": author_codes}), n_authors)


# --------------------------------------------------  author × author matrices
def _encode_events(context: Iterable, author: Iterable, order: Iterable):
    events = events_frame(author, context, order, require=("context", "order"))
    context_codes, _ = factorize(events["context"], "context")
    author_codes, author_labels = factorize(events["unit"], "author")
    return events, context_codes, author_codes, author_labels


def previous_authors_matrix(
    context: Iterable,
    author: Iterable,
    order: Iterable,
    window_size: int = WINDOW_SIZE,
    count_once: bool = COUNT_ONCE,
) -> LabeledMatrix:
    """
    Author × author tie counts, ``[i, j]`` = "i acted within window_size
    positions after j in the same context".

    Without ``count_once`` every event of i counts once per earlier author j
    inside its window; with it, a pair counts at most once per context.
    """
    window_size = validate_window(window_size)
    events, context_codes, author_codes, labels = _encode_events(context, author, order)
    n_authors = len(labels)
    order_values = events["order"].to_numpy(dtype=float)

    m = sp.csr_matrix((len(events), n_authors))
    for lb in tqdm(range(1, window_size + 1), desc="Lookback", disable=not SHOW_PROGRESS):
        m = m + ties_per_message(context_codes, author_codes, order_values, order_values - lb, n_authors)

    ties = aggregate_ties(m, context_codes, author_codes, n_authors, count_once)
    logger.debug("Previous-author ties: %d authors, window %d, %d non-zeros", n_authors, window_size, ties.nnz)
    return LabeledMatrix(ties, labels, labels)


def first_author_matrix(
    context: Iterable,
    author: Iterable,
    order: Iterable,
    count_once: bool = FIRST_AUTHOR_COUNT_ONCE,
) -> LabeledMatrix:
    """
    Author × author tie counts against the first author of each context,
    ``[i, j]`` = "i acted in a context that j opened".

    The first author of a context is the one at order 1; contexts without
    an event at order 1 contribute no ties.
    """
    events, context_codes, author_codes, labels = _encode_events(context, author, order)
    n_authors = len(labels)
    order_values = events["order"].to_numpy(dtype=float)

    m = ties_per_message(context_codes, author_codes, order_values, FIRST_ORDER, n_authors)
    ties = aggregate_ties(m, context_codes, author_codes, n_authors, count_once)
    logger.debug("First-author ties: %d authors, %d non-zeros", n_authors, ties.nnz)
    return LabeledMatrix(ties, labels, labels)


def orient_ties(m: LabeledMatrix, direction: "str | Direction") -> LabeledMatrix:
    """Apply a Direction to an up-oriented author × author matrix."""
    direction = Direction.parse(direction)
    if direction is Direction.DIRECTED_UP:
        return m
    if direction is Direction.DIRECTED_DOWN:
        return m.transpose()
    return m.with_matrix(m.matrix + m.matrix.T)
