from __future__ import annotations
from enum import Enum
import functools
import logging
import math

import numpy as np
import scipy.sparse as sp

from .config import ALPHA, EPS, MEASURE, MIN_SIMILARITY
from .errors import InvalidInputError
from .graph import filter_graph, graph_from_adjacency
from .sparse import LabeledMatrix, as_labeled_matrix

logger = logging.getLogger(__name__)


class Measure(str, Enum):
    """Pairwise similarity / coincidence measures between matrix rows.

    ``OVERLAP_JACARD`` keeps its historical name but computes the overlap
    coefficient |P(i) ∩ P(j)| / |P(j)|, not the Jaccard index.
    """

    COSINE = "cosine"
    CORRELATION = "correlation"
    CONDITIONAL_PROBABILITY = "conditional_probability"
    COINCIDENCE_COUNT = "coincidence_count"
    OVERLAP_JACARD = "overlap_jacard"

    @classmethod
    def parse(cls, value: "str | Measure") -> "Measure":
        try:
            return cls(value)
        except ValueError:
            names = ", ".join(m.value for m in cls)
            raise InvalidInputError("measure", f"unknown measure {value!r}; use one of {names}") from None

    @property
    def directed(self) -> bool:
        """True for measures whose result is asymmetric."""
        return self in (Measure.OVERLAP_JACARD, Measure.CONDITIONAL_PROBABILITY)


# ================  helpers
def _safe_inverse(v: np.ndarray) -> np.ndarray:
    """1/v, with 0 wherever v is (numerically) zero."""
    v = np.asarray(v, dtype=float).ravel()
    out = np.zeros_like(v)
    nonzero = np.abs(v) > EPS
    out[nonzero] = 1.0 / v[nonzero]
    return out


def _binarize(mat: sp.csr_matrix) -> sp.csr_matrix:
    out = sp.csr_matrix(mat, dtype=float, copy=True)
    out.data = (out.data > 0).astype(float)
    out.eliminate_zeros()
    return out


def validate_alpha(alpha: float) -> float:
    try:
        alpha = float(alpha)
    except (TypeError, ValueError):
        raise InvalidInputError("alpha", f"must be a number, got {alpha!r}") from None
    if not math.isfinite(alpha) or alpha <= 0:
        raise InvalidInputError("alpha", f"must be a finite number > 0, got {alpha}")
    return alpha


# ================  measures (rows of mat are the units being compared)
def matrix_cosine(mat: sp.csr_matrix) -> sp.csr_matrix:
    cp = (mat @ mat.T).tocsr()
    norms = np.sqrt(np.clip(cp.diagonal(), 0.0, None))
    scale = sp.diags(_safe_inverse(norms))
    return (scale @ cp @ scale).tocsr()


def matrix_correlation(mat: sp.csr_matrix) -> sp.csr_matrix:
    """
    Pearson correlation between rows, from sums of products:
        cov = X Xᵗ − n μ μᵗ,   corr = cov / (sd sdᵗ)
    The result is dense by nature; it is returned as CSR for uniformity.
    """
    n_units, n_features = mat.shape
    if n_features == 0:
        return sp.csr_matrix((n_units, n_units))

    means = np.asarray(mat.sum(axis=1)).ravel() / n_features
    cov = (mat @ mat.T).toarray() - n_features * np.outer(means, means)
    inv_sd = _safe_inverse(np.sqrt(np.clip(np.diag(cov), 0.0, None)))
    corr = cov * np.outer(inv_sd, inv_sd)
    corr[np.abs(corr) < EPS] = 0.0
    return sp.csr_matrix(corr)


def matrix_coincidence_count(mat: sp.csr_matrix) -> sp.csr_matrix:
    present = _binarize(mat)
    return (present @ present.T).tocsr()


def matrix_overlap_jacard(mat: sp.csr_matrix) -> sp.csr_matrix:
    """result[i, j] = |P(i) ∩ P(j)| / |P(j)| (overlap coefficient)."""
    present = _binarize(mat)
    overlap = present @ present.T
    totals = np.asarray(present.sum(axis=1)).ravel()
    return (overlap @ sp.diags(_safe_inverse(totals))).tocsr()


def matrix_conprob(mat: sp.csr_matrix, alpha: float = ALPHA) -> sp.csr_matrix:
    """
    Conditional probability of i given j, on counts saturated as
    1 − (1/α)^value so repeated occurrences approach 1.
    """
    saturated = sp.csr_matrix(mat, dtype=float, copy=True)
    saturated.data = 1.0 - (1.0 / alpha) ** saturated.data
    saturated.eliminate_zeros()
    joint = saturated @ saturated.T
    totals = np.asarray(saturated.sum(axis=1)).ravel()
    return (joint @ sp.diags(_safe_inverse(totals))).tocsr()


_MEASURES = {
    Measure.COSINE: matrix_cosine,
    Measure.CORRELATION: matrix_correlation,
    Measure.CONDITIONAL_PROBABILITY: matrix_conprob,
    Measure.COINCIDENCE_COUNT: matrix_coincidence_count,
    Measure.OVERLAP_JACARD: matrix_overlap_jacard,
}


def similarity_function(measure: "str | Measure", alpha: float = ALPHA):
    """Return the matrix -> matrix function for a measure name."""
    measure = Measure.parse(measure)
    fn = _MEASURES[measure]
    if measure is Measure.CONDITIONAL_PROBABILITY:
        return functools.partial(fn, alpha=validate_alpha(alpha))
    return fn


def row_similarities(
    mat,
    measure: "str | Measure" = MEASURE,
    output: str = "matrix",
    alpha: float = ALPHA,
    min_similarity: float | None = MIN_SIMILARITY,
):
    """
    Similarity between all rows of a (sparse) matrix.

    Args:
        mat: LabeledMatrix (or DataFrame / array / scipy matrix) whose rows
             are the units to compare and whose columns are features.
        measure: one of 'cosine', 'correlation', 'conditional_probability',
                 'coincidence_count', 'overlap_jacard'.
        output: 'matrix' for a LabeledMatrix, 'graph' for a networkx graph.
                The graph is an nx.DiGraph for the asymmetric measures
                ('overlap_jacard', 'conditional_probability') and an
                nx.Graph otherwise; self‑similarity is dropped.
        alpha: saturation base for 'conditional_probability' (ignored by
               the other measures).
        min_similarity: graph output only; edges with a lower weight are
               dropped.

    Returns:
        U×U LabeledMatrix labelled by the rows of ``mat``, or a graph.
    """
    if output not in ("matrix", "graph"):
        raise InvalidInputError("output", f"must be 'matrix' or 'graph', got {output!r}")
    measure = Measure.parse(measure)
    fn = similarity_function(measure, alpha)

    mat = as_labeled_matrix(mat)
    result = fn(mat.matrix) if mat.shape[0] else sp.csr_matrix((0, 0))
    result = LabeledMatrix(sp.csr_matrix(result, dtype=float), mat.rows, mat.rows)
    logger.debug("Computed %s similarity for %d rows (%d non-zeros)", measure.value, mat.shape[0], result.nnz)

    if output == "graph":
        graph = graph_from_adjacency(result, directed=measure.directed)
        if min_similarity is not None:
            graph = filter_graph(graph, min_edge=min_similarity)
        return graph
    return result
