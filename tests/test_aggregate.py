import numpy as np
import pandas as pd
import pytest
import scipy.sparse as sp

from tiegraph.aggregate import matrix_aggregate
from tiegraph.errors import InvalidInputError
from tiegraph.sparse import as_labeled_matrix


def _matrix():
    return as_labeled_matrix(
        np.array(
            [
                [1.0, 0.0, 2.0],
                [0.0, 3.0, 0.0],
                [4.0, 0.0, 0.0],
                [0.0, 0.0, 5.0],
            ]
        )
    )


def test_sum_by_single_key():
    result = matrix_aggregate(_matrix(), ["b", "a", "b", "a"])
    assert list(result.matrix.rows) == ["b", "a"]
    np.testing.assert_allclose(result.matrix.matrix.toarray(), [[5.0, 0.0, 2.0], [0.0, 3.0, 5.0]])
    assert result.vars["group"].tolist() == ["b", "a"]
    assert result.vars["n"].tolist() == [2, 2]


def test_composite_keys():
    result = matrix_aggregate(_matrix(), {"conversation": [1, 1, 2, 1], "author": ["x", "y", "x", "x"]})
    assert list(result.matrix.rows) == [(1, "x"), (1, "y"), (2, "x")]
    assert result.vars[["conversation", "author", "n"]].values.tolist() == [[1, "x", 2], [1, "y", 1], [2, "x", 1]]
    np.testing.assert_allclose(result.matrix.matrix.toarray()[0], [1.0, 0.0, 7.0])


def test_dataframe_grouping_vars():
    groups = pd.DataFrame({"g": ["a", "a", "b", "b"]}, index=[10, 11, 12, 13])
    result = matrix_aggregate(_matrix(), groups)
    assert result.vars["g"].tolist() == ["a", "b"]


def test_aggregation_conserves_total():
    rng = np.random.default_rng(3)
    m = sp.random(40, 12, density=0.2, random_state=3, format="csr")
    groups = rng.integers(0, 7, size=40)
    result = matrix_aggregate(m, groups)
    assert result.matrix.matrix.sum() == pytest.approx(m.sum())
    assert result.vars["n"].sum() == 40


def test_columns_are_preserved():
    result = matrix_aggregate(_matrix(), [1, 1, 1, 1])
    assert result.matrix.shape == (1, 3)
    assert list(result.matrix.columns) == [0, 1, 2]


def test_other_reductions():
    groups = ["b", "a", "b", "a"]
    mean = matrix_aggregate(_matrix(), groups, fun="mean")
    np.testing.assert_allclose(mean.matrix.matrix.toarray(), [[2.5, 0.0, 1.0], [0.0, 1.5, 2.5]])

    top = matrix_aggregate(_matrix(), groups, fun="max")
    np.testing.assert_allclose(top.matrix.matrix.toarray(), [[4.0, 0.0, 2.0], [0.0, 3.0, 5.0]])

    count = matrix_aggregate(_matrix(), groups, fun=lambda sub: (sub > 0).sum(axis=0))
    np.testing.assert_allclose(count.matrix.matrix.toarray(), [[2.0, 0.0, 1.0], [0.0, 1.0, 1.0]])


def test_invalid_arguments():
    with pytest.raises(InvalidInputError, match="grouping_vars"):
        matrix_aggregate(_matrix(), ["a", "b"])
    with pytest.raises(InvalidInputError, match="author"):
        matrix_aggregate(_matrix(), {"author": ["a"]})
    with pytest.raises(InvalidInputError, match="fun"):
        matrix_aggregate(_matrix(), ["a"] * 4, fun="median")


def test_empty_matrix():
    result = matrix_aggregate(sp.csr_matrix((0, 3)), [])
    assert result.matrix.shape == (0, 3)
    assert len(result.vars) == 0
