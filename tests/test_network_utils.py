import numpy as np
import pytest

from chartnem.network_utils import (
    adjacency_to_vec, vec_to_adjacency, threshold_counts, check_adjacency)


def test_threshold_counts_four_nodes():
    counts = np.array([3, 0, 5, 0, 4, 0])
    W = np.asarray(vec_to_adjacency(counts))

    Y = threshold_counts(W, threshold=4)

    expected = np.array([[0, 0, 0, 1],
                         [0, 0, 0, 1],
                         [0, 0, 0, 0],
                         [1, 1, 0, 0]])
    np.testing.assert_array_equal(Y, expected)


def test_threshold_counts_ignores_diagonal():
    W = np.array([[10, 1], [1, 10]])
    Y = threshold_counts(W, threshold=2)
    np.testing.assert_array_equal(Y, np.zeros((2, 2)))


def test_threshold_counts_idempotent():
    rng = np.random.RandomState(1)
    W = rng.poisson(3, size=(8, 8))
    W = W + W.T

    Y1 = threshold_counts(W, threshold=6)
    Y2 = threshold_counts(W, threshold=6)
    np.testing.assert_array_equal(Y1, Y2)


def test_threshold_counts_requires_square():
    with pytest.raises(ValueError):
        threshold_counts(np.ones((2, 3)), threshold=1)


def test_vec_adjacency_inverse():
    Y = np.array([[0, 1, 0],
                  [1, 0, 1],
                  [0, 1, 0]])
    y = adjacency_to_vec(Y)

    np.testing.assert_array_equal(y, [1, 0, 1])
    np.testing.assert_array_equal(np.asarray(vec_to_adjacency(y)), Y)


def test_check_adjacency():
    Y = np.array([[0, 1], [1, 0]])
    np.testing.assert_array_equal(check_adjacency(Y), Y)

    with pytest.raises(ValueError):
        check_adjacency(np.array([[0, 1], [0, 0]]))

    with pytest.raises(ValueError):
        check_adjacency(np.array([[1, 1], [1, 0]]))

    with pytest.raises(ValueError):
        check_adjacency(np.array([[0, 2], [2, 0]]))

    with pytest.raises(ValueError):
        check_adjacency(np.array([[0, -1], [-1, 0]]))

    Y_missing = np.array([[0, -1], [-1, 0]])
    check_adjacency(Y_missing, allow_missing=True)
