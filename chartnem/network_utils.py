import jax.numpy as jnp
import numpy as np


def shape_from_triu_vec(x):
    return round((np.sqrt(1 + 8 * x.shape[-1]) - 1) / 2) + 1


def vec_to_adjacency(y_vec):
    """Inverse of `adjacency_to_vec`. Works on traced jax arrays."""
    y_vec = jnp.asarray(y_vec)
    n = shape_from_triu_vec(y_vec)
    triu = np.triu_indices(n, k=1)
    Y = jnp.zeros((n, n), dtype=y_vec.dtype).at[triu].set(y_vec)
    return Y + Y.T


def adjacency_to_vec(Y):
    n_nodes = Y.shape[0]
    return Y[np.triu_indices(n_nodes, k=1)]


def threshold_counts(W, threshold):
    """Binary adjacency matrix from a symmetric matrix of co-occurrence counts.

    A pair is connected iff its count is at least `threshold`. Self-edges are
    never created.
    """
    W = np.asarray(W)
    if W.ndim != 2 or W.shape[0] != W.shape[1]:
        raise ValueError('W must be a square matrix.')

    Y = (W >= threshold).astype(np.int64)
    Y[np.diag_indices_from(Y)] = 0
    return np.maximum(Y, Y.T)


def check_adjacency(Y, allow_missing=False):
    Y = np.asarray(Y)
    if Y.ndim != 2 or Y.shape[0] != Y.shape[1]:
        raise ValueError(
            'Y must be a square adjacency matrix, got shape {}.'.format(Y.shape))

    if not np.array_equal(Y, Y.T):
        raise ValueError('Y must be symmetric.')

    if np.any(np.diag(Y) != 0):
        raise ValueError('Y must have a zero diagonal.')

    valid = [0, 1, -1] if allow_missing else [0, 1]
    if not np.all(np.isin(Y, valid)):
        raise ValueError(
            'Y must only contain the values {}.'.format(valid))

    return Y
