import jax.numpy as jnp
import numpy as np

from jax import jit
from jax.scipy.special import ndtr
from scipy.linalg import orthogonal_procrustes


@jit
def Phi(t):
    """Standard normal CDF clipped away from 0 and 1 by the dtype's epsilon."""
    eps = jnp.finfo(jnp.result_type(t)).eps
    return jnp.clip(ndtr(t), eps, 1 - eps)


@jit
def linear_predictor(intercept, U):
    return intercept + U @ U.T


@jit
def probability_matrix(intercept, U):
    """Link probabilities Phi(intercept + u_i'u_j).

    Only the strict upper triangle is evaluated and mirrored; the diagonal
    is zero.
    """
    n_nodes = U.shape[0]
    triu = jnp.triu_indices(n_nodes, k=1)
    eta = linear_predictor(intercept, U)[triu]
    probas = jnp.zeros((n_nodes, n_nodes), dtype=eta.dtype).at[triu].set(Phi(eta))
    return probas + probas.T


def static_procrustes_rotation(X, Y):
    """Rotate Y to match X"""
    R, _ = orthogonal_procrustes(Y, X)
    return np.dot(Y, R)


def align_embeddings(U_samples, U_ref=None):
    """Rotate every draw of the embedding onto a reference draw.

    The likelihood only depends on U @ U.T, so the embedding is identified
    up to an orthogonal transformation.
    """
    U_samples = np.asarray(U_samples)
    if U_ref is None:
        U_ref = U_samples[-1]

    return np.stack(
        [static_procrustes_rotation(U_ref, U) for U in U_samples])


def flatten_chains(samples):
    return {k: v.reshape((-1,) + v.shape[2:]) for k, v in samples.items()}
