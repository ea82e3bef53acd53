import jax.numpy as jnp
import numpy as np
import numpyro.distributions as dist
import pandas as pd

from functools import partial
from jax import random, vmap
from sklearn.metrics import roc_auc_score

from .network_utils import adjacency_to_vec, vec_to_adjacency


def density(y_vec):
    """Fraction of dyads that are edges, nan for networks without dyads."""
    if y_vec.shape[-1] == 0:
        return jnp.nan
    return y_vec.mean()


def degree(y_vec):
    return vec_to_adjacency(y_vec).sum(axis=0).astype(int)


def std_degree(y_vec):
    return jnp.std(vec_to_adjacency(y_vec).sum(axis=1), ddof=1)


def degree_distribution(degrees):
    max_bin = np.max(degrees) + 1
    counts = np.apply_along_axis(
        partial(np.bincount, minlength=max_bin), 1, degrees)
    return pd.melt(pd.DataFrame(counts), var_name='degree', value_name='count')


def transitivity(y_vec):
    Y = vec_to_adjacency(y_vec).astype(float)
    n_triangles = jnp.trace(jnp.linalg.matrix_power(Y, 3))
    Y_sq = Y @ Y
    n_triplets = jnp.sum(Y_sq) - jnp.trace(Y_sq)
    return jnp.where(n_triplets > 0,
                     n_triangles / jnp.where(n_triplets > 0, n_triplets, 1.),
                     jnp.nan)


def posterior_mean(probas):
    """Elementwise mean over draws of the probability matrices.

    Undefined entries are zero-filled first; every draw counts towards the
    denominator.
    """
    return np.nan_to_num(np.asarray(probas)).mean(axis=0)


def auc(Y, probas):
    """ROC AUC of link probabilities against the observed dyads.

    Held-out dyads (coded -1) are ignored. Returns nan when the observed
    dyads contain a single class.
    """
    y = adjacency_to_vec(np.asarray(Y))
    y_score = np.nan_to_num(adjacency_to_vec(np.asarray(probas)))

    observed = y != -1
    y, y_score = y[observed], y_score[observed]
    if np.unique(y).shape[0] < 2:
        return np.nan

    return roc_auc_score(y, y_score)


def simulate_dyads(rng_key, probas):
    """Independent Bernoulli draws for the upper triangle of `probas`."""
    mu = jnp.nan_to_num(adjacency_to_vec(jnp.asarray(probas)))
    return dist.Bernoulli(probs=mu).sample(rng_key)


def simulate_network(probas, random_state=42):
    rng_key = random.PRNGKey(random_state)
    return np.asarray(vec_to_adjacency(simulate_dyads(rng_key, probas)))


def posterior_predictive(probas, stat_fun, random_state=42):
    """Statistic of one synthetic network per posterior probability matrix.

    Parameters
    ----------
    probas : array-like, shape (n_samples, n_nodes, n_nodes)
    stat_fun : callable
        Maps a dyad vector to a statistic, e.g. `density` or `degree`.
    """
    probas = jnp.asarray(probas)
    rng_key = random.PRNGKey(random_state)
    keys = random.split(rng_key, probas.shape[0])

    return np.asarray(vmap(
        lambda key, P : stat_fun(simulate_dyads(key, P)))(keys, probas))
