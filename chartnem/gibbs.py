"""Componentwise Gibbs sampler for the probit eigenmodel.

Uses the data augmentation of Albert & Chib (1993): each dyad gets a latent
utility z_ij ~ N(eta_ij, 1) truncated to agree with y_ij, after which the
intercept and every node's latent vector have normal full conditionals.
The multiplicative gamma shrinkage factors are updated as in Bhattacharya &
Dunson (2011).
"""
from collections import namedtuple

import numpy as np

from joblib import Parallel, delayed
from scipy.special import ndtri
from scipy.linalg import solve_triangular
from scipy.stats import truncnorm
from sklearn.utils import check_random_state


__all__ = ['GibbsState', 'gibbs_chain', 'sample_gibbs']


MAX_INT = np.iinfo(np.int32).max


GibbsState = namedtuple('GibbsState', ['intercept', 'delta', 'U'])


def init_state(Y, n_features, rng):
    n_nodes = Y.shape[0]
    y = Y[np.triu_indices(n_nodes, k=1)]
    density = np.clip(np.mean(y[y != -1]) if np.any(y != -1) else 0.5,
                      0.01, 0.99)
    return GibbsState(intercept=ndtri(density),
                      delta=np.ones(n_features),
                      U=0.1 * rng.randn(n_nodes, n_features))


def sample_latent_utilities(y, eta, rng):
    # missing dyads (y == -1) are left untruncated
    lower = np.where(y == 1, -eta, -np.inf)
    upper = np.where(y == 0, -eta, np.inf)
    return eta + truncnorm.rvs(lower, upper, random_state=rng)


def sample_intercept(Z, U, triu, intercept_loc, intercept_scale, rng):
    resid = (Z - U @ U.T)[triu]
    prec = 1. / intercept_scale ** 2 + resid.shape[0]
    mean = (intercept_loc / intercept_scale ** 2 + resid.sum()) / prec
    return mean + rng.randn() / np.sqrt(prec)


def sample_embedding(Z, U, intercept, tau, rng):
    n_nodes, n_features = U.shape
    U = U.copy()
    for i in range(n_nodes):
        others = np.arange(n_nodes) != i
        U_other = U[others]
        resid = Z[i, others] - intercept

        # u_i | rest ~ N(P^{-1} U_other' r, P^{-1}), P = diag(tau) + U_other'U_other
        L = np.linalg.cholesky(np.diag(tau) + U_other.T @ U_other)
        mean = solve_triangular(
            L.T, solve_triangular(L, U_other.T @ resid, lower=True))
        U[i] = mean + solve_triangular(L.T, rng.randn(n_features))

    return U


def sample_shrinkage(U, delta, a1, a2, rng):
    n_nodes, n_features = U.shape
    delta = delta.copy()
    sum_sq = np.sum(U ** 2, axis=0)
    for k in range(n_features):
        # tau without the k-th factor, only dimensions h >= k involve delta_k
        tau_k = np.cumprod(delta)[k:] / delta[k]
        shape = (a1 if k == 0 else a2) + 0.5 * n_nodes * (n_features - k)
        rate = 1. + 0.5 * np.sum(tau_k * sum_sq[k:])
        delta[k] = rng.gamma(shape, 1. / rate)

    return delta


def gibbs_step(state, Y, triu, a1, a2, intercept_loc, intercept_scale, rng):
    n_nodes = Y.shape[0]
    eta = state.intercept + state.U @ state.U.T

    z = sample_latent_utilities(Y[triu], eta[triu], rng)
    Z = np.zeros((n_nodes, n_nodes))
    Z[triu] = z
    Z += Z.T

    intercept = sample_intercept(
        Z, state.U, triu, intercept_loc, intercept_scale, rng)
    tau = np.cumprod(state.delta)
    U = sample_embedding(Z, state.U, intercept, tau, rng)
    delta = sample_shrinkage(U, state.delta, a1, a2, rng)

    return GibbsState(intercept=intercept, delta=delta, U=U)


def is_finite_state(state):
    return (np.isfinite(state.intercept) and
            np.all(np.isfinite(state.delta)) and np.all(state.delta > 0) and
            np.all(np.isfinite(state.U)))


def gibbs_chain(Y, n_features=5, a1=2., a2=3., intercept_loc=0.,
                intercept_scale=1., n_warmup=1000, n_samples=1000, thinning=1,
                random_state=None):
    """Run a single Gibbs chain.

    Returns
    -------
    samples : dict
        Retained draws of `intercept`, `delta`, `tau`, `X` and `U`.
    n_rejected : int
        Number of sweeps that produced a non-finite state. The chain stays at
        its previous state for those sweeps.
    """
    rng = check_random_state(random_state)
    Y = np.asarray(Y)
    n_nodes = Y.shape[0]
    triu = np.triu_indices(n_nodes, k=1)

    state = init_state(Y, n_features, rng)
    n_keep = n_samples // thinning
    samples = {
        'intercept': np.zeros(n_keep),
        'delta': np.zeros((n_keep, n_features)),
        'U': np.zeros((n_keep, n_nodes, n_features))
    }

    n_rejected = 0
    for it in range(n_warmup + n_samples):
        try:
            proposal = gibbs_step(state, Y, triu, a1, a2,
                                  intercept_loc, intercept_scale, rng)
        except np.linalg.LinAlgError:
            proposal = None

        if proposal is not None and is_finite_state(proposal):
            state = proposal
        else:
            n_rejected += 1

        t = it - n_warmup
        if t >= 0 and (t + 1) % thinning == 0:
            idx = (t + 1) // thinning - 1
            samples['intercept'][idx] = state.intercept
            samples['delta'][idx] = state.delta
            samples['U'][idx] = state.U

    samples['tau'] = np.cumprod(samples['delta'], axis=-1)
    samples['X'] = samples['U'] * np.sqrt(samples['tau'])[:, None, :]

    return samples, n_rejected


def sample_gibbs(Y, n_features=5, a1=2., a2=3., intercept_loc=0.,
                 intercept_scale=1., n_warmup=1000, n_samples=1000,
                 thinning=1, n_chains=1, n_jobs=-1, random_state=42):
    """Run independent Gibbs chains in parallel.

    Returns draws grouped by chain, shape (n_chains, n_draws, ...), and the
    number of rejected sweeps per chain.
    """
    rng = check_random_state(random_state)
    seeds = rng.randint(MAX_INT, size=n_chains)

    res = Parallel(n_jobs=n_jobs)(delayed(gibbs_chain)(
        Y, n_features=n_features, a1=a1, a2=a2, intercept_loc=intercept_loc,
        intercept_scale=intercept_scale, n_warmup=n_warmup,
        n_samples=n_samples, thinning=thinning, random_state=seed) for
            seed in seeds)

    samples = {k: np.stack([chain[k] for chain, _ in res]) for k in res[0][0]}
    n_rejected = np.array([n for _, n in res])

    return samples, n_rejected
