import numpy as np

from sklearn.utils import check_random_state

from ..gof import simulate_network
from ..mcmc_utils import linear_predictor, probability_matrix


__all__ = ['synthetic_network', 'mixture_latent_space']


def mixture_latent_space(n_nodes, n_features=2, scale=1.5, noise=0.1,
                         random_state=123):
    """Two communities placed at +/- c with c on the diagonal direction."""
    rng = check_random_state(random_state)

    c = scale * np.ones(n_features) / np.sqrt(n_features)
    mu = np.vstack((c, -c))
    z = rng.choice([0, 1], size=n_nodes)

    return mu[z] + noise * rng.randn(n_nodes, n_features), z


def mgp_latent_space(n_nodes, n_features=2, a1=2., a2=3., random_state=123):
    """Latent positions drawn from the multiplicative gamma process prior."""
    rng = check_random_state(random_state)

    delta = np.r_[rng.gamma(a1, 1., size=1),
                  rng.gamma(a2, 1., size=n_features - 1)]
    tau = np.cumprod(delta)
    U = rng.randn(n_nodes, n_features) / np.sqrt(tau)

    return U, tau


def synthetic_network(n_nodes=50, n_features=2, intercept=-0.5,
                      latent_space='mixture', random_state=123):
    """Simulate a network from the probit eigenmodel.

    Returns
    -------
    Y : ndarray, shape (n_nodes, n_nodes)
    params : dict
        The true intercept, embedding, linear predictor and probabilities.
    """
    rng = check_random_state(random_state)

    params = {'intercept': intercept}
    if latent_space == 'mixture':
        U, params['z'] = mixture_latent_space(
            n_nodes, n_features, random_state=rng)
    elif latent_space == 'mgp':
        U, params['tau'] = mgp_latent_space(
            n_nodes, n_features, random_state=rng)
    else:
        raise ValueError(
            "latent_space must be 'mixture' or 'mgp', got '{}'.".format(
                latent_space))

    params['U'] = U
    params['linear_predictor'] = np.asarray(linear_predictor(intercept, U))
    params['probas'] = np.asarray(probability_matrix(intercept, U))

    Y = simulate_network(params['probas'], random_state=rng.randint(2 ** 31 - 1))

    return Y.astype(np.int64), params
