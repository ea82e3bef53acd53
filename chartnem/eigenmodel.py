import numpy as np
import jax
import jax.numpy as jnp
import numpyro
import numpyro.distributions as dist

from jax import random, vmap
from jax.scipy.special import logsumexp
from numpyro import handlers
from numpyro.infer import MCMC, NUTS, init_to_value
from numpyro.diagnostics import print_summary as numpyro_print_summary

from .gibbs import sample_gibbs, init_state
from .gof import auc, posterior_mean
from .mcmc_utils import (Phi, probability_matrix, align_embeddings,
                         flatten_chains)
from .network_utils import adjacency_to_vec, check_adjacency
from .plots import plot_eigenmodel


__all__ = ['MGPEigenmodel', 'mgp_eigenmodel']


SAMPLERS = ['nuts', 'gibbs']


def posterior_predictive(model, rng_key, samples, stat_fun, *model_args,
                         **model_kwargs):
    model = handlers.substitute(handlers.seed(model, rng_key), samples)
    model_trace = handlers.trace(model).get_trace(*model_args, **model_kwargs)
    return stat_fun(model_trace["Y"]["value"])


def predict(model, rng_key, samples, *model_args, **model_kwargs):
    model = handlers.substitute(handlers.seed(model, rng_key), samples)
    model_trace = handlers.trace(model).get_trace(*model_args, **model_kwargs)
    return model_trace["probas"]["value"]


def log_likelihood(model, rng_key, samples, *model_args, **model_kwargs):
    model = handlers.substitute(handlers.seed(model, rng_key), samples)
    model_trace = handlers.trace(model).get_trace(*model_args, **model_kwargs)
    obs_node = model_trace["Y"]
    return obs_node["fn"].log_prob(obs_node["value"])


def print_summary(model, samples, divergences, prob=0.9):
    n_nodes = samples['U'].shape[2]
    # information criteria (large number of nodes makes this computation slow)
    if n_nodes < 150:
        waic = model.waic()
        print(f"WAIC: {waic:.3f}")

    fields = ['intercept', 'delta', 'tau']
    samples = {k: v for k, v in samples.items() if k in fields}

    # posterior summaries, r_hat is computed across chains
    numpyro_print_summary(samples, prob=prob, group_by_chain=True)
    if divergences is not None:
        for chain, n_div in enumerate(divergences):
            print(f"Chain {chain}: {n_div} divergent / rejected transitions")


def mgp_eigenmodel(Y, n_nodes, train_indices, n_features=5, a1=2., a2=3.,
                   intercept_loc=0., intercept_scale=1., is_predictive=False):
    # multiplicative gamma process shrinkage
    a = jnp.concatenate((jnp.array([a1]), jnp.repeat(a2, n_features - 1)))
    delta = numpyro.sample("delta", dist.Gamma(a, 1.))
    tau = numpyro.deterministic("tau", jnp.cumprod(delta))

    # latent space, U[:, h] ~ N(0, 1 / tau[h])
    X = numpyro.sample("X",
        dist.Normal(jnp.zeros((n_nodes, n_features)),
                    jnp.ones((n_nodes, n_features))))
    U = numpyro.deterministic("U", X / jnp.sqrt(tau))

    # intercept
    intercept = numpyro.sample(
        "intercept", dist.Normal(intercept_loc, intercept_scale))

    # bilinear predictor on the strict upper triangle
    triu = jnp.triu_indices(n_nodes, k=1)
    eta = intercept + (U @ U.T)[triu]

    # likelihood
    with numpyro.handlers.condition(data={"Y": Y}):
        with numpyro.handlers.mask(mask=train_indices):
            mu = Phi(eta)
            y = numpyro.sample("Y", dist.Bernoulli(probs=mu))

        if is_predictive:
            numpyro.deterministic("linear_predictor", eta)
            numpyro.deterministic("probas", mu)


class MGPEigenmodel(object):
    """Probit Network Eigenmodel with a Multiplicative Gamma Process Prior

    Parameters
    ----------
    n_features : int
        Maximum number of latent dimensions H.
    a1, a2 : float
        Gamma shape of the first and the remaining shrinkage factors.
    intercept_loc, intercept_scale : float
        Normal prior of the intercept on the probit scale.
    sampler : {'nuts', 'gibbs'}
        Hamiltonian Monte Carlo (NUTS) on the joint posterior or the
        componentwise data-augmentation Gibbs sampler.
    chain_method : str
        How numpyro runs multiple NUTS chains.
    n_jobs : int
        Number of processes for Gibbs chains.
    """
    def __init__(self,
                 n_features=5,
                 a1=2.,
                 a2=3.,
                 intercept_loc=0.,
                 intercept_scale=1.,
                 sampler='nuts',
                 chain_method='sequential',
                 n_jobs=-1,
                 random_state=42):
        self.n_features = n_features
        self.a1 = a1
        self.a2 = a2
        self.intercept_loc = intercept_loc
        self.intercept_scale = intercept_scale
        self.sampler = sampler
        self.chain_method = chain_method
        self.n_jobs = n_jobs
        self.random_state = random_state

    @property
    def model_args_(self):
        n_nodes = self.samples_['U'].shape[1]
        return (None, n_nodes, True, self.n_features, self.a1, self.a2,
                self.intercept_loc, self.intercept_scale)

    @property
    def model_kwargs_(self):
        return {'is_predictive': True}

    def _check_params(self):
        if self.sampler not in SAMPLERS:
            raise ValueError(
                "sampler must be one of {}, got '{}'.".format(
                    SAMPLERS, self.sampler))

        if not isinstance(self.random_state, (int, np.integer)):
            raise ValueError('random_state must be an integer seed.')

        if self.n_features < 1:
            raise ValueError(
                'n_features must be >= 1, got {}.'.format(self.n_features))

        if min(self.a1, self.a2, self.intercept_scale) <= 0:
            raise ValueError(
                'a1, a2 and intercept_scale must be positive.')

    def _sample_nuts(self, y, n_nodes, train_indices, n_warmup, n_samples,
                     n_chains, thinning, adapt_delta):
        rng_key = random.PRNGKey(self.random_state)
        model_args = (
            y, n_nodes, train_indices, self.n_features, self.a1, self.a2,
            self.intercept_loc, self.intercept_scale)

        # start each chain near the observed density with a small embedding
        state = init_state(self.Y_fit_, self.n_features,
                           np.random.RandomState(self.random_state))
        init_values = init_to_value(values={
            'intercept': state.intercept,
            'delta': state.delta,
            'X': state.U * np.sqrt(np.cumprod(state.delta))
        })

        kernel = NUTS(mgp_eigenmodel, target_accept_prob=adapt_delta,
                      init_strategy=init_values)
        mcmc = MCMC(kernel, num_warmup=n_warmup, num_samples=n_samples,
                    thinning=thinning, num_chains=n_chains,
                    chain_method=self.chain_method)
        mcmc.run(rng_key, *model_args, extra_fields=('diverging',))

        samples = jax.tree_util.tree_map(
            lambda x : np.array(x), mcmc.get_samples(group_by_chain=True))
        diverging = np.asarray(
            mcmc.get_extra_fields(group_by_chain=True)['diverging']).sum(axis=1)

        return samples, diverging

    def sample(self, Y, n_warmup=1000, n_samples=1000, n_chains=1,
               thinning=1, adapt_delta=0.8):
        self._check_params()
        if thinning < 1 or n_samples < thinning:
            raise ValueError(
                'Need 1 <= thinning <= n_samples, got thinning={} and '
                'n_samples={}.'.format(thinning, n_samples))

        numpyro.enable_x64()

        # network to dyad list, held-out dyads are coded as -1
        Y = check_adjacency(Y, allow_missing=True)
        n_nodes = Y.shape[0]
        y = adjacency_to_vec(Y)
        train_indices = y != -1
        self.Y_fit_ = Y
        self.y_fit_ = y
        self.train_indices_ = train_indices

        if self.sampler == 'nuts':
            samples, self.diverging_ = self._sample_nuts(
                np.where(train_indices, y, 0), n_nodes, train_indices,
                n_warmup, n_samples, n_chains, thinning, adapt_delta)
        else:
            samples, self.diverging_ = sample_gibbs(
                Y, n_features=self.n_features, a1=self.a1, a2=self.a2,
                intercept_loc=self.intercept_loc,
                intercept_scale=self.intercept_scale,
                n_warmup=n_warmup, n_samples=n_samples, thinning=thinning,
                n_chains=n_chains, n_jobs=self.n_jobs,
                random_state=self.random_state)

        self.chain_samples_ = samples
        self.samples_ = flatten_chains(samples)

        # link probabilities recomputed from each stored draw
        self.samples_['probas'] = np.asarray(vmap(probability_matrix)(
            jnp.asarray(self.samples_['intercept']),
            jnp.asarray(self.samples_['U'])))

        # rotations of the latent space leave U @ U.T unchanged
        self.samples_['U'] = align_embeddings(self.samples_['U'])

        # posterior means
        self.intercept_ = self.samples_['intercept'].mean(axis=0)
        self.tau_ = self.samples_['tau'].mean(axis=0)
        self.variances_ = (1. / self.samples_['tau']).mean(axis=0)
        self.U_ = self.samples_['U'].mean(axis=0)
        self.probas_ = posterior_mean(self.samples_['probas'])

        return self

    def _draws(self):
        return {k: self.samples_[k] for k in ['delta', 'X', 'intercept']}

    def waic(self, Y=None, random_state=0):
        rng_key = random.PRNGKey(random_state)
        n_samples = self.samples_['U'].shape[0]
        n_nodes = self.samples_['U'].shape[1]
        vmap_args = (self._draws(), random.split(rng_key, n_samples))

        if Y is not None:
            y = adjacency_to_vec(check_adjacency(Y, allow_missing=True))
        else:
            y = self.y_fit_
        train_indices = y != -1

        model_args = (np.where(train_indices, y, 0), n_nodes, train_indices,
                      self.n_features, self.a1, self.a2,
                      self.intercept_loc, self.intercept_scale)

        loglik = vmap(
            lambda samples, rng_key : log_likelihood(
                mgp_eigenmodel, rng_key, samples,
                *model_args, **self.model_kwargs_))(*vmap_args)
        loglik = loglik[:, train_indices]

        lppd = (logsumexp(loglik, axis=0) - jnp.log(n_samples)).sum()
        p_waic = loglik.var(axis=0).sum()
        return float(-2 * (lppd - p_waic))

    def posterior_predictive(self, stat_fun, random_state=42):
        """Statistic of a network resampled from each posterior draw."""
        rng_key = random.PRNGKey(random_state)
        n_samples = self.samples_['U'].shape[0]
        vmap_args = (self._draws(), random.split(rng_key, n_samples))

        return np.asarray(vmap(
            lambda samples, rng_key : posterior_predictive(
                mgp_eigenmodel, rng_key, samples, stat_fun,
                *self.model_args_, **self.model_kwargs_)
        )(*vmap_args))

    def loglikelihood(self, y, test_indices=None):
        """Log-likelihood of dyads under the posterior mean probabilities."""
        mu = adjacency_to_vec(self.probas_)

        if test_indices is not None:
            mu = mu[test_indices]
            y_true = y[test_indices]
        else:
            y_true = y

        eps = np.finfo(mu.dtype).eps
        mu = np.clip(mu, eps, 1 - eps)
        loglik = dist.Bernoulli(probs=mu).log_prob(y_true)
        return np.asarray(loglik.sum()).item()

    def predict(self, random_state=42):
        """Posterior mean probability of each dyad in upper-triangular order."""
        rng_key = random.PRNGKey(random_state)
        n_samples = self.samples_['U'].shape[0]
        vmap_args = (self._draws(), random.split(rng_key, n_samples))

        probas = vmap(
            lambda samples, rng_key : predict(
                mgp_eigenmodel, rng_key, samples,
                *self.model_args_, **self.model_kwargs_)
        )(*vmap_args)

        return np.nan_to_num(np.asarray(probas)).mean(axis=0)

    def auc(self, Y=None):
        Y = self.Y_fit_ if Y is None else Y
        return auc(Y, self.probas_)

    def print_summary(self, proba=0.9):
        print_summary(self, self.chain_samples_, self.diverging_, prob=proba)

    def plot(self, Y_obs=None, **fig_kwargs):
        Y_obs = self.Y_fit_ if Y_obs is None else Y_obs
        return plot_eigenmodel(self, Y_obs, **fig_kwargs)
