import matplotlib.pyplot as plt
import numpy as np
import pytest

from chartnem import MGPEigenmodel, probability_matrix
from chartnem.datasets import synthetic_network
from chartnem.gof import density, degree
from chartnem.network_utils import adjacency_to_vec
from chartnem.plots import plot_degree_distribution


def check_sample_collection(model, n_draws, n_nodes, n_features):
    samples = model.samples_
    assert samples['intercept'].shape == (n_draws,)
    assert samples['delta'].shape == (n_draws, n_features)
    assert samples['U'].shape == (n_draws, n_nodes, n_features)
    assert samples['probas'].shape == (n_draws, n_nodes, n_nodes)

    # stored probabilities are the link transform of the same draw, the
    # aligned embedding only differs by a rotation
    for s in [0, n_draws // 2, n_draws - 1]:
        np.testing.assert_allclose(
            samples['probas'][s],
            probability_matrix(samples['intercept'][s], samples['U'][s]),
            atol=1e-8)

    probas = model.probas_
    np.testing.assert_array_equal(probas, probas.T)
    np.testing.assert_array_equal(np.diag(probas), 0.)
    assert np.all((probas >= 0) & (probas <= 1))


def test_gibbs_recovers_two_communities(gibbs_model, two_block_network):
    Y, _ = two_block_network

    check_sample_collection(gibbs_model, 1000, 10, 2)
    assert gibbs_model.diverging_.shape == (2,)
    assert gibbs_model.auc() > 0.9


def test_predict_matches_posterior_mean(gibbs_model):
    np.testing.assert_allclose(gibbs_model.predict(),
                               adjacency_to_vec(gibbs_model.probas_),
                               atol=1e-8)


def test_posterior_predictive(gibbs_model, two_block_network):
    Y, _ = two_block_network

    densities = gibbs_model.posterior_predictive(density)
    assert densities.shape == (1000,)
    assert np.all((densities >= 0) & (densities <= 1))

    degrees = gibbs_model.posterior_predictive(degree)
    assert degrees.shape == (1000, 10)


def test_information_criteria(gibbs_model, two_block_network):
    Y, _ = two_block_network

    assert np.isfinite(gibbs_model.waic())
    assert np.isfinite(gibbs_model.waic(Y))
    assert gibbs_model.loglikelihood(adjacency_to_vec(Y)) < 0


def test_print_summary(gibbs_model, capsys):
    gibbs_model.print_summary()
    out = capsys.readouterr().out
    assert 'WAIC' in out
    assert 'intercept' in out
    assert 'Chain 1' in out


def test_plots(gibbs_model, two_block_network):
    Y, _ = two_block_network

    ax = gibbs_model.plot(figsize=(12, 6))
    assert set(ax.keys()) == set('ABCDEF')

    ax = plot_degree_distribution(gibbs_model, Y)
    assert ax.get_xlabel() == 'Degree'
    plt.close('all')


def test_nuts():
    Y, _ = synthetic_network(n_nodes=8, random_state=3)

    model = MGPEigenmodel(n_features=2, sampler='nuts', random_state=1)
    model.sample(Y, n_warmup=100, n_samples=100, n_chains=2)

    check_sample_collection(model, 200, 8, 2)
    assert model.diverging_.shape == (2,)
    np.testing.assert_allclose(
        model.samples_['tau'], np.cumprod(model.samples_['delta'], axis=1))
    np.testing.assert_allclose(model.predict(),
                               adjacency_to_vec(model.probas_), atol=1e-8)


def test_thinning():
    Y, _ = synthetic_network(n_nodes=8, random_state=3)

    model = MGPEigenmodel(n_features=2, sampler='gibbs', n_jobs=1)
    model.sample(Y, n_warmup=10, n_samples=20, n_chains=1, thinning=4)
    assert model.samples_['U'].shape == (5, 8, 2)


def test_held_out_dyads():
    Y, _ = synthetic_network(n_nodes=10, random_state=5)
    Y_train = Y.copy()
    Y_train[0, 1] = Y_train[1, 0] = -1

    model = MGPEigenmodel(n_features=2, sampler='gibbs', n_jobs=1)
    model.sample(Y_train, n_warmup=20, n_samples=20)

    assert np.isfinite(model.waic())
    assert 0 < model.probas_[0, 1] < 1


@pytest.mark.parametrize('params', [
    {'sampler': 'metropolis'},
    {'n_features': 0},
    {'a1': -1.},
    {'intercept_scale': 0.},
])
def test_invalid_params(params):
    Y, _ = synthetic_network(n_nodes=6, random_state=0)
    with pytest.raises(ValueError):
        MGPEigenmodel(**params).sample(Y, n_warmup=1, n_samples=1)


def test_invalid_network():
    with pytest.raises(ValueError):
        MGPEigenmodel(sampler='gibbs').sample(
            np.array([[0, 1], [0, 0]]), n_warmup=1, n_samples=1)

    Y, _ = synthetic_network(n_nodes=6, random_state=0)
    with pytest.raises(ValueError):
        MGPEigenmodel(sampler='gibbs').sample(
            Y, n_warmup=1, n_samples=2, thinning=3)
