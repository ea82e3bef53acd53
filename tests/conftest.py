import matplotlib
matplotlib.use('Agg')

import numpy as np
import pandas as pd
import pytest

from chartnem import MGPEigenmodel, probability_matrix
from chartnem.gof import simulate_network


@pytest.fixture
def countries():
    return pd.DataFrame({
        'region': ['ar', 'br', 'cl', 'de', 'gb', 'us'],
        'iso3': ['ARG', 'BRA', 'CHL', 'DEU', 'GBR', 'USA'],
        'continent': ['South America', 'South America', 'South America',
                      'Europe', 'Europe', 'North America'],
        'name': ['Argentina', 'Brazil', 'Chile', 'Germany', 'United Kingdom',
                 'United States']
    })


@pytest.fixture
def edges():
    # counts 3, 0, 5, 0, 4, 0 for (ar, br), (ar, cl), (ar, de), (br, cl),
    # (br, de), (cl, de)
    return pd.DataFrame({
        'region_a': ['ar', 'ar', 'ar', 'br', 'br', 'cl'],
        'region_b': ['br', 'cl', 'de', 'cl', 'de', 'de'],
        'weight': [3, 0, 5, 0, 4, 0],
        'total_streams_a': [10., 10., 10., 30., 30., 50.]
    })


@pytest.fixture(scope='module')
def two_block_network():
    """10 nodes in two well separated communities."""
    rng = np.random.RandomState(0)
    c = 1.5 * np.ones(2) / np.sqrt(2)
    U = np.vstack((np.tile(c, (5, 1)), np.tile(-c, (5, 1))))
    U += 0.1 * rng.randn(10, 2)
    probas = np.asarray(probability_matrix(-0.5, U))
    Y = simulate_network(probas, random_state=0).astype(np.int64)
    return Y, probas


@pytest.fixture(scope='module')
def gibbs_model(two_block_network):
    Y, _ = two_block_network
    model = MGPEigenmodel(n_features=2, sampler='gibbs', n_jobs=1,
                          random_state=0)
    return model.sample(Y, n_warmup=500, n_samples=500, n_chains=2)
