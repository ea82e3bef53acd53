import numpy as np
import pandas as pd

from joblib import Parallel, delayed
from sklearn.model_selection import KFold

from .eigenmodel import MGPEigenmodel
from .gof import auc
from .network_utils import adjacency_to_vec, check_adjacency


def kfold(Y, n_splits=4, random_state=None):
    """Split dyads into k-folds.

    Yields the training adjacency matrix, with the test dyads set to -1 in
    both triangles, and the indices of the test dyads in upper-triangular
    order.

    Parameters
    ----------
    Y : array-like, shape  (n_nodes, n_nodes)
    """
    Y = check_adjacency(Y)
    n_nodes, _ = Y.shape
    y = adjacency_to_vec(Y)

    triu_indices = np.triu_indices(n_nodes, k=1)
    kfolds = KFold(n_splits=n_splits, random_state=random_state, shuffle=True)
    for train, test in kfolds.split(y):
        Y_train = np.zeros_like(Y)
        y_vec = np.copy(y)
        y_vec[test] = -1
        Y_train[triu_indices] = y_vec
        Y_train += Y_train.T

        yield Y_train, test


def kfold_selection_single(Y, n_features, sampler='gibbs',
        n_warmup=500, n_samples=500, n_folds=4, random_state=42):
    y = adjacency_to_vec(np.asarray(Y))
    loglik = 0.
    aucs = []
    folds = kfold(Y, n_splits=n_folds, random_state=random_state)
    for Y_train, test_indices in folds:
        # fit model
        model = MGPEigenmodel(
            n_features=n_features,
            sampler=sampler,
            n_jobs=1,
            random_state=123)

        model.sample(Y_train, n_warmup=n_warmup, n_samples=n_samples)

        loglik += model.loglikelihood(y, test_indices=test_indices)

        # score only the held-out dyads
        Y_test = np.full_like(Y_train, -1)
        Y_test[Y_train == -1] = np.asarray(Y)[Y_train == -1]
        aucs.append(auc(Y_test, model.probas_))

    return n_features, loglik / n_folds, np.nanmean(aucs)


def kfold_selection(Y, sampler='gibbs', min_features=1, max_features=5,
        n_warmup=500, n_samples=500, n_folds=4, n_jobs=-1, random_state=42):
    """Held-out log-likelihood and AUC for each number of latent dimensions."""
    res = Parallel(n_jobs=n_jobs)(delayed(kfold_selection_single)(
        Y=Y, n_features=d, sampler=sampler,
        n_warmup=n_warmup, n_samples=n_samples,
        n_folds=n_folds, random_state=random_state) for
            d in range(min_features, max_features + 1))

    return pd.DataFrame(np.asarray(res),
            columns=['n_features', 'loglik', 'auc'])
