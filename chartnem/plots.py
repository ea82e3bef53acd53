import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from sklearn.metrics import roc_curve

from .network_utils import adjacency_to_vec
from .gof import density, transitivity, auc
from .gof import degree, degree_distribution


BOXPLOT_PROPS = {
    'boxprops': {'facecolor': 'none', 'edgecolor': 'black'},
    'medianprops': {'color': 'black', 'linewidth': 2},
    'whiskerprops': {'color': 'black', 'linestyle': '--'},
    'capprops': {'color': 'black'}
}


def plot_eigenmodel(model, Y_obs, include_diagnostics=True, **fig_kwargs):
    if include_diagnostics:
        ax = plt.figure(
            constrained_layout=True, **fig_kwargs).subplot_mosaic(
            """
            ABC
            DEF
            """
        )
    else:
        ax = plt.figure(
            constrained_layout=True, **fig_kwargs).subplot_mosaic(
            """
            ABC
            """
        )

    # plot intercept
    ax['A'].plot(np.asarray(model.samples_['intercept']), alpha=0.8)
    ax['A'].axhline(model.intercept_, color='k', linestyle='--', lw=2)
    ax['A'].set_ylabel(r'Intercept')
    ax['A'].set_xlabel(r'Iteration')

    # plot latent variances 1 / tau_h
    n_samples, n_features = model.samples_['tau'].shape
    ax['B'].plot(np.log(1. / model.samples_['tau']), alpha=0.8)
    for h in range(n_features):
        ax['B'].text(x=n_samples, y=np.log(model.variances_[h]),
            s=r"$\tau^{{-1}}_{{{}}}$".format(h+1))
    ax['B'].set_ylabel(r'$\log \tau^{-1}_h$')
    ax['B'].set_xlabel(r'Iteration')

    # posterior mean link probabilities
    sns.heatmap(model.probas_, vmin=0, vmax=1, cmap='Blues', square=True,
                xticklabels=False, yticklabels=False, ax=ax['C'])
    ax['C'].set_title('Posterior Mean Probabilities')

    if not include_diagnostics:
        return ax

    # goodness-of-fit statistics
    y_vec = adjacency_to_vec(np.asarray(Y_obs))

    stats = {
        'density': density,
        'transitivity': transitivity
    }
    names = ['D', 'E']
    for k, (key, stat_func) in zip(names, stats.items()):
        res = model.posterior_predictive(stat_func)
        sns.histplot(res, edgecolor='k', color='#add8e6', ax=ax[k])
        ax[k].axvline(
            float(stat_func(y_vec)), color='k', linestyle='--', linewidth=3)
        ax[k].set_xlabel(key)

    # ROC curve of the posterior mean probabilities
    y_score = adjacency_to_vec(model.probas_)
    observed = y_vec != -1
    auc_score = auc(Y_obs, model.probas_)
    if np.isfinite(auc_score):
        fpr, tpr, _ = roc_curve(y_vec[observed], y_score[observed])
        ax['F'].plot(fpr, tpr)
        ax['F'].annotate(f'AUC = {auc_score:.3f}', (0.5, 0.05))
    ax['F'].plot([0, 1], [0, 1], 'k--')
    ax['F'].set_ylabel('TPR')
    ax['F'].set_xlabel('FPR')

    return ax


def plot_degree_distribution(model, Y_obs, ax=None, random_state=42):
    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 4))

    y_vec = adjacency_to_vec(np.asarray(Y_obs))
    degrees = model.posterior_predictive(degree, random_state=random_state)
    obs_degrees = np.asarray(degree(y_vec))
    max_degree = int(max(degrees.max(), obs_degrees.max())) + 1
    deg_dist = degree_distribution(degrees)
    sns.boxplot(x='degree', y='count', data=deg_dist, color='w', fliersize=0,
                ax=ax, **BOXPLOT_PROPS)
    ax.plot(
        np.bincount(obs_degrees.ravel(), minlength=max_degree),
        'k-', linewidth=3)

    # 95% credible intervals
    bounds = deg_dist.groupby('degree').quantile([0.025, 0.975])
    ax.plot(bounds.xs(0.025, level=1).values.ravel(), ':', c='gray')
    ax.plot(bounds.xs(0.975, level=1).values.ravel(), ':', c='gray')
    ax.set_ylabel('Number of Nodes')
    ax.set_xlabel('Degree')

    return ax
