import matplotlib.pyplot as plt
import numpy as np
import numpyro
import pandas as pd
import plac

from numpyro.util import set_host_device_count

from chartnem import MGPEigenmodel
from chartnem.datasets import load_chart_network
from chartnem.gof import density, degree, posterior_predictive
from chartnem.network_utils import adjacency_to_vec
from chartnem.plots import plot_degree_distribution


set_host_device_count(4)
numpyro.enable_x64()


def main(edges_file: ('co-occurrence edge list (csv, may be compressed)', 'positional'),
         countries_file: ('region code lookup table (csv)', 'positional'),
         n_periods: ('number of chart periods', 'option', 'p', int) = None,
         threshold: ('minimum co-occurrence count', 'option', 't', float) = None,
         n_features: ('number of latent dimensions', 'option', 'd', int) = 5,
         sampler: ('nuts or gibbs', 'option', 's', str) = 'nuts',
         n_chains: ('number of chains', 'option', 'c', int) = 4,
         n_warmup: ('warm-up iterations', 'option', 'w', int) = 1000,
         n_samples: ('post warm-up iterations', 'option', 'n', int) = 1000,
         thinning: ('keep every k-th draw', 'option', 'k', int) = 1,
         drop_unknown: ('drop unknown region codes', 'flag', 'u') = False,
         out_dir: ('output directory', 'option', 'o', str) = '.',
         seed: ('random seed', 'option', 'r', int) = 42):

    Y, nodes = load_chart_network(
        edges_file, countries_file, threshold=threshold, n_periods=n_periods,
        on_unknown='warn' if drop_unknown else 'raise')
    print(f"{Y.shape[0]} countries, {int(Y.sum() / 2)} edges")

    model = MGPEigenmodel(n_features=n_features, sampler=sampler,
                          chain_method='parallel', random_state=seed)
    model.sample(Y, n_warmup=n_warmup, n_samples=n_samples,
                 n_chains=n_chains, thinning=thinning)
    model.print_summary()
    print(f"AUC: {model.auc():.3f}")

    # posterior predictive density
    y_vec = adjacency_to_vec(Y)
    densities = posterior_predictive(model.samples_['probas'], density,
                                     random_state=seed)
    print(f"Observed density: {density(y_vec):.3f}, "
          f"posterior predictive: {densities.mean():.3f} "
          f"[{np.quantile(densities, 0.025):.3f}, "
          f"{np.quantile(densities, 0.975):.3f}]")

    # node summaries
    nodes['degree'] = np.asarray(degree(y_vec))
    for h in range(n_features):
        nodes[f'U{h + 1}'] = model.U_[:, h]
    nodes.to_csv(f'{out_dir}/nodes.csv', index=False)
    pd.DataFrame(model.probas_, index=nodes['region'],
                 columns=nodes['region']).to_csv(f'{out_dir}/probas.csv')

    model.plot(Y, figsize=(12, 6))
    plt.savefig(f'{out_dir}/eigenmodel_diag.png', dpi=300, bbox_inches='tight')

    plot_degree_distribution(model, Y)
    plt.savefig(f'{out_dir}/degree_ppc.png', dpi=300, bbox_inches='tight')


if __name__ == '__main__':
    plac.call(main)
