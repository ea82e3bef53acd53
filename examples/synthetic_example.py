import matplotlib.pyplot as plt

from chartnem import MGPEigenmodel
from chartnem.datasets import synthetic_network


Y, params = synthetic_network(n_nodes=60, n_features=2, random_state=1)

# binary adjacency matrix
Y.shape
#>>> (60, 60)

# initialize the probit eigenmodel with up to d = 5 latent dimensions
model = MGPEigenmodel(n_features=5, sampler='nuts')

# run 2 chains of 1,000 warm-up iterations and 1,000 post warm-up samples
model.sample(Y, n_warmup=1000, n_samples=1000, n_chains=2)

# summary of the posterior distribution
model.print_summary()
print(f"AUC: {model.auc():.3f}")

# the same model with the Gibbs sampler
gibbs = MGPEigenmodel(n_features=5, sampler='gibbs')
gibbs.sample(Y, n_warmup=1000, n_samples=1000, n_chains=2)
print(f"AUC (gibbs): {gibbs.auc():.3f}")

# diagnostic plots
model.plot(Y_obs=Y, figsize=(12, 6))
plt.savefig("eigenmodel_diag.png", dpi=300, bbox_inches='tight')
