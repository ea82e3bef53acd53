from .eigenmodel import MGPEigenmodel
from .mcmc_utils import probability_matrix, linear_predictor
