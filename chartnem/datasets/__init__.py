from .load_chart_network import load_chart_network
from .synthetic import synthetic_network
