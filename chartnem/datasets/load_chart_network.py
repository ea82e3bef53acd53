import warnings

import numpy as np
import pandas as pd
import networkx as nx

from chartnem.network_utils import threshold_counts


__all__ = ['load_chart_network']


EDGE_COLUMNS = ['region_a', 'region_b', 'weight', 'total_streams_a']

COUNTRY_COLUMNS = ['region', 'iso3', 'continent', 'name']

# the chart aggregated over all markets
AGGREGATE_REGION = 'global'

# regions that appear under two codes in the charts
DUPLICATE_REGIONS = {'uk': 'gb'}


def _read_table(table, columns):
    if not isinstance(table, pd.DataFrame):
        table = pd.read_csv(table)

    missing = [c for c in columns if c not in table.columns]
    if missing:
        raise ValueError('Missing columns {}.'.format(missing))

    return table[columns].copy()


def clean_edges(edges, countries, on_unknown='raise'):
    """Drop the aggregate region, merge duplicate codes and resolve every
    code against the country table."""
    if on_unknown not in ['raise', 'warn']:
        raise ValueError(
            "on_unknown must be 'raise' or 'warn', got '{}'.".format(
                on_unknown))

    for col in ['region_a', 'region_b']:
        edges[col] = (edges[col].astype(str).str.strip().str.lower()
                      .replace(DUPLICATE_REGIONS))

    is_aggregate = ((edges['region_a'] == AGGREGATE_REGION) |
                    (edges['region_b'] == AGGREGATE_REGION))
    edges = edges[~is_aggregate]

    known = set(countries['region'])
    unknown = ((~edges['region_a'].isin(known)) |
               (~edges['region_b'].isin(known)))
    if unknown.any():
        codes = sorted(
            (set(edges['region_a']) | set(edges['region_b'])) - known)
        if on_unknown == 'raise':
            raise ValueError(
                'Unknown region codes {}.'.format(codes))
        warnings.warn(
            'Dropping {} records with unknown region codes {}.'.format(
                unknown.sum(), codes))
        edges = edges[~unknown]

    return edges[edges['region_a'] != edges['region_b']]


def node_streams(edges, regions):
    """Stream volume per region, standardised by its sample standard
    deviation. Regions never seen as `region_a` get the mean volume."""
    streams = edges.groupby('region_a')['total_streams_a'].mean()
    streams = streams.reindex(regions)
    streams = streams.fillna(streams.mean())

    scale = streams.std()
    if not np.isfinite(scale) or scale == 0:
        return streams

    return streams / scale


def load_chart_network(edges, countries, threshold=None, n_periods=None,
                       on_unknown='raise'):
    """Country network of shared chart entries.

    Parameters
    ----------
    edges : str or DataFrame
        Co-occurrence counts with columns `region_a`, `region_b`, `weight`
        and `total_streams_a`. Paths may be compressed csv files.
    countries : str or DataFrame
        Lookup table with columns `region`, `iso3`, `continent` and `name`.
    threshold : float, optional
        Minimum co-occurrence count for an edge. Defaults to `n_periods / 2`.
    n_periods : int, optional
        Number of chart periods in the source series.
    on_unknown : {'raise', 'warn'}
        Whether records with codes missing from `countries` are an error or
        are dropped with a warning.

    Returns
    -------
    Y : ndarray, shape (n_nodes, n_nodes)
        Binary symmetric adjacency matrix with a zero diagonal.
    nodes : DataFrame
        One row per node in the row order of `Y`.
    """
    if threshold is None:
        if n_periods is None:
            raise ValueError('Either threshold or n_periods must be given.')
        threshold = n_periods / 2

    edges = _read_table(edges, EDGE_COLUMNS)
    countries = _read_table(countries, COUNTRY_COLUMNS)
    countries['region'] = countries['region'].astype(str).str.lower()
    countries = countries.drop_duplicates(subset='region')

    edges = clean_edges(edges, countries, on_unknown=on_unknown)

    # one record per unordered pair, keeping the largest count
    a, b = edges['region_a'].values, edges['region_b'].values
    pairs = pd.DataFrame({
        'source': np.where(a < b, a, b),
        'target': np.where(a < b, b, a),
        'weight': edges['weight'].values.astype(float)
    })
    pairs = pairs.groupby(['source', 'target'], as_index=False)['weight'].max()

    regions = sorted(set(edges['region_a']) | set(edges['region_b']))
    g = nx.from_pandas_edgelist(pairs, edge_attr='weight')
    g.add_nodes_from(regions)
    W = nx.to_numpy_array(g, nodelist=regions, weight='weight')
    Y = threshold_counts(W, threshold)

    nodes = (countries.set_index('region').loc[regions]
             .reset_index())
    nodes['streams'] = node_streams(edges, regions).values

    return Y, nodes
