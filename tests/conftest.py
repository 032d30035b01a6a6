"""
Shared pytest fixtures for pycubage tests.

Provides parameter stores, a tree factory and small sample inventories so
the individual test modules stay focused on the behaviour they check.
"""
import itertools
import json

import pytest

from pycubage.config_loader import seed_defaults
from pycubage.parameter_store import InMemoryParameterStore, ParameterKeys
from pycubage.parameters import TreeRecord


# =============================================================================
# Parameter Stores
# =============================================================================

@pytest.fixture
def store():
    """Empty in-memory parameter store."""
    return InMemoryParameterStore()


@pytest.fixture
def seeded_store():
    """Parameter store holding the packaged default tables."""
    s = InMemoryParameterStore()
    seed_defaults(s)
    return s


@pytest.fixture
def beech_height_store():
    """Store with a two-range beech height table and a flat 20 EUR/m3 price.

    Heights: 20-30 cm -> 18 m, 31-45 cm -> 24 m.
    """
    s = InMemoryParameterStore()
    s.set(ParameterKeys.HEIGHT_DEFAULTS, json.dumps([
        {'species': 'HETRE_COMMUN', 'min': 20, 'max': 30, 'h': 18.0},
        {'species': 'HETRE_COMMUN', 'min': 31, 'max': 45, 'h': 24.0},
    ]))
    s.set(ParameterKeys.MARKET_PRICES, json.dumps([
        {'species': '*', 'product': '*', 'min': 0, 'max': 999, 'eur_per_m3': 20.0},
    ]))
    return s


# =============================================================================
# Tree Factories
# =============================================================================

@pytest.fixture
def make_tree():
    """Factory building TreeRecord objects with sequential ids.

    Usage:
        tree = make_tree('HETRE_COMMUN', 32.0, height_m=21.0)
    """
    counter = itertools.count(1)

    def _make(species='HETRE_COMMUN', diameter_cm=30.0, **kwargs):
        kwargs.setdefault('id', f"t{next(counter)}")
        return TreeRecord(species=species, diameter_cm=diameter_cm, **kwargs)

    return _make


@pytest.fixture
def beech_trees(make_tree):
    """Four measured beech trees spread over the 30 and 35 cm classes."""
    return [
        make_tree('HETRE_COMMUN', 29.0, height_m=20.0),
        make_tree('HETRE_COMMUN', 31.0, height_m=22.0),
        make_tree('HETRE_COMMUN', 34.0, height_m=23.0),
        make_tree('HETRE_COMMUN', 36.0, height_m=25.0),
    ]


@pytest.fixture
def douglas_plot(make_tree):
    """Douglas fir plot with a few larches, for the pre-harvest stand table."""
    trees = []
    for d in (21.0, 24.0, 31.0, 33.0, 38.0, 42.0, 47.0, 52.0, 58.0):
        trees.append(make_tree('DOUGLAS_VERT', d, plot_id='P1'))
    trees.append(make_tree('MEL_EUROPE', 36.0, plot_id='P1'))
    trees.append(make_tree('MEL_EUROPE', 44.0, plot_id='P1'))
    return trees
