"""Tests for splitting a stem volume between products."""
import json

import pytest

from pycubage.merchandising import (
    apply_cut_rules,
    category_cut_rules,
    load_cut_rules,
    split_volume_by_product,
)
from pycubage.parameter_store import ParameterKeys
from pycubage.tariff_data import CUT_RULES_BROADLEAF, CUT_RULES_CONIFER, CutRule


# ============================================================================
# Rule Application
# ============================================================================

class TestApplyCutRules:

    def test_shares_are_normalised(self):
        rules = [CutRule('*', None, 0, 999, 'BO', 30.0), CutRule('*', None, 0, 999, 'BI', 10.0)]
        split = apply_cut_rules(2.0, rules)
        assert split['BO'] == pytest.approx(1.5)
        assert split['BI'] == pytest.approx(0.5)

    def test_repeated_product_adds_up(self):
        rules = [
            CutRule('*', None, 0, 999, 'BO', 50.0),
            CutRule('*', None, 0, 999, 'BO', 25.0),
            CutRule('*', None, 0, 999, 'BI', 25.0),
        ]
        assert apply_cut_rules(1.0, rules) == pytest.approx({'BO': 0.75, 'BI': 0.25})

    def test_zero_percentages_send_everything_to_sawlog(self):
        assert apply_cut_rules(1.3, [CutRule('*', None, 0, 999, 'BI', 0.0)]) == {'BO': 1.3}


class TestCategoryCutRules:

    @pytest.mark.parametrize("label", ['Résineux', 'resineux', 'conifer', 'Conifère'])
    def test_conifer_labels(self, label):
        assert category_cut_rules(label) is CUT_RULES_CONIFER

    @pytest.mark.parametrize("label", ['Feuillu', 'broadleaf', None, 'autre'])
    def test_everything_else_is_broadleaf(self, label):
        assert category_cut_rules(label) is CUT_RULES_BROADLEAF


# ============================================================================
# Volume Split
# ============================================================================

class TestSplitVolumeByProduct:
    """Species rules, then category defaults, then BO/BI by diameter."""

    def test_douglas_species_rules(self):
        split = split_volume_by_product(2.4, 'DOUGLAS_VERT', 'Résineux', 42.0)
        assert split == pytest.approx({'BO': 1.92, 'BI': 0.36, 'BE': 0.12})
        assert sum(split.values()) == pytest.approx(2.4)

    def test_species_rules_through_alias(self):
        assert split_volume_by_product(1.0, 'douglas', None, 42.0) == \
            pytest.approx({'BO': 0.8, 'BI': 0.15, 'BE': 0.05})

    def test_species_rules_outside_their_band_use_category(self):
        split = split_volume_by_product(1.0, 'DOUGLAS_VERT', 'Résineux', 22.0)
        assert split == pytest.approx({'BO': 0.5, 'BI': 0.35, 'BE': 0.15})

    def test_broadleaf_category(self):
        split = split_volume_by_product(1.0, 'HETRE_COMMUN', 'Feuillu', 45.0)
        assert split == pytest.approx({'BO': 0.7, 'BI': 0.15, 'BCh': 0.15})

    def test_unknown_category_uses_broadleaf_defaults(self):
        split = split_volume_by_product(1.0, 'HETRE_COMMUN', 'autre', 30.0)
        assert split == pytest.approx({'BO': 0.4, 'BI': 0.3, 'BCh': 0.3})

    def test_custom_rules_replace_built_in_species_rules(self):
        custom = [
            CutRule('HETRE_COMMUN', None, 30, 60, 'BO', 50.0),
            CutRule('HETRE_COMMUN', None, 30, 60, 'BI', 25.0),
        ]
        assert split_volume_by_product(3.0, 'HETRE_COMMUN', 'Feuillu', 40.0, custom) == \
            pytest.approx({'BO': 2.0, 'BI': 1.0})
        # Douglas has no custom rule: conifer defaults, not the built-in Douglas rules
        assert split_volume_by_product(1.0, 'DOUGLAS_VERT', 'Résineux', 30.0, custom) == \
            pytest.approx({'BO': 0.5, 'BI': 0.35, 'BE': 0.15})

    def test_wildcard_custom_rules_are_ignored(self):
        custom = [CutRule('*', None, 0, 999, 'BE', 100.0)]
        assert split_volume_by_product(1.0, 'HETRE_COMMUN', 'Feuillu', 45.0, custom) == \
            pytest.approx({'BO': 0.7, 'BI': 0.15, 'BCh': 0.15})

    def test_diameter_beyond_every_rule(self):
        assert split_volume_by_product(1.0, 'HETRE_COMMUN', 'Feuillu', 1200.0) == {'BO': 1.0}

    @pytest.mark.parametrize("volume", [0.0, -1.0])
    def test_non_positive_volume(self, volume):
        assert split_volume_by_product(volume, 'HETRE_COMMUN', 'Feuillu', 40.0) == {}


# ============================================================================
# Stored Rules
# ============================================================================

class TestLoadCutRules:

    def test_nothing_saved(self, store):
        assert load_cut_rules(store) is None

    def test_saved_rules(self, store):
        store.set(ParameterKeys.CUT_RULES, json.dumps([
            {'species': 'HETRE_COMMUN', 'min_diam': 30, 'max_diam': 60, 'product': 'BO', 'pct_volume': 60},
            {'species': 'HETRE_COMMUN', 'min_diam': 30, 'max_diam': 60, 'product': 'BI'},
        ]))
        rules = load_cut_rules(store)
        assert len(rules) == 2
        assert rules[1].pct_volume == 100.0
        assert rules[0].to_dict()['pct_volume'] == 60.0

    def test_malformed_blob(self, store):
        store.set(ParameterKeys.CUT_RULES, '[{"species": "HETRE"')
        assert load_cut_rules(store) is None
