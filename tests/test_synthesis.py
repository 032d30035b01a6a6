"""Tests for the diameter-class synthesis and the ForestryCalculator."""
import json
import math

import pytest

from pycubage.parameter_store import ParameterKeys
from pycubage.parameters import HeightMode, HeightModeEntry, PriceEntry
from pycubage.synthesis import ForestryCalculator, diameter_class_for, synthesis_dataframe
from pycubage.tariffs import TariffMethod, TariffSelection, compute_volume


def algan(d, h, species='HETRE_COMMUN'):
    return compute_volume(TariffMethod.ALGAN, species, d, height_m=h)


# ============================================================================
# Diameter Classes
# ============================================================================

class TestDiameterClassFor:
    """Midpoint bucketing."""

    @pytest.mark.parametrize("diameter,expected", [
        (32.0, 30), (32.4, 30), (32.5, 35), (33.0, 35),
        (10.0, 30), (80.0, 35),
    ])
    def test_two_classes(self, diameter, expected):
        assert diameter_class_for(diameter, [30, 35]) == expected

    def test_unsorted_duplicated_classes(self):
        assert diameter_class_for(42.0, [45, 40, 40, 35]) == 40

    def test_single_class(self):
        assert diameter_class_for(72.0, [30]) == 30

    @pytest.mark.parametrize("diameter,expected", [(32.4, 32), (32.5, 33), (0.2, 0)])
    def test_no_classes_rounds_half_up(self, diameter, expected):
        assert diameter_class_for(diameter, []) == expected


# ============================================================================
# Synthesis
# ============================================================================

class TestSynthesize:
    """Per-class rows and totals."""

    def test_measured_beech_trees(self, beech_height_store, beech_trees):
        calc = ForestryCalculator(beech_height_store)
        rows, totals = calc.synthesize('HETRE_COMMUN', [30, 35], beech_trees)

        assert [r.diameter_class for r in rows] == [30, 35]
        assert [r.count for r in rows] == [2, 2]
        assert rows[0].mean_height == pytest.approx(21.0)
        assert rows[1].mean_height == pytest.approx(24.0)

        v30 = algan(29.0, 20.0) + algan(31.0, 22.0)
        v35 = algan(34.0, 23.0) + algan(36.0, 25.0)
        assert rows[0].volume_sum == pytest.approx(v30)
        assert rows[1].volume_sum == pytest.approx(v35)

        assert totals.n_total == 4
        assert totals.mean_diameter == pytest.approx(32.5)
        assert totals.mean_height == pytest.approx(22.5)
        assert totals.volume_total == pytest.approx(v30 + v35)
        assert totals.volume_completeness_pct == 100.0
        assert totals.volume_computed_count == totals.volume_expected_count == 4

    def test_wildcard_price_values_every_class(self, beech_height_store, beech_trees):
        calc = ForestryCalculator(beech_height_store)
        rows, _ = calc.synthesize('HETRE_COMMUN', [30, 35], beech_trees)
        for row in rows:
            assert row.value_sum == pytest.approx(row.volume_sum * 20.0)

    def test_species_price_for_any_product(self, beech_height_store, beech_trees):
        beech_height_store.set(ParameterKeys.MARKET_PRICES, json.dumps([
            {'species': 'HETRE', 'product': '*', 'min': 0, 'max': 999, 'eur_per_m3': 55.0},
            {'species': '*', 'product': 'BO', 'min': 0, 'max': 999, 'eur_per_m3': 40.0},
            {'species': '*', 'product': '*', 'min': 0, 'max': 999, 'eur_per_m3': 20.0},
        ]))
        calc = ForestryCalculator(beech_height_store)
        rows, _ = calc.synthesize('HETRE_COMMUN', [30, 35], beech_trees)
        for row in rows:
            assert row.value_sum == pytest.approx(row.volume_sum * 55.0)

    def test_other_species_are_ignored(self, beech_height_store, beech_trees, make_tree):
        calc = ForestryCalculator(beech_height_store)
        trees = beech_trees + [make_tree('DOUGLAS_VERT', 31.0, height_m=25.0)]
        rows, totals = calc.synthesize('hetre_commun', [30, 35], trees)
        assert totals.n_total == 4
        assert rows[0].count == 2

    def test_observed_classes_are_added(self, beech_height_store, make_tree):
        calc = ForestryCalculator(beech_height_store)
        rows, _ = calc.synthesize('HETRE_COMMUN', [], [make_tree(diameter_cm=32.4, height_m=20.0)])
        assert [r.diameter_class for r in rows] == [32]

    def test_empty_classes_have_no_volume(self, beech_height_store):
        calc = ForestryCalculator(beech_height_store)
        rows, totals = calc.synthesize('HETRE_COMMUN', [35, 30], [])
        assert [r.diameter_class for r in rows] == [30, 35]
        assert all(r.count == 0 and r.volume_sum is None and r.value_sum is None for r in rows)
        assert totals.n_total == 0
        assert totals.mean_diameter is None
        assert totals.volume_total is None
        assert totals.volume_completeness_pct == 100.0

    def test_unmeasured_tree_uses_default_height(self, beech_height_store, make_tree):
        calc = ForestryCalculator(beech_height_store)
        rows, _ = calc.synthesize('HETRE_COMMUN', [30], [make_tree(diameter_cm=30.0)])
        assert rows[0].mean_height == 18.0
        assert rows[0].volume_sum == pytest.approx(algan(30.0, 18.0))

    def test_no_height_anywhere(self, store, make_tree):
        calc = ForestryCalculator(store)
        rows, totals = calc.synthesize('HETRE_COMMUN', [30], [make_tree(diameter_cm=30.0)])
        assert rows[0].volume_sum is None
        assert totals.volume_total is None
        assert totals.volume_completeness_pct == 0.0


class TestRequireHeights:
    """Strict height mode versus the default-table fallback."""

    def test_strict_mode_leaves_volume_empty(self, beech_height_store, make_tree):
        calc = ForestryCalculator(beech_height_store)
        rows, totals = calc.synthesize('HETRE_COMMUN', [30], [make_tree(diameter_cm=30.0)],
                                       require_heights=True)
        assert rows[0].volume_sum is None
        assert rows[0].mean_height is None
        assert totals.volume_total is None
        assert totals.volume_computed_count == 0
        assert totals.volume_expected_count == 1

    def test_manual_height_satisfies_strict_mode(self, beech_height_store, make_tree):
        calc = ForestryCalculator(beech_height_store)
        rows, _ = calc.synthesize('HETRE_COMMUN', [30], [make_tree(diameter_cm=30.0)],
                                  manual_heights={30: 21.0}, require_heights=True)
        assert rows[0].volume_sum == pytest.approx(algan(30.0, 21.0))

    def test_partial_completeness(self, beech_height_store, make_tree):
        calc = ForestryCalculator(beech_height_store)
        trees = [make_tree(diameter_cm=30.0, height_m=19.0), make_tree(diameter_cm=31.0)]
        rows, totals = calc.synthesize('HETRE_COMMUN', [30], trees, require_heights=True)
        assert rows[0].volume_sum == pytest.approx(algan(30.0, 19.0))
        assert totals.volume_completeness_pct == pytest.approx(50.0)

    def test_one_entry_tariff_needs_no_height(self, beech_height_store, make_tree):
        calc = ForestryCalculator(beech_height_store)
        calc.save_tariff_selection(TariffSelection(method='SCHAEFFER_1E', schaeffer_number=8))
        rows, totals = calc.synthesize('HETRE_COMMUN', [30], [make_tree(diameter_cm=30.0)],
                                       require_heights=True)
        expected = compute_volume(TariffMethod.SCHAEFFER_1E, 'HETRE_COMMUN', 30.0, tariff_number=8)
        assert rows[0].volume_sum == pytest.approx(expected)
        assert totals.volume_completeness_pct == 100.0


class TestHeightModes:
    """FIXED and SAMPLES overrides saved through the calculator."""

    def test_fixed_height(self, beech_height_store, make_tree):
        calc = ForestryCalculator(beech_height_store)
        calc.set_height_mode(HeightModeEntry('HETRE_COMMUN', 30, HeightMode.FIXED, 26.0))
        trees = [make_tree(diameter_cm=30.0), make_tree(diameter_cm=29.0, height_m=20.0)]
        rows, _ = calc.synthesize('HETRE_COMMUN', [30], trees)
        assert rows[0].mean_height == pytest.approx(23.0)
        assert rows[0].volume_sum == pytest.approx(algan(30.0, 26.0) + algan(29.0, 20.0))

    def test_samples_height(self, beech_height_store, make_tree):
        calc = ForestryCalculator(beech_height_store)
        calc.set_height_mode(HeightModeEntry('HETRE_COMMUN', 30, HeightMode.SAMPLES))
        trees = [make_tree(diameter_cm=31.0, height_m=20.0), make_tree(diameter_cm=29.0)]
        rows, _ = calc.synthesize('HETRE_COMMUN', [30], trees)
        assert rows[0].mean_height == pytest.approx(20.0)
        assert rows[0].volume_sum == pytest.approx(algan(31.0, 20.0) + algan(29.0, 20.0))

    def test_default_mode_clears_override(self, beech_height_store):
        calc = ForestryCalculator(beech_height_store)
        calc.set_height_mode(HeightModeEntry('HETRE_COMMUN', 30, HeightMode.FIXED, 26.0))
        assert calc.get_height_mode('hetre_commun', 30).fixed == 26.0
        calc.set_height_mode(HeightModeEntry('HETRE_COMMUN', 30, HeightMode.DEFAULT))
        assert calc.get_height_mode('HETRE_COMMUN', 30) is None

    def test_none_entry_is_ignored(self, beech_height_store):
        calc = ForestryCalculator(beech_height_store)
        calc.set_height_mode(None)
        assert ParameterKeys.HEIGHT_MODES not in beech_height_store


class TestParameterIndependence:
    """Results depend only on the tables that feed them."""

    def test_coefficient_ranges_do_not_change_volumes(self, beech_height_store, beech_trees):
        calc = ForestryCalculator(beech_height_store)
        before, _ = calc.synthesize('HETRE_COMMUN', [30, 35], beech_trees)
        beech_height_store.set(ParameterKeys.COEFFICIENT_RANGES, json.dumps([
            {'species': 'HETRE_COMMUN', 'min': 0, 'max': 999, 'f': 0.9, 'method': 'RAPIDE'},
        ]))
        after, _ = calc.synthesize('HETRE_COMMUN', [30, 35], beech_trees)
        assert after == before

    def test_snapshot_and_fresh_read_agree(self, beech_height_store, beech_trees):
        calc = ForestryCalculator(beech_height_store)
        params = calc.load_synthesis_params()
        cached = calc.synthesize('HETRE_COMMUN', [30, 35], beech_trees, params=params)
        fresh = calc.synthesize('HETRE_COMMUN', [30, 35], beech_trees)
        assert cached == fresh

    def test_operator_product_is_priced(self, beech_height_store, make_tree):
        beech_height_store.set(ParameterKeys.MARKET_PRICES, json.dumps([
            PriceEntry('*', 'BO', 0, 999, 60.0).to_dict(),
            PriceEntry('*', '*', 0, 999, 20.0).to_dict(),
        ]))
        calc = ForestryCalculator(beech_height_store)
        rows, _ = calc.synthesize('HETRE_COMMUN', [30],
                                  [make_tree(diameter_cm=30.0, height_m=20.0, product='BO')])
        assert rows[0].value_sum == pytest.approx(algan(30.0, 20.0) * 60.0)


# ============================================================================
# Calculator Accessors
# ============================================================================

class TestForestryCalculator:

    def test_tariff_method_defaults_to_algan(self, store):
        calc = ForestryCalculator(store)
        assert calc.current_tariff_method() == TariffMethod.ALGAN
        store.set(ParameterKeys.TARIFF_SELECTION, '{not json')
        assert calc.current_tariff_method() == TariffMethod.ALGAN

    def test_saved_selection(self, store):
        calc = ForestryCalculator(store)
        calc.save_tariff_selection(TariffSelection(method='IFN_LENT', ifn_number=5))
        assert calc.current_tariff_method() == TariffMethod.IFN_LENT
        assert calc.load_tariff_selection().ifn_number == 5

    def test_seeded_tables(self, seeded_store):
        calc = ForestryCalculator(seeded_store)
        assert calc.diameter_classes()[:3] == [5, 10, 15]
        assert calc.lookup_height('HETRE_COMMUN', 35.0) == 18.0
        assert calc.lookup_form_factor('HETRE_COMMUN', 35.0) == 0.48

    def test_compute_volume_uses_default_height(self, seeded_store, make_tree):
        calc = ForestryCalculator(seeded_store)
        assert calc.compute_volume('HETRE_COMMUN', 35.0) == pytest.approx(algan(35.0, 18.0))
        assert calc.compute_volume('HETRE_COMMUN', 35.0, 25.0) == pytest.approx(algan(35.0, 25.0))
        tree = make_tree(diameter_cm=35.0, height_m=25.0)
        assert calc.volume_for_tree(tree) == pytest.approx(algan(35.0, 25.0))

    def test_compute_volume_without_any_height(self, store):
        assert ForestryCalculator(store).compute_volume('HETRE_COMMUN', 35.0) is None

    def test_basal_area(self):
        assert ForestryCalculator.basal_area(40.0) == pytest.approx(math.pi * 0.2 ** 2)

    def test_dataframe(self, beech_height_store, beech_trees):
        rows, _ = ForestryCalculator(beech_height_store).synthesize('HETRE_COMMUN', [30, 35], beech_trees)
        df = synthesis_dataframe(rows)
        assert list(df.columns) == ['diameter_class', 'count', 'mean_height', 'volume_sum', 'value_sum']
        assert df['count'].sum() == 4
