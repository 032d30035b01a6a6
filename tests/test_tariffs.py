"""Tests for the tariff volume engine and tariff selection helpers."""
import math

import pytest

from pycubage.exceptions import UnknownTariffMethodError
from pycubage.tariff_data import (
    ALGAN_COEFFICIENTS,
    IFN_LENT,
    IFN_RAPIDE,
    SCHAEFFER_ONE_ENTRY,
    SCHAEFFER_TWO_ENTRY,
    SPECIES_TO_IFN_RAPIDE,
)
from pycubage.tariffs import (
    TariffMethod,
    TariffSelection,
    algan_coefficients_for,
    available_tariff_numbers,
    compute_volume,
    default_form_coefficient,
    recommended_tariff_number,
    requires_height,
    resolve_method,
    resolve_tariff_number,
    volume_with_selection,
)
from pycubage.tree_utils import calculate_tree_basal_area, calculate_unit_basal_area


# ============================================================================
# Basal Area
# ============================================================================

class TestBasalArea:
    """Basal area of a single stem."""

    @pytest.mark.parametrize("diameter", [0.5, 7.0, 20.0, 35.5, 80.0, 152.0])
    def test_basal_area_formula(self, diameter):
        """G = pi * (D/200)^2 with D in cm and G in m2."""
        assert calculate_tree_basal_area(diameter) == pytest.approx(
            math.pi * (diameter / 200.0) ** 2, rel=1e-12)

    def test_unit_basal_area_matches_tree_basal_area(self):
        """The stand-table form (pi/4)(D/100)^2 is the same area."""
        assert calculate_unit_basal_area(40.0) == pytest.approx(calculate_tree_basal_area(40.0))

    def test_known_value(self):
        """A 40 cm stem has about 0.1257 m2 of basal area."""
        assert calculate_tree_basal_area(40.0) == pytest.approx(0.125664, abs=1e-6)


# ============================================================================
# Method Enum
# ============================================================================

class TestTariffMethod:
    """Parsing and metadata of the cubing methods."""

    def test_from_code_is_case_insensitive(self):
        assert TariffMethod.from_code(' algan ') == TariffMethod.ALGAN
        assert TariffMethod.from_code('ifn_lent') == TariffMethod.IFN_LENT

    def test_unknown_code_returns_none(self):
        assert TariffMethod.from_code('NOPE') is None
        assert TariffMethod.from_code(None) is None

    def test_strict_unknown_code_raises(self):
        with pytest.raises(UnknownTariffMethodError):
            TariffMethod.from_code('NOPE', strict=True)

    @pytest.mark.parametrize("method,entries", [
        (TariffMethod.SCHAEFFER_1E, 1),
        (TariffMethod.IFN_RAPIDE, 1),
        (TariffMethod.SCHAEFFER_2E, 2),
        (TariffMethod.ALGAN, 2),
        (TariffMethod.IFN_LENT, 2),
        (TariffMethod.FGH, 2),
        (TariffMethod.COEF_FORME, 2),
    ])
    def test_entries_and_height_requirement(self, method, entries):
        assert method.entries == entries
        assert requires_height(method) == (entries == 2)

    def test_every_method_has_a_label(self):
        for method in TariffMethod:
            assert method.label


# ============================================================================
# Algan
# ============================================================================

class TestAlgan:
    """Algan power law V = a * D^b * H^c."""

    @pytest.mark.parametrize("species,diameter,height", [
        ('HETRE_COMMUN', 35.0, 22.0),
        ('HETRE_COMMUN', 50.0, 28.0),
        ('DOUGLAS_VERT', 40.0, 30.0),
        ('CH_SESSILE', 45.0, 24.0),
    ])
    def test_exact_power_law(self, species, diameter, height):
        coefs = ALGAN_COEFFICIENTS[species]
        expected = coefs['a'] * diameter ** coefs['b'] * height ** coefs['c']
        volume = compute_volume(TariffMethod.ALGAN, species, diameter, height_m=height)
        assert volume == pytest.approx(expected, rel=1e-12)

    def test_beech_and_douglas_differ(self):
        """Different species coefficients give different volumes."""
        beech = compute_volume(TariffMethod.ALGAN, 'HETRE_COMMUN', 40.0, height_m=25.0)
        douglas = compute_volume(TariffMethod.ALGAN, 'DOUGLAS_VERT', 40.0, height_m=25.0)
        assert beech != pytest.approx(douglas)

    def test_short_code_uses_alias(self):
        """HETRE resolves to the HETRE_COMMUN coefficients."""
        assert compute_volume(TariffMethod.ALGAN, 'hetre', 40.0, height_m=25.0) == pytest.approx(
            compute_volume(TariffMethod.ALGAN, 'HETRE_COMMUN', 40.0, height_m=25.0))

    def test_unknown_species_uses_median_species(self):
        assert algan_coefficients_for('UNKNOWN_TREE') is None
        assert compute_volume(TariffMethod.ALGAN, 'UNKNOWN_TREE', 40.0, height_m=25.0) == pytest.approx(
            compute_volume(TariffMethod.ALGAN, 'HETRE_COMMUN', 40.0, height_m=25.0))

    def test_missing_height_gives_none(self):
        assert compute_volume(TariffMethod.ALGAN, 'HETRE_COMMUN', 40.0) is None

    def test_zero_height_gives_zero(self):
        assert compute_volume(TariffMethod.ALGAN, 'HETRE_COMMUN', 40.0, height_m=0.0) == 0.0


# ============================================================================
# Schaeffer
# ============================================================================

class TestSchaeffer:
    """Schaeffer one- and two-entry tariffs (C in metres)."""

    def test_one_entry_formula(self):
        coefs = SCHAEFFER_ONE_ENTRY[8]
        c = math.pi * 40.0 / 100.0
        expected = coefs['a'] + coefs['b'] * c ** 2
        volume = compute_volume(TariffMethod.SCHAEFFER_1E, 'HETRE_COMMUN', 40.0, tariff_number=8)
        assert volume == pytest.approx(expected)

    def test_one_entry_ignores_height(self):
        without = compute_volume(TariffMethod.SCHAEFFER_1E, 'HETRE_COMMUN', 40.0, tariff_number=8)
        with_h = compute_volume(TariffMethod.SCHAEFFER_1E, 'HETRE_COMMUN', 40.0,
                                height_m=30.0, tariff_number=8)
        assert without == pytest.approx(with_h)

    def test_one_entry_default_number_from_ifn_recommendation(self):
        """Without a number, the IFN fast recommendation is halved."""
        ifn = SPECIES_TO_IFN_RAPIDE['HETRE_COMMUN']
        expected_number = min(max(ifn // 2, 1), 16)
        assert compute_volume(TariffMethod.SCHAEFFER_1E, 'HETRE_COMMUN', 40.0) == pytest.approx(
            compute_volume(TariffMethod.SCHAEFFER_1E, 'HETRE_COMMUN', 40.0,
                           tariff_number=expected_number))

    def test_one_entry_default_number_is_eight_for_unmapped_species(self):
        assert compute_volume(TariffMethod.SCHAEFFER_1E, 'UNKNOWN_TREE', 40.0) == pytest.approx(
            compute_volume(TariffMethod.SCHAEFFER_1E, 'UNKNOWN_TREE', 40.0, tariff_number=8))

    def test_two_entry_formula(self):
        coefs = SCHAEFFER_TWO_ENTRY[4]
        c = math.pi * 35.0 / 100.0
        expected = coefs['a'] + coefs['b'] * c ** 2 * 24.0
        volume = compute_volume(TariffMethod.SCHAEFFER_2E, 'HETRE_COMMUN', 35.0,
                                height_m=24.0, tariff_number=4)
        assert volume == pytest.approx(expected)

    def test_two_entry_needs_height(self):
        assert compute_volume(TariffMethod.SCHAEFFER_2E, 'HETRE_COMMUN', 35.0, tariff_number=4) is None

    def test_unknown_number_gives_none(self):
        assert compute_volume(TariffMethod.SCHAEFFER_1E, 'HETRE_COMMUN', 40.0, tariff_number=99) is None


# ============================================================================
# IFN
# ============================================================================

class TestIFN:
    """IFN fast (one-entry) and slow (two-entry) polynomials in dm3."""

    def test_fast_formula(self):
        coefs = IFN_RAPIDE[8]
        expected = (coefs['a0'] + coefs['a1'] * 30.0 + coefs['a2'] * 30.0 ** 2) / 1000.0
        assert compute_volume(TariffMethod.IFN_RAPIDE, 'HETRE_COMMUN', 30.0,
                              tariff_number=8) == pytest.approx(expected)

    def test_fast_uses_species_mapping(self):
        number = SPECIES_TO_IFN_RAPIDE['DOUGLAS_VERT']
        assert compute_volume(TariffMethod.IFN_RAPIDE, 'DOUGLAS_VERT', 40.0) == pytest.approx(
            compute_volume(TariffMethod.IFN_RAPIDE, 'DOUGLAS_VERT', 40.0, tariff_number=number))

    def test_fast_without_number_or_mapping_gives_none(self):
        assert compute_volume(TariffMethod.IFN_RAPIDE, 'UNKNOWN_TREE', 40.0) is None

    def test_fast_non_positive_result_gives_none(self):
        """Tiny diameters fall below the polynomial's zero."""
        assert compute_volume(TariffMethod.IFN_RAPIDE, 'HETRE_COMMUN', 1.0, tariff_number=8) is None

    def test_slow_formula(self):
        coefs = IFN_LENT[4]
        d2 = 30.0 ** 2
        expected = (coefs['a0'] + coefs['a1'] * d2 + coefs['a2'] * d2 * 20.0) / 1000.0
        assert compute_volume(TariffMethod.IFN_LENT, 'HETRE_COMMUN', 30.0, height_m=20.0,
                              tariff_number=4) == pytest.approx(expected)

    def test_slow_needs_height(self):
        assert compute_volume(TariffMethod.IFN_LENT, 'HETRE_COMMUN', 30.0, tariff_number=4) is None


# ============================================================================
# Form Coefficient Methods
# ============================================================================

class TestFormCoefficient:
    """V = (pi/4)(D/100)^2 * H * f."""

    def test_species_default_coefficient(self):
        f = default_form_coefficient('HETRE_COMMUN')
        expected = math.pi / 4.0 * 0.3 ** 2 * 20.0 * f
        assert compute_volume(TariffMethod.COEF_FORME, 'HETRE_COMMUN', 30.0,
                              height_m=20.0) == pytest.approx(expected)

    def test_override_wins(self):
        expected = math.pi / 4.0 * 0.3 ** 2 * 20.0 * 0.5
        assert compute_volume(TariffMethod.FGH, 'HETRE_COMMUN', 30.0, height_m=20.0,
                              form_override=0.5) == pytest.approx(expected)

    def test_unlisted_species_uses_wildcard(self):
        assert default_form_coefficient('UNKNOWN_TREE') == pytest.approx(0.45)


# ============================================================================
# Common Rules
# ============================================================================

class TestInsufficientData:
    """Missing or invalid inputs give None rather than errors."""

    @pytest.mark.parametrize("method", list(TariffMethod))
    @pytest.mark.parametrize("diameter", [0.0, -5.0])
    def test_non_positive_diameter(self, method, diameter):
        assert compute_volume(method, 'HETRE_COMMUN', diameter, height_m=20.0, tariff_number=4) is None


class TestRecommendations:
    """Recommended and available tariff numbers."""

    def test_schaeffer_defaults(self):
        assert recommended_tariff_number(TariffMethod.SCHAEFFER_1E, 'HETRE_COMMUN') == 8
        assert recommended_tariff_number(TariffMethod.SCHAEFFER_2E, 'HETRE_COMMUN') == 4

    def test_ifn_fast_mapping_and_mean(self):
        assert recommended_tariff_number(TariffMethod.IFN_RAPIDE, 'HETRE_COMMUN') == \
            SPECIES_TO_IFN_RAPIDE['HETRE_COMMUN']
        values = list(SPECIES_TO_IFN_RAPIDE.values())
        assert recommended_tariff_number(TariffMethod.IFN_RAPIDE, 'UNKNOWN_TREE') == \
            sum(values) // len(values)

    def test_ifn_slow_falls_back_to_four(self):
        assert recommended_tariff_number(TariffMethod.IFN_LENT, 'UNKNOWN_TREE') == 4

    def test_unnumbered_methods(self):
        assert recommended_tariff_number(TariffMethod.ALGAN, 'HETRE_COMMUN') is None
        assert available_tariff_numbers(TariffMethod.ALGAN) is None

    @pytest.mark.parametrize("method,last", [
        (TariffMethod.SCHAEFFER_1E, 16),
        (TariffMethod.SCHAEFFER_2E, 8),
        (TariffMethod.IFN_RAPIDE, 36),
        (TariffMethod.IFN_LENT, 8),
    ])
    def test_available_numbers(self, method, last):
        numbers = available_tariff_numbers(method)
        assert numbers[0] == 1
        assert numbers[-1] == last


# ============================================================================
# Tariff Selection
# ============================================================================

class TestTariffSelection:
    """Method and number resolution from a saved selection."""

    def test_no_selection_means_algan(self):
        assert resolve_method('HETRE_COMMUN', None) == TariffMethod.ALGAN

    def test_species_override(self):
        selection = TariffSelection(method='SCHAEFFER_1E',
                                    species_overrides={'DOUGLAS_VERT': 'IFN_LENT'})
        assert resolve_method('douglas_vert', selection) == TariffMethod.IFN_LENT
        assert resolve_method('HETRE_COMMUN', selection) == TariffMethod.SCHAEFFER_1E

    def test_invalid_override_falls_back_to_global_method(self):
        selection = TariffSelection(method='IFN_RAPIDE', species_overrides={'HETRE_COMMUN': 'BOGUS'})
        assert resolve_method('HETRE_COMMUN', selection) == TariffMethod.IFN_RAPIDE

    def test_invalid_global_method_falls_back_to_algan(self):
        assert resolve_method('HETRE_COMMUN', TariffSelection(method='BOGUS')) == TariffMethod.ALGAN

    def test_selection_number_wins_over_recommendation(self):
        selection = TariffSelection(method='SCHAEFFER_1E', schaeffer_number=11)
        assert resolve_tariff_number(TariffMethod.SCHAEFFER_1E, 'HETRE_COMMUN', selection) == 11
        assert resolve_tariff_number(TariffMethod.SCHAEFFER_1E, 'HETRE_COMMUN', None) == 8

    def test_dict_round_trip_upper_cases_override_keys(self):
        selection = TariffSelection.from_dict({
            'method': 'IFN_LENT', 'ifn_number': 5, 'species_overrides': {'hetre': 'ALGAN'},
        })
        assert selection.species_overrides == {'HETRE': 'ALGAN'}
        assert selection.ifn_number == 5
        assert TariffSelection.from_dict(selection.to_dict()) == selection

    def test_volume_with_selection(self):
        selection = TariffSelection(method='SCHAEFFER_1E', schaeffer_number=8)
        assert volume_with_selection('HETRE_COMMUN', 40.0, None, selection) == pytest.approx(
            compute_volume(TariffMethod.SCHAEFFER_1E, 'HETRE_COMMUN', 40.0, tariff_number=8))
