"""Tests for species alias resolution and the species catalog."""
import pytest

from pycubage.exceptions import SpeciesNotFoundError
from pycubage.species import (
    Species,
    SpeciesCatalog,
    SpeciesCategory,
    get_species_catalog,
    normalize_species_code,
    species_candidates,
    species_matches,
)


# ============================================================================
# Aliases
# ============================================================================

class TestSpeciesCandidates:
    """Ordered alias candidates."""

    def test_code_itself_comes_first(self):
        assert species_candidates('hetre') == ['HETRE', 'HETRE_COMMUN']
        assert species_candidates('HETRE_COMMUN') == ['HETRE_COMMUN', 'HETRE']

    def test_genus_code_expands_in_order(self):
        assert species_candidates(' chene ') == ['CHENE', 'CH_SESSILE', 'CH_PEDONCULE']

    def test_unknown_code_resolves_to_itself(self):
        assert species_candidates('noyer_noir') == ['NOYER_NOIR']

    def test_none_is_empty_code(self):
        assert normalize_species_code(None) == ''
        assert species_candidates(None) == ['']


class TestSpeciesMatches:
    """Rule species field matching."""

    @pytest.mark.parametrize("pattern", [None, '', '  ', '*'])
    def test_wildcards_match_everything(self, pattern):
        assert species_matches(pattern, 'DOUGLAS_VERT')

    def test_alias_match(self):
        assert species_matches('HETRE', 'HETRE_COMMUN')
        assert species_matches('hetre_commun', 'hetre')

    def test_genus_rule_does_not_match_member_code(self):
        """A CHENE rule is only probed for codes whose candidates contain it."""
        assert species_matches('CH_SESSILE', 'CHENE')
        assert not species_matches('CHENE', 'CH_PEDONCULE')

    def test_other_species(self):
        assert not species_matches('DOUGLAS_VERT', 'HETRE_COMMUN')


# ============================================================================
# Catalog
# ============================================================================

class TestSpeciesCategory:

    @pytest.mark.parametrize("label,expected", [
        ('Feuillu', SpeciesCategory.BROADLEAF),
        ('broadleaf', SpeciesCategory.BROADLEAF),
        ('Résineux', SpeciesCategory.CONIFER),
        ('resineux', SpeciesCategory.CONIFER),
        ('conifer', SpeciesCategory.CONIFER),
        (None, SpeciesCategory.OTHER),
        ('shrub', SpeciesCategory.OTHER),
    ])
    def test_from_label(self, label, expected):
        assert SpeciesCategory.from_label(label) == expected


class TestSpeciesCatalog:
    """Catalog lookup."""

    @pytest.fixture
    def catalog(self):
        return SpeciesCatalog([
            Species('HETRE_COMMUN', 'Hêtre commun', SpeciesCategory.BROADLEAF),
            Species('DOUGLAS_VERT', 'Douglas vert', SpeciesCategory.CONIFER),
        ])

    def test_lookup_through_alias(self, catalog):
        assert catalog.get('douglas').code == 'DOUGLAS_VERT'
        assert catalog.category('HETRE') == SpeciesCategory.BROADLEAF
        assert 'hetre' in catalog

    def test_unknown_code(self, catalog):
        assert catalog.get('NOYER') is None
        assert catalog.category('NOYER') == SpeciesCategory.OTHER
        assert catalog.display_name('noyer') == 'NOYER'
        with pytest.raises(SpeciesNotFoundError):
            catalog.require('NOYER')

    def test_codes_by_category(self, catalog):
        assert catalog.codes(SpeciesCategory.CONIFER) == ['DOUGLAS_VERT']
        assert catalog.codes() == ['DOUGLAS_VERT', 'HETRE_COMMUN']
        assert catalog.get('DOUGLAS_VERT').is_conifer

    def test_from_config(self):
        catalog = SpeciesCatalog.from_config({'species': {
            'pin_sylvestre': {'name': 'Pin sylvestre', 'category': 'conifer'},
            'NOYER': None,
        }})
        assert len(catalog) == 2
        assert catalog.get('PIN_SYLVESTRE').name == 'Pin sylvestre'
        assert catalog.get('NOYER').name == 'NOYER'
        assert catalog.category('NOYER') == SpeciesCategory.OTHER


class TestPackagedCatalog:
    """The catalog shipped in cfg/species.yaml."""

    def test_main_species_are_present(self):
        catalog = get_species_catalog()
        assert catalog.category('HETRE_COMMUN') == SpeciesCategory.BROADLEAF
        assert catalog.category('DOUGLAS_VERT') == SpeciesCategory.CONIFER
        assert catalog.category('MEL_EUROPE') == SpeciesCategory.CONIFER
        assert catalog.category('CH_SESSILE') == SpeciesCategory.BROADLEAF

    def test_catalog_is_cached(self):
        assert get_species_catalog() is get_species_catalog()
