"""
Species codes, alias resolution and the species catalog.

Inventories record species with the long codes of the French species list
(``HETRE_COMMUN``, ``CH_SESSILE``...), but operators and older parameter
files also use short genus codes (``HETRE``, ``CHENE``, ``PIN``). Every
lookup in the engine goes through :func:`species_candidates`, which turns
any input code into an ordered list of codes to probe.

Usage:
    from pycubage.species import species_candidates, get_species_catalog

    species_candidates("chene")     # ['CHENE', 'CH_SESSILE', 'CH_PEDONCULE']
    catalog = get_species_catalog()
    catalog.category("DOUGLAS")     # SpeciesCategory.CONIFER
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .exceptions import SpeciesNotFoundError
from .logging_config import get_logger
from .utils import normalize_code, is_wildcard

__all__ = [
    'SpeciesCategory',
    'Species',
    'SpeciesCatalog',
    'SPECIES_ALIASES',
    'normalize_species_code',
    'species_candidates',
    'species_matches',
    'get_species_catalog',
]

logger = get_logger(__name__)


# ============================================================================
# Alias table
# ============================================================================

# Ordered fallbacks probed after the code itself.
SPECIES_ALIASES: Dict[str, Tuple[str, ...]] = {
    'HETRE': ('HETRE_COMMUN',),
    'HETRE_COMMUN': ('HETRE',),
    'DOUGLAS': ('DOUGLAS_VERT',),
    'DOUGLAS_VERT': ('DOUGLAS',),
    'CHENE': ('CH_SESSILE', 'CH_PEDONCULE'),
    'PEUPLIER': ('PEUPLIER_HYBR', 'PEUPLIER_NOIR'),
    'BOULEAU': ('BOUL_VERRUQ', 'BOUL_PUBESC'),
    'ERABLE': ('ERABLE_SYC', 'ERABLE_PLANE', 'ERABLE_CHAMP'),
    'AULNE': ('AULNE_GLUT', 'AULNE_BLANC'),
    'ORME': ('ORME_CHAMP', 'ORME_LISSE', 'ORME_MONT'),
    'SAULE': ('SAULE_BLANC', 'SAULE_FRAGILE', 'SAULE_MARSAULT'),
    'TILLEUL': ('TIL_PET_FEUIL', 'TIL_GR_FEUIL'),
    'PIN': ('PIN_SYLVESTRE', 'PIN_MARITIME', 'PIN_NOIR_AUTR', 'PIN_LARICIO'),
    'MELEZE': ('MEL_EUROPE', 'MEL_HYBRIDE'),
    'ALISIER': ('ALISIER_TORM', 'ALISIER_BLANC'),
    'TREMBLE': ('PEUPLIER_TREMB',),
    'PEUPLIER_TREMB': ('TREMBLE',),
}


def normalize_species_code(code: Optional[str]) -> str:
    """Trim and upper-case a species code."""
    return normalize_code(code)


def species_candidates(code: Optional[str]) -> List[str]:
    """Return the codes to probe for ``code``, most specific first.

    The list always starts with the normalised code itself and is never
    empty. Unknown codes resolve to themselves only.
    """
    normalized = normalize_species_code(code)
    return [normalized, *SPECIES_ALIASES.get(normalized, ())]


def species_matches(pattern: Optional[str], code: Optional[str]) -> bool:
    """True when a rule's species field accepts ``code``.

    A wildcard pattern (``None``, blank or ``*``) accepts every code;
    otherwise the pattern must equal one of the code's candidates.
    """
    if is_wildcard(pattern):
        return True
    return normalize_species_code(pattern) in species_candidates(code)


# ============================================================================
# Species catalog
# ============================================================================

class SpeciesCategory(str, Enum):
    """Broad wood category of a species."""
    BROADLEAF = 'broadleaf'
    CONIFER = 'conifer'
    OTHER = 'other'

    @classmethod
    def from_label(cls, label: Optional[str]) -> 'SpeciesCategory':
        """Parse English or French category labels (``Feuillu``, ``Résineux``...)."""
        text = (label or '').strip().lower()
        if text in ('broadleaf', 'feuillu', 'feuillus', 'hardwood'):
            return cls.BROADLEAF
        if text in ('conifer', 'résineux', 'resineux', 'conifère', 'conifere', 'softwood'):
            return cls.CONIFER
        return cls.OTHER


@dataclass(frozen=True)
class Species:
    """Catalog entry for a species."""
    code: str
    name: str
    category: SpeciesCategory
    latin_name: Optional[str] = None

    @property
    def is_conifer(self) -> bool:
        return self.category == SpeciesCategory.CONIFER


class SpeciesCatalog:
    """Read-only lookup from species code to display name and category.

    Only used to label output; volume and price calculations never depend
    on it.
    """

    def __init__(self, species: Optional[List[Species]] = None):
        self._by_code: Dict[str, Species] = {}
        for entry in species or []:
            self._by_code[normalize_species_code(entry.code)] = entry

    @classmethod
    def from_config(cls, data: Dict) -> 'SpeciesCatalog':
        """Build a catalog from the ``species`` mapping of ``species.yaml``."""
        entries = []
        for code, info in (data.get('species') or {}).items():
            info = info or {}
            entries.append(Species(
                code=normalize_species_code(code),
                name=info.get('name', code),
                category=SpeciesCategory.from_label(info.get('category')),
                latin_name=info.get('latin_name'),
            ))
        return cls(entries)

    def __len__(self) -> int:
        return len(self._by_code)

    def __iter__(self) -> Iterator[Species]:
        return iter(self._by_code.values())

    def __contains__(self, code: str) -> bool:
        return self.get(code) is not None

    def get(self, code: Optional[str]) -> Optional[Species]:
        """Return the entry for ``code``, trying its aliases in order."""
        for candidate in species_candidates(code):
            found = self._by_code.get(candidate)
            if found is not None:
                return found
        return None

    def require(self, code: str) -> Species:
        """Like :meth:`get` but raises when the code is unknown."""
        found = self.get(code)
        if found is None:
            raise SpeciesNotFoundError(code)
        return found

    def display_name(self, code: Optional[str]) -> str:
        found = self.get(code)
        return found.name if found is not None else normalize_species_code(code)

    def category(self, code: Optional[str]) -> SpeciesCategory:
        found = self.get(code)
        return found.category if found is not None else SpeciesCategory.OTHER

    def codes(self, category: Optional[SpeciesCategory] = None) -> List[str]:
        return sorted(code for code, sp in self._by_code.items()
                      if category is None or sp.category == category)


_catalog: Optional[SpeciesCatalog] = None


def get_species_catalog() -> SpeciesCatalog:
    """Return the packaged species catalog, loading it on first use."""
    global _catalog
    if _catalog is None:
        from .config_loader import load_species_catalog
        _catalog = load_species_catalog()
        logger.debug("Loaded species catalog with %d entries", len(_catalog))
    return _catalog
