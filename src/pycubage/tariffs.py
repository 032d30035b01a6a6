"""
Tariff volume engine.

Computes the merchantable stem volume ("bois fort tige", m3) of a standing
tree with one of the French cubing methods:

- **SCHAEFFER_1E**: Schaeffer one-entry, V = a + b * C^2
- **SCHAEFFER_2E**: Schaeffer two-entry, V = a + b * C^2 * H
- **ALGAN**: power law per species, V = a * D^b * H^c
- **IFN_RAPIDE**: IFN one-entry polynomial in D (36 tariffs)
- **IFN_LENT**: IFN two-entry polynomial in D and H (8 tariffs)
- **FGH**: V = F * G * H with an explicit form factor
- **COEF_FORME**: V = G * H * f with the species form coefficient

Missing data (diameter <= 0, a required height absent, an unknown tariff
number) gives ``None`` rather than an exception.

Usage:
    from pycubage.tariffs import TariffMethod, compute_volume

    v = compute_volume(TariffMethod.ALGAN, 'HETRE_COMMUN', 35.0, height_m=22.0)
    v1 = compute_volume(TariffMethod.SCHAEFFER_1E, 'HETRE_COMMUN', 35.0, tariff_number=7)
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .exceptions import UnknownTariffMethodError
from .logging_config import get_logger
from .species import normalize_species_code, species_candidates
from .tariff_data import (
    ALGAN_COEFFICIENTS,
    ALGAN_MEDIAN_SPECIES,
    DEFAULT_FORM_COEFFICIENT,
    FORM_COEFFICIENTS,
    IFN_LENT,
    IFN_RAPIDE,
    SCHAEFFER_ONE_ENTRY,
    SCHAEFFER_TWO_ENTRY,
    SPECIES_TO_IFN_LENT,
    SPECIES_TO_IFN_RAPIDE,
)

__all__ = [
    'TariffMethod',
    'TariffSelection',
    'compute_volume',
    'requires_height',
    'recommended_tariff_number',
    'available_tariff_numbers',
    'default_form_coefficient',
    'algan_coefficients_for',
    'resolve_method',
    'resolve_tariff_number',
    'volume_with_selection',
]

logger = get_logger(__name__)


class TariffMethod(str, Enum):
    """Volume estimation methods."""
    SCHAEFFER_1E = 'SCHAEFFER_1E'
    SCHAEFFER_2E = 'SCHAEFFER_2E'
    ALGAN = 'ALGAN'
    IFN_RAPIDE = 'IFN_RAPIDE'
    IFN_LENT = 'IFN_LENT'
    FGH = 'FGH'
    COEF_FORME = 'COEF_FORME'

    @property
    def entries(self) -> int:
        """Number of tree measurements the method needs (1 = D, 2 = D and H)."""
        return 1 if self in (TariffMethod.SCHAEFFER_1E, TariffMethod.IFN_RAPIDE) else 2

    @property
    def label(self) -> str:
        return _METHOD_LABELS[self]

    @classmethod
    def from_code(cls, code: Optional[str], strict: bool = False) -> Optional['TariffMethod']:
        """Parse a method code case-insensitively.

        Returns None for unknown codes unless ``strict`` is set, in which
        case :class:`UnknownTariffMethodError` is raised.
        """
        key = (code or '').strip().upper()
        try:
            return cls(key)
        except ValueError:
            if strict:
                raise UnknownTariffMethodError(code)
            return None


_METHOD_LABELS = {
    TariffMethod.SCHAEFFER_1E: 'Schaeffer 1 entrée',
    TariffMethod.SCHAEFFER_2E: 'Schaeffer 2 entrées',
    TariffMethod.ALGAN: 'Algan',
    TariffMethod.IFN_RAPIDE: 'Tarif rapide IFN',
    TariffMethod.IFN_LENT: 'Tarif lent IFN',
    TariffMethod.FGH: 'FGH',
    TariffMethod.COEF_FORME: 'Coefficient de forme',
}


# ============================================================================
# Method formulas
# ============================================================================

def _circumference_m(diameter_cm: float) -> float:
    return math.pi * diameter_cm / 100.0


def _schaeffer_one_entry(species: str, diameter_cm: float,
                         tariff_number: Optional[int]) -> Optional[float]:
    number = tariff_number
    if number is None:
        ifn = SPECIES_TO_IFN_RAPIDE.get(normalize_species_code(species))
        number = min(max(ifn // 2, 1), 16) if ifn is not None else 8
    coefs = SCHAEFFER_ONE_ENTRY.get(number)
    if coefs is None:
        return None
    c = _circumference_m(diameter_cm)
    return max(0.0, coefs['a'] + coefs['b'] * c * c)


def _schaeffer_two_entry(species: str, diameter_cm: float, height_m: float,
                         tariff_number: Optional[int]) -> Optional[float]:
    number = tariff_number
    if number is None:
        ifn = SPECIES_TO_IFN_LENT.get(normalize_species_code(species))
        number = min(max(ifn, 1), 8) if ifn is not None else 4
    coefs = SCHAEFFER_TWO_ENTRY.get(number)
    if coefs is None:
        return None
    c = _circumference_m(diameter_cm)
    return max(0.0, coefs['a'] + coefs['b'] * c * c * height_m)


def _algan(species: str, diameter_cm: float, height_m: float) -> float:
    coefs = algan_coefficients_for(species)
    if coefs is None:
        logger.debug("No Algan coefficients for %s, using %s", species, ALGAN_MEDIAN_SPECIES)
        coefs = ALGAN_COEFFICIENTS[ALGAN_MEDIAN_SPECIES]
    if diameter_cm <= 0 or height_m <= 0:
        return 0.0
    return max(0.0, coefs['a'] * diameter_cm ** coefs['b'] * height_m ** coefs['c'])


def _ifn_rapide(species: str, diameter_cm: float,
                tariff_number: Optional[int]) -> Optional[float]:
    number = tariff_number
    if number is None:
        number = SPECIES_TO_IFN_RAPIDE.get(normalize_species_code(species))
        if number is None:
            return None
    coefs = IFN_RAPIDE.get(number)
    if coefs is None:
        return None
    dm3 = max(0.0, coefs['a0'] + coefs['a1'] * diameter_cm + coefs['a2'] * diameter_cm ** 2)
    volume = dm3 / 1000.0
    return volume if volume > 0 else None


def _ifn_lent(species: str, diameter_cm: float, height_m: float,
              tariff_number: Optional[int]) -> Optional[float]:
    number = tariff_number
    if number is None:
        number = SPECIES_TO_IFN_LENT.get(normalize_species_code(species))
        if number is None:
            return None
    coefs = IFN_LENT.get(number)
    if coefs is None:
        return None
    d2 = diameter_cm ** 2
    dm3 = max(0.0, coefs['a0'] + coefs['a1'] * d2 + coefs['a2'] * d2 * height_m)
    volume = dm3 / 1000.0
    return volume if volume > 0 else None


def _form_volume(species: str, diameter_cm: float, height_m: float,
                 form_override: Optional[float]) -> float:
    f = form_override if form_override is not None else default_form_coefficient(species)
    g = math.pi / 4.0 * (diameter_cm / 100.0) ** 2
    return g * height_m * f


# ============================================================================
# Public API
# ============================================================================

def compute_volume(
    method: TariffMethod,
    species: str,
    diameter_cm: float,
    height_m: Optional[float] = None,
    tariff_number: Optional[int] = None,
    form_override: Optional[float] = None,
) -> Optional[float]:
    """Compute the stem volume of one tree.

    Args:
        method: Cubing method
        species: Species code
        diameter_cm: Diameter at 1.30 m (cm)
        height_m: Total height (m); required by two-entry methods
        tariff_number: Numbered tariff for Schaeffer/IFN methods. When None
            the species recommendation is used.
        form_override: Form coefficient replacing the species default
            (FGH and COEF_FORME only)

    Returns:
        Volume in m3, or None when the inputs are insufficient.
    """
    if diameter_cm is None or diameter_cm <= 0:
        return None

    if method == TariffMethod.SCHAEFFER_1E:
        return _schaeffer_one_entry(species, diameter_cm, tariff_number)
    if method == TariffMethod.IFN_RAPIDE:
        return _ifn_rapide(species, diameter_cm, tariff_number)

    if height_m is None:
        return None
    if method == TariffMethod.SCHAEFFER_2E:
        return _schaeffer_two_entry(species, diameter_cm, height_m, tariff_number)
    elif method == TariffMethod.ALGAN:
        return _algan(species, diameter_cm, height_m)
    elif method == TariffMethod.IFN_LENT:
        return _ifn_lent(species, diameter_cm, height_m, tariff_number)
    elif method in (TariffMethod.FGH, TariffMethod.COEF_FORME):
        return _form_volume(species, diameter_cm, height_m, form_override)
    return None


def requires_height(method: TariffMethod) -> bool:
    """True for two-entry methods (height is a formula input)."""
    return method.entries == 2


def recommended_tariff_number(method: TariffMethod, species: str) -> Optional[int]:
    """Default numbered tariff for a species.

    Schaeffer methods use the average tariff (8 and 4). IFN fast falls back
    to the integer mean of the species table, IFN slow to 4. Methods
    without numbered tariffs return None.
    """
    code = normalize_species_code(species)
    if method == TariffMethod.SCHAEFFER_1E:
        return 8
    if method == TariffMethod.SCHAEFFER_2E:
        return 4
    if method == TariffMethod.IFN_RAPIDE:
        number = SPECIES_TO_IFN_RAPIDE.get(code)
        if number is None:
            values = list(SPECIES_TO_IFN_RAPIDE.values())
            number = sum(values) // len(values)
        return number
    if method == TariffMethod.IFN_LENT:
        return SPECIES_TO_IFN_LENT.get(code, 4)
    return None


def available_tariff_numbers(method: TariffMethod) -> Optional[range]:
    """Range of valid tariff numbers for a numbered method, else None."""
    if method == TariffMethod.SCHAEFFER_1E:
        return range(1, 17)
    if method == TariffMethod.SCHAEFFER_2E:
        return range(1, 9)
    if method == TariffMethod.IFN_RAPIDE:
        return range(1, 37)
    if method == TariffMethod.IFN_LENT:
        return range(1, 9)
    return None


def default_form_coefficient(species: str) -> float:
    """Tabulated form coefficient for a species, else the '*' entry, else 0.45."""
    code = normalize_species_code(species)
    if code in FORM_COEFFICIENTS:
        return FORM_COEFFICIENTS[code]
    return FORM_COEFFICIENTS.get('*', DEFAULT_FORM_COEFFICIENT)


def algan_coefficients_for(species: str) -> Optional[Dict[str, float]]:
    """Algan (a, b, c) for the first alias candidate that has an entry."""
    for candidate in species_candidates(species):
        coefs = ALGAN_COEFFICIENTS.get(candidate)
        if coefs is not None:
            return coefs
    return None


# ============================================================================
# Tariff selection
# ============================================================================

@dataclass(frozen=True)
class TariffSelection:
    """User choice of cubing method, persisted in the parameter store.

    Attributes:
        method: Method code applied to every species without an override
        schaeffer_number: Numbered tariff for the Schaeffer methods
        ifn_number: Numbered tariff for the IFN methods
        species_overrides: Species code -> method code
    """
    method: str = TariffMethod.ALGAN.value
    schaeffer_number: Optional[int] = None
    ifn_number: Optional[int] = None
    species_overrides: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TariffSelection':
        overrides = data.get('species_overrides') or {}
        return cls(
            method=str(data['method']),
            schaeffer_number=None if data.get('schaeffer_number') is None else int(data['schaeffer_number']),
            ifn_number=None if data.get('ifn_number') is None else int(data['ifn_number']),
            species_overrides={normalize_species_code(k): str(v) for k, v in overrides.items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'method': self.method,
            'schaeffer_number': self.schaeffer_number,
            'ifn_number': self.ifn_number,
            'species_overrides': dict(self.species_overrides),
        }


def resolve_method(species: str, selection: Optional[TariffSelection]) -> TariffMethod:
    """Method applying to ``species``: valid species override, then the
    selection's method, then ALGAN."""
    if selection is None:
        return TariffMethod.ALGAN
    override = selection.species_overrides.get(normalize_species_code(species))
    if override is not None:
        method = TariffMethod.from_code(override)
        if method is not None:
            return method
    return TariffMethod.from_code(selection.method) or TariffMethod.ALGAN


def resolve_tariff_number(method: TariffMethod, species: str,
                          selection: Optional[TariffSelection]) -> Optional[int]:
    """Numbered tariff from the selection, else the species recommendation."""
    if method in (TariffMethod.SCHAEFFER_1E, TariffMethod.SCHAEFFER_2E):
        chosen = selection.schaeffer_number if selection is not None else None
    elif method in (TariffMethod.IFN_RAPIDE, TariffMethod.IFN_LENT):
        chosen = selection.ifn_number if selection is not None else None
    else:
        return None
    return chosen if chosen is not None else recommended_tariff_number(method, species)


def volume_with_selection(species: str, diameter_cm: float, height_m: Optional[float],
                          selection: Optional[TariffSelection]) -> Optional[float]:
    """Volume of one tree under the method and number a selection resolves to."""
    if diameter_cm is None or diameter_cm <= 0:
        return None
    method = resolve_method(species, selection)
    number = resolve_tariff_number(method, species, selection)
    return compute_volume(method, species, diameter_cm, height_m, number)
