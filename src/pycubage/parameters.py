"""
Parameter records used by the volume and pricing engine.

These are the user-editable tables held in the external parameter store
(coefficient ranges, height defaults, height modes, product rules, market
prices) plus the tree record read from field capture. Every record has a
``from_dict``/``to_dict`` pair matching the JSON stored under the keys in
:mod:`pycubage.parameter_store`.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from .utils import normalize_code, is_wildcard

__all__ = [
    'HeightMode',
    'CoefficientRange',
    'HeightDefaultRange',
    'HeightModeEntry',
    'ProductRule',
    'PriceEntry',
    'TreeRecord',
    'SynthesisParams',
]


def _opt_int(value) -> Optional[int]:
    return None if value is None else int(value)


def _opt_float(value) -> Optional[float]:
    return None if value is None else float(value)


def _opt_str(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _defect_tags(value) -> FrozenSet[str]:
    """Defect tags from a collection or a comma-separated string."""
    if not value:
        return frozenset()
    if isinstance(value, str):
        value = value.split(',')
    return frozenset(tag.strip() for tag in value if tag and tag.strip())


class HeightMode(str, Enum):
    """Height policy of a (species, diameter class) pair."""
    DEFAULT = 'DEFAULT'
    FIXED = 'FIXED'
    SAMPLES = 'SAMPLES'

    @classmethod
    def from_code(cls, code: Optional[str]) -> 'HeightMode':
        """Parse a mode code; anything unrecognised means DEFAULT."""
        try:
            return cls(normalize_code(code))
        except ValueError:
            return cls.DEFAULT


@dataclass(frozen=True)
class CoefficientRange:
    """Form coefficient for a species over an inclusive diameter range.

    ``method`` optionally tags the entry for one tariff family
    (``RAPIDE``/``LENT``).
    """
    species: str
    min: int
    max: int
    f: float
    method: Optional[str] = None

    def covers(self, diameter: int) -> bool:
        return self.min <= diameter <= self.max

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CoefficientRange':
        return cls(
            species=str(data['species']),
            min=int(data['min']),
            max=int(data['max']),
            f=float(data['f']),
            method=_opt_str(data.get('method')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'species': self.species, 'min': self.min, 'max': self.max,
                'f': self.f, 'method': self.method}


@dataclass(frozen=True)
class HeightDefaultRange:
    """Default height (m) for a species over an inclusive diameter range."""
    species: str
    min: int
    max: int
    h: float

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2.0

    def covers(self, diameter: int) -> bool:
        return self.min <= diameter <= self.max

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HeightDefaultRange':
        return cls(
            species=str(data['species']),
            min=int(data['min']),
            max=int(data['max']),
            h=float(data['h']),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'species': self.species, 'min': self.min, 'max': self.max, 'h': self.h}


@dataclass(frozen=True)
class HeightModeEntry:
    """User override of the height policy for one species and diameter class."""
    species: str
    diameter_class: int
    mode: HeightMode = HeightMode.DEFAULT
    fixed: Optional[float] = None

    def matches(self, species: str, diameter_class: int) -> bool:
        return (normalize_code(self.species) == normalize_code(species)
                and self.diameter_class == diameter_class)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HeightModeEntry':
        return cls(
            species=str(data['species']),
            diameter_class=int(data['diameter_class']),
            mode=HeightMode.from_code(data.get('mode')),
            fixed=_opt_float(data.get('fixed')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'species': self.species, 'diameter_class': self.diameter_class,
                'mode': self.mode.value, 'fixed': self.fixed}


@dataclass(frozen=True)
class ProductRule:
    """Ordered classification rule mapping a tree to a product code.

    Unset bounds and a wildcard species (``None`` or ``*``) match anything.
    Quality bounds only match trees with a known quality.
    """
    product: str
    species: Optional[str] = None
    min: Optional[int] = None
    max: Optional[int] = None
    min_quality: Optional[int] = None
    max_quality: Optional[int] = None
    requires_defect: Optional[str] = None
    excludes_defect: Optional[str] = None

    @property
    def is_wildcard(self) -> bool:
        return is_wildcard(self.species)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProductRule':
        return cls(
            product=str(data['product']),
            species=_opt_str(data.get('species')),
            min=_opt_int(data.get('min')),
            max=_opt_int(data.get('max')),
            min_quality=_opt_int(data.get('min_quality')),
            max_quality=_opt_int(data.get('max_quality')),
            requires_defect=_opt_str(data.get('requires_defect')),
            excludes_defect=_opt_str(data.get('excludes_defect')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product': self.product, 'species': self.species,
            'min': self.min, 'max': self.max,
            'min_quality': self.min_quality, 'max_quality': self.max_quality,
            'requires_defect': self.requires_defect,
            'excludes_defect': self.excludes_defect,
        }


@dataclass(frozen=True)
class PriceEntry:
    """Market price (EUR/m3) for a species/product over a diameter band."""
    species: str
    product: str
    min: int
    max: int
    eur_per_m3: float
    quality: Optional[str] = None

    def covers(self, diameter: int) -> bool:
        return self.min <= diameter <= self.max

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PriceEntry':
        return cls(
            species=str(data['species']),
            product=str(data['product']),
            min=int(data['min']),
            max=int(data['max']),
            eur_per_m3=float(data['eur_per_m3']),
            quality=_opt_str(data.get('quality')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'species': self.species, 'product': self.product, 'min': self.min,
                'max': self.max, 'eur_per_m3': self.eur_per_m3, 'quality': self.quality}


@dataclass(frozen=True)
class TreeRecord:
    """A single measured stem.

    Attributes:
        id: Tree identifier
        parcel_id: Parcel identifier
        plot_id: Sample plot identifier (None for full inventories)
        species: Species code
        diameter_cm: Diameter at breast height (cm)
        height_m: Measured total height (m), None if not measured
        quality: Quality ordinal 0..3 (A..D), None if not graded
        defects: Defect tags
        product: Product code forced by the operator
        form_coefficient: Form coefficient measured on the tree
        value_eur: Monetary value computed upstream
        timestamp_ms: Capture time (epoch milliseconds)
        category: Species category label carried by the capture
    """
    id: str
    species: str
    diameter_cm: float
    parcel_id: Optional[str] = None
    plot_id: Optional[str] = None
    height_m: Optional[float] = None
    quality: Optional[int] = None
    defects: FrozenSet[str] = field(default_factory=frozenset)
    product: Optional[str] = None
    form_coefficient: Optional[float] = None
    value_eur: Optional[float] = None
    timestamp_ms: int = 0
    category: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.defects, frozenset):
            object.__setattr__(self, 'defects', _defect_tags(self.defects))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TreeRecord':
        return cls(
            id=str(data['id']),
            species=str(data['species']),
            diameter_cm=float(data['diameter_cm']),
            parcel_id=_opt_str(data.get('parcel_id')),
            plot_id=_opt_str(data.get('plot_id')),
            height_m=_opt_float(data.get('height_m')),
            quality=_opt_int(data.get('quality')),
            defects=_defect_tags(data.get('defects')),
            product=_opt_str(data.get('product')),
            form_coefficient=_opt_float(data.get('form_coefficient')),
            value_eur=_opt_float(data.get('value_eur')),
            timestamp_ms=int(data.get('timestamp_ms') or 0),
            category=_opt_str(data.get('category')),
        )


@dataclass(frozen=True)
class SynthesisParams:
    """Snapshot of every parameter table a synthesis needs.

    Loaded once from the store and reusable across synthesis calls.
    """
    coefficient_ranges: List[CoefficientRange] = field(default_factory=list)
    height_defaults: List[HeightDefaultRange] = field(default_factory=list)
    height_modes: List[HeightModeEntry] = field(default_factory=list)
    product_rules: List[ProductRule] = field(default_factory=list)
    prices: List[PriceEntry] = field(default_factory=list)
    tariff_selection: Optional[Any] = None

    @classmethod
    def build(
        cls,
        coefficient_ranges: Iterable[CoefficientRange] = (),
        height_defaults: Iterable[HeightDefaultRange] = (),
        height_modes: Iterable[HeightModeEntry] = (),
        product_rules: Iterable[ProductRule] = (),
        prices: Iterable[PriceEntry] = (),
        tariff_selection=None,
    ) -> 'SynthesisParams':
        return cls(list(coefficient_ranges), list(height_defaults), list(height_modes),
                   list(product_rules), list(prices), tariff_selection)
