"""
Product classification and price resolution.

A tree is routed to a product code by the user's ordered product rules
(first match wins) with a built-in heuristic when nothing matches. The
product is then priced from the user's market price table with a fixed
fallback order:

1. For each alias candidate of the species: exact species + exact
   product, then exact species + ``*`` product.
2. ``*`` species + exact product.
3. ``*`` species + ``*`` product.

Every tier only considers entries whose diameter band covers the class.
When no table entry applies, :func:`tree_unit_price` falls back to the
built-in prices of :class:`pycubage.quality.DefaultProductPrices`.

The module also carries the per-species quality coefficients used for
quality-adjusted price breakdowns.

Usage:
    from pycubage.pricing import classify_product, price_for

    product = classify_product('HETRE', 40, rules, quality=1)
    price = price_for('HETRE', product, 40, prices)
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .logging_config import get_logger
from .parameters import PriceEntry, ProductRule
from .quality import DefaultProductPrices, WoodQualityGrade
from .species import species_candidates, species_matches
from .utils import WILDCARD, normalize_code, normalize_tags

__all__ = [
    'classify_product',
    'fallback_product',
    'price_for',
    'tree_unit_price',
    'QUALITY_COEFFICIENTS',
    'quality_coefficient',
    'find_base_price',
    'adjusted_price',
    'ProductBreakdownRow',
    'build_breakdown',
]

logger = get_logger(__name__)


# ============================================================================
# Product classification
# ============================================================================

def _rule_matches(rule: ProductRule, species: str, diameter_class: int,
                  quality: Optional[int], defects: set) -> bool:
    if not species_matches(rule.species, species):
        return False
    if rule.min is not None and diameter_class < rule.min:
        return False
    if rule.max is not None and diameter_class > rule.max:
        return False
    if rule.min_quality is not None and (quality is None or quality < rule.min_quality):
        return False
    if rule.max_quality is not None and (quality is None or quality > rule.max_quality):
        return False
    required = normalize_code(rule.requires_defect)
    if required and required not in defects:
        return False
    excluded = normalize_code(rule.excludes_defect)
    if excluded and excluded in defects:
        return False
    return True


def fallback_product(diameter_class: int, quality: Optional[int] = None,
                     defects: Optional[Iterable[str]] = None) -> str:
    """Built-in product routing used when no rule matches.

    Poor quality and visible defects downgrade the tree before the plain
    diameter thresholds (35 BO, 20 BI, 7 BCh, else PATE) apply.
    """
    if quality is not None:
        if quality >= 3:
            return 'PATE'
        if quality >= 2 and diameter_class >= 20:
            return 'BCh'
    if normalize_tags(defects) and diameter_class >= 20:
        return 'BCh'

    if diameter_class >= 35:
        return 'BO'
    elif diameter_class >= 20:
        return 'BI'
    elif diameter_class >= 7:
        return 'BCh'
    return 'PATE'


def classify_product(
    species: str,
    diameter_class: int,
    rules: Sequence[ProductRule],
    quality: Optional[int] = None,
    defects: Optional[Iterable[str]] = None,
) -> str:
    """Product code for a tree of ``species`` in ``diameter_class``.

    Args:
        species: Species code (aliases are honoured)
        diameter_class: Diameter class (cm)
        rules: Ordered product rules
        quality: Quality ordinal 0..3 (A..D), None if not graded
        defects: Defect tags of the tree

    Returns:
        Product code of the first matching rule, else the fallback product
    """
    tags = normalize_tags(defects)
    for rule in rules:
        if _rule_matches(rule, species, diameter_class, quality, tags):
            return rule.product.strip()
    return fallback_product(diameter_class, quality, tags)


# ============================================================================
# Price resolution
# ============================================================================

def _first_price(prices: Sequence[PriceEntry], diameter_class: int,
                 species: str, product: str) -> Optional[float]:
    for entry in prices:
        if (normalize_code(entry.species) == species
                and normalize_code(entry.product) == product
                and entry.covers(diameter_class)):
            return entry.eur_per_m3
    return None


def price_for(species: str, product: str, diameter_class: int,
              prices: Sequence[PriceEntry]) -> Optional[float]:
    """Market price (EUR/m3) for a species, product and diameter class.

    Returns None when no entry of the table applies.
    """
    wanted = normalize_code(product)
    for candidate in species_candidates(species):
        exact = _first_price(prices, diameter_class, candidate, wanted)
        if exact is not None:
            return exact
        any_product = _first_price(prices, diameter_class, candidate, WILDCARD)
        if any_product is not None:
            return any_product

    any_species = _first_price(prices, diameter_class, WILDCARD, wanted)
    if any_species is not None:
        return any_species
    return _first_price(prices, diameter_class, WILDCARD, WILDCARD)


def tree_unit_price(
    species: str,
    diameter_class: int,
    rules: Sequence[ProductRule],
    prices: Sequence[PriceEntry],
    quality: Optional[int] = None,
    defects: Optional[Iterable[str]] = None,
    product_override: Optional[str] = None,
) -> float:
    """EUR/m3 applied to one tree's volume.

    The tree product is the operator override when set, else the rule
    classification. It is priced from the table, then retried with the
    class default product (rules applied without quality or defects), then
    priced from the built-in defaults with the tree's grade (C when not
    graded).
    """
    rule_product = classify_product(species, diameter_class, rules, quality, defects)
    override = (product_override or '').strip()
    product = override or rule_product

    price = price_for(species, product, diameter_class, prices)
    if price is None:
        default_product = classify_product(species, diameter_class, rules)
        if normalize_code(default_product) != normalize_code(product):
            price = price_for(species, default_product, diameter_class, prices)
    if price is not None:
        return price

    grade = WoodQualityGrade.from_ordinal(quality) or WoodQualityGrade.C
    logger.debug("No market price for %s/%s at class %s, using built-in prices",
                 species, product, diameter_class)
    return DefaultProductPrices.price_for(product, species, grade)


# ============================================================================
# Quality-adjusted breakdown
# ============================================================================

# Price multipliers by quality letter, per species
QUALITY_COEFFICIENTS: Dict[str, Dict[str, float]] = {
    # Oaks
    'CH_SESSILE': {'A': 1.40, 'B': 1.15, 'C': 0.85, 'D': 0.55},
    'CH_PEDONCULE': {'A': 1.35, 'B': 1.12, 'C': 0.88, 'D': 0.60},
    'CH_PUBESCENT': {'A': 1.25, 'B': 1.10, 'C': 0.90, 'D': 0.65},
    'CH_ROUGE': {'A': 1.30, 'B': 1.12, 'C': 0.88, 'D': 0.62},
    'HETRE_COMMUN': {'A': 1.50, 'B': 1.20, 'C': 0.80, 'D': 0.45},
    'DOUGLAS_VERT': {'A': 1.50, 'B': 1.20, 'C': 0.80, 'D': 0.50},
    # Firs and spruces
    'SAPIN_PECTINE': {'A': 1.35, 'B': 1.15, 'C': 0.85, 'D': 0.60},
    'EPICEA_COMMUN': {'A': 1.30, 'B': 1.12, 'C': 0.88, 'D': 0.65},
    'SAPIN_GRANDIS': {'A': 1.35, 'B': 1.15, 'C': 0.85, 'D': 0.58},
    # Pines
    'PIN_SYLVESTRE': {'A': 1.25, 'B': 1.10, 'C': 0.90, 'D': 0.70},
    'PIN_MARITIME': {'A': 1.20, 'B': 1.08, 'C': 0.92, 'D': 0.72},
    'PIN_NOIR_AUTR': {'A': 1.25, 'B': 1.10, 'C': 0.90, 'D': 0.68},
    'PIN_LARICIO': {'A': 1.30, 'B': 1.12, 'C': 0.88, 'D': 0.65},
    # Larches
    'MEL_EUROPE': {'A': 1.35, 'B': 1.15, 'C': 0.85, 'D': 0.62},
    'MEL_JAPON': {'A': 1.30, 'B': 1.12, 'C': 0.88, 'D': 0.60},
    # Valuable broadleaves
    'FRENE_ELEVE': {'A': 1.45, 'B': 1.20, 'C': 0.80, 'D': 0.50},
    'ERABLE_SYC': {'A': 1.50, 'B': 1.25, 'C': 0.75, 'D': 0.45},
    'NOYER_COMMUN': {'A': 1.60, 'B': 1.30, 'C': 0.70, 'D': 0.40},
    'CERISIER_MERIS': {'A': 1.55, 'B': 1.25, 'C': 0.72, 'D': 0.42},
    'ALISIER_TORMINAL': {'A': 1.55, 'B': 1.25, 'C': 0.75, 'D': 0.45},
    'CORMIER': {'A': 1.60, 'B': 1.30, 'C': 0.70, 'D': 0.40},
    # Other broadleaves
    'CHARME': {'A': 1.15, 'B': 1.05, 'C': 0.92, 'D': 0.75},
    'CHATAIGNIER': {'A': 1.30, 'B': 1.15, 'C': 0.85, 'D': 0.65},
    'ROBINIER': {'A': 1.40, 'B': 1.20, 'C': 0.80, 'D': 0.55},
    'PEUPLIER_HYBR': {'A': 1.30, 'B': 1.12, 'C': 0.88, 'D': 0.65},
    'CEDRE_ATLAS': {'A': 1.35, 'B': 1.15, 'C': 0.85, 'D': 0.60},
    'SEQUOIA_TOUJOURS_VERT': {'A': 1.30, 'B': 1.12, 'C': 0.88, 'D': 0.65},
    WILDCARD: {'A': 1.30, 'B': 1.10, 'C': 0.90, 'D': 0.65},
}


def quality_coefficient(species: str, quality: Optional[str]) -> float:
    """Price multiplier for a species and quality letter.

    Only the first letter of ``quality`` is read. No quality gives 1.0 and
    an unlisted species uses the ``*`` row.
    """
    letter = normalize_code(quality)[:1]
    if not letter:
        return 1.0
    coefs = QUALITY_COEFFICIENTS.get(species) or QUALITY_COEFFICIENTS[WILDCARD]
    return coefs.get(letter, 1.0)


def find_base_price(prices: Sequence[PriceEntry], species: str, product: str,
                    diameter: int) -> Optional[float]:
    """Exact species price for the product and diameter, else the ``*`` price."""
    species_code = normalize_code(species)
    wanted = normalize_code(product)
    exact = _first_price(prices, diameter, species_code, wanted)
    if exact is not None:
        return exact
    return _first_price(prices, diameter, WILDCARD, wanted)


def adjusted_price(prices: Sequence[PriceEntry], species: str, product: str,
                   diameter: int, quality: Optional[str] = None) -> Optional[float]:
    """Base price multiplied by the species quality coefficient."""
    base = find_base_price(prices, species, product, diameter)
    if base is None:
        return None
    return base * quality_coefficient(species, quality)


@dataclass(frozen=True)
class ProductBreakdownRow:
    """Volume, unit price and value of one product."""
    product: str
    volume_m3: float
    price_per_m3: float
    total_eur: float


def build_breakdown(
    prices: Sequence[PriceEntry],
    species: str,
    volume_by_product: Mapping[str, float],
    diameter: int,
    quality: Optional[str] = None,
) -> List[ProductBreakdownRow]:
    """Value each product volume with quality-adjusted prices.

    Products without a price are valued at 0.

    Args:
        prices: Market price table
        species: Species code
        volume_by_product: Product code -> volume (m3)
        diameter: Mean diameter used for the price lookup (cm)
        quality: Overall quality letter (A..D) or None

    Returns:
        One row per product, in the mapping's order
    """
    rows = []
    for product, volume in volume_by_product.items():
        unit = adjusted_price(prices, species, product, diameter, quality) or 0.0
        rows.append(ProductBreakdownRow(product=product, volume_m3=volume,
                                        price_per_m3=unit, total_eur=unit * volume))
    return rows
