"""
Product cut-out: split of a stem volume between products.

A standing tree is never sold as a single product; its volume is shared
between sawlog (BO), industry wood (BI), firewood (BCh), energy wood (BE)
and specialty products according to cut-out rules by diameter band.

Rule resolution for one tree:

1. Species rules covering the diameter (custom rules when supplied,
   otherwise the built-in species rules).
2. Category defaults (broadleaf, or conifer for "résineux"/"conifère"
   labels; any other label uses the broadleaf defaults).
3. Everything to BO when D >= 35 cm, else to BI.

Percentages of the selected rules are normalised by their sum, so rule
sets that do not add up to 100 still distribute the whole volume.

Usage:
    from pycubage.merchandising import split_volume_by_product

    split_volume_by_product(2.4, 'DOUGLAS_VERT', 'Résineux', 42.0)
    # {'BO': 1.92, 'BI': 0.36, 'BE': 0.12}
"""
from typing import Dict, List, Optional, Sequence

from .logging_config import get_logger
from .parameter_store import ParameterKeys, ParameterStore, decode_list
from .species import SpeciesCategory, species_matches
from .tariff_data import CUT_RULES_BROADLEAF, CUT_RULES_CONIFER, CUT_RULES_SPECIES, CutRule
from .utils import is_wildcard

__all__ = [
    'split_volume_by_product',
    'apply_cut_rules',
    'category_cut_rules',
    'load_cut_rules',
]

logger = get_logger(__name__)


def apply_cut_rules(volume: float, rules: Sequence[CutRule]) -> Dict[str, float]:
    """Distribute ``volume`` over the products of ``rules``.

    Shares are each rule's percentage over the percentage sum. Several
    rules naming the same product add up. A non-positive percentage sum
    sends the whole volume to BO.
    """
    total_pct = sum(rule.pct_volume for rule in rules)
    if total_pct <= 0:
        return {'BO': volume}

    split: Dict[str, float] = {}
    for rule in rules:
        split[rule.product] = split.get(rule.product, 0.0) + volume * (rule.pct_volume / total_pct)
    return split


def category_cut_rules(category: Optional[str]) -> List[CutRule]:
    """Built-in cut-out defaults for a category label."""
    if SpeciesCategory.from_label(category) == SpeciesCategory.CONIFER:
        return CUT_RULES_CONIFER
    return CUT_RULES_BROADLEAF


def split_volume_by_product(
    volume: float,
    species: str,
    category: Optional[str],
    diameter_cm: float,
    custom_rules: Optional[Sequence[CutRule]] = None,
) -> Dict[str, float]:
    """Split a tree volume into product volumes.

    Args:
        volume: Stem volume (m3)
        species: Species code
        category: Category label ("Feuillu", "Résineux", "conifer"...)
        diameter_cm: Diameter at breast height (cm)
        custom_rules: Species cut-out rules replacing the built-in ones

    Returns:
        Product code -> volume (m3); empty for a non-positive volume
    """
    if volume <= 0:
        return {}
    d = int(diameter_cm)

    source = CUT_RULES_SPECIES if custom_rules is None else custom_rules
    species_rules = [r for r in source
                     if not is_wildcard(r.species) and species_matches(r.species, species) and r.covers(d)]
    if species_rules:
        return apply_cut_rules(volume, species_rules)

    category_rules = [r for r in category_cut_rules(category) if r.covers(d)]
    if category_rules:
        return apply_cut_rules(volume, category_rules)

    logger.debug("No cut-out rule for %s at %s cm", species, d)
    return {'BO': volume} if d >= 35 else {'BI': volume}


def load_cut_rules(store: ParameterStore) -> Optional[List[CutRule]]:
    """Custom cut-out rules from the store, None when none are saved."""
    rules = decode_list(store.get(ParameterKeys.CUT_RULES), CutRule.from_dict)
    return rules or None
