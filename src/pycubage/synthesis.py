"""
Diameter-class synthesis of a marked species.

For one species, trees are bucketed into diameter classes, a height is
resolved for each class, every tree is cubed with the selected tariff and
valued with the product rules and market prices, and per-class rows plus
totals are returned.

The :class:`ForestryCalculator` is bound to a parameter store. It reads the
user tables through :mod:`pycubage.parameter_store` and never caches them;
callers synthesising several species can load a
:class:`~pycubage.parameters.SynthesisParams` snapshot once and pass it to
each :meth:`ForestryCalculator.synthesize` call.

Usage:
    from pycubage.parameter_store import InMemoryParameterStore
    from pycubage.synthesis import ForestryCalculator

    calc = ForestryCalculator(InMemoryParameterStore())
    params = calc.load_synthesis_params()
    rows, totals = calc.synthesize('HETRE_COMMUN', [20, 25, 30], trees, params=params)
"""
import math
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from . import parameter_store
from .height import HeightResolver, lookup_form_factor, lookup_height
from .logging_config import get_logger, log_calculation_summary
from .parameter_store import ParameterStore
from .parameters import HeightDefaultRange, HeightModeEntry, SynthesisParams, TreeRecord
from .pricing import tree_unit_price
from .species import normalize_species_code
from .tariffs import (
    TariffMethod,
    TariffSelection,
    requires_height,
    resolve_method,
    volume_with_selection,
)
from .tree_utils import calculate_tree_basal_area

__all__ = [
    'diameter_class_for',
    'ClassSynthesis',
    'SynthesisTotals',
    'ForestryCalculator',
    'synthesis_dataframe',
]

logger = get_logger(__name__)


# ============================================================================
# Diameter classes
# ============================================================================

def diameter_class_for(diameter_cm: float, classes: Iterable[int]) -> int:
    """Class of a diameter under the midpoint rule.

    Classes are sorted and de-duplicated. A diameter below the midpoint
    between two neighbouring classes goes to the lower one; beyond the last
    midpoint it goes to the highest class. With a single class everything
    goes there; with no classes the rounded diameter is its own class.

    Example:
        >>> diameter_class_for(32.0, [30, 35])
        30
        >>> diameter_class_for(33.0, [30, 35])
        35
    """
    ordered = sorted(set(classes))
    if not ordered:
        return int(math.floor(diameter_cm + 0.5))
    if len(ordered) == 1:
        return ordered[0]

    for lower, upper in zip(ordered, ordered[1:]):
        if diameter_cm < (lower + upper) / 2.0:
            return lower
    return ordered[-1]


# ============================================================================
# Results
# ============================================================================

@dataclass(frozen=True)
class ClassSynthesis:
    """One diameter-class row.

    Attributes:
        diameter_class: Class (cm)
        count: Number of trees in the class
        mean_height: Mean of measured heights and the resolved height used
            for unmeasured trees, None when no height is known
        volume_sum: Total volume (m3), None when no tree produced a volume
        value_sum: Total value (EUR), None when volume_sum is None
    """
    diameter_class: int
    count: int
    mean_height: Optional[float]
    volume_sum: Optional[float]
    value_sum: Optional[float]


@dataclass(frozen=True)
class SynthesisTotals:
    """Totals over every class of a synthesis."""
    n_total: int
    mean_diameter: Optional[float]
    mean_height: Optional[float]
    volume_total: Optional[float]
    volume_completeness_pct: float = 100.0
    volume_computed_count: int = 0
    volume_expected_count: int = 0


def synthesis_dataframe(rows: Sequence[ClassSynthesis]) -> pd.DataFrame:
    """Class rows as a DataFrame, one row per class."""
    columns = ['diameter_class', 'count', 'mean_height', 'volume_sum', 'value_sum']
    return pd.DataFrame([asdict(row) for row in rows], columns=columns)


# ============================================================================
# Volume helpers
# ============================================================================

def _volume_with_defaults(
    species: str,
    diameter_cm: float,
    height_m: Optional[float],
    selection: Optional[TariffSelection],
    height_defaults: Sequence[HeightDefaultRange],
) -> Optional[float]:
    """Tree volume, looking a height up when the method needs one."""
    method = resolve_method(species, selection)
    h = height_m
    if requires_height(method) and h is None:
        h = lookup_height(height_defaults, species, diameter_cm)
        if h is None:
            return None
    return volume_with_selection(species, diameter_cm, h, selection)


# ============================================================================
# Calculator
# ============================================================================

class ForestryCalculator:
    """Volume and value engine bound to a parameter store.

    Attributes:
        store: External parameter store holding the user tables
    """

    def __init__(self, store: ParameterStore):
        self.store = store

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def load_synthesis_params(self) -> SynthesisParams:
        return parameter_store.load_synthesis_params(self.store)

    def load_tariff_selection(self) -> Optional[TariffSelection]:
        return parameter_store.load_tariff_selection(self.store)

    def save_tariff_selection(self, selection: TariffSelection) -> None:
        parameter_store.save_tariff_selection(self.store, selection)

    def current_tariff_method(self) -> TariffMethod:
        """Globally selected method, ALGAN when nothing valid is saved."""
        selection = self.load_tariff_selection()
        if selection is None:
            return TariffMethod.ALGAN
        return TariffMethod.from_code(selection.method) or TariffMethod.ALGAN

    def diameter_classes(self) -> List[int]:
        return parameter_store.load_diameter_classes(self.store)

    def get_height_mode(self, species: str, diameter_class: int) -> Optional[HeightModeEntry]:
        for entry in parameter_store.load_height_modes(self.store):
            if entry.matches(species, diameter_class):
                return entry
        return None

    def set_height_mode(self, entry: Optional[HeightModeEntry]) -> None:
        """Save a height-mode override; a DEFAULT entry removes the override."""
        if entry is None:
            return
        parameter_store.set_height_mode(self.store, entry)

    def lookup_height(self, species: str, diameter_cm: float) -> Optional[float]:
        """Default height for a species and diameter from the store table."""
        return lookup_height(parameter_store.load_height_defaults(self.store), species, diameter_cm)

    def lookup_form_factor(self, species: str, diameter_cm: float,
                           method: Optional[str] = None) -> float:
        """Form coefficient from the stored coefficient ranges."""
        return lookup_form_factor(parameter_store.load_coefficient_ranges(self.store),
                                  species, diameter_cm, method)

    # ------------------------------------------------------------------
    # Single tree
    # ------------------------------------------------------------------

    @staticmethod
    def basal_area(diameter_cm: float) -> float:
        """Basal area (m2) of a tree, pi * (D/200)^2."""
        return calculate_tree_basal_area(diameter_cm)

    def compute_volume(self, species: str, diameter_cm: float,
                       height_m: Optional[float] = None) -> Optional[float]:
        """Volume (m3) of one tree with the saved tariff selection.

        When the method needs a height and none is given, the default
        height table is used; without a default the result is None.
        """
        return _volume_with_defaults(species, diameter_cm, height_m,
                                     self.load_tariff_selection(),
                                     parameter_store.load_height_defaults(self.store))

    def volume_for_tree(self, tree: TreeRecord) -> Optional[float]:
        return self.compute_volume(tree.species, tree.diameter_cm, tree.height_m)

    # ------------------------------------------------------------------
    # Synthesis
    # ------------------------------------------------------------------

    def synthesize(
        self,
        species: str,
        classes: Sequence[int],
        trees: Iterable[TreeRecord],
        manual_heights: Optional[Dict[int, float]] = None,
        params: Optional[SynthesisParams] = None,
        require_heights: bool = False,
    ) -> Tuple[List[ClassSynthesis], SynthesisTotals]:
        """Per-class volume and value synthesis for one species.

        Args:
            species: Species code; trees of other species are ignored
            classes: Configured diameter classes (may be empty)
            trees: Tree records of any species
            manual_heights: Class -> height entered by the operator
            params: Parameter snapshot; loaded from the store when None
            require_heights: When True, a tree without a measured, manual,
                FIXED or SAMPLES height gets no volume if the tariff needs
                a height, instead of falling back to the default table

        Returns:
            (rows, totals); rows cover the configured classes and any class
            the trees fall into, in ascending order
        """
        if params is None:
            params = self.load_synthesis_params()
        selection = params.tariff_selection

        wanted = normalize_species_code(species)
        ordered_classes = sorted(set(classes or []))
        by_class: Dict[int, List[TreeRecord]] = {}
        for tree in trees:
            if normalize_species_code(tree.species) != wanted:
                continue
            cls = diameter_class_for(tree.diameter_cm, ordered_classes)
            by_class.setdefault(cls, []).append(tree)

        needs_height = requires_height(resolve_method(species, selection))
        resolver = HeightResolver(params.height_modes, params.height_defaults)

        rows = []
        n_total = 0
        diameter_sum = 0.0
        height_sum = 0.0
        height_count = 0
        volume_total = 0.0
        any_volume = False
        expected = 0
        computed = 0

        for d in sorted(set(ordered_classes) | set(by_class)):
            members = by_class.get(d, [])
            n_total += len(members)
            resolved_h = resolver.resolve(species, d, members, manual_heights=manual_heights,
                                          allow_default=not require_heights)

            heights = [t.height_m if t.height_m is not None else resolved_h for t in members]
            heights = [h for h in heights if h is not None]
            mean_height = sum(heights) / len(heights) if heights else None

            volume_sum = None
            value_sum = None
            if members:
                expected += len(members)
                class_volume = 0.0
                class_value = 0.0
                class_has_volume = False

                for tree in members:
                    h = tree.height_m if tree.height_m is not None else resolved_h
                    diameter_sum += tree.diameter_cm
                    if h is not None:
                        height_sum += h
                        height_count += 1

                    if require_heights and needs_height and h is None:
                        v = None
                    else:
                        v = _volume_with_defaults(species, tree.diameter_cm, h, selection,
                                                  params.height_defaults)
                    if v is None:
                        continue

                    computed += 1
                    class_has_volume = True
                    class_volume += v
                    unit_price = tree_unit_price(species, d, params.product_rules, params.prices,
                                                 quality=tree.quality, defects=tree.defects,
                                                 product_override=tree.product)
                    class_value += v * unit_price

                if class_has_volume:
                    volume_sum = class_volume
                    value_sum = class_value
                    volume_total += class_volume
                    any_volume = True

            rows.append(ClassSynthesis(diameter_class=d, count=len(members),
                                       mean_height=mean_height, volume_sum=volume_sum,
                                       value_sum=value_sum))

        completeness = computed / expected * 100.0 if expected > 0 else 100.0
        totals = SynthesisTotals(
            n_total=n_total,
            mean_diameter=diameter_sum / n_total if n_total > 0 else None,
            mean_height=height_sum / height_count if height_count > 0 else None,
            volume_total=volume_total if any_volume else None,
            volume_completeness_pct=min(100.0, max(0.0, completeness)),
            volume_computed_count=computed,
            volume_expected_count=expected,
        )
        log_calculation_summary(logger, f"Synthesis {wanted}", trees=n_total,
                                classes=len(rows), volume=totals.volume_total,
                                completeness=totals.volume_completeness_pct)
        return rows, totals
