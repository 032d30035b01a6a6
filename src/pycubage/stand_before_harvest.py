"""
Pre-harvest stand table for conifer plots ("peuplement avant coupe").

Reproduces the stand table used when marking conifer stands (Douglas fir
first): trees of a plot are counted in fixed 5 cm classes from 20 to 75 cm
and each class gets stems/ha, basal area, a class volume and its split
between timber and trituration wood.

Class volume (D_m = class diameter in metres, H = class height in m)::

    V = (0.24868 * D_m^2 * H + 0.03179 * (D_m * H - 0.02473)) * n

This polynomial is independent of the tariff engine in
:mod:`pycubage.tariffs`; the two are not expected to agree.

Usage:
    from pycubage.stand_before_harvest import StandBeforeHarvestCalculator

    calc = StandBeforeHarvestCalculator.from_config()
    result = calc.compute(trees, plot_area_m2=2000.0, dominant_height=28.0,
                          class_heights={30: 24.0, 35: 26.0})
    print(result.totals.spacing_index_pct)
"""
import math
from collections import Counter
from dataclasses import asdict, dataclass, field, replace
from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd

from .config_loader import load_defaults
from .exceptions import validate_positive, validate_range
from .logging_config import get_logger, log_calculation_summary
from .parameters import TreeRecord
from .tree_utils import calculate_unit_basal_area

__all__ = [
    'DEFAULT_CLASSES',
    'DEFAULT_NON_TRITU_PCT',
    'StandClassRow',
    'StandTotals',
    'StandBeforeHarvestResult',
    'StandBeforeHarvestCalculator',
    'class_volume',
    'nearest_class',
]

logger = get_logger(__name__)

DEFAULT_CLASSES: List[int] = list(range(20, 80, 5))

# Share of the class volume that is not trituration wood (%)
DEFAULT_NON_TRITU_PCT: Dict[int, float] = {
    20: 79.56, 25: 90.24, 30: 91.03, 35: 94.66,
    40: 94.69, 45: 96.44, 50: 96.34, 55: 97.38,
    60: 0.0, 65: 0.0, 70: 0.0, 75: 0.0,
}

# Size categories: small 20-25, medium 30-45, large 50-75.
# Category shares are reported on the first class of each category only.
SIZE_CATEGORIES: Dict[int, frozenset] = {
    20: frozenset({20, 25}),
    30: frozenset({30, 35, 40, 45}),
    50: frozenset({50, 55, 60, 65, 70, 75}),
}

SPACING_CONSTANT = 10746.0


# ============================================================================
# Results
# ============================================================================

@dataclass(frozen=True)
class StandClassRow:
    """One diameter-class row of the stand table.

    Volumes are in m3 for the plot, basal areas in m2.
    """
    diameter_class: int
    count_by_species: Dict[str, int]
    count: int
    stems_per_ha: float
    pct_stems_category: Optional[float]
    basal_area_unit: float
    basal_area: float
    basal_area_per_ha: float
    pct_basal_area_category: Optional[float]
    dm_contribution: float
    volume_per_tree: float
    volume: float
    tritu_volume_per_tree: float
    tritu_volume: float
    timber_volume: float
    non_tritu_pct: float
    height: float


@dataclass(frozen=True)
class StandTotals:
    """Plot totals and per-hectare values."""
    count: int = 0
    stems_per_ha: float = 0.0
    basal_area: float = 0.0
    basal_area_per_ha: float = 0.0
    mean_diameter_m: float = 0.0
    mean_basal_area: float = 0.0
    spacing_index_pct: float = 0.0
    volume: float = 0.0
    tritu_volume: float = 0.0
    timber_volume: float = 0.0
    volume_per_ha: float = 0.0
    tritu_volume_per_ha: float = 0.0
    timber_volume_per_ha: float = 0.0
    non_tritu_pct: float = 0.0
    species_share: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class StandBeforeHarvestResult:
    rows: List[StandClassRow]
    totals: StandTotals

    def to_dataframe(self) -> pd.DataFrame:
        """Class rows as a DataFrame; per-species counts are left out."""
        records = []
        for row in self.rows:
            record = asdict(row)
            del record['count_by_species']
            records.append(record)
        return pd.DataFrame(records)


# ============================================================================
# Formulas
# ============================================================================

def class_volume(diameter_m: float, height_m: float, count: int) -> float:
    """Stand-table volume (m3) of ``count`` stems of one class."""
    return (0.24868 * diameter_m ** 2 * height_m
            + 0.03179 * (diameter_m * height_m - 0.02473)) * count


def nearest_class(diameter_cm: float, classes: Sequence[int]) -> int:
    """Allowed class closest to the truncated diameter; the first one wins ties."""
    d = int(diameter_cm)
    if not classes:
        return d
    return min(classes, key=lambda c: abs(c - d))


def _class_height(heights: Mapping[int, Optional[float]], d: int, ho: float) -> float:
    """Class mean height, Ho when the class has no height filled in."""
    h = heights.get(d)
    if h is None:
        h = ho
    return h


def _share(part: float, whole: float) -> float:
    return part / whole if whole > 0 else 0.0


# ============================================================================
# Calculator
# ============================================================================

class StandBeforeHarvestCalculator:
    """Builds the pre-harvest stand table of a plot.

    Attributes:
        classes: Diameter classes of the table (cm)
        non_tritu_pct: Class -> share of non-trituration volume (%)
    """

    def __init__(self, classes: Optional[Sequence[int]] = None,
                 non_tritu_pct: Optional[Mapping[int, float]] = None):
        """Bind the class list and non-trituration table.

        Raises:
            InvalidParameterError: If a class is not positive or a
                percentage lies outside 0..100
        """
        self.classes = list(classes) if classes is not None else list(DEFAULT_CLASSES)
        self.non_tritu_pct = dict(non_tritu_pct) if non_tritu_pct is not None else dict(DEFAULT_NON_TRITU_PCT)
        for d in self.classes:
            validate_positive(d, "diameter class")
        for d, pct in self.non_tritu_pct.items():
            validate_range(pct, 0.0, 100.0, f"non_tritu_pct[{d}]")

    @classmethod
    def from_config(cls) -> 'StandBeforeHarvestCalculator':
        """Calculator using the ``stand_before_harvest`` section of defaults.yaml."""
        section = load_defaults().get('stand_before_harvest') or {}
        pct = section.get('non_tritu_pct')
        return cls(
            classes=section.get('classes'),
            non_tritu_pct={int(k): float(v) for k, v in pct.items()} if pct else None,
        )

    def compute(
        self,
        trees: Sequence[TreeRecord],
        plot_area_m2: Optional[float],
        dominant_height: Optional[float],
        class_heights: Optional[Mapping[int, Optional[float]]] = None,
        allowed_classes: Optional[Sequence[int]] = None,
        non_tritu_pct: Optional[Mapping[int, float]] = None,
    ) -> StandBeforeHarvestResult:
        """Compute the stand table.

        Args:
            trees: Trees of the plot (already filtered by the caller)
            plot_area_m2: Plot area in m2; a missing or non-positive area
                yields an all-zero table
            dominant_height: Dominant height Ho (m)
            class_heights: Class -> mean height (m); classes without an
                entry or with a None height use Ho
            allowed_classes: Classes overriding the calculator's
            non_tritu_pct: Non-trituration table overriding the calculator's

        Returns:
            StandBeforeHarvestResult with one row per allowed class
        """
        classes = list(allowed_classes) if allowed_classes is not None else self.classes
        pct_table = non_tritu_pct if non_tritu_pct is not None else self.non_tritu_pct
        heights = class_heights or {}
        ho = dominant_height or 0.0
        area = plot_area_m2 or 0.0

        if area <= 0 or not trees:
            return self._empty_result(classes, pct_table, heights, ho)

        area_ha = area / 10000.0
        per_ha = 1.0 / area_ha

        by_class: Dict[int, Counter] = {}
        for tree in trees:
            by_class.setdefault(nearest_class(tree.diameter_cm, classes), Counter())[tree.species] += 1

        rows = []
        for d in classes:
            counts = dict(by_class.get(d, Counter()))
            n = sum(counts.values())
            g_unit = calculate_unit_basal_area(d)
            g = g_unit * n
            h = _class_height(heights, d, ho)
            d_m = d / 100.0

            volume = class_volume(d_m, h, n) if n > 0 and h > 0 else 0.0
            volume_per_tree = volume / n if n > 0 else 0.0
            pct = pct_table.get(d, 0.0)
            tritu_per_tree = volume_per_tree * max(0.0, 100.0 - pct) / 100.0
            tritu = tritu_per_tree * n

            rows.append(StandClassRow(
                diameter_class=d,
                count_by_species=counts,
                count=n,
                stems_per_ha=n * per_ha,
                pct_stems_category=None,
                basal_area_unit=g_unit,
                basal_area=g,
                basal_area_per_ha=g * per_ha,
                pct_basal_area_category=None,
                dm_contribution=d_m * n,
                volume_per_tree=volume_per_tree,
                volume=volume,
                tritu_volume_per_tree=tritu_per_tree,
                tritu_volume=tritu,
                timber_volume=volume - tritu,
                non_tritu_pct=pct,
                height=h,
            ))

        n_total = sum(row.count for row in rows)
        g_total = sum(row.basal_area for row in rows)
        v_total = sum(row.volume for row in rows)
        v_tritu = sum(row.tritu_volume for row in rows)
        v_timber = sum(row.timber_volume for row in rows)
        stems_per_ha = n_total * per_ha

        rows = self._with_category_shares(rows, n_total, g_total)

        species_counts: Counter = Counter()
        for counts in by_class.values():
            species_counts.update(counts)

        totals = StandTotals(
            count=n_total,
            stems_per_ha=stems_per_ha,
            basal_area=g_total,
            basal_area_per_ha=g_total * per_ha,
            mean_diameter_m=_share(sum(row.dm_contribution for row in rows), n_total),
            mean_basal_area=_share(g_total, n_total),
            spacing_index_pct=(SPACING_CONSTANT / (ho * math.sqrt(stems_per_ha))
                               if stems_per_ha > 0 and ho > 0 else 0.0),
            volume=v_total,
            tritu_volume=v_tritu,
            timber_volume=v_timber,
            volume_per_ha=v_total * per_ha,
            tritu_volume_per_ha=v_tritu * per_ha,
            timber_volume_per_ha=v_timber * per_ha,
            non_tritu_pct=_share(v_timber, v_total) * 100.0,
            species_share={sp: _share(n, n_total) for sp, n in species_counts.items()},
        )
        log_calculation_summary(logger, "Stand before harvest", trees=n_total,
                                stems_per_ha=stems_per_ha, volume_per_ha=totals.volume_per_ha)
        return StandBeforeHarvestResult(rows=rows, totals=totals)

    @staticmethod
    def _with_category_shares(rows: List[StandClassRow], n_total: int,
                              g_total: float) -> List[StandClassRow]:
        n_by_class = {row.diameter_class: row.count for row in rows}
        g_by_class = {row.diameter_class: row.basal_area for row in rows}

        updated = []
        for row in rows:
            members = SIZE_CATEGORIES.get(row.diameter_class)
            if members is None:
                updated.append(row)
                continue
            n_cat = sum(n_by_class.get(c, 0) for c in members)
            g_cat = sum(g_by_class.get(c, 0.0) for c in members)
            updated.append(replace(row, pct_stems_category=_share(n_cat, n_total),
                                   pct_basal_area_category=_share(g_cat, g_total)))
        return updated

    @staticmethod
    def _empty_result(classes: Sequence[int], pct_table: Mapping[int, float],
                      heights: Mapping[int, float], ho: float) -> StandBeforeHarvestResult:
        rows = [
            StandClassRow(
                diameter_class=d,
                count_by_species={},
                count=0,
                stems_per_ha=0.0,
                pct_stems_category=None,
                basal_area_unit=calculate_unit_basal_area(d),
                basal_area=0.0,
                basal_area_per_ha=0.0,
                pct_basal_area_category=None,
                dm_contribution=0.0,
                volume_per_tree=0.0,
                volume=0.0,
                tritu_volume_per_tree=0.0,
                tritu_volume=0.0,
                timber_volume=0.0,
                non_tritu_pct=pct_table.get(d, 0.0),
                height=_class_height(heights, d, ho),
            )
            for d in classes
        ]
        return StandBeforeHarvestResult(rows=rows, totals=StandTotals())
