"""
Sanity checks on inventory inputs and computed results.

Bounds reflect the extremes of French dendrometry: diameters from 0.5 cm
(seedlings) to 300 cm (exceptional sequoias), heights up to 65 m, single
tree volumes up to about 30 m3, and typical stands of 5-80 m2/ha basal
area, 50-1200 m3/ha and 20-5000 stems/ha.

All checks are pure functions returning lists of :class:`SanityWarning`;
they never raise and never modify their inputs.

Usage:
    from pycubage.sanity import SanityChecker

    warnings = SanityChecker.check_all_trees(trees)
    errors = [w for w in warnings if w.severity == SanitySeverity.ERROR]
"""
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .parameters import TreeRecord
from .tree_utils import form_height
from .utils import normalize_code

__all__ = [
    'SanitySeverity',
    'SanityDomain',
    'SanityWarning',
    'SanityChecker',
]


class SanitySeverity(str, Enum):
    INFO = 'INFO'
    WARNING = 'WARNING'
    ERROR = 'ERROR'


class SanityDomain(str, Enum):
    INPUT = 'INPUT'
    VOLUME = 'VOLUME'
    REVENUE = 'REVENUE'
    AGGREGATE = 'AGGREGATE'


@dataclass(frozen=True)
class SanityWarning:
    """One finding of the sanity checker."""
    severity: SanitySeverity
    domain: SanityDomain
    code: str
    tree_id: Optional[str] = None
    value: Optional[float] = None


class SanityChecker:
    """Stateless range and ratio checks."""

    # Input bounds
    DIAM_MIN_CM = 0.5
    DIAM_MAX_CM = 300.0
    DIAM_WARN_MAX_CM = 150.0
    HEIGHT_MIN_M = 0.5
    HEIGHT_MAX_M = 65.0
    HEIGHT_WARN_MAX_M = 50.0
    FORM_COEF_MIN = 0.15
    FORM_COEF_MAX = 0.85

    # Per-tree result bounds
    VOL_TREE_MAX_M3 = 30.0
    VOL_TREE_WARN_M3 = 15.0
    FORM_HEIGHT_MAX_M = 60.0
    REVENUE_TREE_MAX_EUR = 50_000.0

    # Per-hectare bounds
    G_HA_WARN_LOW = 1.0
    G_HA_WARN_HIGH = 80.0
    G_HA_ERROR_HIGH = 150.0
    V_HA_WARN_HIGH = 1200.0
    V_HA_ERROR_HIGH = 3000.0
    N_HA_WARN_HIGH = 5000.0
    N_HA_ERROR_HIGH = 20_000.0
    REVENUE_HA_WARN_HIGH = 100_000.0
    SURFACE_MIN_HA = 0.001  # 10 m2

    # Slenderness: H (m) / D (cm)
    HD_RATIO_WARN = 1.2
    HD_RATIO_ERROR = 2.0

    # V/G ratio (mean form height, m)
    VG_RATIO_WARN_LOW = 3.0
    VG_RATIO_WARN_HIGH = 35.0

    # Batch checks
    MAX_DETAILED_ALERTS = 10
    DUPLICATE_WINDOW_MS = 60_000

    @classmethod
    def check_tree(cls, tree: TreeRecord) -> List[SanityWarning]:
        """Check the measured inputs of one tree."""
        w: List[SanityWarning] = []
        d = tree.diameter_cm

        if d <= 0.0:
            w.append(SanityWarning(SanitySeverity.ERROR, SanityDomain.INPUT, 'diam_zero', tree.id))
        elif d < cls.DIAM_MIN_CM:
            w.append(SanityWarning(SanitySeverity.ERROR, SanityDomain.INPUT, 'diam_too_small', tree.id, d))
        elif d > cls.DIAM_MAX_CM:
            w.append(SanityWarning(SanitySeverity.ERROR, SanityDomain.INPUT, 'diam_too_large', tree.id, d))
        elif d > cls.DIAM_WARN_MAX_CM:
            w.append(SanityWarning(SanitySeverity.WARNING, SanityDomain.INPUT, 'diam_very_large', tree.id, d))

        h = tree.height_m
        if h is not None:
            if h <= 0.0:
                w.append(SanityWarning(SanitySeverity.ERROR, SanityDomain.INPUT, 'height_zero', tree.id))
            elif h < cls.HEIGHT_MIN_M:
                w.append(SanityWarning(SanitySeverity.ERROR, SanityDomain.INPUT, 'height_too_small', tree.id, h))
            elif h > cls.HEIGHT_MAX_M:
                w.append(SanityWarning(SanitySeverity.ERROR, SanityDomain.INPUT, 'height_too_large', tree.id, h))
            elif h > cls.HEIGHT_WARN_MAX_M:
                w.append(SanityWarning(SanitySeverity.WARNING, SanityDomain.INPUT, 'height_very_large', tree.id, h))

        if h is not None and h > 0.0 and d > 0.0:
            ratio = h / d
            if ratio > cls.HD_RATIO_ERROR:
                w.append(SanityWarning(SanitySeverity.ERROR, SanityDomain.INPUT, 'hd_ratio_extreme', tree.id, ratio))
            elif ratio > cls.HD_RATIO_WARN:
                w.append(SanityWarning(SanitySeverity.WARNING, SanityDomain.INPUT, 'hd_ratio_high', tree.id, ratio))

        f = tree.form_coefficient
        if f is not None and (f < cls.FORM_COEF_MIN or f > cls.FORM_COEF_MAX):
            w.append(SanityWarning(SanitySeverity.WARNING, SanityDomain.INPUT,
                                   'coef_forme_out_of_range', tree.id, f))
        return w

    @classmethod
    def check_tree_volume(cls, tree_id: Optional[str], diameter_cm: float,
                          volume_m3: float) -> List[SanityWarning]:
        """Check the computed volume of one tree."""
        w: List[SanityWarning] = []
        if volume_m3 < 0.0:
            w.append(SanityWarning(SanitySeverity.ERROR, SanityDomain.VOLUME, 'volume_negative', tree_id, volume_m3))
        elif volume_m3 > cls.VOL_TREE_MAX_M3:
            w.append(SanityWarning(SanitySeverity.ERROR, SanityDomain.VOLUME,
                                   'volume_tree_extreme', tree_id, volume_m3))
        elif volume_m3 > cls.VOL_TREE_WARN_M3:
            w.append(SanityWarning(SanitySeverity.WARNING, SanityDomain.VOLUME,
                                   'volume_tree_very_large', tree_id, volume_m3))

        if diameter_cm > 0.0 and volume_m3 > 0.0:
            hf = form_height(volume_m3, diameter_cm)
            if hf > cls.FORM_HEIGHT_MAX_M:
                w.append(SanityWarning(SanitySeverity.ERROR, SanityDomain.VOLUME,
                                       'volume_vs_diam_incoherent', tree_id, hf))
        return w

    @classmethod
    def check_tree_revenue(cls, tree_id: Optional[str], revenue_eur: float) -> List[SanityWarning]:
        """Check the computed revenue of one tree."""
        if revenue_eur < 0.0:
            return [SanityWarning(SanitySeverity.ERROR, SanityDomain.REVENUE, 'revenue_negative', tree_id, revenue_eur)]
        if revenue_eur > cls.REVENUE_TREE_MAX_EUR:
            return [SanityWarning(SanitySeverity.WARNING, SanityDomain.REVENUE,
                                  'revenue_tree_extreme', tree_id, revenue_eur)]
        return []

    @classmethod
    def check_aggregates(
        cls,
        n_per_ha: float,
        g_per_ha: float,
        v_per_ha: float,
        revenue_per_ha: Optional[float],
        surface_ha: float,
        ratio_vg: Optional[float],
    ) -> List[SanityWarning]:
        """Check per-hectare aggregates of a marking summary."""
        w: List[SanityWarning] = []
        agg = SanityDomain.AGGREGATE

        if surface_ha <= 0.0:
            w.append(SanityWarning(SanitySeverity.ERROR, agg, 'surface_zero'))
        elif surface_ha < cls.SURFACE_MIN_HA:
            w.append(SanityWarning(SanitySeverity.WARNING, agg, 'surface_very_small', value=surface_ha))

        if n_per_ha > cls.N_HA_ERROR_HIGH:
            w.append(SanityWarning(SanitySeverity.ERROR, agg, 'n_ha_extreme', value=n_per_ha))
        elif n_per_ha > cls.N_HA_WARN_HIGH:
            w.append(SanityWarning(SanitySeverity.WARNING, agg, 'n_ha_very_high', value=n_per_ha))

        if g_per_ha > cls.G_HA_ERROR_HIGH:
            w.append(SanityWarning(SanitySeverity.ERROR, agg, 'g_ha_extreme', value=g_per_ha))
        elif g_per_ha > cls.G_HA_WARN_HIGH:
            w.append(SanityWarning(SanitySeverity.WARNING, agg, 'g_ha_very_high', value=g_per_ha))
        elif 0.0 < g_per_ha < cls.G_HA_WARN_LOW:
            w.append(SanityWarning(SanitySeverity.INFO, agg, 'g_ha_very_low', value=g_per_ha))

        if v_per_ha > cls.V_HA_ERROR_HIGH:
            w.append(SanityWarning(SanitySeverity.ERROR, agg, 'v_ha_extreme', value=v_per_ha))
        elif v_per_ha > cls.V_HA_WARN_HIGH:
            w.append(SanityWarning(SanitySeverity.WARNING, agg, 'v_ha_very_high', value=v_per_ha))

        if ratio_vg is not None:
            if ratio_vg < cls.VG_RATIO_WARN_LOW:
                w.append(SanityWarning(SanitySeverity.WARNING, agg, 'vg_ratio_low', value=ratio_vg))
            elif ratio_vg > cls.VG_RATIO_WARN_HIGH:
                w.append(SanityWarning(SanitySeverity.WARNING, agg, 'vg_ratio_high', value=ratio_vg))

        if revenue_per_ha is not None:
            if revenue_per_ha < 0.0:
                w.append(SanityWarning(SanitySeverity.ERROR, SanityDomain.REVENUE,
                                       'revenue_ha_negative', value=revenue_per_ha))
            elif revenue_per_ha > cls.REVENUE_HA_WARN_HIGH:
                w.append(SanityWarning(SanitySeverity.WARNING, SanityDomain.REVENUE,
                                       'revenue_ha_very_high', value=revenue_per_ha))
        return w

    @classmethod
    def check_all_trees(cls, trees: Iterable[TreeRecord]) -> List[SanityWarning]:
        """Check a batch of trees without flooding the caller.

        Detailed alerts are collected tree by tree until 10 have been
        gathered; when more than 10 trees have problems a single
        ``many_input_errors`` warning carries the count. Trees of the same
        plot, species and diameter captured less than a minute apart are
        reported once as ``potential_duplicates``.
        """
        trees = list(trees)
        w: List[SanityWarning] = []
        trees_with_alerts = 0

        for tree in trees:
            alerts = cls.check_tree(tree)
            if alerts:
                trees_with_alerts += 1
                if len(w) < cls.MAX_DETAILED_ALERTS:
                    w.extend(alerts)

        if trees_with_alerts > cls.MAX_DETAILED_ALERTS:
            w.append(SanityWarning(SanitySeverity.WARNING, SanityDomain.INPUT,
                                   'many_input_errors', value=float(trees_with_alerts)))

        duplicates = cls.count_potential_duplicates(trees)
        if duplicates:
            w.append(SanityWarning(SanitySeverity.INFO, SanityDomain.INPUT,
                                   'potential_duplicates', value=float(duplicates)))
        return w

    @classmethod
    def count_potential_duplicates(cls, trees: Iterable[TreeRecord]) -> int:
        """Count consecutive same-plot/species/diameter captures under 60 s apart."""
        groups: Dict[Tuple, List[TreeRecord]] = defaultdict(list)
        for tree in trees:
            groups[(tree.plot_id, normalize_code(tree.species), tree.diameter_cm)].append(tree)

        count = 0
        for group in groups.values():
            if len(group) < 2:
                continue
            ordered = sorted(group, key=lambda t: t.timestamp_ms)
            for first, second in zip(ordered, ordered[1:]):
                if second.timestamp_ms - first.timestamp_ms < cls.DUPLICATE_WINDOW_MS:
                    count += 1
        return count
