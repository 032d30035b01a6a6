"""
Height resolution for trees without a measured height.

Decision order for a (species, diameter class) pair:

1. a manual per-class height supplied by the caller
2. a FIXED height-mode override
3. a SAMPLES override: mean of the heights measured in the class
   (falls through to the table when nothing was measured)
4. the default height table: the range covering the diameter, else linear
   interpolation between range midpoints clamped at the ends, repeated
   against the ``*`` entries when the species has none

Also holds the legacy form-coefficient range lookup, which follows the same
species-then-wildcard pattern.
"""
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from .parameters import CoefficientRange, HeightDefaultRange, HeightMode, HeightModeEntry, TreeRecord
from .species import species_candidates
from .utils import WILDCARD, normalize_code

__all__ = [
    'lookup_height',
    'interpolate_height',
    'sample_mean_height',
    'find_height_mode',
    'resolve_height',
    'HeightResolver',
    'lookup_form_factor',
    'FALLBACK_FORM_FACTORS',
]

# Form factor used when no coefficient range applies, by tariff family
FALLBACK_FORM_FACTORS = {'RAPIDE': 0.53, 'LENT': 0.48}
DEFAULT_FALLBACK_FORM_FACTOR = 0.50


def _ranges_for_species(ranges: Sequence, species: str) -> List:
    """Entries of the first alias candidate that has any."""
    for candidate in species_candidates(species):
        found = [r for r in ranges if normalize_code(r.species) == candidate]
        if found:
            return found
    return []


def _wildcard_ranges(ranges: Sequence) -> List:
    return [r for r in ranges if r.species.strip() == WILDCARD]


def interpolate_height(ranges: Sequence[HeightDefaultRange], diameter: float) -> Optional[float]:
    """Interpolate linearly between range midpoints, clamped at both ends.

    Duplicate midpoints keep the first entry. A single range returns its
    height whatever the diameter.
    """
    if not ranges:
        return None
    if len(ranges) == 1:
        return ranges[0].h

    points: Dict[float, float] = {}
    for r in ranges:
        points.setdefault(r.midpoint, r.h)
    xs = sorted(points)
    ys = [points[x] for x in xs]
    # np.interp clamps to the first/last value outside [xs[0], xs[-1]]
    return float(np.interp(diameter, xs, ys))


def _lookup_in(ranges: Sequence[HeightDefaultRange], diameter: float) -> Optional[float]:
    d = int(diameter)
    for r in ranges:
        if r.covers(d):
            return r.h
    return interpolate_height(ranges, diameter)


def lookup_height(ranges: Sequence[HeightDefaultRange], species: str,
                  diameter: float) -> Optional[float]:
    """Default height for a species at a diameter from the range table.

    Args:
        ranges: Height default ranges
        species: Species code (aliases are tried in order)
        diameter: Diameter in cm; ranges are matched on its integer part

    Returns:
        Height in m, or None when neither the species nor ``*`` has entries
    """
    specific = _ranges_for_species(ranges, species)
    found = _lookup_in(specific, diameter)
    if found is not None:
        return found
    return _lookup_in(_wildcard_ranges(ranges), diameter)


def sample_mean_height(trees: Iterable[TreeRecord]) -> Optional[float]:
    """Mean of the measured heights, None when no tree was measured."""
    heights = [t.height_m for t in trees if t.height_m is not None]
    if not heights:
        return None
    return sum(heights) / len(heights)


def find_height_mode(modes: Iterable[HeightModeEntry], species: str,
                     diameter_class: int) -> Optional[HeightModeEntry]:
    """First override for the species (case-insensitive) and class."""
    for entry in modes:
        if entry.matches(species, diameter_class):
            return entry
    return None


def resolve_height(
    species: str,
    diameter_class: int,
    trees_in_class: Sequence[TreeRecord],
    modes: Iterable[HeightModeEntry],
    ranges: Sequence[HeightDefaultRange],
    manual_heights: Optional[Dict[int, float]] = None,
    allow_default: bool = True,
) -> Optional[float]:
    """Height to use for unmeasured trees of a class.

    Args:
        species: Species code
        diameter_class: Diameter class (cm)
        trees_in_class: Trees of this species bucketed in the class
        modes: Height-mode overrides
        ranges: Default height table
        manual_heights: Per-class heights entered by the caller; they win
            over everything else
        allow_default: When False only manual, FIXED and SAMPLES heights
            are used; table lookups are not

    Returns:
        Height in m or None
    """
    if manual_heights and diameter_class in manual_heights:
        return manual_heights[diameter_class]

    entry = find_height_mode(modes, species, diameter_class)
    mode = entry.mode if entry is not None else HeightMode.DEFAULT

    if mode == HeightMode.FIXED:
        return entry.fixed
    if mode == HeightMode.SAMPLES:
        mean = sample_mean_height(trees_in_class)
        if mean is not None or not allow_default:
            return mean
    if not allow_default:
        return None
    return lookup_height(ranges, species, float(diameter_class))


class HeightResolver:
    """Height policy bound to one snapshot of modes and default ranges."""

    def __init__(self, modes: Optional[List[HeightModeEntry]] = None,
                 ranges: Optional[List[HeightDefaultRange]] = None):
        self.modes = list(modes or [])
        self.ranges = list(ranges or [])

    def lookup(self, species: str, diameter: float) -> Optional[float]:
        return lookup_height(self.ranges, species, diameter)

    def mode_for(self, species: str, diameter_class: int) -> Optional[HeightModeEntry]:
        return find_height_mode(self.modes, species, diameter_class)

    def resolve(self, species: str, diameter_class: int, trees_in_class: Sequence[TreeRecord],
                manual_heights: Optional[Dict[int, float]] = None,
                allow_default: bool = True) -> Optional[float]:
        return resolve_height(species, diameter_class, trees_in_class, self.modes, self.ranges,
                              manual_heights=manual_heights, allow_default=allow_default)


# ============================================================================
# Legacy form coefficient ranges
# ============================================================================

def _fallback_form_factor(method: Optional[str]) -> float:
    return FALLBACK_FORM_FACTORS.get(normalize_code(method), DEFAULT_FALLBACK_FORM_FACTOR)


def _pick_form_factor(candidates: List[CoefficientRange], method: Optional[str]) -> float:
    untagged = next((c for c in candidates if not c.method), None)
    if method is None:
        return (untagged or candidates[0]).f
    wanted = normalize_code(method)
    tagged = next((c for c in candidates if c.method and normalize_code(c.method) == wanted), None)
    chosen = tagged or untagged
    return chosen.f if chosen is not None else _fallback_form_factor(method)


def lookup_form_factor(ranges: Sequence[CoefficientRange], species: str, diameter: float,
                       method: Optional[str] = None) -> float:
    """Form coefficient for a species and diameter from coefficient ranges.

    Species entries (alias order) covering the diameter are preferred to
    ``*`` entries. Among matching entries one tagged with ``method`` wins,
    then an untagged one. Without any match the fallback is 0.53 for
    ``RAPIDE``, 0.48 for ``LENT`` and 0.50 otherwise.
    """
    d = int(diameter)
    for candidate in species_candidates(species):
        matching = [r for r in ranges if normalize_code(r.species) == candidate and r.covers(d)]
        if matching:
            return _pick_form_factor(matching, method)

    wildcard = [r for r in _wildcard_ranges(ranges) if r.covers(d)]
    if wildcard:
        return _pick_form_factor(wildcard, method)
    return _fallback_form_factor(method)
