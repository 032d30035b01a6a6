"""
Tree utility functions for pycubage.

Basal area helpers shared by the synthesizer, the stand table and the
sanity checks. Diameters are in centimetres, areas in square metres.
"""
import math
from typing import Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .parameters import TreeRecord

__all__ = [
    'calculate_tree_basal_area',
    'calculate_unit_basal_area',
    'calculate_stand_basal_area',
    'form_height',
]


def calculate_tree_basal_area(diameter_cm: float) -> float:
    """Basal area of a single tree.

    Formula: G = pi * (D/200)^2, the area of a circle of radius D/2 cm
    expressed in m2.

    Args:
        diameter_cm: Diameter at 1.30 m in cm

    Returns:
        Basal area in m2
    """
    radius_m = diameter_cm / 200.0
    return math.pi * radius_m ** 2


def calculate_unit_basal_area(diameter_cm: float) -> float:
    """Basal area written the way stand tables do: (pi/4) * (D/100)^2."""
    return math.pi / 4.0 * (diameter_cm / 100.0) ** 2


def calculate_stand_basal_area(trees: Iterable['TreeRecord']) -> float:
    """Total basal area (m2) of a collection of tree records."""
    return sum(calculate_tree_basal_area(t.diameter_cm) for t in trees)


def form_height(volume_m3: float, diameter_cm: float) -> Optional[float]:
    """Volume divided by basal area (m); None for a non-positive diameter."""
    if diameter_cm <= 0:
        return None
    g = calculate_tree_basal_area(diameter_cm)
    return volume_m3 / g if g > 0 else None
