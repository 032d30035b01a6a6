"""
Parameter store contract and tolerant decoding of stored tables.

The engine never persists anything itself. User-editable tables live in an
external key-value store holding one JSON document per key. This module
defines that contract, an in-memory implementation, the stable keys, and
the decoding helpers that turn a missing or malformed blob into an empty
table instead of an error.

Usage:
    from pycubage.parameter_store import InMemoryParameterStore, load_synthesis_params

    store = InMemoryParameterStore()
    store.set(ParameterKeys.DIAMETER_CLASSES, "[20, 25, 30]")
    params = load_synthesis_params(store)
"""
import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from .logging_config import get_logger
from .parameters import (
    CoefficientRange,
    HeightDefaultRange,
    HeightMode,
    HeightModeEntry,
    PriceEntry,
    ProductRule,
    SynthesisParams,
)
from .tariffs import TariffSelection

__all__ = [
    'ParameterKeys',
    'ParameterStore',
    'InMemoryParameterStore',
    'decode_json',
    'decode_list',
    'load_diameter_classes',
    'load_coefficient_ranges',
    'load_height_defaults',
    'load_height_modes',
    'load_product_rules',
    'load_prices',
    'load_tariff_selection',
    'save_tariff_selection',
    'set_height_mode',
    'load_synthesis_params',
]

logger = get_logger(__name__)

T = TypeVar('T')


class ParameterKeys:
    """Stable keys of the parameter store."""
    DIAMETER_CLASSES = 'classes_diametre'
    COEFFICIENT_RANGES = 'coefs_volume'
    HEIGHT_DEFAULTS = 'hauteurs_defaut'
    PRODUCT_RULES = 'regles_produits'
    MARKET_PRICES = 'prix_marche'
    HEIGHT_MODES = 'height_modes'
    TARIFF_SELECTION = 'tarif_selection'
    CUT_RULES = 'decoupe_rules'


class ParameterStore(ABC):
    """Key-value store of JSON documents."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the JSON text stored under ``key`` or None."""

    @abstractmethod
    def get_all(self) -> List[Tuple[str, str]]:
        """Return every (key, JSON text) pair."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    def set_many(self, items: Iterable[Tuple[str, str]]) -> None:
        for key, value in items:
            self.set(key, value)

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""

    def snapshot(self) -> Dict[str, str]:
        """All values read at once, as a dict."""
        return dict(self.get_all())


class InMemoryParameterStore(ParameterStore):
    """Dictionary-backed store, used by tests and embedded callers."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def get_all(self) -> List[Tuple[str, str]]:
        return list(self._values.items())

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)


# ============================================================================
# Decoding
# ============================================================================

def decode_json(text: Optional[str], default: Any = None) -> Any:
    """Parse JSON text, returning ``default`` for blank or malformed input."""
    if text is None or not text.strip():
        return default
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        logger.debug("Ignoring malformed parameter JSON: %s", e)
        return default


def decode_list(text: Optional[str], factory: Callable[[Dict[str, Any]], T]) -> List[T]:
    """Decode a JSON array of objects with ``factory``.

    Anything that is not a well-formed array of valid records yields an
    empty list, never a partial one.
    """
    data = decode_json(text, default=None)
    if not isinstance(data, list):
        return []
    try:
        return [factory(item) for item in data]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.debug("Ignoring parameter table with invalid entries: %s", e)
        return []


def _decode_int_list(text: Optional[str]) -> List[int]:
    data = decode_json(text, default=None)
    if not isinstance(data, list):
        return []
    try:
        return [int(x) for x in data]
    except (TypeError, ValueError):
        return []


def _decode_selection(text: Optional[str]) -> Optional[TariffSelection]:
    data = decode_json(text, default=None)
    if not isinstance(data, dict):
        return None
    try:
        return TariffSelection.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.debug("Ignoring invalid tariff selection: %s", e)
        return None


# ============================================================================
# Typed accessors
# ============================================================================

def load_diameter_classes(store: ParameterStore) -> List[int]:
    return _decode_int_list(store.get(ParameterKeys.DIAMETER_CLASSES))


def load_coefficient_ranges(store: ParameterStore) -> List[CoefficientRange]:
    return decode_list(store.get(ParameterKeys.COEFFICIENT_RANGES), CoefficientRange.from_dict)


def load_height_defaults(store: ParameterStore) -> List[HeightDefaultRange]:
    return decode_list(store.get(ParameterKeys.HEIGHT_DEFAULTS), HeightDefaultRange.from_dict)


def load_height_modes(store: ParameterStore) -> List[HeightModeEntry]:
    return decode_list(store.get(ParameterKeys.HEIGHT_MODES), HeightModeEntry.from_dict)


def load_product_rules(store: ParameterStore) -> List[ProductRule]:
    return decode_list(store.get(ParameterKeys.PRODUCT_RULES), ProductRule.from_dict)


def load_prices(store: ParameterStore) -> List[PriceEntry]:
    return decode_list(store.get(ParameterKeys.MARKET_PRICES), PriceEntry.from_dict)


def load_tariff_selection(store: ParameterStore) -> Optional[TariffSelection]:
    return _decode_selection(store.get(ParameterKeys.TARIFF_SELECTION))


def save_tariff_selection(store: ParameterStore, selection: TariffSelection) -> None:
    store.set(ParameterKeys.TARIFF_SELECTION, json.dumps(selection.to_dict()))


def set_height_mode(store: ParameterStore, entry: HeightModeEntry) -> List[HeightModeEntry]:
    """Upsert a height-mode override and write the list back.

    Any existing entry for the same species (case-insensitive) and class is
    removed first; a DEFAULT entry is not re-added, so setting DEFAULT
    clears the override.

    Returns:
        The list as written to the store
    """
    current = [e for e in load_height_modes(store)
               if not e.matches(entry.species, entry.diameter_class)]
    if entry.mode != HeightMode.DEFAULT:
        current.append(entry)
    store.set(ParameterKeys.HEIGHT_MODES, json.dumps([e.to_dict() for e in current]))
    return current


def load_synthesis_params(store: ParameterStore) -> SynthesisParams:
    """Read every synthesis table from one snapshot of the store."""
    values = store.snapshot()
    return SynthesisParams(
        coefficient_ranges=decode_list(values.get(ParameterKeys.COEFFICIENT_RANGES),
                                       CoefficientRange.from_dict),
        height_defaults=decode_list(values.get(ParameterKeys.HEIGHT_DEFAULTS),
                                    HeightDefaultRange.from_dict),
        height_modes=decode_list(values.get(ParameterKeys.HEIGHT_MODES), HeightModeEntry.from_dict),
        product_rules=decode_list(values.get(ParameterKeys.PRODUCT_RULES), ProductRule.from_dict),
        prices=decode_list(values.get(ParameterKeys.MARKET_PRICES), PriceEntry.from_dict),
        tariff_selection=_decode_selection(values.get(ParameterKeys.TARIFF_SELECTION)),
    )
