"""
Configuration loader for pycubage.

Reads the packaged, read-only configuration in ``cfg/``:

- ``defaults.yaml``: default diameter classes, form coefficient ranges,
  height ranges, product rules and market prices used to seed an empty
  parameter store
- ``species.yaml``: species catalog (display names and categories)

YAML files are parsed with ``yaml.safe_load``, JSON files with ``json``.
Parsed files are cached per loader.

Usage:
    from pycubage.config_loader import get_config_loader, seed_defaults

    defaults = get_config_loader().load_config_file('defaults.yaml')
    seed_defaults(store)
"""
import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigurationError, FileNotFoundError as CubageFileNotFoundError, InvalidDataError
from .logging_config import get_logger
from .parameter_store import ParameterKeys, ParameterStore
from .species import SpeciesCatalog

__all__ = [
    'ConfigLoader',
    'get_config_loader',
    'load_defaults',
    'default_parameter_values',
    'seed_defaults',
    'load_species_catalog',
]

logger = get_logger(__name__)

DEFAULTS_FILE = 'defaults.yaml'
SPECIES_FILE = 'species.yaml'

# defaults.yaml section -> parameter store key
_DEFAULT_SECTIONS = {
    'diameter_classes': ParameterKeys.DIAMETER_CLASSES,
    'coefficient_ranges': ParameterKeys.COEFFICIENT_RANGES,
    'height_defaults': ParameterKeys.HEIGHT_DEFAULTS,
    'product_rules': ParameterKeys.PRODUCT_RULES,
    'market_prices': ParameterKeys.MARKET_PRICES,
}


class ConfigLoader:
    """Loads packaged configuration files from the cfg/ directory.

    Attributes:
        cfg_dir: Path to the configuration directory
    """

    def __init__(self, cfg_dir: Optional[Path] = None):
        """Initialize the configuration loader.

        Args:
            cfg_dir: Path to the configuration directory. Defaults to the
                ``cfg`` directory shipped inside the package.
        """
        if cfg_dir is None:
            cfg_dir = Path(__file__).parent / 'cfg'
        self.cfg_dir = Path(cfg_dir)
        self._cache: Dict[str, Any] = {}

    def _load_file(self, file_path: Path) -> Any:
        """Parse a YAML or JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            InvalidDataError: If the file is empty or cannot be parsed
            ConfigurationError: If the file format is not supported
        """
        if not file_path.exists():
            raise CubageFileNotFoundError(str(file_path), "configuration file")

        suffix = file_path.suffix.lower()
        try:
            if suffix in ('.yaml', '.yml'):
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f)
                if data is None:
                    raise InvalidDataError("YAML file", "file is empty or contains only comments")
                return data
            elif suffix == '.json':
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                if data is None:
                    raise InvalidDataError("JSON file", "file is empty or contains null")
                return data
            else:
                raise ConfigurationError(f"Unsupported configuration file format: {suffix}. "
                                         f"Supported formats: .yaml, .yml, .json")
        except yaml.YAMLError as e:
            raise InvalidDataError("YAML configuration", f"parsing error: {e}") from e
        except json.JSONDecodeError as e:
            raise InvalidDataError("JSON configuration", f"parsing error: {e}") from e

    def load_config_file(self, name: str) -> Any:
        """Load a file from the cfg directory, caching the parsed result."""
        if name not in self._cache:
            self._cache[name] = self._load_file(self.cfg_dir / name)
            logger.debug("Loaded configuration file %s", name)
        return self._cache[name]

    def clear_cache(self) -> None:
        self._cache.clear()


_loader: Optional[ConfigLoader] = None


def get_config_loader() -> ConfigLoader:
    """Return the process-wide loader for the packaged configuration."""
    global _loader
    if _loader is None:
        _loader = ConfigLoader()
    return _loader


def load_defaults() -> Dict[str, Any]:
    """Return the parsed ``defaults.yaml`` mapping."""
    data = get_config_loader().load_config_file(DEFAULTS_FILE)
    if not isinstance(data, dict):
        raise InvalidDataError(DEFAULTS_FILE, "top level must be a mapping")
    return data


def default_parameter_values() -> Dict[str, str]:
    """Default tables encoded the way the parameter store holds them."""
    defaults = load_defaults()
    values = {}
    for section, key in _DEFAULT_SECTIONS.items():
        if section in defaults:
            values[key] = json.dumps(defaults[section])
    return values


def seed_defaults(store: ParameterStore, overwrite: bool = False) -> Dict[str, str]:
    """Write the default tables into ``store``.

    Keys that already hold a value are left alone unless ``overwrite``.

    Returns:
        The key/value pairs actually written
    """
    written = {}
    for key, value in default_parameter_values().items():
        if overwrite or store.get(key) is None:
            written[key] = value
    store.set_many(written.items())
    logger.debug("Seeded %d default parameter tables", len(written))
    return written


def load_species_catalog() -> SpeciesCatalog:
    """Build a fresh species catalog from ``species.yaml``."""
    return SpeciesCatalog.from_config(get_config_loader().load_config_file(SPECIES_FILE))
