"""
pycubage: standing-tree volume and value for French forest inventories

Cubes marked trees with the French volume tariffs (Schaeffer, Algan, IFN,
form coefficients), resolves class heights, routes trees to products,
prices them, and builds diameter-class syntheses and conifer pre-harvest
stand tables.

Quick Start:
    >>> from pycubage import ForestryCalculator, InMemoryParameterStore, TreeRecord, seed_defaults
    >>> store = InMemoryParameterStore()
    >>> seed_defaults(store)
    >>> calc = ForestryCalculator(store)
    >>> trees = [TreeRecord(id='1', species='HETRE_COMMUN', diameter_cm=42.0, height_m=24.0)]
    >>> rows, totals = calc.synthesize('HETRE_COMMUN', calc.diameter_classes(), trees)
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__author__ = "pycubage Development Team"

# =============================================================================
# Parameter Records and Store
# =============================================================================
from .parameters import (
    HeightMode,
    CoefficientRange,
    HeightDefaultRange,
    HeightModeEntry,
    ProductRule,
    PriceEntry,
    TreeRecord,
    SynthesisParams,
)
from .parameter_store import (
    ParameterKeys,
    ParameterStore,
    InMemoryParameterStore,
    load_synthesis_params,
)

# =============================================================================
# Configuration Loading
# =============================================================================
from .config_loader import (
    get_config_loader,
    load_defaults,
    default_parameter_values,
    seed_defaults,
    load_species_catalog,
)

# =============================================================================
# Species
# =============================================================================
from .species import (
    Species,
    SpeciesCategory,
    SpeciesCatalog,
    species_candidates,
    species_matches,
    get_species_catalog,
)

# =============================================================================
# Volume Tariffs
# =============================================================================
from .tariffs import (
    TariffMethod,
    TariffSelection,
    compute_volume,
    requires_height,
    recommended_tariff_number,
    available_tariff_numbers,
    volume_with_selection,
)
from .tree_utils import calculate_tree_basal_area

# =============================================================================
# Heights
# =============================================================================
from .height import HeightResolver, lookup_height, resolve_height

# =============================================================================
# Quality, Products and Prices
# =============================================================================
from .quality import (
    WoodQualityGrade,
    ForestProduct,
    QualityAssessment,
    ClassificationResult,
    classify_premium_product,
    DefaultProductPrices,
)
from .pricing import (
    classify_product,
    price_for,
    tree_unit_price,
    quality_coefficient,
    build_breakdown,
    ProductBreakdownRow,
)
from .merchandising import split_volume_by_product

# =============================================================================
# Syntheses
# =============================================================================
from .synthesis import (
    ForestryCalculator,
    ClassSynthesis,
    SynthesisTotals,
    diameter_class_for,
    synthesis_dataframe,
)
from .stand_before_harvest import (
    StandBeforeHarvestCalculator,
    StandBeforeHarvestResult,
    StandClassRow,
    StandTotals,
)

# =============================================================================
# Sanity Checks
# =============================================================================
from .sanity import SanityChecker, SanityDomain, SanitySeverity, SanityWarning

# =============================================================================
# Logging
# =============================================================================
from .logging_config import get_logger, setup_logging

# =============================================================================
# Exceptions
# =============================================================================
from .exceptions import (
    CubageError,
    ConfigurationError,
    SpeciesNotFoundError,
    UnknownTariffMethodError,
    ParameterError,
    InvalidParameterError,
    DataError,
    InvalidDataError,
)

# =============================================================================
# Public API Definition
# =============================================================================
__all__ = [
    # Package Metadata
    "__version__",
    "__author__",
    # Parameters
    "HeightMode",
    "CoefficientRange",
    "HeightDefaultRange",
    "HeightModeEntry",
    "ProductRule",
    "PriceEntry",
    "TreeRecord",
    "SynthesisParams",
    "ParameterKeys",
    "ParameterStore",
    "InMemoryParameterStore",
    "load_synthesis_params",
    # Configuration
    "get_config_loader",
    "load_defaults",
    "default_parameter_values",
    "seed_defaults",
    "load_species_catalog",
    # Species
    "Species",
    "SpeciesCategory",
    "SpeciesCatalog",
    "species_candidates",
    "species_matches",
    "get_species_catalog",
    # Volume Tariffs
    "TariffMethod",
    "TariffSelection",
    "compute_volume",
    "requires_height",
    "recommended_tariff_number",
    "available_tariff_numbers",
    "volume_with_selection",
    "calculate_tree_basal_area",
    # Heights
    "HeightResolver",
    "lookup_height",
    "resolve_height",
    # Quality, Products and Prices
    "WoodQualityGrade",
    "ForestProduct",
    "QualityAssessment",
    "ClassificationResult",
    "classify_premium_product",
    "DefaultProductPrices",
    "classify_product",
    "price_for",
    "tree_unit_price",
    "quality_coefficient",
    "build_breakdown",
    "ProductBreakdownRow",
    "split_volume_by_product",
    # Syntheses
    "ForestryCalculator",
    "ClassSynthesis",
    "SynthesisTotals",
    "diameter_class_for",
    "synthesis_dataframe",
    "StandBeforeHarvestCalculator",
    "StandBeforeHarvestResult",
    "StandClassRow",
    "StandTotals",
    # Sanity Checks
    "SanityChecker",
    "SanityDomain",
    "SanitySeverity",
    "SanityWarning",
    # Logging
    "get_logger",
    "setup_logging",
    # Exceptions
    "CubageError",
    "ConfigurationError",
    "SpeciesNotFoundError",
    "UnknownTariffMethodError",
    "ParameterError",
    "InvalidParameterError",
    "DataError",
    "InvalidDataError",
]
