"""
Custom exceptions for pycubage.

Volume, height and price lookups report missing data as ``None``; the
exceptions below are reserved for broken packaged configuration and for
callers handing the library values it cannot work with at all.
"""


class CubageError(Exception):
    """Base exception for all pycubage errors."""
    pass


class ConfigurationError(CubageError):
    """Raised when packaged configuration is missing or inconsistent."""
    pass


class SpeciesNotFoundError(ConfigurationError):
    """Raised when a species code is absent from the species catalog."""
    def __init__(self, species_code: str):
        self.species_code = species_code
        super().__init__(f"Species '{species_code}' not found in catalog. "
                         f"Known species are listed in cfg/species.yaml")


class UnknownTariffMethodError(ConfigurationError):
    """Raised when a tariff method code cannot be parsed in strict mode."""
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Unknown tariff method '{code}'")


class ParameterError(CubageError):
    """Raised when parameters are invalid or out of bounds."""
    pass


class InvalidParameterError(ParameterError):
    """Raised when a parameter value is invalid."""
    def __init__(self, param_name: str, value, reason: str = ""):
        self.param_name = param_name
        self.value = value
        self.reason = reason
        message = f"Invalid value for parameter '{param_name}': {value}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class DataError(CubageError):
    """Raised when there are data-related issues."""
    pass


class FileNotFoundError(DataError):
    """Raised when a required file is not found."""
    def __init__(self, file_path: str, file_type: str = "file"):
        self.file_path = file_path
        self.file_type = file_type
        super().__init__(f"Required {file_type} not found: {file_path}")


class InvalidDataError(DataError):
    """Raised when data is malformed or invalid."""
    def __init__(self, data_description: str, reason: str):
        self.data_description = data_description
        self.reason = reason
        super().__init__(f"Invalid {data_description}: {reason}")


# Validation utilities
def validate_positive(value: float, param_name: str) -> float:
    """Validate that a value is strictly positive.

    Args:
        value: Value to validate
        param_name: Parameter name for error message

    Returns:
        The validated value

    Raises:
        InvalidParameterError: If value is not positive
    """
    if value is None or value <= 0:
        raise InvalidParameterError(param_name, value, "must be positive")
    return value


def validate_range(value: float, min_val: float, max_val: float, param_name: str) -> float:
    """Validate that a value lies within ``[min_val, max_val]``.

    Raises:
        InvalidParameterError: If value is outside the range
    """
    if not min_val <= value <= max_val:
        raise InvalidParameterError(
            param_name, value,
            f"must be between {min_val} and {max_val}"
        )
    return value
