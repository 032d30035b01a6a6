"""
Logging configuration for pycubage.

All modules obtain their logger through :func:`get_logger` so that output is
grouped under the ``pycubage`` namespace. Nothing is configured on import;
applications call :func:`setup_logging` once if they want console or file
output.

Usage:
    from pycubage.logging_config import setup_logging, get_logger

    setup_logging(level="DEBUG")
    logger = get_logger(__name__)
"""
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER_NAME = "pycubage"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


class StructuredFormatter(logging.Formatter):
    """Formats records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'time': self.formatTime(record),
            'logger': record.name,
            'level': record.levelname,
            'message': record.getMessage(),
        }
        extra = getattr(record, 'metrics', None)
        if extra:
            payload['metrics'] = extra
        return json.dumps(payload, default=str)


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    structured: bool = False,
) -> logging.Logger:
    """Configure the ``pycubage`` logger hierarchy.

    Calling this more than once replaces the previously installed handlers.

    Args:
        level: Logging level name or number
        log_file: Optional path of a file that receives the same records
        structured: Emit JSON lines instead of plain text

    Returns:
        The package root logger
    """
    global _configured

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root.setLevel(level)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = StructuredFormatter() if structured else logging.Formatter(DEFAULT_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.propagate = False
    _configured = True
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a logger placed under the package namespace.

    Module names that already start with ``pycubage`` are used as-is.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_calculation_summary(logger: logging.Logger, label: str, **metrics) -> None:
    """Log a one-line summary of a calculation at INFO level.

    Args:
        logger: Logger to write to
        label: Short description of the calculation (e.g. ``synthesis HETRE``)
        **metrics: Named values appended to the message
    """
    if not logger.isEnabledFor(logging.INFO):
        return
    parts = ", ".join(f"{key}={_format_metric(value)}" for key, value in metrics.items())
    logger.info("%s: %s", label, parts, extra={'metrics': metrics})


def _format_metric(value) -> str:
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)
