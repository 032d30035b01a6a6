"""Tests for basal area helpers and logging setup."""
import json
import logging

import pytest

from pycubage.logging_config import (
    ROOT_LOGGER_NAME,
    StructuredFormatter,
    get_logger,
    log_calculation_summary,
    setup_logging,
)
from pycubage.tree_utils import calculate_stand_basal_area, calculate_tree_basal_area, form_height


# ============================================================================
# Tree Utilities
# ============================================================================

class TestTreeUtils:

    def test_stand_basal_area(self, beech_trees):
        expected = sum(calculate_tree_basal_area(t.diameter_cm) for t in beech_trees)
        assert calculate_stand_basal_area(beech_trees) == pytest.approx(expected)
        assert calculate_stand_basal_area([]) == 0.0

    def test_form_height(self):
        assert form_height(1.2566, 40.0) == pytest.approx(10.0, rel=1e-4)
        assert form_height(1.0, 0.0) is None


# ============================================================================
# Logging
# ============================================================================

class TestLogging:

    def test_loggers_live_under_package_namespace(self):
        assert get_logger('pycubage.synthesis').name == 'pycubage.synthesis'
        assert get_logger('my_app').name == 'pycubage.my_app'
        assert get_logger(ROOT_LOGGER_NAME).name == ROOT_LOGGER_NAME

    @pytest.fixture
    def package_logger(self):
        root = logging.getLogger(ROOT_LOGGER_NAME)
        yield root
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        root.propagate = True
        root.setLevel(logging.NOTSET)

    def test_setup_replaces_handlers(self, tmp_path, package_logger):
        root = setup_logging(level='debug', log_file=tmp_path / 'logs' / 'run.log')
        assert root is package_logger
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2
        assert (tmp_path / 'logs').is_dir()
        root = setup_logging(level=logging.WARNING)
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING

    def test_structured_formatter(self):
        record = logging.LogRecord('pycubage.x', logging.INFO, __file__, 1, 'volume %s', ('ok',), None)
        record.metrics = {'trees': 4}
        payload = json.loads(StructuredFormatter().format(record))
        assert payload['message'] == 'volume ok'
        assert payload['metrics'] == {'trees': 4}

    def test_calculation_summary(self, caplog):
        logger = get_logger('tests.summary')
        with caplog.at_level(logging.INFO, logger=logger.name):
            log_calculation_summary(logger, 'Synthesis HETRE', trees=4, volume=2.34567, total=None)
        assert 'Synthesis HETRE: trees=4, volume=2.346, total=None' in caplog.text
