"""Shared fixtures for the declaro test suite."""
import logging

import pytest

from declaro.registry import SchemaRegistry
from declaro.registry import use_registry

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))


@pytest.fixture
def registry():
    """Declare resources of a test in a registry of their own."""
    registry = SchemaRegistry()
    with use_registry(registry):
        yield registry
