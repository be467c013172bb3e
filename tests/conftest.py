"""
Shared pytest fixtures for shardstats tests.
"""

import logging
import random

import pytest


@pytest.fixture
def rng() -> random.Random:
    """A fixed-seed generator so sampling tests are reproducible."""
    return random.Random(20240601)


@pytest.fixture(autouse=True)
def reset_shardstats_logging():
    """Reset logging state before and after each test.

    Leaves only a NullHandler on the shardstats logger with level NOTSET so
    configuration made by one test cannot leak into another.
    """
    logger = logging.getLogger("shardstats")

    def _reset():
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if not isinstance(handler, logging.NullHandler):
                handler.close()
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()
