"""Pytest configuration and shared fixtures."""

import logging

import pytest

from chartmirror.common.config import MirrorOptions, RepositoryConfig
from chartmirror.mirror.policy import ErrorPolicy, MirrorContext

from tests.factories import BASE_URL


@pytest.fixture
def repository():
    """Repository mirrored into a directory called ``demo``."""
    return RepositoryConfig(name="demo", url=BASE_URL)


@pytest.fixture
def options(tmp_path):
    """Strict options writing under the test's temporary directory."""
    return MirrorOptions(destination=str(tmp_path))


@pytest.fixture
def test_logger():
    logger = logging.getLogger("chartmirror.tests")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def strict_context(test_logger):
    return MirrorContext(policy=ErrorPolicy.STRICT, logger=test_logger)


@pytest.fixture
def tolerant_context(test_logger):
    return MirrorContext(policy=ErrorPolicy.TOLERANT, logger=test_logger)
