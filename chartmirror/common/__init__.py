"""Common utilities for chartmirror."""

from .logger import setup_logger, get_logger
from .config import (
    MirrorOptions,
    MirrorSettings,
    RepositoryConfig,
    RepositoryJob,
    load_config,
    load_typed_config,
)

__all__ = [
    "MirrorOptions",
    "MirrorSettings",
    "RepositoryConfig",
    "RepositoryJob",
    "get_logger",
    "load_config",
    "load_typed_config",
    "setup_logger",
]
