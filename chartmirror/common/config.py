"""Configuration management for chartmirror.

Handles loading and validation of YAML configuration files describing
which chart repositories to mirror and how.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import yaml

DEFAULT_CONFIG_PATH = "/etc/chartmirror/config.yaml"
DEFAULT_LOG_DIR = "/var/log/chartmirror"


@dataclass(frozen=True)
class RepositoryConfig:
    """A remote chart repository and where its mirror lives locally.

    ``name`` becomes the mirror's directory name under the destination root,
    so it must be a single relative path component.
    """

    name: str
    url: str
    new_root_url: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Repository name must not be empty")
        if self.name in (".", "..") or "/" in self.name or "\\" in self.name:
            raise ValueError(
                f"Repository name must be a single path component: {self.name!r}"
            )
        if PurePosixPath(self.name).is_absolute():
            raise ValueError(f"Repository name must be relative: {self.name!r}")
        _validate_url(self.url, "url")
        if self.new_root_url:
            _validate_url(self.new_root_url, "new_root_url")


@dataclass
class MirrorOptions:
    """Per-run options controlling selection and failure handling."""

    chart_name: str = ""
    chart_version: str = ""
    all_versions: bool = False
    ignore_errors: bool = False
    destination: str = "."
    verbose: bool = False


@dataclass
class LoggingConfig:
    """Logging settings for the command line entry point."""

    level: str = "INFO"
    log_dir: str = DEFAULT_LOG_DIR
    file_logging: bool = False


@dataclass
class RepositoryJob:
    """One repository to mirror together with its effective options."""

    repository: RepositoryConfig
    options: MirrorOptions = field(default_factory=MirrorOptions)


@dataclass
class MirrorSettings:
    """Top-level configuration for chartmirror."""

    jobs: List[RepositoryJob] = field(default_factory=list)
    defaults: MirrorOptions = field(default_factory=MirrorOptions)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _validate_url(url: str, field_name: str) -> None:
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"{field_name} must be an absolute http(s) URL: {url!r}")


def parse_options(
    options_dict: Dict[str, Any], defaults: Optional[MirrorOptions] = None
) -> MirrorOptions:
    """Parse mirror options, falling back to ``defaults`` for missing keys.

    Args:
        options_dict: Dictionary holding any of the MirrorOptions keys
        defaults: Options to inherit from

    Returns:
        MirrorOptions instance
    """
    base = defaults or MirrorOptions()
    return replace(
        base,
        chart_name=str(options_dict.get("chart_name", base.chart_name) or ""),
        chart_version=str(options_dict.get("chart_version", base.chart_version) or ""),
        all_versions=bool(options_dict.get("all_versions", base.all_versions)),
        ignore_errors=bool(options_dict.get("ignore_errors", base.ignore_errors)),
        destination=str(options_dict.get("destination", base.destination)),
        verbose=bool(options_dict.get("verbose", base.verbose)),
    )


def parse_repository_config(repo_dict: Dict[str, Any]) -> RepositoryConfig:
    """Parse a repository configuration dictionary.

    Raises:
        ValueError: If the name or URLs are invalid
    """
    return RepositoryConfig(
        name=repo_dict.get("name", ""),
        url=repo_dict.get("url", ""),
        new_root_url=repo_dict.get("new_root_url") or None,
    )


def parse_logging_config(logging_dict: Dict[str, Any]) -> LoggingConfig:
    """Parse the logging section."""
    return LoggingConfig(
        level=logging_dict.get("level", "INFO"),
        log_dir=logging_dict.get("log_dir", DEFAULT_LOG_DIR),
        file_logging=logging_dict.get("file_logging", False),
    )


def parse_config(config_dict: Dict[str, Any]) -> MirrorSettings:
    """Parse the full configuration dictionary.

    Top-level option keys act as defaults for every repository; each
    repository entry may override them.

    Args:
        config_dict: Full configuration dictionary

    Returns:
        MirrorSettings instance
    """
    defaults = parse_options(config_dict)

    jobs = []
    for repo_dict in config_dict.get("repositories", []):
        jobs.append(
            RepositoryJob(
                repository=parse_repository_config(repo_dict),
                options=parse_options(repo_dict, defaults),
            )
        )

    return MirrorSettings(
        jobs=jobs,
        defaults=defaults,
        logging=parse_logging_config(config_dict.get("logging", {})),
    )


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary with environment variables expanded

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
        TypeError: If the document root is not a mapping
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration."""
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_typed_config(config_path: str = DEFAULT_CONFIG_PATH) -> MirrorSettings:
    """Load and parse configuration into typed dataclasses."""
    return parse_config(load_config(config_path))
