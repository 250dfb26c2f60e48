"""Parser for chart repository index files.

Reads an ``index.yaml`` of the form::

    apiVersion: v1
    entries:
      app:
        - name: app
          version: 1.0.0
          urls:
            - https://repo.example/charts/app-1.0.0.tgz
    generated: "2024-01-01T00:00:00Z"

into a Catalog.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..common.logger import get_logger
from .base import Catalog, PackageEntry

_KNOWN_FIELDS = ("name", "version", "urls", "digest")


class ManifestParseError(Exception):
    """Raised when a manifest cannot be read or is structurally invalid."""

    def __init__(self, message: str, path: Union[str, Path]):
        super().__init__(f"{path}: {message}")
        self.path = Path(path)


class ManifestParser:
    """Loads index files into Catalogs."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger("chartmirror.index")

    def parse(self, path: Union[str, Path]) -> Catalog:
        """Load and structurally parse a manifest file.

        Args:
            path: Path to the index file

        Returns:
            Catalog with entries in document order

        Raises:
            ManifestParseError: If the file is unreadable, not YAML, or not an index
        """
        index_path = Path(path)
        try:
            with index_path.open("r", encoding="utf-8") as f:
                document = yaml.safe_load(f)
        except OSError as e:
            raise ManifestParseError(f"cannot read manifest: {e}", index_path) from e
        except yaml.YAMLError as e:
            raise ManifestParseError(f"invalid YAML: {e}", index_path) from e

        return self.parse_document(document, index_path)

    def parse_document(self, document: Any, path: Union[str, Path] = "<memory>") -> Catalog:
        """Build a Catalog from an already loaded YAML document."""
        if not isinstance(document, dict):
            raise ManifestParseError("manifest root must be a mapping", path)

        api_version = document.get("apiVersion")
        if not api_version:
            raise ManifestParseError("no API version specified", path)

        raw_entries = document.get("entries")
        if raw_entries is None:
            raw_entries = {}
        if not isinstance(raw_entries, dict):
            raise ManifestParseError("'entries' must be a mapping", path)

        entries: List[PackageEntry] = []
        for key, versions in raw_entries.items():
            if versions is None:
                continue
            if not isinstance(versions, list):
                raise ManifestParseError(f"entries for {key!r} must be a list", path)
            for raw in versions:
                entries.append(self._parse_entry(str(key), raw, path))

        generated = document.get("generated")
        catalog = Catalog(
            entries=entries,
            api_version=str(api_version),
            generated=str(generated) if generated is not None else None,
        )
        self.logger.debug(f"Parsed {len(catalog)} chart versions from {path}")
        return catalog

    def _parse_entry(
        self, key: str, raw: Any, path: Union[str, Path]
    ) -> PackageEntry:
        if not isinstance(raw, dict):
            raise ManifestParseError(f"chart version under {key!r} must be a mapping", path)

        version = raw.get("version")
        if version is None or version == "":
            raise ManifestParseError(f"chart {key!r} has an entry without a version", path)

        urls = raw.get("urls") or []
        if isinstance(urls, str):
            urls = [urls]
        if not isinstance(urls, list):
            raise ManifestParseError(f"urls of {key!r} must be a list", path)

        metadata: Dict[str, Any] = {
            k: v for k, v in raw.items() if k not in _KNOWN_FIELDS
        }
        digest = raw.get("digest")
        return PackageEntry(
            name=str(raw.get("name") or key),
            version=str(version),
            urls=tuple(str(u) for u in urls),
            digest=str(digest) if digest else None,
            metadata=metadata,
        )
