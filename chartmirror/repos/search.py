"""Name search over a Catalog.

Mirrors how a chart search index behaves: unless multiple versions are
requested only the newest version of each chart is searchable.
"""

import re
from typing import Dict, List

from packaging.version import InvalidVersion, Version

from .base import Catalog, PackageEntry


class SearchError(Exception):
    """Raised when a search pattern cannot be evaluated."""

    def __init__(self, message: str, pattern: str):
        super().__init__(message)
        self.pattern = pattern


def _version_key(version: str):
    # Unparsable versions sort below every valid one
    try:
        return (1, Version(version))
    except InvalidVersion:
        return (0, Version("0"))


def latest_versions(catalog: Catalog) -> List[PackageEntry]:
    """Return the newest entry per chart name, in catalog order.

    Versions are ordered by PEP 440 rules (``packaging.version``), not SemVer.
    Common SemVer pre-releases such as ``2.0.0-rc.1`` or ``2.0.0-alpha`` still
    parse and sort before their release, but tags PEP 440 cannot read, such as
    ``2.0.0-SNAPSHOT``, are unparsable and sort below every valid version.
    Ties (including unparsable versions) are won by the entry listed first.
    """
    newest: Dict[str, PackageEntry] = {}
    for entry in catalog:
        current = newest.get(entry.name)
        if current is None or _version_key(entry.version) > _version_key(current.version):
            newest[entry.name] = entry
    chosen = {id(e) for e in newest.values()}
    return [e for e in catalog if id(e) in chosen]


class IndexSearcher:
    """Matches a name pattern against catalog entries."""

    def find(
        self, catalog: Catalog, pattern: str, multiple_versions: bool = False
    ) -> List[PackageEntry]:
        """Return entries whose name matches ``pattern``, in catalog order.

        Args:
            catalog: Catalog to search
            pattern: Regular expression searched within each name; empty matches all
            multiple_versions: Search every version instead of only the newest

        Raises:
            SearchError: If the pattern is not a valid regular expression
        """
        try:
            regex = re.compile(pattern or "")
        except re.error as e:
            raise SearchError(f"invalid search pattern {pattern!r}: {e}", pattern) from e

        candidates = list(catalog) if multiple_versions else latest_versions(catalog)
        return [entry for entry in candidates if regex.search(entry.name)]
