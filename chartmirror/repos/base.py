"""Data structures describing a chart repository manifest.

A manifest is parsed once per run into a Catalog; selection works on
PackageEntry records and never touches the raw manifest again.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

ARCHIVE_EXTENSION = "tgz"


@dataclass(frozen=True)
class PackageEntry:
    """One named, versioned chart and the locations it can be fetched from."""

    name: str
    version: str
    urls: Tuple[str, ...] = ()
    digest: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def archive_name(self) -> str:
        """File name used for the mirrored artifact."""
        return f"{self.name}-{self.version}.{ARCHIVE_EXTENSION}"

    def get_key(self) -> str:
        """Get unique key for this entry."""
        return f"{self.name}-{self.version}"


@dataclass
class Catalog:
    """In-memory form of a manifest, entries kept in document order."""

    entries: List[PackageEntry] = field(default_factory=list)
    api_version: str = "v1"
    generated: Optional[str] = None

    def __iter__(self) -> Iterator[PackageEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def names(self) -> List[str]:
        """Distinct chart names in order of first appearance."""
        seen: Dict[str, None] = {}
        for entry in self.entries:
            seen.setdefault(entry.name, None)
        return list(seen)

    def versions(self, name: str) -> List[str]:
        """Versions listed for ``name``, in document order."""
        return [e.version for e in self.entries if e.name == name]

    def get(self, name: str, version: str) -> Optional[PackageEntry]:
        """Look up a single entry by exact name and version."""
        for entry in self.entries:
            if entry.name == name and entry.version == version:
                return entry
        return None


@dataclass(frozen=True)
class SelectionCriteria:
    """What the caller asked to mirror.

    ``pattern`` is a regular expression searched within entry names. ``name``
    and ``version`` are exact matches applied after the pattern; empty means
    "any".
    """

    pattern: str = ""
    name: str = ""
    version: str = ""
    all_versions: bool = False

    @classmethod
    def from_filter(
        cls, chart_name: str = "", chart_version: str = "", all_versions: bool = False
    ) -> "SelectionCriteria":
        """Build criteria from a literal chart name filter."""
        return cls(
            pattern=re.escape(chart_name) if chart_name else "",
            name=chart_name,
            version=chart_version,
            all_versions=all_versions,
        )

    @property
    def multiple_versions(self) -> bool:
        """Whether more than the newest version of a name may be selected."""
        return self.all_versions or bool(self.version)

    def accepts(self, entry: PackageEntry) -> bool:
        """Apply the exact name and version refinements."""
        if self.name and entry.name != self.name:
            return False
        if self.version and entry.version != self.version:
            return False
        return True
