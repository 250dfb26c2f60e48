"""Chart repository collaborators: catalog model, parsing, search, transport.

These are the pieces the mirroring pipeline consumes but does not own:
turning index bytes into a Catalog, finding candidate entries by name,
and retrieving content over HTTP(S).
"""

from .base import (
    ARCHIVE_EXTENSION,
    Catalog,
    PackageEntry,
    SelectionCriteria,
)
from .index import ManifestParseError, ManifestParser
from .search import IndexSearcher, SearchError, latest_versions
from .transport import HttpTransport, TransportError, index_url

__all__ = [
    "ARCHIVE_EXTENSION",
    "Catalog",
    "PackageEntry",
    "SelectionCriteria",
    "ManifestParseError",
    "ManifestParser",
    "IndexSearcher",
    "SearchError",
    "latest_versions",
    "HttpTransport",
    "TransportError",
    "index_url",
]
