"""Manifest acquisition: fetch the remote index and parse it."""

from dataclasses import dataclass
from pathlib import Path

from ..common.config import RepositoryConfig
from ..repos.base import Catalog
from ..repos.index import ManifestParseError, ManifestParser
from ..repos.transport import TransportError, index_url
from .errors import AcquisitionError
from .policy import MirrorContext

DOWNLOADED_INDEX_NAME = "downloaded-index.yaml"


@dataclass
class AcquiredManifest:
    """The fetched manifest on disk and its parsed form."""

    path: Path
    catalog: Catalog


class ManifestAcquisition:
    """Fetches a repository's index next to, but not as, the canonical manifest."""

    def __init__(self, transport, parser: ManifestParser, context: MirrorContext):
        self.transport = transport
        self.parser = parser
        self.context = context

    def acquire(self, config: RepositoryConfig, mirror_dir: Path) -> AcquiredManifest:
        """Download and parse the manifest of ``config`` into ``mirror_dir``.

        Raises:
            AcquisitionError: If the directory, fetch or parse fails
        """
        try:
            mirror_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise AcquisitionError(f"cannot create {mirror_dir}: {e}") from e

        url = index_url(config.url)
        dest = mirror_dir / DOWNLOADED_INDEX_NAME
        try:
            self.transport.fetch_manifest(url, dest)
        except TransportError as e:
            raise AcquisitionError(str(e)) from e

        try:
            catalog = self.parser.parse(dest)
        except ManifestParseError as e:
            raise AcquisitionError(str(e)) from e

        self.context.logger.info(
            f"Fetched {url}: {len(catalog)} chart versions in {len(catalog.names())} charts"
        )
        return AcquiredManifest(path=dest, catalog=catalog)
