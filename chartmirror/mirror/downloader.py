"""Artifact download into the mirrored directory layout."""

import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import unquote, urljoin, urlparse

from ..repos.base import PackageEntry
from ..repos.transport import TransportError
from .errors import ArtifactError, FilesystemError, MirrorError
from .policy import MirrorContext, Outcome

DIRECTORY_MODE = 0o755


@dataclass
class DownloadOutcome:
    """What happened to one source location of one chart."""

    name: str
    version: str
    url: str
    path: Optional[Path]
    status: Outcome
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is Outcome.SUCCESS


def resolve_url(base_url: str, url: str) -> str:
    """Resolve a possibly relative chart URL against the repository URL."""
    return urljoin(base_url.rstrip("/") + "/", url)


def artifact_path(
    mirror_dir: Path, base_url: str, url: str, entry: PackageEntry
) -> Path:
    """Compute where the artifact at ``url`` is stored inside ``mirror_dir``.

    The URL's directory is kept relative to the repository URL's path when
    the artifact lives under it, and relative to the host root otherwise.
    The file name is always ``<name>-<version>.tgz``.

    Raises:
        FilesystemError: If the URL is malformed or the computed path would
            leave ``mirror_dir``
    """
    archive = entry.archive_name
    if "/" in archive or "\\" in archive:
        raise FilesystemError(f"unsafe archive name {archive!r}", entry)

    try:
        source = urlparse(resolve_url(base_url, url))
        base = urlparse(base_url)
    except ValueError as e:
        raise FilesystemError(f"malformed URL {url!r}: {e}", entry) from e
    directory = posixpath.dirname(unquote(source.path))
    base_path = base.path.rstrip("/")
    if source.netloc == base.netloc and base_path:
        if directory == base_path or directory.startswith(base_path + "/"):
            directory = directory[len(base_path):]

    relative = posixpath.normpath(directory.lstrip("/") or ".")
    if relative == ".":
        return mirror_dir / archive
    if relative == ".." or relative.startswith("../") or "\\" in relative:
        raise FilesystemError(f"{url} resolves outside the mirror directory", entry)
    return mirror_dir.joinpath(*relative.split("/"), archive)


class ArtifactDownloader:
    """Downloads every source location of the selected charts, in order."""

    def __init__(self, transport, context: MirrorContext):
        self.transport = transport
        self.context = context

    def download(
        self, entries: Sequence[PackageEntry], mirror_dir: Path, base_url: str
    ) -> List[DownloadOutcome]:
        """Fetch and store every URL of every entry.

        Returns:
            One outcome per attempted location

        Raises:
            ArtifactError: Fetch failure in a strict run
            FilesystemError: Directory or write failure in a strict run
        """
        outcomes = []
        for entry in entries:
            if not entry.urls:
                self.context.logger.debug(f"Chart {entry.get_key()} lists no URLs")
            for url in entry.urls:
                outcomes.append(self._download_one(entry, url, mirror_dir, base_url))
        return outcomes

    def _download_one(
        self, entry: PackageEntry, url: str, mirror_dir: Path, base_url: str
    ) -> DownloadOutcome:
        try:
            path = artifact_path(mirror_dir, base_url, url, entry)
        except FilesystemError as e:
            return self._recover(e, e.__cause__, entry, url, None)

        try:
            content = self.transport.fetch_artifact(resolve_url(base_url, url))
        except TransportError as e:
            return self._recover(ArtifactError(str(e), entry), e, entry, url, path)

        try:
            path.parent.mkdir(parents=True, exist_ok=True, mode=DIRECTORY_MODE)
        except OSError as e:
            error = FilesystemError(f"cannot create destination folder {path.parent}: {e}", entry)
            return self._recover(error, e, entry, url, path)

        try:
            path.write_bytes(content)
        except OSError as e:
            error = FilesystemError(f"cannot write file {path}: {e}", entry)
            return self._recover(error, e, entry, url, path)

        self.context.logger.info(f"Downloaded {entry.get_key()} to {path}")
        return DownloadOutcome(entry.name, entry.version, url, path, Outcome.SUCCESS)

    def _recover(
        self,
        error: MirrorError,
        cause: Optional[BaseException],
        entry: PackageEntry,
        url: str,
        path: Optional[Path],
    ) -> DownloadOutcome:
        if self.context.handle(error) is Outcome.FATAL:
            raise error from cause
        return DownloadOutcome(
            entry.name, entry.version, url, path, Outcome.SKIPPED, error.detail
        )
