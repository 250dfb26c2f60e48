"""Errors raised by the mirroring pipeline.

Every error records the pipeline step it came from and, when one applies,
the chart entry being processed.
"""

from typing import Optional

from ..repos.base import PackageEntry


class MirrorError(Exception):
    """Base class for mirroring failures."""

    step = "mirror"

    def __init__(self, message: str, entry: Optional[PackageEntry] = None):
        super().__init__(message)
        self.entry = entry

    @property
    def detail(self) -> str:
        """The message without step or entry context."""
        return super().__str__()

    @property
    def entry_label(self) -> str:
        """``name(version)`` of the entry involved, or an empty string."""
        if self.entry is None:
            return ""
        return f"{self.entry.name}({self.entry.version})"

    def __str__(self) -> str:
        message = self.detail
        if self.entry is not None:
            return f"{self.step}: chart {self.entry_label}: {message}"
        return f"{self.step}: {message}"


class AcquisitionError(MirrorError):
    """Manifest could not be fetched or parsed. Always fatal."""

    step = "acquire"


class SelectionError(MirrorError):
    """The matching facility failed. Always fatal."""

    step = "select"


class ArtifactError(MirrorError):
    """A single artifact could not be fetched."""

    step = "download"


class FilesystemError(MirrorError):
    """A directory could not be created or a file could not be written."""

    step = "write"


class PublishError(MirrorError):
    """The manifest could not be rewritten or promoted."""

    step = "publish"
