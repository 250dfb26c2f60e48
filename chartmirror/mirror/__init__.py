"""The mirroring pipeline.

A MirrorJob fetches a repository's manifest, selects charts, downloads
their archives, and atomically publishes the (optionally rewritten)
manifest next to them.
"""

from .acquisition import AcquiredManifest, ManifestAcquisition
from .downloader import ArtifactDownloader, DownloadOutcome, artifact_path
from .errors import (
    AcquisitionError,
    ArtifactError,
    FilesystemError,
    MirrorError,
    PublishError,
    SelectionError,
)
from .job import JobState, MirrorJob, MirrorResult, MirrorStatus, TransitionError
from .policy import ErrorPolicy, MirrorContext, Outcome
from .publisher import ManifestPublisher
from .selector import PackageSelector

__all__ = [
    "AcquiredManifest",
    "ManifestAcquisition",
    "ArtifactDownloader",
    "DownloadOutcome",
    "artifact_path",
    "AcquisitionError",
    "ArtifactError",
    "FilesystemError",
    "MirrorError",
    "PublishError",
    "SelectionError",
    "JobState",
    "MirrorJob",
    "MirrorResult",
    "MirrorStatus",
    "TransitionError",
    "ErrorPolicy",
    "MirrorContext",
    "Outcome",
    "ManifestPublisher",
    "PackageSelector",
]
