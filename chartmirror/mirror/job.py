"""Mirror job orchestration.

State machine::

    START -> ACQUIRED -> SELECTED -> DOWNLOADED -> PUBLISHED -> DONE
      \\          \\           \\            \\            \\
       +----------+-----------+------------+------------+--> FAILED

A run moves forward one step at a time. Any fatal error moves it to FAILED
and is re-raised to the caller unchanged.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set

from ..common.config import MirrorOptions, RepositoryConfig
from ..common.logger import get_logger
from ..repos.base import SelectionCriteria
from ..repos.index import ManifestParser
from ..repos.search import IndexSearcher
from ..repos.transport import HttpTransport
from .acquisition import ManifestAcquisition
from .downloader import ArtifactDownloader, DownloadOutcome
from .errors import MirrorError
from .policy import ErrorPolicy, MirrorContext, Outcome
from .publisher import ManifestPublisher
from .selector import PackageSelector


class JobState(str, Enum):
    """Stages of a mirror run."""

    START = "start"
    ACQUIRED = "acquired"
    SELECTED = "selected"
    DOWNLOADED = "downloaded"
    PUBLISHED = "published"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES: Set[JobState] = {JobState.DONE, JobState.FAILED}

TRANSITIONS: Dict[JobState, JobState] = {
    JobState.START: JobState.ACQUIRED,
    JobState.ACQUIRED: JobState.SELECTED,
    JobState.SELECTED: JobState.DOWNLOADED,
    JobState.DOWNLOADED: JobState.PUBLISHED,
    JobState.PUBLISHED: JobState.DONE,
}


class TransitionError(Exception):
    """Raised when a job is moved to a state it cannot reach."""

    def __init__(self, from_state: JobState, to_state: JobState):
        super().__init__(f"Cannot move from {from_state.value} to {to_state.value}")
        self.from_state = from_state
        self.to_state = to_state


def can_transition(from_state: JobState, to_state: JobState) -> bool:
    if from_state in TERMINAL_STATES:
        return False
    if to_state is JobState.FAILED:
        return True
    return TRANSITIONS.get(from_state) is to_state


class MirrorStatus(Enum):
    """Overall result of a completed run."""

    SUCCESS = "success"
    PARTIAL = "partial"  # Some locations were skipped
    NO_PACKAGES = "no_packages"


@dataclass
class MirrorResult:
    """Result of a completed mirror run."""

    status: MirrorStatus
    repository: str
    manifest_path: Path
    outcomes: List[DownloadOutcome] = field(default_factory=list)
    selected: int = 0
    duration_seconds: float = 0.0

    @property
    def downloaded(self) -> int:
        return sum(1 for o in self.outcomes if o.status is Outcome.SUCCESS)

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.status is Outcome.SKIPPED)

    @property
    def failed_packages(self) -> List[str]:
        return [f"{o.name}-{o.version}" for o in self.outcomes if not o.succeeded]

    @property
    def is_success(self) -> bool:
        """Check if every attempted download succeeded."""
        return self.status in (MirrorStatus.SUCCESS, MirrorStatus.NO_PACKAGES)


class MirrorJob:
    """Mirrors one repository: acquire, select, download, publish.

    Collaborators default to the HTTP transport, YAML index parser and
    name searcher, all logging to the job logger; tests inject their own.
    """

    def __init__(
        self,
        config: RepositoryConfig,
        options: Optional[MirrorOptions] = None,
        transport=None,
        parser: Optional[ManifestParser] = None,
        matcher: Optional[IndexSearcher] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.options = options or MirrorOptions()
        self.context = MirrorContext(
            policy=ErrorPolicy.from_flag(self.options.ignore_errors),
            logger=logger or get_logger(),
        )
        self._owns_transport = transport is None
        self.transport = transport or HttpTransport(logger=self.context.logger)
        self.acquisition = ManifestAcquisition(
            self.transport,
            parser or ManifestParser(logger=self.context.logger),
            self.context,
        )
        self.selector = PackageSelector(matcher or IndexSearcher(), self.context)
        self.downloader = ArtifactDownloader(self.transport, self.context)
        self.publisher = ManifestPublisher(self.context)
        self._state = JobState.START

    @property
    def state(self) -> JobState:
        return self._state

    @property
    def mirror_dir(self) -> Path:
        """``<destination>/<repository name>``."""
        return Path(self.options.destination) / self.config.name

    @property
    def criteria(self) -> SelectionCriteria:
        return SelectionCriteria.from_filter(
            self.options.chart_name,
            self.options.chart_version,
            self.options.all_versions,
        )

    def _advance(self, to_state: JobState) -> None:
        if not can_transition(self._state, to_state):
            raise TransitionError(self._state, to_state)
        self.context.logger.debug(
            f"{self.config.name}: {self._state.value} -> {to_state.value}"
        )
        self._state = to_state

    def run(self) -> MirrorResult:
        """Run the whole pipeline once.

        Returns:
            MirrorResult describing every download attempt

        Raises:
            MirrorError: The first fatal error, with its step and entry
            TransitionError: If the job has already run
        """
        if self._state is not JobState.START:
            raise TransitionError(self._state, JobState.ACQUIRED)

        started = time.monotonic()
        mirror_dir = self.mirror_dir
        self.context.logger.info(
            f"Mirroring {self.config.url} into {mirror_dir} ({self.context.policy.value})"
        )
        try:
            acquired = self.acquisition.acquire(self.config, mirror_dir)
            self._advance(JobState.ACQUIRED)

            selected = self.selector.select(acquired.catalog, self.criteria)
            self._advance(JobState.SELECTED)

            outcomes = self.downloader.download(selected, mirror_dir, self.config.url)
            self._advance(JobState.DOWNLOADED)

            manifest = self.publisher.publish(
                mirror_dir, self.config.url, self.config.new_root_url
            )
            self._advance(JobState.PUBLISHED)
        except MirrorError as e:
            self.context.logger.error(f"Mirror of {self.config.name} failed: {e}")
            self._advance(JobState.FAILED)
            raise
        finally:
            if self._owns_transport:
                self.transport.close()

        if not selected:
            status = MirrorStatus.NO_PACKAGES
        elif any(not o.succeeded for o in outcomes):
            status = MirrorStatus.PARTIAL
        else:
            status = MirrorStatus.SUCCESS

        result = MirrorResult(
            status=status,
            repository=self.config.name,
            manifest_path=manifest,
            outcomes=outcomes,
            selected=len(selected),
            duration_seconds=time.monotonic() - started,
        )
        self._advance(JobState.DONE)
        self.context.logger.info(
            f"Mirrored {self.config.name}: {result.downloaded} downloaded, "
            f"{result.skipped} skipped"
        )
        return result
