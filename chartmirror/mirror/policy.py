"""Run-wide failure policy.

Recoverable failures (artifact fetches, file writes) are all routed through
MirrorContext.handle so strict and tolerant runs differ in exactly one place.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from ..common.logger import get_logger
from .errors import MirrorError


class ErrorPolicy(str, Enum):
    """Whether recoverable failures abort the run or are skipped."""

    STRICT = "strict"
    TOLERANT = "tolerant"

    @classmethod
    def from_flag(cls, ignore_errors: bool) -> "ErrorPolicy":
        return cls.TOLERANT if ignore_errors else cls.STRICT


class Outcome(str, Enum):
    """Result of a single recoverable operation."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FATAL = "fatal"


@dataclass
class MirrorContext:
    """Policy and logging sink shared by the components of one run."""

    policy: ErrorPolicy = ErrorPolicy.STRICT
    logger: logging.Logger = field(default_factory=get_logger)

    @property
    def tolerant(self) -> bool:
        return self.policy is ErrorPolicy.TOLERANT

    def handle(self, error: MirrorError) -> Outcome:
        """Decide what a recoverable failure means for the run.

        Tolerant runs log a warning tagged with the chart and carry on;
        strict runs report FATAL and the caller raises ``error``.
        """
        if not self.tolerant:
            return Outcome.FATAL
        if error.entry is not None:
            self.logger.warning(
                f"processing chart {error.entry_label} - {error.detail}"
            )
        else:
            self.logger.warning(f"{error.step}: {error.detail}")
        return Outcome.SKIPPED
