"""Manifest rewrite and atomic publish."""

import os
from pathlib import Path
from typing import Optional

from .acquisition import DOWNLOADED_INDEX_NAME
from .errors import PublishError
from .policy import MirrorContext, Outcome

INDEX_NAME = "index.yaml"
REWRITTEN_INDEX_NAME = "rewritten-index.yaml"


class ManifestPublisher:
    """Promotes the downloaded manifest to the canonical ``index.yaml``.

    The URL rewrite is a literal byte substitution of the source URL. Any
    occurrence of that string is replaced, including ones unrelated to chart
    locations.
    """

    def __init__(self, context: MirrorContext):
        self.context = context

    def publish(
        self, mirror_dir: Path, source_url: str, new_root_url: Optional[str] = None
    ) -> Path:
        """Rewrite (optionally) and rename the downloaded manifest.

        Returns:
            Path of the canonical manifest

        Raises:
            PublishError: If the manifest cannot be read or renamed, or the
                rewritten copy cannot be written in a strict run
        """
        downloaded = mirror_dir / DOWNLOADED_INDEX_NAME
        canonical = mirror_dir / INDEX_NAME

        if new_root_url:
            self.rewrite(downloaded, source_url, new_root_url)

        try:
            os.replace(downloaded, canonical)
        except OSError as e:
            raise PublishError(f"cannot publish {downloaded} as {canonical}: {e}") from e

        self.context.logger.info(f"Published {canonical}")
        return canonical

    def rewrite(self, manifest: Path, old_url: str, new_url: str) -> int:
        """Replace every occurrence of ``old_url`` with ``new_url`` in ``manifest``.

        The new content goes to a scratch file that replaces ``manifest`` in a
        single rename, so ``manifest`` is never left half written. A failed
        write or rename removes the scratch file in both strict and tolerant
        runs.

        Returns:
            Number of occurrences replaced (0 if the write was skipped)
        """
        try:
            content = manifest.read_bytes()
        except OSError as e:
            raise PublishError(f"cannot read {manifest}: {e}") from e

        old = old_url.encode("utf-8")
        count = content.count(old)
        rewritten = content.replace(old, new_url.encode("utf-8"))

        scratch = manifest.with_name(REWRITTEN_INDEX_NAME)
        try:
            scratch.write_bytes(rewritten)
            os.replace(scratch, manifest)
        except OSError as e:
            if scratch.is_file():
                scratch.unlink()
            error = PublishError(f"cannot rewrite {manifest}: {e}")
            if self.context.handle(error) is Outcome.FATAL:
                raise error from e
            return 0

        self.context.logger.debug(
            f"Rewrote {count} occurrences of {old_url} to {new_url}"
        )
        return count
