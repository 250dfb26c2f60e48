"""Tests for manifest rewrite and publish."""

import logging
import os
from unittest.mock import patch

import pytest

from chartmirror.mirror.acquisition import DOWNLOADED_INDEX_NAME
from chartmirror.mirror.errors import PublishError
from chartmirror.mirror.publisher import INDEX_NAME, REWRITTEN_INDEX_NAME, ManifestPublisher

from tests.factories import BASE_URL, build_index

NEW_ROOT = "https://mirror.internal/charts"


@pytest.fixture
def mirror_dir(tmp_path):
    directory = tmp_path / "demo"
    directory.mkdir()
    (directory / DOWNLOADED_INDEX_NAME).write_bytes(
        build_index({"app": ["1.0.0", "1.1.0"], "db": ["2.0.0"]})
    )
    return directory


class TestPublish:
    def test_rename_without_rewrite(self, mirror_dir, strict_context):
        original = (mirror_dir / DOWNLOADED_INDEX_NAME).read_bytes()

        canonical = ManifestPublisher(strict_context).publish(mirror_dir, BASE_URL)

        assert canonical == mirror_dir / INDEX_NAME
        assert canonical.read_bytes() == original
        assert not (mirror_dir / DOWNLOADED_INDEX_NAME).exists()

    def test_replaces_existing_index(self, mirror_dir, strict_context):
        (mirror_dir / INDEX_NAME).write_bytes(b"stale")

        canonical = ManifestPublisher(strict_context).publish(mirror_dir, BASE_URL)

        assert b"stale" not in canonical.read_bytes()

    def test_rewrites_every_occurrence(self, mirror_dir, strict_context):
        assert (mirror_dir / DOWNLOADED_INDEX_NAME).read_bytes().count(BASE_URL.encode()) == 3

        canonical = ManifestPublisher(strict_context).publish(mirror_dir, BASE_URL, NEW_ROOT)

        content = canonical.read_bytes()
        assert content.count(NEW_ROOT.encode()) == 3
        assert content.count(BASE_URL.encode()) == 0
        assert not (mirror_dir / REWRITTEN_INDEX_NAME).exists()

    def test_missing_manifest_is_fatal_even_when_tolerant(self, tmp_path, tolerant_context):
        with pytest.raises(PublishError, match="cannot publish"):
            ManifestPublisher(tolerant_context).publish(tmp_path, BASE_URL)
        assert not (tmp_path / INDEX_NAME).exists()

    def test_rename_failure_leaves_canonical_unchanged(self, mirror_dir, strict_context):
        (mirror_dir / INDEX_NAME).write_bytes(b"previous")

        with patch("chartmirror.mirror.publisher.os.replace", side_effect=OSError("EXDEV")):
            with pytest.raises(PublishError):
                ManifestPublisher(strict_context).publish(mirror_dir, BASE_URL)

        assert (mirror_dir / INDEX_NAME).read_bytes() == b"previous"


class TestRewrite:
    def test_returns_count(self, mirror_dir, strict_context):
        count = ManifestPublisher(strict_context).rewrite(
            mirror_dir / DOWNLOADED_INDEX_NAME, BASE_URL, NEW_ROOT
        )
        assert count == 3

    def test_failure_between_rewrite_and_rename(self, mirror_dir, strict_context):
        real_replace = os.replace
        calls = []

        def fail_second(src, dst):
            calls.append(dst)
            if len(calls) == 2:
                raise OSError("crash before publish")
            return real_replace(src, dst)

        with patch("chartmirror.mirror.publisher.os.replace", side_effect=fail_second):
            with pytest.raises(PublishError):
                ManifestPublisher(strict_context).publish(mirror_dir, BASE_URL, NEW_ROOT)

        assert not (mirror_dir / INDEX_NAME).exists()
        rewritten = (mirror_dir / DOWNLOADED_INDEX_NAME).read_bytes()
        assert rewritten.count(NEW_ROOT.encode()) == 3

    def test_write_failure_strict(self, mirror_dir, strict_context):
        (mirror_dir / REWRITTEN_INDEX_NAME).mkdir()

        with pytest.raises(PublishError, match="cannot rewrite"):
            ManifestPublisher(strict_context).publish(mirror_dir, BASE_URL, NEW_ROOT)
        assert not (mirror_dir / INDEX_NAME).exists()

    def test_write_failure_tolerant_publishes_original(self, mirror_dir, tolerant_context, caplog):
        original = (mirror_dir / DOWNLOADED_INDEX_NAME).read_bytes()
        publisher = ManifestPublisher(tolerant_context)

        with patch.object(type(mirror_dir), "write_bytes", side_effect=OSError("disk full")):
            with caplog.at_level(logging.WARNING):
                canonical = publisher.publish(mirror_dir, BASE_URL, NEW_ROOT)

        assert canonical.read_bytes() == original
        assert "cannot rewrite" in caplog.records[0].getMessage()

    def test_scratch_removed_when_rename_fails_strict(self, mirror_dir, strict_context):
        original = (mirror_dir / DOWNLOADED_INDEX_NAME).read_bytes()

        with patch("chartmirror.mirror.publisher.os.replace", side_effect=OSError("EXDEV")):
            with pytest.raises(PublishError, match="cannot rewrite"):
                ManifestPublisher(strict_context).publish(mirror_dir, BASE_URL, NEW_ROOT)

        assert not (mirror_dir / REWRITTEN_INDEX_NAME).exists()
        assert (mirror_dir / DOWNLOADED_INDEX_NAME).read_bytes() == original
        assert not (mirror_dir / INDEX_NAME).exists()

    def test_scratch_removed_when_rename_fails_tolerant(self, mirror_dir, tolerant_context):
        original = (mirror_dir / DOWNLOADED_INDEX_NAME).read_bytes()
        real_replace = os.replace
        calls = []

        def fail_first(src, dst):
            calls.append(dst)
            if len(calls) == 1:
                raise OSError("EXDEV")
            return real_replace(src, dst)

        with patch("chartmirror.mirror.publisher.os.replace", side_effect=fail_first):
            canonical = ManifestPublisher(tolerant_context).publish(mirror_dir, BASE_URL, NEW_ROOT)

        assert not (mirror_dir / REWRITTEN_INDEX_NAME).exists()
        assert canonical.read_bytes() == original

    def test_read_failure(self, tmp_path, tolerant_context):
        with pytest.raises(PublishError, match="cannot read"):
            ManifestPublisher(tolerant_context).rewrite(
                tmp_path / DOWNLOADED_INDEX_NAME, BASE_URL, NEW_ROOT
            )
