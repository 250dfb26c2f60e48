"""Tests for manifest acquisition."""

from unittest.mock import MagicMock

import pytest

from chartmirror.mirror.acquisition import DOWNLOADED_INDEX_NAME, ManifestAcquisition
from chartmirror.mirror.errors import AcquisitionError
from chartmirror.repos.index import ManifestParser

from tests.factories import FakeTransport, build_index


class TestManifestAcquisition:
    def test_acquire(self, repository, tmp_path, strict_context):
        transport = FakeTransport(build_index({"app": ["1.0.0"]}))
        mirror_dir = tmp_path / "demo"

        acquired = ManifestAcquisition(transport, ManifestParser(), strict_context).acquire(
            repository, mirror_dir
        )

        assert transport.manifest_requests == ["https://repo.example/charts/index.yaml"]
        assert acquired.path == mirror_dir / DOWNLOADED_INDEX_NAME
        assert acquired.path.exists()
        assert not (mirror_dir / "index.yaml").exists()
        assert [e.get_key() for e in acquired.catalog] == ["app-1.0.0"]

    def test_unreachable_is_fatal_even_when_tolerant(self, repository, tmp_path, tolerant_context):
        acquisition = ManifestAcquisition(FakeTransport(None), ManifestParser(), tolerant_context)

        with pytest.raises(AcquisitionError, match="404") as excinfo:
            acquisition.acquire(repository, tmp_path / "demo")
        assert excinfo.value.__cause__ is not None

    def test_unparsable_manifest(self, repository, tmp_path, strict_context):
        acquisition = ManifestAcquisition(
            FakeTransport(b"not: [valid"), ManifestParser(), strict_context
        )

        with pytest.raises(AcquisitionError, match="invalid YAML"):
            acquisition.acquire(repository, tmp_path / "demo")

    def test_directory_creation_failure(self, repository, tmp_path, strict_context):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        parser = MagicMock()
        acquisition = ManifestAcquisition(FakeTransport(b""), parser, strict_context)

        with pytest.raises(AcquisitionError, match="cannot create"):
            acquisition.acquire(repository, blocker / "demo")
        parser.parse.assert_not_called()
