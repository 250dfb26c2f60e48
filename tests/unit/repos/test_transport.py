"""Tests for the HTTP transport (httpx MockTransport, no network)."""

import logging

import httpx
import pytest

from chartmirror import __version__
from chartmirror.repos.transport import HttpTransport, TransportError, index_url


def _transport(handler):
    return HttpTransport(client=httpx.Client(transport=httpx.MockTransport(handler)))


def _serve(routes):
    def handler(request):
        body = routes.get(str(request.url))
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, content=body)

    return handler


class TestIndexUrl:
    @pytest.mark.parametrize(
        "base",
        ["https://repo.example/charts", "https://repo.example/charts/"],
    )
    def test_index_url(self, base):
        assert index_url(base) == "https://repo.example/charts/index.yaml"


class TestFetchManifest:
    def test_writes_body(self, tmp_path):
        transport = _transport(_serve({"https://repo.example/index.yaml": b"apiVersion: v1\n"}))
        dest = tmp_path / "downloaded-index.yaml"

        transport.fetch_manifest("https://repo.example/index.yaml", dest)

        assert dest.read_bytes() == b"apiVersion: v1\n"

    def test_http_error_status(self, tmp_path):
        transport = _transport(_serve({}))

        with pytest.raises(TransportError) as excinfo:
            transport.fetch_manifest("https://repo.example/index.yaml", tmp_path / "out")
        assert excinfo.value.url == "https://repo.example/index.yaml"
        assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)

    def test_invalid_url(self, tmp_path):
        with pytest.raises(TransportError, match="failed to fetch"):
            _transport(_serve({})).fetch_manifest(
                "https://repo.example:port/index.yaml", tmp_path / "out"
            )
        assert not (tmp_path / "out").exists()

    def test_network_error(self, tmp_path):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError, match="connection refused"):
            _transport(handler).fetch_manifest("https://repo.example/index.yaml", tmp_path / "out")

    def test_unwritable_destination(self, tmp_path):
        transport = _transport(_serve({"https://repo.example/index.yaml": b"x"}))

        with pytest.raises(TransportError, match="failed to store"):
            transport.fetch_manifest(
                "https://repo.example/index.yaml", tmp_path / "missing" / "out"
            )


class TestFetchArtifact:
    def test_returns_body(self):
        url = "https://repo.example/charts/app-1.0.0.tgz"
        transport = _transport(_serve({url: b"archive"}))

        assert transport.fetch_artifact(url) == b"archive"

    def test_not_found(self):
        with pytest.raises(TransportError, match="app-1.0.0.tgz"):
            _transport(_serve({})).fetch_artifact("https://repo.example/app-1.0.0.tgz")

    def test_invalid_url(self):
        url = "https://repo.example:port/app-1.0.0.tgz"

        with pytest.raises(TransportError) as excinfo:
            _transport(_serve({})).fetch_artifact(url)
        assert excinfo.value.url == url
        assert isinstance(excinfo.value.__cause__, httpx.InvalidURL)

    def test_logs_to_injected_logger(self, test_logger, caplog):
        url = "https://repo.example/charts/app-1.0.0.tgz"
        client = httpx.Client(transport=httpx.MockTransport(_serve({url: b"archive"})))
        transport = HttpTransport(client=client, logger=test_logger)

        with caplog.at_level(logging.DEBUG, logger=test_logger.name):
            transport.fetch_artifact(url)

        messages = [r.getMessage() for r in caplog.records if r.name == test_logger.name]
        assert messages == [f"Fetching artifact {url}"]


class TestClientLifecycle:
    def test_default_client_headers(self):
        with HttpTransport() as transport:
            assert transport.client.headers["User-Agent"] == f"chartmirror/{__version__}"
        assert transport.client.is_closed

    def test_injected_client_left_open(self):
        client = httpx.Client(transport=httpx.MockTransport(_serve({})))
        with HttpTransport(client=client):
            pass
        assert not client.is_closed
        client.close()
