"""HTTP(S) retrieval of manifests and chart archives."""

import logging
from pathlib import Path
from typing import Optional, Union

import httpx

from .. import __version__
from ..common.logger import get_logger

INDEX_FILE_NAME = "index.yaml"
DEFAULT_TIMEOUT = 60.0


class TransportError(Exception):
    """Raised when a URL cannot be retrieved or its body cannot be stored."""

    def __init__(self, message: str, url: str):
        super().__init__(message)
        self.url = url


def index_url(base_url: str) -> str:
    """Location of the index file for a repository base URL."""
    return f"{base_url.rstrip('/')}/{INDEX_FILE_NAME}"


class HttpTransport:
    """Fetches repository content over HTTP(S) with httpx.

    A client may be injected (tests pass one built on ``httpx.MockTransport``);
    otherwise the transport creates and owns its own. Debug output goes to
    ``logger``, which a mirror job sets to its own logger.
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or get_logger("chartmirror.transport")
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": f"chartmirror/{__version__}"},
        )

    def fetch_manifest(self, url: str, dest_path: Union[str, Path]) -> None:
        """Download ``url`` and write the body to ``dest_path``.

        Raises:
            TransportError: On network errors, non-2xx responses, or write failures
        """
        self.logger.debug(f"Fetching manifest {url}")
        try:
            with self.client.stream("GET", url) as response:
                response.raise_for_status()
                with open(dest_path, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"failed to fetch {url}: {e}", url) from e
        except OSError as e:
            raise TransportError(f"failed to store {url} at {dest_path}: {e}", url) from e

    def fetch_artifact(self, url: str) -> bytes:
        """Download ``url`` and return its body.

        Raises:
            TransportError: On network errors or non-2xx responses
        """
        self.logger.debug(f"Fetching artifact {url}")
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"failed to fetch {url}: {e}", url) from e
        return response.content

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
