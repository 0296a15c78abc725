"""
Base HTTP client for the Nextcloud OCS API.

Handles session setup, basic authentication, the OCS request header and
decoding of the XML envelope.
"""

import logging
import socket
import threading
from time import monotonic
from typing import Optional, Dict, Sequence, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .. import __version__
from ..config import NextcloudConfig, REQUEST_TIMEOUT, get_config
from ..exceptions import TransportError, DecodeError
from ..models import OCS, parse_ocs

logger = logging.getLogger(__name__)

FormData = Sequence[Tuple[str, str]]

CHUNK_SIZE = 8192


def _shutdown_socket(response: requests.Response) -> None:
    """Shut down the socket behind a streamed response so a blocked read returns."""
    connection = getattr(response.raw, "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        logger.debug(f"Socket already closed: {e}")


class HTTPClient:
    """
    Base HTTP client for the OCS API.

    Handles:
    - Session management (single attempt, no retries)
    - Basic authentication and the OCS-APIRequest header
    - Transport and decode error wrapping

    The envelope status is never inspected here: a server-side failure such
    as "user already exists" is returned like any other envelope.
    """

    def __init__(self, config: Optional[NextcloudConfig] = None):
        """
        Initialize the HTTP client.

        Args:
            config: Optional configuration. Built from the environment if not provided.
        """
        self.config = config or get_config()
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create the HTTP session."""
        if self._session is None:
            self._session = requests.Session()

            adapter = HTTPAdapter(max_retries=Retry(total=0, read=False))
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)

            self._session.headers.update(self._get_headers())
            self._session.auth = (self.config.username, self.config.password)

        return self._session

    def _get_headers(self) -> Dict[str, str]:
        """Headers sent with every request."""
        return {
            "User-Agent": f"nextcloud-admin/{__version__}",
            "OCS-APIRequest": "true",
            "Content-Type": "application/x-www-form-urlencoded",
        }

    def url_for(self, path: str) -> str:
        """Build the absolute URL for an API path."""
        return self.config.server_url + path

    def call(
        self,
        operation: str,
        method: str,
        path: str,
        data: Optional[FormData] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> OCS:
        """
        Send one request and decode the OCS envelope.

        Args:
            operation: Name of the calling operation, attached to errors
            method: HTTP method
            path: API path including the OCS root (e.g. "/ocs/v1.php/cloud/users")
            data: Ordered form fields for the request body
            params: Query parameters

        Returns:
            Parsed OCS envelope

        Raises:
            TransportError: On timeout, connection or request construction failure
            DecodeError: If the body is not a valid OCS document
        """
        url = self.url_for(path)
        logger.debug(f"[{operation}] Request: {method} {url}")
        deadline = monotonic() + REQUEST_TIMEOUT

        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                data=list(data) if data else None,
                timeout=REQUEST_TIMEOUT,
                stream=True,
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request timed out: {e}", operation, e) from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection failed: {e}", operation, e) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed: {e}", operation, e) from e

        logger.debug(f"[{operation}] Response: {response.status_code}")
        body = self._read_body(response, deadline, operation)

        try:
            return parse_ocs(body)
        except ValueError as e:
            raise DecodeError(f"Invalid OCS response: {e}", operation, e) from e

    def _read_body(self, response: requests.Response, deadline: float, operation: str) -> bytes:
        """
        Read the full response body before ``deadline``.

        The request timeout only bounds each socket operation, so a watchdog
        shuts the socket down once the deadline passes. The response is always
        closed.

        Raises:
            TransportError: If the deadline passes or the read fails
        """
        expired = threading.Event()

        def abort() -> None:
            expired.set()
            _shutdown_socket(response)

        def timed_out() -> bool:
            return expired.is_set() or monotonic() >= deadline

        watchdog = threading.Timer(max(deadline - monotonic(), 0.0), abort)
        watchdog.daemon = True
        watchdog.start()

        chunks = []
        try:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                chunks.append(chunk)
                if timed_out():
                    break
        except requests.exceptions.RequestException as e:
            if timed_out():
                raise TransportError(
                    f"Request timed out after {REQUEST_TIMEOUT}s", operation, e
                ) from e
            raise TransportError(f"Reading response failed: {e}", operation, e) from e
        finally:
            watchdog.cancel()
            response.close()

        if timed_out():
            raise TransportError(f"Request timed out after {REQUEST_TIMEOUT}s", operation)

        return b"".join(chunks)

    def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
