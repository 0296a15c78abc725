"""
Tests for the HTTP transport.
"""

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import MagicMock, patch

import pytest
import requests

from nextcloud_admin.api import HTTPClient
from nextcloud_admin.config import NextcloudConfig
from nextcloud_admin.exceptions import DecodeError, TransportError
from nextcloud_admin.models import OCS, Meta, parse_ocs


def make_response(body: bytes, status_code: int = 200) -> MagicMock:
    """Create a mocked streamed response."""
    response = MagicMock(status_code=status_code)
    response.iter_content.return_value = [body]
    return response


OK_XML = (
    b"<ocs><meta><status>ok</status><statuscode>100</statuscode><message>OK</message></meta>"
    b"<data><users><element>alice</element><element>bob</element></users></data></ocs>"
)


@pytest.fixture
def config():
    """Create test configuration."""
    return NextcloudConfig("admin", "secret", "https://cloud.example.com/")


@pytest.fixture
def http(config):
    """Create HTTP client with a mocked session."""
    client = HTTPClient(config)
    client._session = MagicMock()
    client._session.request.return_value = make_response(OK_XML)
    return client


class TestSession:
    """Tests for session setup."""
    
    def test_headers(self, config):
        """Test OCS and form headers are set."""
        client = HTTPClient(config)
        headers = client.session.headers
        
        assert headers["OCS-APIRequest"] == "true"
        assert headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert headers["User-Agent"].startswith("nextcloud-admin/")
        client.close()
    
    def test_basic_auth(self, config):
        """Test credentials are attached."""
        client = HTTPClient(config)
        assert client.session.auth == ("admin", "secret")
        client.close()
    
    def test_no_retries(self, config):
        """Test the adapter allows a single attempt."""
        client = HTTPClient(config)
        adapter = client.session.get_adapter("https://cloud.example.com")
        
        assert adapter.max_retries.total == 0
        client.close()
    
    def test_session_reused(self, config):
        """Test the session is created once."""
        client = HTTPClient(config)
        assert client.session is client.session
        client.close()
    
    def test_close(self, http):
        """Test close releases the session."""
        session = http._session
        http.close()
        
        session.close.assert_called_once()
        assert http._session is None
    
    def test_context_manager(self, config):
        """Test context manager closes the session."""
        with HTTPClient(config) as client:
            client.session
        assert client._session is None


class TestCall:
    """Tests for HTTPClient.call."""
    
    def test_request_arguments(self, http):
        """Test URL, method, timeout and streaming."""
        http.call("users.list", "GET", "/ocs/v1.php/cloud/users", params={"search": "al"})
        
        http._session.request.assert_called_once_with(
            method="GET",
            url="https://cloud.example.com/ocs/v1.php/cloud/users",
            params={"search": "al"},
            data=None,
            timeout=10,
            stream=True,
        )
    
    def test_returns_parsed_envelope(self, http):
        """Test the response body is decoded."""
        ocs = http.call("users.list", "GET", "/ocs/v1.php/cloud/users")
        
        assert ocs == parse_ocs(OK_XML)
        assert ocs.data.users == ["alice", "bob"]
    
    def test_form_body_encoding(self, http):
        """Test repeated fields are form-encoded in order."""
        form = [("userid", "jane"), ("groups[]", "g1"), ("groups[]", "g2")]
        http.call("users.add", "POST", "/ocs/v1.php/cloud/users", data=form)
        
        kwargs = http._session.request.call_args.kwargs
        prepared = requests.Request("POST", kwargs["url"], data=kwargs["data"]).prepare()
        
        assert prepared.body == "userid=jane&groups%5B%5D=g1&groups%5B%5D=g2"
    
    def test_failure_status_is_not_an_error(self, http):
        """Test server-side failures come back as envelopes."""
        http._session.request.return_value = make_response(
            b"<ocs><meta><status>failure</status><statuscode>102</statuscode>"
            b"<message>User already exists</message></meta><data/></ocs>"
        )
        
        ocs = http.call("users.add", "POST", "/ocs/v1.php/cloud/users")
        
        assert ocs.meta == Meta(status="failure", statuscode=102, message="User already exists")
    
    def test_http_error_status_with_envelope(self, http):
        """Test HTTP status codes are not inspected."""
        http._session.request.return_value = make_response(
            b"<ocs><meta><status>failure</status><statuscode>998</statuscode></meta></ocs>",
            status_code=404,
        )
        
        ocs = http.call("users.get", "GET", "/ocs/v1.php/cloud/users/ghost")
        
        assert ocs.meta.statuscode == 998
    
    def test_timeout(self, http):
        """Test timeouts raise TransportError."""
        cause = requests.exceptions.Timeout("read timed out")
        http._session.request.side_effect = cause
        
        with pytest.raises(TransportError) as exc_info:
            http.call("users.list", "GET", "/ocs/v1.php/cloud/users")
        
        assert exc_info.value.operation == "users.list"
        assert exc_info.value.cause is cause
        assert str(exc_info.value).startswith("users.list: ")
    
    def test_connection_refused(self, http):
        """Test connection failures raise TransportError."""
        http._session.request.side_effect = requests.exceptions.ConnectionError("refused")
        
        with pytest.raises(TransportError) as exc_info:
            http.call("users.delete", "DELETE", "/ocs/v1.php/cloud/users/jane")
        
        assert "Connection failed" in str(exc_info.value)
    
    def test_invalid_url(self, http):
        """Test request construction failures raise TransportError."""
        http._session.request.side_effect = requests.exceptions.InvalidURL("bad url")
        
        with pytest.raises(TransportError):
            http.call("users.list", "GET", "/ocs/v1.php/cloud/users")
    
    def test_malformed_body(self, http):
        """Test undecodable bodies raise DecodeError."""
        http._session.request.return_value = make_response(b"<ocs><meta>")
        
        with pytest.raises(DecodeError) as exc_info:
            http.call("users.enable", "PUT", "/ocs/v1.php/cloud/users/jane/enable")
        
        assert exc_info.value.operation == "users.enable"
        assert isinstance(exc_info.value.cause, ValueError)
    
    def test_empty_envelope(self, http):
        """Test a bare root decodes to a zero-valued envelope."""
        http._session.request.return_value = make_response(b"<ocs/>")
        
        assert http.call("users.list", "GET", "/ocs/v1.php/cloud/users") == OCS()
    
    def test_response_closed(self, http):
        """Test the streamed response is closed after reading."""
        response = make_response(OK_XML)
        http._session.request.return_value = response
        
        http.call("users.list", "GET", "/ocs/v1.php/cloud/users")
        
        response.close.assert_called_once()
    
    def test_body_read_in_chunks(self, http):
        """Test chunks are joined before decoding."""
        response = make_response(OK_XML)
        response.iter_content.return_value = [OK_XML[:20], OK_XML[20:]]
        http._session.request.return_value = response
        
        ocs = http.call("users.list", "GET", "/ocs/v1.php/cloud/users")
        
        assert ocs.data.users == ["alice", "bob"]
        response.iter_content.assert_called_once_with(chunk_size=8192)
    
    def test_read_failure(self, http):
        """Test a broken body stream raises TransportError."""
        response = make_response(OK_XML)
        response.iter_content.side_effect = requests.exceptions.ChunkedEncodingError("broken")
        http._session.request.return_value = response
        
        with pytest.raises(TransportError) as exc_info:
            http.call("users.get", "GET", "/ocs/v1.php/cloud/users/jane")
        
        assert "Reading response failed" in str(exc_info.value)
        assert exc_info.value.operation == "users.get"
        response.close.assert_called_once()


class TestTotalTimeout:
    """Tests for the overall request deadline."""
    
    def test_deadline_passed_while_reading(self, http):
        """Test a body still arriving at the deadline raises TransportError."""
        response = make_response(OK_XML)
        response.iter_content.return_value = [OK_XML[:20], OK_XML[20:40], OK_XML[40:]]
        http._session.request.return_value = response
        
        # deadline, watchdog delay, first chunk, second chunk, final check
        with patch("nextcloud_admin.api._http.monotonic", side_effect=[0.0, 0.0, 4.0, 11.0, 11.0]):
            with pytest.raises(TransportError) as exc_info:
                http.call("users.list", "GET", "/ocs/v1.php/cloud/users")
        
        assert "timed out" in str(exc_info.value)
        assert exc_info.value.operation == "users.list"
        response.close.assert_called_once()
    
    def test_body_within_deadline(self, http):
        """Test a body finished before the deadline is decoded."""
        response = make_response(OK_XML)
        response.iter_content.return_value = [OK_XML[:20], OK_XML[20:]]
        http._session.request.return_value = response
        
        with patch("nextcloud_admin.api._http.monotonic", side_effect=[0.0, 0.0, 3.0, 9.0, 9.5]):
            ocs = http.call("users.list", "GET", "/ocs/v1.php/cloud/users")
        
        assert ocs.data.users == ["alice", "bob"]
    
    def test_slow_server(self, trickle_server):
        """Test a server that keeps sending slowly is cut off at the deadline."""
        client = HTTPClient(NextcloudConfig("admin", "secret", trickle_server))
        client.session.trust_env = False
        
        started = time.monotonic()
        with patch("nextcloud_admin.api._http.REQUEST_TIMEOUT", 1):
            with pytest.raises(TransportError) as exc_info:
                client.call("users.list", "GET", "/ocs/v1.php/cloud/users")
        elapsed = time.monotonic() - started
        client.close()
        
        assert "timed out" in str(exc_info.value)
        assert elapsed < 3


class TrickleHandler(BaseHTTPRequestHandler):
    """Sends a long body one byte at a time."""
    
    def do_GET(self):
        self.send_response(200)
        self.send_header("Content-Type", "text/xml")
        self.send_header("Content-Length", "100")
        self.end_headers()
        try:
            for _ in range(100):
                self.wfile.write(b" ")
                self.wfile.flush()
                time.sleep(0.2)
        except OSError:
            pass
    
    def log_message(self, format, *args):
        pass


@pytest.fixture
def trickle_server():
    """Run a local server that never finishes its body in time."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), TrickleHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()
