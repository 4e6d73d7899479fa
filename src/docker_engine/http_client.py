"""
HTTP Client for the Docker daemon
Unix socket or TCP transport using http.client and socket
"""

import http.client
import logging
import os
import socket
from typing import Any, Dict, Optional
from urllib.parse import quote

from .config import ClientConfig, DockerHost
from .exceptions import APIError, Conflict, DockerException, DockerTimeoutError, NotFound
from .serialization import JSONCodec
from .stream_utils import BUFFER_SIZE

logger = logging.getLogger(__name__)


class UnixHTTPConnection(http.client.HTTPConnection):
    """HTTP connection over Unix socket"""

    def __init__(self, socket_path: str, timeout: Optional[float] = 60):
        super().__init__('localhost', timeout=timeout)
        self.socket_path = socket_path

    def connect(self):
        """Connect to Unix socket"""
        if not os.path.exists(self.socket_path):
            raise FileNotFoundError(f"Docker socket not found: {self.socket_path}")
        self.sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self.sock.settimeout(self.timeout)
        self.sock.connect(self.socket_path)


class StreamResponse:
    """
    Open streaming response

    Holds the connection until released. Stream wrappers read the body
    through read/read1/readline and call release() once they are done with it.
    """

    def __init__(self, connection: http.client.HTTPConnection,
                 response: http.client.HTTPResponse, method: str, uri: str,
                 sock: Optional[socket.socket] = None):
        self.connection = connection
        self.response = response
        self.method = method
        self.uri = uri
        # http.client drops connection.sock once the response owns the socket
        self.sock = sock if sock is not None else connection.sock
        self._released = False

    @property
    def status(self) -> int:
        return self.response.status

    @property
    def headers(self):
        return self.response.headers

    def read(self, amt: Optional[int] = None) -> bytes:
        return self.response.read(amt)

    def read1(self, n: int = -1) -> bytes:
        return self.response.read1(n)

    def readline(self, limit: int = -1) -> bytes:
        return self.response.readline(limit)

    def available(self) -> bytes:
        """
        Read body bytes that are already buffered or waiting on the socket

        Never blocks: when nothing is ready, returns b''. For chunked bodies
        a chunk is only started once its size line has arrived.
        """
        fp = self.response.fp
        if fp is None or self.sock is None:
            return b''

        timeout = self.sock.gettimeout()
        self.sock.setblocking(False)
        try:
            # Buffered bytes, or one non-blocking read of the socket
            ready = fp.peek(1)
        finally:
            self.sock.settimeout(timeout)

        if self.response.chunked and not self.response.chunk_left:
            # CRLF of the finished chunk comes first, then the next size line
            skip = 2 if self.response.chunk_left == 0 else 0
            if b'\n' not in ready[skip:]:
                return b''
        elif not ready:
            return b''

        return self.response.read1(BUFFER_SIZE)

    def release(self):
        """Close the response and its connection; safe to call more than once"""
        if self._released:
            return
        self._released = True
        try:
            self.response.close()
        finally:
            self.connection.close()

    close = release


class DockerHTTPClient:
    """HTTP client for Docker daemon"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = 60,
                 version: Optional[str] = None, config: Optional[ClientConfig] = None,
                 codec: Optional[JSONCodec] = None):
        """
        Initialize Docker HTTP client

        Args:
            base_url: Docker endpoint (default: DOCKER_HOST or the local socket)
            timeout: Request timeout in seconds
            version: API version prefix, e.g. "1.43"
            config: Complete client config; overrides the other arguments
            codec: JSON codec for request and response bodies
        """
        if config is None:
            if not base_url:
                host = DockerHost.from_env()
            elif base_url.startswith('/'):
                # bare socket path
                host = DockerHost(f"unix://{base_url}")
            else:
                host = DockerHost(base_url)
            config = ClientConfig(host=host, api_version=version, timeout=timeout)

        self.config = config
        self.host = config.host
        self.timeout = config.timeout
        self.codec = codec or JSONCodec()

    def _connection(self, timeout: Optional[float]) -> http.client.HTTPConnection:
        if self.host.is_unix:
            return UnixHTTPConnection(self.host.socket_path, timeout=timeout)
        return http.client.HTTPConnection(self.host.address, self.host.port, timeout=timeout)

    def url(self, path: str, params: Optional[Dict[str, Any]] = None) -> str:
        """
        Build request target with API version prefix and query string

        Booleans are sent as true/false, lists and dicts as JSON, None values
        are skipped.
        """
        if self.config.api_version:
            path = f"/v{self.config.api_version}{path}"
        if not params:
            return path

        query_parts = []
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, bool):
                value = 'true' if value else 'false'
            elif isinstance(value, (list, dict, set)):
                value = self.codec.dumps(value)
            query_parts.append(f"{key}={quote(str(value), safe='')}")
        if query_parts:
            return f"{path}?{'&'.join(query_parts)}"
        return path

    def _error_message(self, body: bytes) -> str:
        text = body.decode('utf-8', errors='replace')
        try:
            data = self.codec.loads(text)
        except ValueError:
            return text
        if isinstance(data, dict):
            return data.get('message', text)
        return text

    def _raise_for_status(self, response: http.client.HTTPResponse, method: str, url: str):
        message = self._error_message(response.read())
        kwargs = dict(response=response, status_code=response.status, method=method, uri=url)
        text = f"Docker API error: {message}"
        if response.status == 404:
            raise NotFound(text, **kwargs)
        if response.status == 409:
            raise Conflict(text, **kwargs)
        raise APIError(text, **kwargs)

    def request(self, method: str, path: str, data: Any = None,
                params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None,
                stream: bool = False, timeout: Optional[float] = -1) -> Any:
        """
        Make HTTP request to Docker daemon

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            path: API path
            data: JSON data for request body, or raw bytes
            params: URL query parameters
            headers: HTTP headers
            stream: If True, return a StreamResponse for streaming
            timeout: Socket timeout for this request (default: client timeout;
                None blocks forever)

        Returns:
            Parsed JSON response, text, None for an empty body, or a
            StreamResponse if stream=True

        Raises:
            NotFound: On HTTP 404
            Conflict: On HTTP 409
            APIError: On any other HTTP error status
            DockerTimeoutError: If the daemon did not answer in time
            DockerException: On connection failures
        """
        url = self.url(path, params)

        req_headers = {'Host': 'localhost' if self.host.is_unix else f"{self.host.address}:{self.host.port}"}
        if headers:
            req_headers.update(headers)

        body = None
        if data is not None:
            if isinstance(data, (bytes, bytearray)):
                # Raw bytes data (e.g., tar archive)
                body = bytes(data)
                req_headers.setdefault('Content-Type', 'application/octet-stream')
            else:
                body = self.codec.dumpb(data)
                req_headers['Content-Type'] = 'application/json'
            req_headers['Content-Length'] = str(len(body))

        conn = self._connection(self.timeout if timeout == -1 else timeout)
        keep_open = False
        try:
            logger.debug(f"{method} {url}")
            conn.request(method, url, body=body, headers=req_headers)
            sock = conn.sock
            response = conn.getresponse()

            if response.status >= 400:
                self._raise_for_status(response, method, url)

            if stream:
                keep_open = True
                return StreamResponse(conn, response, method, url, sock=sock)

            response_data = response.read()
            if not response_data:
                return None

            try:
                return self.codec.loads(response_data)
            except ValueError:
                # Not JSON (e.g. /_ping, archives)
                try:
                    return response_data.decode('utf-8')
                except UnicodeDecodeError:
                    return response_data

        except socket.timeout as e:
            raise DockerTimeoutError(method, url) from e
        except (OSError, http.client.HTTPException) as e:
            raise DockerException(f"Error communicating with Docker daemon: {method} {url}: {e}") from e

        finally:
            if not keep_open:
                conn.close()

    def get(self, path: str, **kwargs) -> Any:
        """Make GET request"""
        return self.request('GET', path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        """Make POST request"""
        return self.request('POST', path, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        """Make DELETE request"""
        return self.request('DELETE', path, **kwargs)

    def put(self, path: str, **kwargs) -> Any:
        """Make PUT request"""
        return self.request('PUT', path, **kwargs)
