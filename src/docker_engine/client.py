"""
Docker Client - Main API entry point
"""

from typing import Any, Dict, Optional

from .config import ClientConfig
from .containers import ContainerCollection
from .http_client import DockerHTTPClient, StreamResponse
from .images import ImageCollection
from .log_stream import LogStream
from .networks import NetworkCollection
from .progress_stream import JSONStream, ProgressStream
from .serialization import JSONCodec

_UNSET = object()


class DockerClient:
    """
    Docker API Client
    Pure Python implementation without external dependencies
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = 60,
                 version: Optional[str] = None, config: Optional[ClientConfig] = None):
        """
        Initialize Docker client

        Args:
            base_url: Docker endpoint, e.g. unix:///var/run/docker.sock or
                tcp://127.0.0.1:2375 (default: DOCKER_HOST or the local socket)
            timeout: Request timeout in seconds
            version: API version, e.g. "1.43" (default: daemon's latest)
            config: Complete client config, overrides the other arguments
        """
        self.codec = JSONCodec()
        self.http = DockerHTTPClient(base_url=base_url, timeout=timeout, version=version,
                                     config=config, codec=self.codec)
        self.config = self.http.config
        self.images = ImageCollection(self)
        self.containers = ContainerCollection(self)
        self.networks = NetworkCollection(self)

    @classmethod
    def from_env(cls) -> 'DockerClient':
        """Client configured from DOCKER_HOST, DOCKER_API_VERSION and DOCKER_TIMEOUT"""
        return cls(config=ClientConfig.from_env())

    def progress_stream(self, response: StreamResponse) -> ProgressStream:
        """Wrap a streaming response of pull/push/build/load/import"""
        return ProgressStream(response, codec=self.codec, method=response.method,
                              uri=response.uri, on_close=response.release)

    def json_stream(self, response: StreamResponse) -> JSONStream:
        """Wrap an endless JSON feed (events, stats); closing abandons the body"""
        return JSONStream(response, codec=self.codec, method=response.method,
                          uri=response.uri, drain_on_close=False, on_close=response.release)

    def log_stream(self, response: StreamResponse, header_timeout: Any = _UNSET) -> LogStream:
        """Wrap a logs/attach/exec response"""
        if header_timeout is _UNSET:
            header_timeout = self.config.log_header_timeout
        return LogStream(response, header_timeout=header_timeout, on_close=response.release)

    def version(self) -> dict:
        """Get Docker version info"""
        return self.http.get('/version')

    def info(self) -> dict:
        """Get Docker system info"""
        return self.http.get('/info')

    def ping(self) -> str:
        """Ping Docker daemon"""
        return self.http.get('/_ping')

    def events(self, since: Optional[int] = None, until: Optional[int] = None,
               filters: Optional[Dict[str, Any]] = None) -> JSONStream:
        """
        Stream daemon events

        Args:
            since: Show events created since this Unix timestamp
            until: Stop at this Unix timestamp
            filters: Filters to apply, e.g. {'type': ['container']}

        Returns:
            JSONStream of event dicts; close it to stop listening
        """
        params = {'since': since, 'until': until, 'filters': filters}
        response = self.http.get('/events', params=params, stream=True, timeout=None)
        return self.json_stream(response)

    def close(self):
        """Close client (no-op: connections are per request)"""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
