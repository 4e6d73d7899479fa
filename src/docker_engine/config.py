"""
Client configuration: daemon endpoint, API version and timeouts
"""

import json
import logging
import os
import platform
from typing import Any, Dict, Optional

from .log_reader import DEFAULT_HEADER_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_UNIX_SOCKET = '/var/run/docker.sock'
DEFAULT_ADDRESS = 'localhost'
DEFAULT_PORT = 2375
DEFAULT_TIMEOUT = 60


def default_socket_path() -> str:
    """Docker socket for this platform (Docker Desktop location on macOS when present)"""
    if platform.system() == "Darwin":
        desktop_socket = os.path.expanduser('~/.docker/run/docker.sock')
        if os.path.exists(desktop_socket):
            return desktop_socket
    return DEFAULT_UNIX_SOCKET


class DockerHost:
    """A parsed DOCKER_HOST endpoint"""

    def __init__(self, endpoint: str):
        """
        Parse endpoint

        Args:
            endpoint: unix:///path/to/socket, tcp://host:port, http://host:port
                or host:port

        Raises:
            ValueError: If the endpoint cannot be parsed
        """
        if not endpoint:
            raise ValueError("Empty Docker endpoint")

        self.endpoint = endpoint
        if endpoint.startswith('unix://'):
            self.socket_path = endpoint[len('unix://'):]
            if not self.socket_path:
                raise ValueError(f"Missing socket path in endpoint: {endpoint}")
            self.address = DEFAULT_ADDRESS
            self.port = 0
            return

        self.socket_path = None
        stripped = endpoint.split('://', 1)[-1].rstrip('/')
        if stripped.startswith('['):
            # [::1]:2375
            host, _, rest = stripped[1:].partition(']')
            port_text = rest[1:] if rest.startswith(':') else ''
        elif stripped.count(':') == 1:
            host, port_text = stripped.split(':')
        else:
            host, port_text = stripped, ''

        self.address = host or DEFAULT_ADDRESS
        try:
            self.port = int(port_text) if port_text else DEFAULT_PORT
        except ValueError:
            raise ValueError(f"Invalid port in endpoint: {endpoint}") from None

    @property
    def is_unix(self) -> bool:
        return self.socket_path is not None

    @property
    def uri(self) -> str:
        """Base URI of the REST API"""
        if self.is_unix:
            return f"unix://{self.socket_path}"
        return f"http://{self.address}:{self.port}"

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> 'DockerHost':
        """Endpoint from DOCKER_HOST, or the local socket when unset"""
        environ = os.environ if environ is None else environ
        endpoint = environ.get('DOCKER_HOST')
        if not endpoint:
            endpoint = f"unix://{default_socket_path()}"
        return cls(endpoint)

    def __eq__(self, other):
        if not isinstance(other, DockerHost):
            return NotImplemented
        return self.uri == other.uri

    def __repr__(self):
        return f"<DockerHost: {self.uri}>"


class ClientConfig:
    """Settings shared by every request of a DockerClient"""

    DEFAULTS: Dict[str, Any] = {
        'docker_host': '',
        'api_version': None,
        'timeout': DEFAULT_TIMEOUT,
        'log_header_timeout': DEFAULT_HEADER_TIMEOUT,
    }

    def __init__(self, host: Optional[DockerHost] = None, api_version: Optional[str] = None,
                 timeout: Optional[float] = DEFAULT_TIMEOUT,
                 log_header_timeout: Optional[float] = DEFAULT_HEADER_TIMEOUT):
        """
        Initialize config

        Args:
            host: Daemon endpoint (default: from environment)
            api_version: API version prefix such as "1.43"; None sends unversioned paths
            timeout: Socket timeout in seconds for every request
            log_header_timeout: Idle time after which a log stream ends
        """
        self.host = host or DockerHost.from_env()
        self.api_version = api_version
        self.timeout = timeout
        self.log_header_timeout = log_header_timeout

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> 'ClientConfig':
        """
        Config from DOCKER_HOST, DOCKER_API_VERSION and DOCKER_TIMEOUT
        """
        environ = os.environ if environ is None else environ
        timeout = environ.get('DOCKER_TIMEOUT')
        return cls(
            host=DockerHost.from_env(environ),
            api_version=environ.get('DOCKER_API_VERSION') or None,
            timeout=float(timeout) if timeout else DEFAULT_TIMEOUT,
        )

    @classmethod
    def from_settings(cls, settings: Dict[str, Any],
                      environ: Optional[Dict[str, str]] = None) -> 'ClientConfig':
        """
        Config from a settings dict; missing keys fall back to the environment,
        then to DEFAULTS
        """
        base = cls.from_env(environ)
        merged = dict(cls.DEFAULTS)
        merged.update({k: v for k, v in settings.items() if k in cls.DEFAULTS})

        host = DockerHost(merged['docker_host']) if merged['docker_host'] else base.host
        return cls(
            host=host,
            api_version=merged['api_version'] or base.api_version,
            timeout=merged['timeout'] if 'timeout' in settings else base.timeout,
            log_header_timeout=merged['log_header_timeout'],
        )


def load_settings(path: str, environ: Optional[Dict[str, str]] = None) -> ClientConfig:
    """
    Load client settings from a JSON file

    A missing or unreadable file yields the environment defaults.

    Args:
        path: Path to settings JSON

    Returns:
        ClientConfig
    """
    settings: Dict[str, Any] = {}
    if os.path.exists(path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                settings = json.load(f)
            logger.info(f"Settings loaded from {path}")
        except (OSError, ValueError) as e:
            logger.warning(f"Could not load settings from {path}: {e}")
    return ClientConfig.from_settings(settings, environ)
