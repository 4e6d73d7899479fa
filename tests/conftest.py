"""
Pytest configuration and fixtures for docker_engine tests.
"""

import io
import struct
import sys
import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from docker_engine.client import DockerClient  # noqa: E402
from docker_engine.config import ClientConfig, DockerHost  # noqa: E402


def frame(tag: int, payload: bytes) -> bytes:
    """Encode one multiplexed log frame."""
    return struct.pack(">BxxxL", tag, len(payload)) + payload


class ChunkedStream:
    """Binary stream that hands out scripted chunks, one per read call."""

    def __init__(self, chunks):
        self.chunks = list(chunks)
        self.reads = 0
        self.close_count = 0
        self.closed = False

    def read1(self, n=-1):
        return self.read(n)

    def read(self, n=-1):
        self.reads += 1
        if not self.chunks:
            return b""
        chunk = self.chunks[0]
        if n is None or n < 0 or n >= len(chunk):
            self.chunks.pop(0)
            return chunk
        self.chunks[0] = chunk[n:]
        return chunk[:n]

    def close(self):
        self.close_count += 1
        self.closed = True


class BlockingStream(ChunkedStream):
    """Scripted stream that blocks while empty, like an idle socket."""

    def __init__(self, chunks=()):
        super().__init__(chunks)
        self._cond = threading.Condition()
        self.finished = False

    def feed(self, chunk: bytes):
        with self._cond:
            self.chunks.append(chunk)
            self._cond.notify_all()

    def finish(self):
        with self._cond:
            self.finished = True
            self._cond.notify_all()

    def read(self, n=-1):
        with self._cond:
            self._cond.wait_for(lambda: self.chunks or self.finished, timeout=5)
            return super().read(n)

    def available(self):
        with self._cond:
            data = b"".join(self.chunks)
            self.chunks.clear()
            return data


@pytest.fixture
def docker_host():
    """TCP endpoint that never gets connected to."""
    return DockerHost("tcp://127.0.0.1:2375")


@pytest.fixture
def client(docker_host):
    """DockerClient whose HTTP layer is a mock."""
    docker_client = DockerClient(config=ClientConfig(host=docker_host, log_header_timeout=0.2))
    docker_client.http = MagicMock()
    return docker_client


def stream_response(body: bytes, method: str = "POST", uri: str = "/test"):
    """Mock StreamResponse over a BytesIO body."""
    buffer = io.BytesIO(body)
    response = MagicMock()
    response.method = method
    response.uri = uri
    response.read.side_effect = buffer.read
    response.read1.side_effect = buffer.read1
    response.readline.side_effect = buffer.readline
    response.available.side_effect = lambda: buffer.read1(-1)
    return response
