"""
Incremental decoding of JSON message streams

Pull, push, build, load, events and stats responses are chunked bodies made
of concatenated JSON objects. The daemon keeps writing while we read, so
values are decoded as soon as they are complete and nothing is requested from
the transport beyond what it has already delivered.
"""

import codecs
import http.client
import json
import socket
from typing import Any, Callable, Optional

from .exceptions import DockerException, DockerStreamError, DockerTimeoutError
from .messages import ProgressMessage
from .serialization import JSONCodec
from .stream_utils import BUFFER_SIZE, drain
from .tailer import tail


_MISSING = object()


def _read_chunk(stream) -> bytes:
    read1 = getattr(stream, 'read1', None)
    if read1 is not None:
        return read1(BUFFER_SIZE)
    readline = getattr(stream, 'readline', None)
    if readline is not None:
        return readline()
    return stream.read(BUFFER_SIZE)


class JSONStream:
    """Lazy iterator of JSON values read from a response body"""

    def __init__(self, stream, codec: Optional[JSONCodec] = None,
                 decode: Optional[Callable[[Any], Any]] = None,
                 method: Optional[str] = None, uri: Optional[str] = None,
                 drain_on_close: bool = True,
                 on_close: Optional[Callable[[], None]] = None):
        """
        Initialize stream

        Args:
            stream: Binary response body
            codec: JSON codec used to decode values
            decode: Converts each decoded value (default: keep as is)
            method: HTTP method of the request, for error reporting
            uri: Request URI, for error reporting
            drain_on_close: Read the rest of the body on close instead of
                abandoning it; endless feeds (events, stats) must not drain
            on_close: Called once after closing, to release the connection
        """
        self.stream = stream
        self.codec = codec or JSONCodec()
        self.method = method
        self.uri = uri
        self._decode = decode
        self._drain_on_close = drain_on_close
        self._on_close = on_close
        self._text_decoder = codecs.getincrementaldecoder('utf-8')()
        self._buffer = ''
        self._next = _MISSING
        self._eof = False
        self._closed = False

    def _fill(self, method: Optional[str], uri: Optional[str]):
        try:
            data = _read_chunk(self.stream)
        except socket.timeout as e:
            raise DockerTimeoutError(method or self.method, uri or self.uri) from e
        except (OSError, ValueError, http.client.HTTPException) as e:
            raise DockerException(f"Error reading {method or self.method} {uri or self.uri}: {e}") from e

        try:
            if data:
                self._buffer += self._text_decoder.decode(data)
            else:
                self._eof = True
                self._buffer += self._text_decoder.decode(b'', final=True)
        except UnicodeDecodeError as e:
            raise DockerStreamError(f"Invalid UTF-8 in response stream: {e}") from e

    def has_next_message(self, method: Optional[str] = None, uri: Optional[str] = None) -> bool:
        """
        Check whether another value follows, reading from the stream if needed

        Raises:
            DockerTimeoutError: If the socket read timed out
            DockerStreamError: If the stream ended inside a malformed value
            DockerException: On any other read failure
        """
        if self._next is not _MISSING:
            return True
        if self._closed:
            return False

        while True:
            self._buffer = self._buffer.lstrip()
            if self._buffer:
                try:
                    value, end = self.codec.raw_decode(self._buffer)
                except json.JSONDecodeError as e:
                    # Incomplete value: wait for more unless the body is over
                    if self._eof:
                        raise DockerStreamError(f"Malformed JSON in response stream: {e}") from e
                else:
                    self._buffer = self._buffer[end:]
                    if self._decode is not None:
                        try:
                            value = self._decode(value)
                        except (TypeError, ValueError) as e:
                            raise DockerStreamError(f"Unexpected value in response stream: {e}") from e
                    self._next = value
                    return True
            elif self._eof:
                return False
            self._fill(method, uri)

    def next_message(self, method: Optional[str] = None, uri: Optional[str] = None):
        """
        Return the next value

        Returns:
            Decoded value, or None when the stream is exhausted
        """
        if not self.has_next_message(method, uri):
            return None
        value, self._next = self._next, _MISSING
        return value

    def __iter__(self):
        return self

    def __next__(self):
        if not self.has_next_message():
            raise StopIteration
        return self.next_message()

    def close(self):
        """Drain (or abandon) the rest of the body and hand the connection back"""
        if self._closed:
            return
        self._closed = True
        self._next = _MISSING
        try:
            if self._drain_on_close:
                drain(self.stream)
        finally:
            if self._on_close is not None:
                self._on_close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ProgressStream(JSONStream):
    """JSON stream of ProgressMessages"""

    def __init__(self, stream, codec: Optional[JSONCodec] = None, **kwargs):
        kwargs.setdefault('decode', ProgressMessage.from_dict)
        super().__init__(stream, codec=codec, **kwargs)

    def tail(self, handler, method: Optional[str] = None, uri: Optional[str] = None, cancel=None):
        """Feed every message to handler; see docker_engine.tailer.tail"""
        tail(self, handler, method=method or self.method, uri=uri or self.uri, cancel=cancel)
