"""
Iterator over container output frames
"""

import contextlib
import logging
from typing import Callable, Optional

from .exceptions import DockerException, DockerStreamError
from .log_reader import DEFAULT_HEADER_TIMEOUT, LogReader
from .messages import LogMessage, Stream

logger = logging.getLogger(__name__)

# Largest slice handed to a sink in one write
WRITE_CHUNK_SIZE = 8192


class LogStream:
    """
    Lazy, single-pass iterator of LogMessages

    Example:
        with client.containers.logs(container_id, stream=True) as logs:
            logs.attach(sys.stdout.buffer, sys.stderr.buffer, close_at_end=False)
    """

    def __init__(self, stream, header_timeout: Optional[float] = DEFAULT_HEADER_TIMEOUT,
                 on_close: Optional[Callable[[], None]] = None):
        """
        Initialize log stream

        Args:
            stream: Binary response body, or a LogReader
            header_timeout: Idle time after which the stream is considered finished
            on_close: Called once after the reader is closed, to release the connection
        """
        if isinstance(stream, LogReader):
            self.reader = stream
        else:
            self.reader = LogReader(stream, header_timeout=header_timeout)
        self._on_close = on_close
        self._exhausted = False
        self._closed = False

    def __iter__(self):
        return self

    def __next__(self) -> LogMessage:
        if self._exhausted:
            raise StopIteration
        try:
            message = self.reader.next_message()
        except DockerException:
            raise
        except (OSError, ValueError) as e:
            raise DockerStreamError(f"Error reading log stream: {e}") from e
        if message is None:
            self._exhausted = True
            raise StopIteration
        return message

    def read_fully(self) -> str:
        """
        Read the rest of the stream as text

        Returns:
            Every remaining payload decoded as UTF-8, stdout and stderr alike,
            in the order received
        """
        return ''.join(bytes(message.content).decode('utf-8', errors='replace') for message in self)

    def attach(self, stdout, stderr, close_at_end: bool = True):
        """
        Copy the rest of the stream into two binary sinks

        Each payload goes to the sink of its channel and the sink is flushed
        after every write; stdin frames are dropped.

        Args:
            stdout: Writable binary file-like object for stdout
            stderr: Writable binary file-like object for stderr
            close_at_end: Close both sinks when done, on success or failure
        """
        with contextlib.ExitStack() as stack:
            if close_at_end:
                stack.callback(stdout.close)
                stack.callback(stderr.close)

            for message in self:
                if message.stream == Stream.STDOUT:
                    sink = stdout
                elif message.stream == Stream.STDERR:
                    sink = stderr
                else:
                    continue
                content = message.content
                for offset in range(0, len(content), WRITE_CHUNK_SIZE):
                    sink.write(content[offset:offset + WRITE_CHUNK_SIZE])
                sink.flush()

    def close(self):
        """Drain the stream and hand the connection back"""
        if self._closed:
            return
        self._closed = True
        self._exhausted = True
        try:
            self.reader.close()
        finally:
            if self._on_close is not None:
                self._on_close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
