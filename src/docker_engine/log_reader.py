"""
Frame reader for multiplexed container output

Attach, logs and exec responses of containers without a TTY arrive as frames:

    header := [8]byte{STREAM_TYPE, 0, 0, 0, SIZE1, SIZE2, SIZE3, SIZE4}

followed by SIZE bytes of payload. Containers started with a TTY send raw
bytes with no framing at all; those are detected by the header pattern and
reported as STDOUT.
"""

import logging
import queue
import struct
import threading
from typing import Optional, Tuple

from .exceptions import DockerStreamError
from .messages import LogMessage, Stream
from .stream_utils import drain, read_available, read_exactly

logger = logging.getLogger(__name__)

HEADER_SIZE = 8
FRAME_SIZE_OFFSET = 4
DEFAULT_HEADER_TIMEOUT = 1.0

# Tag byte followed by three zero bytes
_FRAME_PREFIXES = (b'\x00\x00\x00\x00', b'\x01\x00\x00\x00', b'\x02\x00\x00\x00')


class _ReadWorker:
    """Daemon thread running blocking reads so the caller can wait with a timeout"""

    def __init__(self):
        self._requests: queue.Queue = queue.Queue()
        self._results: queue.Queue = queue.Queue()
        self.outstanding = False
        self._thread = threading.Thread(target=self._run, name='docker-log-reader', daemon=True)
        self._thread.start()

    def _run(self):
        while True:
            task = self._requests.get()
            if task is None:
                return
            try:
                self._results.put((task(), None))
            except Exception as e:
                self._results.put((None, e))

    def submit(self, task):
        if self.outstanding:
            raise RuntimeError("A read is already in progress")
        self.outstanding = True
        self._requests.put(task)

    def wait(self, timeout: Optional[float]):
        """
        Wait for the outstanding task

        Returns:
            (True, result) when it finished, (False, None) on timeout. A timed
            out task stays outstanding and can be waited on again.
        """
        try:
            result, error = self._results.get(timeout=timeout)
        except queue.Empty:
            return False, None
        self.outstanding = False
        if error is not None:
            raise error
        return True, result

    def stop(self):
        self._requests.put(None)


class LogReader:
    """Decodes LogMessages from an attach/logs byte stream"""

    def __init__(self, stream, header_timeout: Optional[float] = DEFAULT_HEADER_TIMEOUT):
        """
        Initialize reader

        Args:
            stream: Binary file-like response body
            header_timeout: Seconds to wait for a frame header before treating
                the stream as finished; None waits forever
        """
        self.stream = stream
        self.header_timeout = header_timeout
        self._worker: Optional[_ReadWorker] = None
        self._closed = False
        # Header bytes the worker has read but nobody has taken yet
        self._pending = bytearray()
        self._pending_lock = threading.Lock()
        self.raw = False

    def _fill_header(self):
        remaining = HEADER_SIZE
        while remaining > 0:
            data = self.stream.read(remaining)
            if not data:
                break
            with self._pending_lock:
                self._pending += data
            remaining -= len(data)

    def _take_pending(self) -> bytes:
        with self._pending_lock:
            data, self._pending = bytes(self._pending), bytearray()
        return data

    def _read_header(self) -> Tuple[bytes, bool]:
        """
        Read up to one header

        Returns:
            (bytes, still_reading). still_reading is True when the timeout hit
            after part of a header had arrived; the read keeps running and its
            remaining bytes are returned by the next call.
        """
        if self.header_timeout is None:
            return read_exactly(self.stream, HEADER_SIZE), False

        if self._worker is None:
            self._worker = _ReadWorker()
        if not self._worker.outstanding:
            self._worker.submit(self._fill_header)

        done, _ = self._worker.wait(self.header_timeout)
        header = self._take_pending()
        if not done and not header:
            logger.debug(f"No frame header within {self.header_timeout}s, ending log stream")
        return header, not done

    def next_message(self) -> Optional[LogMessage]:
        """
        Read the next frame

        Returns:
            LogMessage, or None at end of stream or when no header arrived in time

        Raises:
            DockerStreamError: If the stream ends inside a frame header
        """
        if self._closed:
            return None

        header, still_reading = self._read_header()
        if not header:
            return None

        if still_reading:
            # Frame headers are written in one piece, so a stream that stalls
            # inside one is TTY output, e.g. a shell prompt
            self.raw = True
            return LogMessage(Stream.STDOUT, header)

        if self.raw:
            return LogMessage(Stream.STDOUT, header + read_available(self.stream))

        if len(header) < HEADER_SIZE:
            if header[0] in (0, 1, 2) and not header[1:FRAME_SIZE_OFFSET].strip(b'\x00'):
                raise DockerStreamError(f"Truncated frame header: {len(header)} of {HEADER_SIZE} bytes")
            return LogMessage(Stream.STDOUT, header)

        if header[:FRAME_SIZE_OFFSET] in _FRAME_PREFIXES:
            stream = Stream.of(header[0])
            (size,) = struct.unpack('>L', header[FRAME_SIZE_OFFSET:])
            payload = read_exactly(self.stream, size)
        else:
            # Not multiplexed: what looked like a header is already payload
            stream = Stream.STDOUT
            payload = header + read_available(self.stream)

        return LogMessage(stream, payload)

    def close(self):
        """
        Release the read worker and drain the stream

        The stream itself is left open for its owner to reclaim. If a header
        read is still blocked on the stream the drain is skipped.
        """
        if self._closed:
            return
        self._closed = True

        worker, self._worker = self._worker, None
        if worker is None:
            drain(self.stream)
            return

        try:
            if worker.outstanding:
                logger.debug("Header read still pending, not draining log stream")
                return
            worker.submit(lambda: drain(self.stream))
            done, _ = worker.wait(self.header_timeout)
            if not done:
                logger.debug("Log stream still producing data, leaving it to its owner")
        finally:
            worker.stop()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
