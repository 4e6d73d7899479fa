"""
Read helpers for response streams
"""

import http.client
import io
import logging

logger = logging.getLogger(__name__)

BUFFER_SIZE = 8192


def read_exactly(stream, size: int) -> bytes:
    """
    Read size bytes, retrying short reads

    Args:
        stream: Binary file-like object
        size: Number of bytes wanted

    Returns:
        Exactly size bytes, or fewer if the stream reached EOF first
    """
    chunks = []
    remaining = size
    while remaining > 0:
        data = stream.read(remaining)
        if not data:
            break
        chunks.append(data)
        remaining -= len(data)
    return b''.join(chunks)


def read_available(stream) -> bytes:
    """
    Read what the stream can hand out without blocking

    Response streams report this through available(). In-memory buffers have
    everything available; for any other file object nothing is known to be
    ready, so nothing is read.
    """
    available = getattr(stream, 'available', None)
    if available is not None:
        return available() or b''
    if isinstance(stream, io.BytesIO):
        return stream.read1(-1)
    return b''


def drain(stream) -> int:
    """
    Consume and discard the rest of a stream

    The connection behind a response is reclaimed by its owner once the body
    has been read, so streams are drained instead of closed. Errors from an
    already broken connection are not actionable and are only logged.

    Returns:
        Number of bytes discarded
    """
    total = 0
    try:
        while True:
            data = stream.read(BUFFER_SIZE)
            if not data:
                break
            total += len(data)
    except (OSError, ValueError, http.client.HTTPException) as e:
        logger.debug(f"Ignoring error while draining stream: {e}")
    return total
