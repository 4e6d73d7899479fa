"""
Cancellable consumption of progress streams

A blocking socket read cannot be interrupted from another thread, so the read
loop runs on a worker thread and the caller waits for it in short slices.
Setting the cancel event (or Ctrl+C in the waiting thread) abandons the wait
at once; the worker notices the event at the next message boundary.
"""

import http.client
import logging
import threading
from typing import Optional

from .exceptions import DockerInterruptedError

logger = logging.getLogger(__name__)

# Seconds between checks of the cancel event while waiting for the worker
POLL_INTERVAL = 0.1


def _close_quietly(stream):
    try:
        stream.close()
    except (OSError, http.client.HTTPException) as e:
        # Reading after the daemon closed the socket fails this way; nothing to act on
        logger.debug(f"Ignoring error while closing stream: {e}")


def _consume(stream, handler, method, uri, cancel: threading.Event, outcome: dict):
    try:
        while stream.has_next_message(method, uri):
            if cancel.is_set():
                raise DockerInterruptedError(method, uri)
            handler.progress(stream.next_message(method, uri))
    except Exception as e:
        outcome['error'] = e
    finally:
        _close_quietly(stream)


def tail(stream, handler, method: Optional[str] = None, uri: Optional[str] = None,
         cancel: Optional[threading.Event] = None):
    """
    Feed every message of a stream to a handler, in arrival order

    The stream is closed exactly once, whatever the outcome.

    Args:
        stream: JSONStream (usually a ProgressStream)
        handler: Object with a progress(message) method
        method: HTTP method of the request, for error reporting
        uri: Request URI, for error reporting
        cancel: Event that aborts the tail when set

    Raises:
        DockerInterruptedError: If cancel was set before the stream finished
        Exception: Whatever the handler or the stream raised
    """
    if cancel is None:
        cancel = threading.Event()

    outcome: dict = {}
    worker = threading.Thread(
        target=_consume,
        args=(stream, handler, method, uri, cancel, outcome),
        name=f"docker-tail {method} {uri}",
        daemon=True,
    )
    worker.start()

    try:
        while worker.is_alive():
            worker.join(POLL_INTERVAL)
            if worker.is_alive() and cancel.is_set():
                logger.debug(f"Abandoning tail of {method} {uri}")
                raise DockerInterruptedError(method, uri)
    except KeyboardInterrupt:
        cancel.set()
        raise

    if 'error' in outcome:
        raise outcome['error']
