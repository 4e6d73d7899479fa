# =============================================================================
# TAILER TESTS
# =============================================================================
# Feeding progress streams to handlers on a cancellable worker.
# =============================================================================

import io
import threading
from unittest.mock import patch

import pytest

from conftest import BlockingStream
from docker_engine.exceptions import DockerInterruptedError, DockerStreamError, ImagePullFailed
from docker_engine.handlers import ProgressHandler
from docker_engine.progress_stream import ProgressStream
from docker_engine.tailer import tail


class RecordingHandler(ProgressHandler):
    """Handler that records messages and optionally reacts to them."""

    def __init__(self, on_message=None):
        self.messages = []
        self.on_message = on_message

    def progress(self, message):
        self.messages.append(message)
        if self.on_message is not None:
            self.on_message(len(self.messages), message)


def progress_body(count: int) -> bytes:
    return b"".join(b'{"status":"step %d"}' % i for i in range(count))


def tracked_stream(source, **kwargs):
    """ProgressStream whose release is observable from the test thread."""
    released = threading.Event()
    calls = []

    def on_close():
        calls.append(1)
        released.set()

    stream = ProgressStream(source, on_close=on_close, method="POST", uri="/images/create", **kwargs)
    return stream, released, calls


class TestTail:
    """Test normal consumption."""

    def test_messages_in_order(self):
        """The handler should see every message in arrival order."""
        stream, released, calls = tracked_stream(io.BytesIO(progress_body(5)))
        handler = RecordingHandler()

        stream.tail(handler)

        assert [m.status for m in handler.messages] == [f"step {i}" for i in range(5)]
        assert released.is_set()
        assert calls == [1]

    def test_plain_function_call(self):
        """tail() should work on any stream with the message protocol."""
        stream, released, calls = tracked_stream(io.BytesIO(progress_body(2)))
        handler = RecordingHandler()

        tail(stream, handler, method="POST", uri="/build")

        assert len(handler.messages) == 2
        assert calls == [1]

    def test_handler_error_ends_tail(self):
        """A handler exception should stop consumption and reach the caller."""
        def fail_on_second(count, message):
            if count == 2:
                raise ImagePullFailed("busybox", message.status)

        stream, released, calls = tracked_stream(io.BytesIO(progress_body(5)))
        handler = RecordingHandler(fail_on_second)

        with pytest.raises(ImagePullFailed):
            stream.tail(handler)

        assert len(handler.messages) == 2
        assert released.wait(1)
        assert calls == [1]

    def test_stream_error_reaches_caller(self):
        """Malformed data should surface from tail()."""
        stream, released, calls = tracked_stream(io.BytesIO(b'{"status":"a"}{"sta'))
        handler = RecordingHandler()

        with pytest.raises(DockerStreamError):
            stream.tail(handler)

        assert len(handler.messages) == 1
        assert calls == [1]


class TestCancel:
    """Test interruption of a running tail."""

    def test_cancel_after_messages(self):
        """Setting cancel should stop delivery at the next message."""
        cancel = threading.Event()

        def cancel_on_second(count, message):
            if count == 2:
                cancel.set()

        stream, released, calls = tracked_stream(io.BytesIO(progress_body(10)))
        handler = RecordingHandler(cancel_on_second)

        with pytest.raises(DockerInterruptedError) as exc_info:
            stream.tail(handler, cancel=cancel)

        assert exc_info.value.method == "POST"
        assert released.wait(1)
        assert len(handler.messages) == 2
        assert calls == [1]

    def test_cancel_while_blocked(self):
        """A tail blocked on an idle stream should return once cancelled."""
        source = BlockingStream([b'{"status":"waiting"}'])
        stream, released, calls = tracked_stream(source, drain_on_close=False)
        handler = RecordingHandler()
        cancel = threading.Event()
        timer = threading.Timer(0.2, cancel.set)
        timer.start()

        try:
            with pytest.raises(DockerInterruptedError):
                stream.tail(handler, cancel=cancel)
            assert [m.status for m in handler.messages] == ["waiting"]
        finally:
            timer.cancel()
            source.finish()

        assert released.wait(1)
        assert calls == [1]

    def test_keyboard_interrupt_sets_cancel(self):
        """Ctrl+C while waiting should cancel the worker and propagate."""
        source = BlockingStream()
        stream, released, calls = tracked_stream(source, drain_on_close=False)
        cancel = threading.Event()

        try:
            with patch.object(threading.Thread, "join", side_effect=KeyboardInterrupt):
                with pytest.raises(KeyboardInterrupt):
                    stream.tail(RecordingHandler(), cancel=cancel)
            assert cancel.is_set()
        finally:
            source.finish()

        assert released.wait(1)
