"""
Messages decoded from Docker response streams
"""

from enum import IntEnum
from typing import Any, Dict, Optional


class Stream(IntEnum):
    """Channel tag of a multiplexed log frame"""

    STDIN = 0
    STDOUT = 1
    STDERR = 2

    @classmethod
    def of(cls, value: int) -> 'Stream':
        """
        Map a frame tag to its channel

        Raises:
            ValueError: If the tag is not 0, 1 or 2
        """
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown stream tag: {value}") from None


class LogMessage:
    """One decoded frame of container output"""

    __slots__ = ('_stream', '_content')

    def __init__(self, stream, content: bytes):
        self._stream = stream if isinstance(stream, Stream) else Stream.of(stream)
        self._content = bytes(content)

    @property
    def stream(self) -> Stream:
        return self._stream

    @property
    def content(self) -> memoryview:
        """Read-only view over the payload"""
        return memoryview(self._content)

    def __len__(self):
        return len(self._content)

    def __eq__(self, other):
        if not isinstance(other, LogMessage):
            return NotImplemented
        return self._stream == other._stream and self._content == other._content

    def __hash__(self):
        return hash((self._stream, self._content))

    def __repr__(self):
        return f"<LogMessage: {self._stream.name} {self._content!r}>"


class ProgressDetail:
    """Byte counters attached to a layer progress update"""

    __slots__ = ('current', 'start', 'total')

    def __init__(self, current: int = 0, start: int = 0, total: int = 0):
        self.current = current
        self.start = start
        self.total = total

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProgressDetail':
        return cls(
            current=data.get('current', 0) or 0,
            start=data.get('start', 0) or 0,
            total=data.get('total', 0) or 0,
        )

    def __eq__(self, other):
        if not isinstance(other, ProgressDetail):
            return NotImplemented
        return (self.current, self.start, self.total) == (other.current, other.start, other.total)

    def __repr__(self):
        return f"ProgressDetail(current={self.current}, start={self.start}, total={self.total})"


class ProgressMessage:
    """
    One status update of a pull, push, build, load or import

    Which fields are set depends on the operation. A message with ``error``
    set is a terminal failure, never a regular update.
    """

    # {"status":"Digest: sha256:..."}
    STATUS_DIGEST_PREFIX_16 = 'Digest: '
    # {"status":"<tag>: digest: sha256:... size: 1234"}
    STATUS_DIGEST_PREFIX_18 = 'digest: '
    STATUS_SIZE_PREFIX_18 = 'size: '

    def __init__(self, id: Optional[str] = None, status: Optional[str] = None,
                 stream: Optional[str] = None, error: Optional[str] = None,
                 progress: Optional[str] = None,
                 progress_detail: Optional[ProgressDetail] = None,
                 error_detail: Optional[Dict[str, Any]] = None,
                 aux: Optional[Dict[str, Any]] = None):
        self.id = id
        self.status = status
        self.stream = stream
        self.error = error
        self.progress = progress
        self.progress_detail = progress_detail
        self.error_detail = error_detail
        self.aux = aux

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProgressMessage':
        """
        Build a message from a decoded JSON object

        Unknown keys are ignored. An empty ``progressDetail`` object counts as
        present, matching what the daemon sends for layers without byte counts.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Progress message must be a JSON object, got {type(data).__name__}")

        detail = data.get('progressDetail')
        error = data.get('error')
        error_detail = data.get('errorDetail')
        if error is None and error_detail:
            error = error_detail.get('message')

        return cls(
            id=data.get('id'),
            status=data.get('status'),
            stream=data.get('stream'),
            error=error,
            progress=data.get('progress'),
            progress_detail=ProgressDetail.from_dict(detail) if detail is not None else None,
            error_detail=error_detail,
            aux=data.get('aux'),
        )

    @property
    def build_image_id(self) -> Optional[str]:
        """Image ID announced by a build, from ``aux.ID`` or a "Successfully built" line"""
        if isinstance(self.aux, dict) and self.aux.get('ID'):
            return self.aux['ID']
        if self.stream and self.stream.startswith('Successfully built'):
            return self.stream[self.stream.rfind(' ') + 1:].strip()
        return None

    @property
    def digest(self) -> Optional[str]:
        """Digest reported at the end of a pull or push, if this message carries it"""
        status = self.status
        if status is None:
            return None

        if status.startswith(self.STATUS_DIGEST_PREFIX_16):
            return status[len(self.STATUS_DIGEST_PREFIX_16):].strip()

        digest_index = status.find(self.STATUS_DIGEST_PREFIX_18)
        size_index = status.find(self.STATUS_SIZE_PREFIX_18)
        if digest_index > -1 and size_index > digest_index:
            start = digest_index + len(self.STATUS_DIGEST_PREFIX_18)
            return status[start:size_index - 1]

        return None

    def __eq__(self, other):
        if not isinstance(other, ProgressMessage):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self):
        fields = ', '.join(
            f"{key}={value!r}" for key, value in vars(self).items() if value is not None
        )
        return f"ProgressMessage({fields})"
