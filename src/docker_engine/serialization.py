"""
JSON codec shared by the HTTP client and the response streams
"""

import json
import re
from datetime import datetime, timezone
from typing import Any, Optional, Tuple


# Docker timestamps carry up to nine fractional digits and either 'Z' or an offset
_TIMESTAMP_PATTERN = re.compile(
    r'^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})'
    r'(?:\.(?P<fraction>\d+))?'
    r'(?P<tz>Z|[+-]\d{2}:?\d{2})?$'
)


class JSONCodec:
    """
    Immutable JSON encoder/decoder configuration

    One instance is created per client and handed to every component that
    encodes requests or decodes responses.
    """

    __slots__ = ('_encoder', '_decoder', '_drop_none')

    def __init__(self, drop_none: bool = True, sort_keys: bool = False):
        """
        Initialize codec

        Args:
            drop_none: Omit keys whose value is None when encoding
            sort_keys: Emit object keys in sorted order
        """
        object.__setattr__(self, '_drop_none', drop_none)
        object.__setattr__(self, '_encoder', json.JSONEncoder(
            default=self._default, sort_keys=sort_keys, ensure_ascii=False
        ))
        object.__setattr__(self, '_decoder', json.JSONDecoder())

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @staticmethod
    def _default(value):
        if isinstance(value, (set, frozenset)):
            return {item: {} for item in sorted(value)}
        if isinstance(value, datetime):
            return value.isoformat()
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")

    def _strip_none(self, value):
        if isinstance(value, dict):
            return {k: self._strip_none(v) for k, v in value.items() if v is not None}
        if isinstance(value, list):
            return [self._strip_none(v) for v in value]
        return value

    def dumps(self, value: Any) -> str:
        """Encode value as a JSON document"""
        if self._drop_none:
            value = self._strip_none(value)
        return self._encoder.encode(value)

    def dumpb(self, value: Any) -> bytes:
        """Encode value as UTF-8 JSON bytes"""
        return self.dumps(value).encode('utf-8')

    def loads(self, data) -> Any:
        """Decode a complete JSON document from str or bytes"""
        if isinstance(data, (bytes, bytearray)):
            data = data.decode('utf-8')
        return self._decoder.decode(data)

    def raw_decode(self, text: str, index: int = 0) -> Tuple[Any, int]:
        """
        Decode one JSON value starting at index

        Returns:
            (value, end index) like json.JSONDecoder.raw_decode
        """
        return self._decoder.raw_decode(text, index)

    @staticmethod
    def parse_datetime(value: Optional[str]) -> Optional[datetime]:
        """
        Parse a Docker timestamp

        Fractional seconds beyond microseconds are truncated; a missing
        timezone is treated as UTC.

        Args:
            value: Timestamp such as 2014-10-17T21:22:56.949763914Z

        Returns:
            Timezone-aware datetime, or None for empty input

        Raises:
            ValueError: If the value is not a Docker timestamp
        """
        if not value:
            return None
        match = _TIMESTAMP_PATTERN.match(value)
        if not match:
            raise ValueError(f"Invalid timestamp: {value}")

        text = match.group('base')
        fraction = match.group('fraction')
        if fraction:
            text += '.' + fraction[:6].ljust(6, '0')
        else:
            text += '.000000'

        tz = match.group('tz')
        if not tz or tz == 'Z':
            tz = '+0000'
        text += tz.replace(':', '')

        return datetime.strptime(text, '%Y-%m-%dT%H:%M:%S.%f%z').astimezone(timezone.utc)

    @staticmethod
    def to_set(value) -> Optional[set]:
        """Decode a {key: {}} map (or a list) back into a set of keys"""
        if value is None:
            return None
        return set(value)


def parse_created(value) -> Optional[datetime]:
    """Creation time from inspect data (timestamp string) or list data (Unix seconds)"""
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, timezone.utc)
    return JSONCodec.parse_datetime(value)
