# =============================================================================
# JSON CODEC TESTS
# =============================================================================

from datetime import datetime, timedelta, timezone

import pytest

from docker_engine.serialization import JSONCodec


class TestEncoding:
    """Test request body encoding."""

    def test_drops_none(self):
        """None values should be omitted at every level."""
        codec = JSONCodec(sort_keys=True)

        encoded = codec.dumps({"Image": "busybox", "Cmd": None, "HostConfig": {"Binds": None, "Privileged": False}})

        assert encoded == '{"HostConfig": {"Privileged": false}, "Image": "busybox"}'

    def test_keeps_none_when_asked(self):
        """drop_none=False should send explicit nulls."""
        assert JSONCodec(drop_none=False).dumps({"a": None}) == '{"a": null}'

    def test_sets_as_key_maps(self):
        """Sets should be written as maps of empty objects."""
        encoded = JSONCodec().dumps({"ExposedPorts": {"443/tcp", "80/tcp"}})

        assert encoded == '{"ExposedPorts": {"443/tcp": {}, "80/tcp": {}}}'

    def test_dumpb(self):
        """dumpb should return UTF-8 bytes."""
        assert JSONCodec().dumpb({"name": "café"}) == '{"name": "café"}'.encode("utf-8")

    def test_immutable(self):
        """A codec should not be reconfigurable after creation."""
        codec = JSONCodec()

        with pytest.raises(AttributeError):
            codec.sort_keys = True


class TestDecoding:
    """Test response decoding."""

    def test_loads_bytes_and_text(self):
        """Both bytes and str documents should decode."""
        codec = JSONCodec()

        assert codec.loads(b'{"a": 1}') == {"a": 1}
        assert codec.loads('[1, 2]') == [1, 2]

    def test_raw_decode(self):
        """raw_decode should return the value and where it ended."""
        assert JSONCodec().raw_decode('{"a":1}{"b":2}') == ({"a": 1}, 7)

    def test_to_set(self):
        """Key maps should decode back into sets."""
        assert JSONCodec.to_set({"80/tcp": {}}) == {"80/tcp"}
        assert JSONCodec.to_set(None) is None


class TestParseDatetime:
    """Test Docker timestamp parsing."""

    def test_nanoseconds_truncated(self):
        """Nine fractional digits should be cut to microseconds."""
        parsed = JSONCodec.parse_datetime("2014-10-17T21:22:56.949763914Z")

        assert parsed == datetime(2014, 10, 17, 21, 22, 56, 949763, tzinfo=timezone.utc)

    def test_short_fraction(self):
        """Short fractions should be padded."""
        parsed = JSONCodec.parse_datetime("2014-10-17T21:22:56.9Z")

        assert parsed.microsecond == 900000

    def test_offset_converted_to_utc(self):
        """Offsets should be normalised to UTC."""
        parsed = JSONCodec.parse_datetime("2014-10-17T23:22:56+02:00")

        assert parsed == datetime(2014, 10, 17, 21, 22, 56, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_missing_timezone_is_utc(self):
        """A timestamp without zone should be read as UTC."""
        parsed = JSONCodec.parse_datetime("2014-10-17T21:22:56")

        assert parsed.tzinfo is not None
        assert parsed.hour == 21

    def test_empty_and_invalid(self):
        """Empty input is None, garbage is an error."""
        assert JSONCodec.parse_datetime("") is None
        with pytest.raises(ValueError):
            JSONCodec.parse_datetime("yesterday")
