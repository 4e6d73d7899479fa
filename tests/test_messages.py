# =============================================================================
# MESSAGE MODEL TESTS
# =============================================================================

import pytest

from docker_engine.messages import LogMessage, ProgressDetail, ProgressMessage, Stream


class TestStream:
    """Test frame tag mapping."""

    def test_known_tags(self):
        """Tags 0, 1 and 2 should map to stdin, stdout and stderr."""
        assert [Stream.of(tag) for tag in (0, 1, 2)] == [Stream.STDIN, Stream.STDOUT, Stream.STDERR]

    def test_unknown_tag(self):
        """Any other tag should be rejected."""
        with pytest.raises(ValueError, match="Unknown stream tag: 3"):
            Stream.of(3)


class TestLogMessage:
    """Test LogMessage."""

    def test_content_is_read_only(self):
        """Consumers should not be able to modify the payload."""
        message = LogMessage(1, bytearray(b"abc"))

        assert message.stream is Stream.STDOUT
        assert message.content.readonly
        with pytest.raises(TypeError):
            message.content[0] = 0

    def test_equality(self):
        """Messages should compare by channel and payload."""
        assert LogMessage(Stream.STDERR, b"x") == LogMessage(2, b"x")
        assert LogMessage(Stream.STDERR, b"x") != LogMessage(Stream.STDOUT, b"x")
        assert len({LogMessage(1, b"x"), LogMessage(1, b"x")}) == 1
        assert len(LogMessage(1, b"four")) == 4


class TestProgressMessage:
    """Test ProgressMessage decoding."""

    def test_from_dict(self):
        """Known keys should map to fields and unknown keys be ignored."""
        message = ProgressMessage.from_dict({
            "id": "90b15849fc7e",
            "status": "Downloading",
            "progress": "[=>   ] 5.8 MB/117 MB",
            "progressDetail": {"current": 5812, "total": 117400},
            "somethingNew": True,
        })

        assert message.id == "90b15849fc7e"
        assert message.progress_detail == ProgressDetail(current=5812, total=117400)
        assert message.error is None

    def test_empty_progress_detail_is_present(self):
        """An empty progressDetail object should still count as progress."""
        message = ProgressMessage.from_dict({"id": "a", "status": "Waiting", "progressDetail": {}})

        assert message.progress_detail == ProgressDetail()

    def test_error_from_error_detail(self):
        """errorDetail.message should fill in a missing error."""
        message = ProgressMessage.from_dict({"errorDetail": {"code": 1, "message": "boom"}})

        assert message.error == "boom"
        assert message.error_detail == {"code": 1, "message": "boom"}

    def test_rejects_non_object(self):
        """Only JSON objects are progress messages."""
        with pytest.raises(TypeError):
            ProgressMessage.from_dict(["status"])

    def test_digest_formats(self):
        """Digests should be found in both status formats."""
        old = ProgressMessage(status="Digest: sha256:1a2b")
        new = ProgressMessage(status="latest: digest: sha256:3c4d size: 527")

        assert old.digest == "sha256:1a2b"
        assert new.digest == "sha256:3c4d"
        assert ProgressMessage(status="Pulling fs layer").digest is None
        assert ProgressMessage().digest is None

    def test_build_image_id(self):
        """Build IDs should come from aux or the final build line."""
        assert ProgressMessage(aux={"ID": "sha256:abc"}).build_image_id == "sha256:abc"
        assert ProgressMessage(stream="Successfully built 4f2c1a\n").build_image_id == "4f2c1a"
        assert ProgressMessage(stream="Step 2/2\n").build_image_id is None

    def test_repr_lists_set_fields(self):
        """repr should show only fields that carry a value."""
        assert repr(ProgressMessage(id="a", status="Done")) == "ProgressMessage(id='a', status='Done')"
