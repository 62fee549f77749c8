"""Tests for core data models."""

import os

import pytest

from photo_gallery.core.exceptions import ConfigurationError, PipelineStateError
from photo_gallery.core.models import (
    DEFAULT_LOGIN,
    DEFAULT_PORT,
    BuildSummary,
    GalleryConfig,
    PhotoIndex,
    PipelineState,
    ThumbnailFailure,
    ThumbnailRecord,
    check_transition,
)


def make_record(path: str, etag: str = "abc") -> ThumbnailRecord:
    return ThumbnailRecord(source_path=path, image=b"jpeg", width=300, height=200, etag=etag)


class TestGalleryConfig:
    """Tests for GalleryConfig."""

    def test_defaults(self):
        """Test GalleryConfig default values."""
        config = GalleryConfig(password="secret")
        assert config.photo_directory == os.path.abspath("samples")
        assert config.host == "0.0.0.0"
        assert config.port == DEFAULT_PORT == 3000
        assert config.login == DEFAULT_LOGIN == "guest"
        assert config.processor == "multithread"
        assert config.failure_policy == "strict"
        assert (config.thumb_width, config.thumb_height) == (300, 200)
        assert (config.view_width, config.view_height) == (1920, 1280)
        assert config.jpeg_quality == 80
        assert config.concurrency >= 1
        assert config.debug is False

    def test_create_generates_password_when_missing(self):
        """Test that an empty password is replaced by a random one."""
        first = GalleryConfig.create()
        second = GalleryConfig.create()
        assert len(first.password) == 32
        assert first.password != second.password

    def test_create_keeps_explicit_password(self):
        """Test that an explicit password is kept as is."""
        config = GalleryConfig.create(password="hunter2")
        assert config.password == "hunter2"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("concurrency", 0),
            ("concurrency", -3),
            ("processor", "gpu"),
            ("failure_policy", "lenient"),
            ("thumb_width", 0),
            ("jpeg_quality", 0),
            ("jpeg_quality", 100),
        ],
    )
    def test_create_rejects_invalid_values(self, field, value):
        """Test that invalid values raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            GalleryConfig.create(password="x", **{field: value})

    def test_from_env_reads_variables(self):
        """Test building the config from environment variables."""
        env = {
            "PHOTO_DIRECTORY": "/srv/photos",
            "HTTP_HOST": "127.0.0.1",
            "HTTP_PORT": "8080",
            "LOGIN": "alice",
            "PASSWORD": "wonderland",
            "CONCURRENCY": "3",
            "PROCESSOR": "serial",
            "FAILURE_POLICY": "relaxed",
            "DEBUG": "true",
        }
        config = GalleryConfig.from_env(env)
        assert config.photo_directory == "/srv/photos"
        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.login == "alice"
        assert config.password == "wonderland"
        assert config.concurrency == 3
        assert config.processor == "serial"
        assert config.failure_policy == "relaxed"
        assert config.debug is True

    @pytest.mark.parametrize("port", ["", "not-a-port", "0"])
    def test_from_env_port_falls_back_to_default(self, port):
        """Test that a missing or unparsable port falls back to 3000."""
        config = GalleryConfig.from_env({"HTTP_PORT": port, "PASSWORD": "x"})
        assert config.port == DEFAULT_PORT

    def test_from_env_empty_login_uses_default(self):
        """Test that an empty LOGIN falls back to the default login."""
        config = GalleryConfig.from_env({"LOGIN": "", "PASSWORD": "x"})
        assert config.login == "guest"

    def test_from_env_invalid_concurrency(self):
        """Test that a non-integer CONCURRENCY is a configuration error."""
        with pytest.raises(ConfigurationError, match="CONCURRENCY"):
            GalleryConfig.from_env({"CONCURRENCY": "many", "PASSWORD": "x"})

    def test_from_env_overrides_win_and_none_is_ignored(self):
        """Test that explicit overrides beat the environment, None does not."""
        env = {"CONCURRENCY": "3", "PROCESSOR": "serial", "PASSWORD": "x"}
        config = GalleryConfig.from_env(env, concurrency=7, processor=None)
        assert config.concurrency == 7
        assert config.processor == "serial"

    def test_scaled_height_keeps_view_aspect_ratio(self):
        """Test that scaled heights follow the 1920x1280 viewing frame."""
        config = GalleryConfig(password="x")
        assert config.aspect_ratio == pytest.approx(1280 / 1920)
        assert config.scaled_height(1920) == 1280
        assert config.scaled_height(960) == 640
        assert config.scaled_height(1) == 1


class TestIndexEntries:
    """Tests for ThumbnailRecord and ThumbnailFailure."""

    def test_record_is_immutable(self):
        """Test that a record cannot be modified after creation."""
        record = make_record("/p/a.jpg")
        with pytest.raises(Exception):
            record.etag = "other"

    def test_record_repr_hides_image_bytes(self):
        """Test that the encoded image is left out of the repr."""
        record = make_record("/p/a.jpg")
        assert "jpeg" not in repr(record)
        assert "/p/a.jpg" in repr(record)

    def test_failure_tombstone(self):
        """Test creating a failure tombstone."""
        failure = ThumbnailFailure(source_path="/p/b.jpg", error_type="DecodeError")
        assert failure.message == ""
        assert failure.error_type == "DecodeError"

    def test_build_summary_defaults(self):
        """Test BuildSummary default values."""
        summary = BuildSummary()
        assert summary.total == summary.succeeded == summary.failed == 0
        assert summary.processor == ""


class TestPipelineState:
    """Tests for the startup state machine."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (PipelineState.IDLE, PipelineState.ENUMERATING),
            (PipelineState.ENUMERATING, PipelineState.PROCESSING),
            (PipelineState.PROCESSING, PipelineState.READY),
            (PipelineState.READY, PipelineState.SERVING),
            (PipelineState.ENUMERATING, PipelineState.FAILED),
            (PipelineState.PROCESSING, PipelineState.FAILED),
        ],
    )
    def test_legal_transitions(self, current, target):
        """Test that the forward path and failures are accepted."""
        check_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (PipelineState.IDLE, PipelineState.READY),
            (PipelineState.PROCESSING, PipelineState.SERVING),
            (PipelineState.READY, PipelineState.ENUMERATING),
            (PipelineState.SERVING, PipelineState.READY),
            (PipelineState.FAILED, PipelineState.ENUMERATING),
            (PipelineState.FAILED, PipelineState.FAILED),
        ],
    )
    def test_illegal_transitions(self, current, target):
        """Test that skipping or reversing states is rejected."""
        with pytest.raises(PipelineStateError):
            check_transition(current, target)


class TestPhotoIndex:
    """Tests for the positional photo index."""

    def test_empty_index(self):
        """Test an index built from no paths."""
        index = PhotoIndex([])
        assert len(index) == 0
        assert index.is_complete
        assert index.get(0) is None

    def test_assign_and_get(self):
        """Test that entries land in their own slot."""
        index = PhotoIndex(["/p/a.jpg", "/p/b.jpg"])
        index.assign(1, make_record("/p/b.jpg"))
        assert index.get(0) is None
        assert index.get(1).source_path == "/p/b.jpg"
        assert not index.is_complete

        index.assign(0, make_record("/p/a.jpg"))
        assert index.is_complete
        assert [entry.source_path for entry in index] == ["/p/a.jpg", "/p/b.jpg"]

    @pytest.mark.parametrize("number", [-1, 2, 100])
    def test_get_out_of_range(self, number):
        """Test that out of range numbers give None."""
        index = PhotoIndex(["/p/a.jpg", "/p/b.jpg"])
        assert index.get(number) is None

    def test_assign_twice_is_rejected(self):
        """Test that a populated slot cannot be overwritten."""
        index = PhotoIndex(["/p/a.jpg"])
        index.assign(0, make_record("/p/a.jpg"))
        with pytest.raises(PipelineStateError, match="already populated"):
            index.assign(0, make_record("/p/a.jpg", etag="other"))

    def test_assign_to_wrong_slot_is_rejected(self):
        """Test that an entry must match the path of its slot."""
        index = PhotoIndex(["/p/a.jpg", "/p/b.jpg"])
        with pytest.raises(PipelineStateError, match="belongs to"):
            index.assign(0, make_record("/p/b.jpg"))

    def test_records_and_failures(self):
        """Test splitting entries into records and tombstones."""
        index = PhotoIndex(["/p/a.jpg", "/p/b.jpg"])
        index.assign(0, make_record("/p/a.jpg"))
        index.assign(1, ThumbnailFailure(source_path="/p/b.jpg", error_type="DecodeError"))
        assert [r.source_path for r in index.records()] == ["/p/a.jpg"]
        assert [f.source_path for f in index.failures()] == ["/p/b.jpg"]

    def test_paths_are_a_copy(self):
        """Test that callers cannot reorder the index through paths."""
        index = PhotoIndex(["/p/a.jpg", "/p/b.jpg"])
        index.paths.reverse()
        assert index.paths == ["/p/a.jpg", "/p/b.jpg"]
