"""Shared data models for the photo gallery."""

from __future__ import annotations

import os
import secrets
import threading
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError, PipelineStateError
from .logging_config import get_logger

PROCESSORS = ("serial", "multithread", "multiprocess", "asyncio")
FAILURE_POLICIES = ("strict", "relaxed")

DEFAULT_PORT = 3000
DEFAULT_LOGIN = "guest"


def default_concurrency() -> int:
    """Number of processing units available to this process (at least 1)."""
    try:
        return max(1, len(os.sched_getaffinity(0)))
    except AttributeError:
        return max(1, os.cpu_count() or 1)


def make_random_password(login: str) -> str:
    """Generate a throwaway password and report it once through the logger."""
    password = secrets.token_hex(16)
    get_logger("config").warning(f"Login: {login}, random password: {password}")
    return password


class GalleryConfig(BaseModel):
    """Configuration for the gallery, built once and passed explicitly."""

    photo_directory: str = Field(default_factory=lambda: os.path.abspath("samples"))
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    login: str = DEFAULT_LOGIN
    password: str = ""
    concurrency: int = Field(default_factory=default_concurrency)
    processor: str = "multithread"
    failure_policy: str = "strict"
    thumb_width: int = 300
    thumb_height: int = 200
    view_width: int = 1920
    view_height: int = 1280
    jpeg_quality: int = 80
    max_scaled_width: int = 8192
    progress: bool = True
    debug: bool = False

    @field_validator("concurrency")
    @classmethod
    def _check_concurrency(cls, value: int) -> int:
        if value < 1:
            raise ValueError("concurrency must be at least 1")
        return value

    @field_validator("processor")
    @classmethod
    def _check_processor(cls, value: str) -> str:
        if value not in PROCESSORS:
            raise ValueError(f"processor must be one of {', '.join(PROCESSORS)}")
        return value

    @field_validator("failure_policy")
    @classmethod
    def _check_failure_policy(cls, value: str) -> str:
        if value not in FAILURE_POLICIES:
            raise ValueError(
                f"failure_policy must be one of {', '.join(FAILURE_POLICIES)}"
            )
        return value

    @field_validator(
        "thumb_width", "thumb_height", "view_width", "view_height", "max_scaled_width"
    )
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("dimensions must be positive")
        return value

    @field_validator("jpeg_quality")
    @classmethod
    def _check_quality(cls, value: int) -> int:
        if not 1 <= value <= 95:
            raise ValueError("jpeg_quality must be between 1 and 95")
        return value

    @classmethod
    def create(cls, **values: Any) -> "GalleryConfig":
        """Build a config, reporting validation problems as ConfigurationError."""
        try:
            config = cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc
        if not config.password:
            config.password = make_random_password(config.login)
        return config

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any
    ) -> "GalleryConfig":
        """
        Build the config from environment variables.

        Explicit keyword overrides win over the environment; values that are
        None are ignored so argparse namespaces can be passed straight through.
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        if env.get("PHOTO_DIRECTORY"):
            values["photo_directory"] = env["PHOTO_DIRECTORY"]
        if env.get("HTTP_HOST"):
            values["host"] = env["HTTP_HOST"]
        # An unparsable port falls back to the default
        try:
            values["port"] = int(env.get("HTTP_PORT", "")) or DEFAULT_PORT
        except ValueError:
            values["port"] = DEFAULT_PORT
        values["login"] = env.get("LOGIN") or DEFAULT_LOGIN
        if env.get("PASSWORD"):
            values["password"] = env["PASSWORD"]
        if env.get("CONCURRENCY"):
            try:
                values["concurrency"] = int(env["CONCURRENCY"])
            except ValueError as exc:
                raise ConfigurationError(
                    f"CONCURRENCY must be an integer, got {env['CONCURRENCY']!r}"
                ) from exc
        if env.get("PROCESSOR"):
            values["processor"] = env["PROCESSOR"]
        if env.get("FAILURE_POLICY"):
            values["failure_policy"] = env["FAILURE_POLICY"]
        if env.get("DEBUG", "").lower() in ("1", "true", "yes"):
            values["debug"] = True

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.create(**values)

    @property
    def aspect_ratio(self) -> float:
        """Height over width of the full-size viewing frame."""
        return self.view_height / self.view_width

    def scaled_height(self, width: int) -> int:
        """Height matching ``width`` at the viewing aspect ratio."""
        return max(1, round(width * self.aspect_ratio))


class ThumbnailRecord(BaseModel):
    """A generated thumbnail together with its validation token."""

    model_config = ConfigDict(frozen=True)

    source_path: str
    image: bytes = Field(repr=False)
    width: int
    height: int
    etag: str


class ThumbnailFailure(BaseModel):
    """Tombstone kept in place of a thumbnail that could not be generated."""

    model_config = ConfigDict(frozen=True)

    source_path: str
    error_type: str
    message: str = ""


IndexEntry = Union[ThumbnailRecord, ThumbnailFailure]


class BuildSummary(BaseModel):
    """Counters reported after building a photo index."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    elapsed: float = 0.0
    peak_concurrency: int = 0
    processor: str = ""


class PipelineState(Enum):
    """Lifecycle of the gallery startup."""

    IDLE = "idle"
    ENUMERATING = "enumerating"
    PROCESSING = "processing"
    READY = "ready"
    SERVING = "serving"
    FAILED = "failed"


_TRANSITIONS = {
    PipelineState.IDLE: {PipelineState.ENUMERATING},
    PipelineState.ENUMERATING: {PipelineState.PROCESSING},
    PipelineState.PROCESSING: {PipelineState.READY},
    PipelineState.READY: {PipelineState.SERVING},
    PipelineState.SERVING: set(),
    PipelineState.FAILED: set(),
}


def check_transition(current: PipelineState, target: PipelineState) -> None:
    """Raise PipelineStateError unless ``current -> target`` is legal."""
    if target is PipelineState.FAILED and current is not PipelineState.FAILED:
        return
    if target not in _TRANSITIONS[current]:
        raise PipelineStateError(
            f"Illegal pipeline transition {current.value} -> {target.value}"
        )


class PhotoIndex:
    """
    Fixed-length, positionally addressed collection of index entries.

    Slot ``i`` always belongs to the ``i``-th enumerated path. Every slot is
    written exactly once; writers own disjoint positions, the lock only
    guards the write-once check.
    """

    def __init__(self, paths: List[str]):
        self._paths = list(paths)
        self._slots: List[Optional[IndexEntry]] = [None] * len(self._paths)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[Optional[IndexEntry]]:
        return iter(list(self._slots))

    def __getitem__(self, position: int) -> Optional[IndexEntry]:
        return self._slots[position]

    @property
    def paths(self) -> List[str]:
        return list(self._paths)

    def assign(self, position: int, entry: IndexEntry) -> None:
        """Populate slot ``position``; overwriting a populated slot is an error."""
        if entry.source_path != self._paths[position]:
            raise PipelineStateError(
                f"Slot {position} belongs to {self._paths[position]}, "
                f"not {entry.source_path}"
            )
        with self._lock:
            if self._slots[position] is not None:
                raise PipelineStateError(f"Slot {position} is already populated")
            self._slots[position] = entry

    def get(self, number: int) -> Optional[IndexEntry]:
        """Entry for photo ``number`` or None when the number is out of range."""
        if number < 0 or number >= len(self._slots):
            return None
        return self._slots[number]

    @property
    def is_complete(self) -> bool:
        return all(slot is not None for slot in self._slots)

    def records(self) -> List[ThumbnailRecord]:
        return [slot for slot in self._slots if isinstance(slot, ThumbnailRecord)]

    def failures(self) -> List[ThumbnailFailure]:
        return [slot for slot in self._slots if isinstance(slot, ThumbnailFailure)]
