"""
Media Processing Value Objects

Immutable value objects for type safety and validation of stitching input.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple
from urllib.parse import urlparse

from stitcher.domain.errors import InvalidUrlError, ValidationError

MIN_VIDEO_URLS = 2
MAX_VIDEO_URLS = 10


class OutputFormat(Enum):
    """Container format of the stitched output."""

    MP4 = "mp4"
    WEBM = "webm"
    MOV = "mov"

    @property
    def mimetype(self) -> str:
        """Content type used when serving the artifact."""
        return {
            OutputFormat.MP4: "video/mp4",
            OutputFormat.WEBM: "video/webm",
            OutputFormat.MOV: "video/quicktime",
        }[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> "OutputFormat":
        """Parse a format string, defaulting to mp4 when empty."""
        if value is None or value == "":
            return cls.MP4
        try:
            return cls(str(value).lower())
        except ValueError:
            allowed = ", ".join(f.value for f in cls)
            raise ValidationError(f"Unsupported format '{value}'. Allowed: {allowed}")


class QualityPreset(Enum):
    """Encoding quality selected at submission."""

    AUTO = "auto"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    def requires_reencode(self) -> bool:
        """Only 'auto' keeps the source streams untouched."""
        return self is not QualityPreset.AUTO

    @classmethod
    def parse(cls, value: Optional[str]) -> "QualityPreset":
        """Parse a quality string, defaulting to auto when empty."""
        if value is None or value == "":
            return cls.AUTO
        try:
            return cls(str(value).lower())
        except ValueError:
            allowed = ", ".join(q.value for q in cls)
            raise ValidationError(f"Unsupported quality '{value}'. Allowed: {allowed}")


@dataclass(frozen=True)
class VideoUrl:
    """
    Value object representing a syntactically valid remote video URL.

    Only absolute http(s) URLs with a host are accepted.
    """

    value: str

    def __post_init__(self):
        if not self._is_valid():
            raise InvalidUrlError(f"Invalid video URL: {self.value!r}")

    def _is_valid(self) -> bool:
        if not self.value or not isinstance(self.value, str):
            return False
        if any(c.isspace() for c in self.value):
            return False
        try:
            parsed = urlparse(self.value)
        except ValueError:
            return False
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class StitchRequest:
    """
    Validated submission: the ordered URLs plus output configuration.

    Raises ValidationError (or InvalidUrlError) on construction from bad
    input, before any job exists.
    """

    video_urls: Tuple[str, ...]
    output_format: OutputFormat = OutputFormat.MP4
    quality: QualityPreset = QualityPreset.AUTO

    def __post_init__(self):
        count = len(self.video_urls)
        if count < MIN_VIDEO_URLS or count > MAX_VIDEO_URLS:
            raise ValidationError(
                f"Expected between {MIN_VIDEO_URLS} and {MAX_VIDEO_URLS} video URLs, got {count}"
            )
        for url in self.video_urls:
            VideoUrl(url)

    @classmethod
    def from_input(
        cls,
        videos: Optional[Iterable[str]],
        output_format: Optional[str] = None,
        quality: Optional[str] = None,
    ) -> "StitchRequest":
        """Build a request from raw API input."""
        if not isinstance(videos, (list, tuple)):
            raise ValidationError("'videos' must be a list of URLs")
        urls = tuple(videos)
        if not all(isinstance(url, str) for url in urls):
            raise ValidationError("Every entry in 'videos' must be a string")
        return cls(
            video_urls=tuple(url.strip() for url in urls),
            output_format=OutputFormat.parse(output_format),
            quality=QualityPreset.parse(quality),
        )


@dataclass(frozen=True)
class MediaInfo:
    """Result of probing a media file."""

    duration: float
    width: int
    height: int
    format: str

    def to_dict(self) -> dict:
        return {
            "duration": self.duration,
            "width": self.width,
            "height": self.height,
            "format": self.format,
        }
