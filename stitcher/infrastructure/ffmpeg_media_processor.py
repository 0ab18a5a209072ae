"""
FFmpeg Media Processor

Concrete IMediaProcessor running the ffprobe and ffmpeg executables as
subprocesses.
"""

import json
import logging
import re
import secrets
import shutil
import subprocess
import threading
from collections import deque
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from stitcher.domain.errors import (
    ConcatenationFailedError,
    InvalidMediaError,
    MediaProcessingError,
)
from stitcher.domain.media_processing.repositories import IMediaProcessor, ProgressCallback
from stitcher.domain.media_processing.value_objects import (
    MediaInfo,
    OutputFormat,
    QualityPreset,
)

logger = logging.getLogger(__name__)

# Video encoder settings for presets that re-encode; audio is always copied
QUALITY_ARGS: Dict[QualityPreset, List[str]] = {
    QualityPreset.HIGH: ["-c:v", "libx264", "-crf", "18", "-preset", "slow"],
    QualityPreset.MEDIUM: ["-c:v", "libx264", "-crf", "23", "-preset", "medium"],
    QualityPreset.LOW: ["-c:v", "libx264", "-crf", "28", "-preset", "fast"],
}

STDERR_TAIL_LINES = 20


def _to_seconds(hours: str, minutes: str, seconds: str) -> float:
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


class FFmpegProgressParser:
    """
    Turns ffmpeg stderr lines into completion percentages.

    The total duration is taken from the first ``Duration:`` line; every
    later ``time=`` update yields ``min(100, 100 * current / total)``.
    """

    _DURATION_PATTERN = re.compile(r"Duration:\s*(\d+):(\d+):(\d+(?:\.\d+)?)")
    _TIME_PATTERN = re.compile(r"time=\s*(\d+):(\d+):(\d+(?:\.\d+)?)")

    def __init__(self):
        self.total_seconds: Optional[float] = None

    def feed(self, line: str) -> Optional[float]:
        """
        Consume one stderr line.

        Returns:
            Percentage for a progress line once the total is known, else None
        """
        if self.total_seconds is None:
            match = self._DURATION_PATTERN.search(line)
            if match:
                total = _to_seconds(*match.groups())
                if total > 0:
                    self.total_seconds = total
                return None

        match = self._TIME_PATTERN.search(line)
        if not match or not self.total_seconds:
            return None

        current = _to_seconds(*match.groups())
        return min(100.0, 100.0 * current / self.total_seconds)


def build_manifest(paths: Sequence[Path]) -> str:
    """Concat demuxer input listing ``paths`` in order."""
    lines = []
    for path in paths:
        escaped = str(Path(path).resolve()).replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    return "\n".join(lines) + "\n"


class FFmpegMediaProcessor(IMediaProcessor):
    """
    Probes and concatenates media with ffprobe and ffmpeg.

    Concatenation uses the concat demuxer with stream copy. A quality other
    than auto re-encodes the video stream with libx264.
    """

    def __init__(
        self,
        scratch_dir: Path,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        probe_timeout: float = 60,
        concat_timeout: Optional[float] = None,
    ):
        """
        Args:
            scratch_dir: Directory concat manifests are written to
            ffmpeg_path: ffmpeg executable
            ffprobe_path: ffprobe executable
            probe_timeout: Seconds a single probe may take
            concat_timeout: Seconds after which ffmpeg is killed, None for no limit
        """
        self.scratch_dir = Path(scratch_dir)
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path
        self.probe_timeout = probe_timeout
        self.concat_timeout = concat_timeout

    def is_available(self) -> bool:
        return (
            shutil.which(self.ffmpeg_path) is not None
            and shutil.which(self.ffprobe_path) is not None
        )

    def probe(self, path: Path) -> MediaInfo:
        path = Path(path)
        cmd = [
            self.ffprobe_path,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]

        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.probe_timeout
            )
        except FileNotFoundError as e:
            raise MediaProcessingError(f"{self.ffprobe_path} not found", e) from e
        except subprocess.TimeoutExpired as e:
            raise InvalidMediaError(path, "probe timed out", e) from e

        if result.returncode != 0:
            raise InvalidMediaError(path, f"ffprobe exited with code {result.returncode}")

        try:
            data = json.loads(result.stdout or "")
        except json.JSONDecodeError as e:
            raise InvalidMediaError(path, "unreadable probe output", e) from e

        video = next(
            (s for s in data.get("streams", []) if s.get("codec_type") == "video"),
            None,
        )
        if video is None:
            raise InvalidMediaError(path, "no video stream")

        container = data.get("format", {})
        duration = container.get("duration") or video.get("duration") or 0
        try:
            duration = float(duration)
        except (TypeError, ValueError):
            duration = 0.0

        return MediaInfo(
            duration=duration,
            width=int(video.get("width") or 0),
            height=int(video.get("height") or 0),
            format=container.get("format_name", "unknown"),
        )

    def build_command(
        self, manifest_path: Path, output_path: Path, quality: QualityPreset
    ) -> List[str]:
        return [
            self.ffmpeg_path,
            "-y",
            "-f", "concat",
            "-safe", "0",
            "-i", str(manifest_path),
            *self._codec_args(quality),
            str(output_path),
        ]

    @staticmethod
    def _codec_args(quality: QualityPreset) -> List[str]:
        if not quality.requires_reencode():
            return ["-c", "copy"]
        return ["-c:a", "copy", *QUALITY_ARGS[quality]]

    def concatenate(
        self,
        paths: Sequence[Path],
        output_path: Path,
        output_format: OutputFormat,
        quality: QualityPreset,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.scratch_dir.mkdir(parents=True, exist_ok=True)

        manifest_path = self.scratch_dir / f"{output_path.stem}_{secrets.token_hex(4)}.txt"
        manifest_path.write_text(build_manifest(paths), encoding="utf-8")

        try:
            self._run_ffmpeg(
                self.build_command(manifest_path, output_path, quality),
                output_path,
                on_progress,
            )
        finally:
            try:
                manifest_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Failed to delete concat manifest {manifest_path}: {e}")

        logger.info(
            f"Concatenated {len(paths)} files into {output_path.name} "
            f"({output_format.value}, quality={quality.value})"
        )
        return output_path

    def _run_ffmpeg(
        self,
        cmd: List[str],
        output_path: Path,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            # Text mode turns the carriage returns of progress updates into lines
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as e:
            raise MediaProcessingError(f"{self.ffmpeg_path} not found", e) from e

        timed_out = threading.Event()
        timer = None
        if self.concat_timeout:
            def _kill():
                timed_out.set()
                process.kill()

            timer = threading.Timer(self.concat_timeout, _kill)
            timer.daemon = True
            timer.start()

        parser = FFmpegProgressParser()
        tail = deque(maxlen=STDERR_TAIL_LINES)
        try:
            for line in process.stderr:
                line = line.strip()
                if not line:
                    continue
                tail.append(line)
                percent = parser.feed(line)
                if percent is not None and on_progress is not None:
                    self._notify(on_progress, percent)
            exit_code = process.wait()
        finally:
            if timer is not None:
                timer.cancel()
            if process.poll() is None:
                process.kill()
                process.wait()
            process.stderr.close()

        if timed_out.is_set():
            self._discard(output_path)
            raise ConcatenationFailedError(
                exit_code, f"timed out after {self.concat_timeout}s"
            )
        if exit_code != 0:
            self._discard(output_path)
            logger.error(f"ffmpeg failed with code {exit_code}: {' | '.join(tail)}")
            raise ConcatenationFailedError(exit_code)

    @staticmethod
    def _notify(on_progress: ProgressCallback, percent: float) -> None:
        try:
            on_progress(percent)
        except Exception as e:
            logger.warning(f"Progress observer raised: {e}", exc_info=True)

    @staticmethod
    def _discard(output_path: Path) -> None:
        try:
            output_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to delete partial output {output_path}: {e}")
