"""
Media Processing Repositories

Interfaces for the external collaborators of the stitching workflow.
Concrete implementations are in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .value_objects import MediaInfo, OutputFormat, QualityPreset

# Observer for concatenation progress, receives a fraction in [0, 100]
ProgressCallback = Callable[[float], None]


class IVideoDownloader(ABC):
    """Fetches remote videos into local scratch storage."""

    @abstractmethod
    def fetch_all(self, urls: Sequence[str], job_id: str) -> List[Path]:
        """
        Download every URL concurrently.

        Args:
            urls: Source URLs in concatenation order
            job_id: Owning job, embedded in local file names

        Returns:
            Local paths in the same order as ``urls``

        Raises:
            DownloadFailedError: If any fetch fails. Files already fetched
                by this batch are deleted before raising.
        """
        pass

    @abstractmethod
    def cleanup(self, paths: Sequence[Path]) -> int:
        """
        Delete local files, ignoring the ones already gone.

        Returns:
            Number of files removed
        """
        pass


class IMediaProcessor(ABC):
    """Wraps the external inspection and concatenation tools."""

    @abstractmethod
    def probe(self, path: Path) -> MediaInfo:
        """
        Inspect a media file.

        Raises:
            InvalidMediaError: If the file is unreadable or has no video stream
        """
        pass

    @abstractmethod
    def concatenate(
        self,
        paths: Sequence[Path],
        output_path: Path,
        output_format: OutputFormat,
        quality: QualityPreset,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Path:
        """
        Join ``paths`` in order into ``output_path``.

        ``on_progress`` is pushed a percentage on every progress update
        parsed from the tool output.

        Raises:
            ConcatenationFailedError: If the tool exits with a non-zero code
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the external tools can be executed."""
        pass
