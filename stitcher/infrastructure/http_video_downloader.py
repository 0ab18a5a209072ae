"""
HTTP Video Downloader

Concrete IVideoDownloader that fetches source videos over HTTP(S) with
requests, one worker thread per URL.
"""

import logging
import secrets
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

import requests

from stitcher.domain.errors import DownloadFailedError
from stitcher.domain.media_processing.repositories import IVideoDownloader

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = {".mp4", ".m4v", ".mov", ".webm", ".mkv", ".avi", ".ts"}
DEFAULT_EXTENSION = ".mp4"
CHUNK_SIZE = 1024 * 1024


class HttpVideoDownloader(IVideoDownloader):
    """
    Downloads a batch of videos concurrently into the scratch directory.

    A batch is all-or-nothing: when any URL fails, every file of the batch
    that did arrive is deleted and the failure of the lowest index is
    raised. Each fetch is bounded by ``timeout`` seconds end to end.
    """

    def __init__(
        self,
        download_dir: Path,
        timeout: float = 30,
        max_workers: int = 10,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        """
        Args:
            download_dir: Directory downloaded files are written to
            timeout: Per-fetch ceiling in seconds
            max_workers: Upper bound on concurrent fetches per batch
            session_factory: Creates the HTTP session used by one fetch
        """
        self.download_dir = Path(download_dir)
        self.timeout = timeout
        self.max_workers = max_workers
        self.session_factory = session_factory

    def fetch_all(self, urls: Sequence[str], job_id: str) -> List[Path]:
        if not urls:
            return []

        self.download_dir.mkdir(parents=True, exist_ok=True)
        results: List[Optional[Path]] = [None] * len(urls)
        failures: List[Tuple[int, DownloadFailedError]] = []

        logger.info(f"Job {job_id}: downloading {len(urls)} videos")
        workers = min(self.max_workers, len(urls))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fetch") as pool:
            futures = {
                pool.submit(self._fetch_one, url, job_id, index): index
                for index, url in enumerate(urls)
            }
            for future in as_completed(futures):
                index = futures[future]
                try:
                    results[index] = future.result()
                except DownloadFailedError as e:
                    failures.append((index, e))
                except Exception as e:
                    failures.append(
                        (index, DownloadFailedError(urls[index], str(e), original_error=e))
                    )

        if failures:
            fetched = [path for path in results if path is not None]
            removed = self.cleanup(fetched)
            failures.sort(key=lambda item: item[0])
            error = failures[0][1]
            logger.error(
                f"Job {job_id}: {len(failures)} of {len(urls)} downloads failed, "
                f"removed {removed} completed file(s): {error}"
            )
            raise error

        logger.info(f"Job {job_id}: all {len(urls)} downloads finished")
        return results

    def cleanup(self, paths: Sequence[Path]) -> int:
        removed = 0
        for path in paths:
            if self._remove(Path(path)):
                removed += 1
        return removed

    def _fetch_one(self, url: str, job_id: str, index: int) -> Path:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise DownloadFailedError(url, "malformed URL")

        path = self.download_dir / self._local_name(job_id, index, parsed.path)
        deadline = time.monotonic() + self.timeout

        try:
            with self.session_factory() as session:
                with session.get(url, stream=True, timeout=self.timeout) as response:
                    if response.status_code != 200:
                        raise DownloadFailedError(url, f"HTTP {response.status_code}")

                    with open(path, "wb") as f:
                        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                            if time.monotonic() > deadline:
                                raise DownloadFailedError(
                                    url, f"timed out after {self.timeout}s", timed_out=True
                                )
                            if chunk:
                                f.write(chunk)
        except DownloadFailedError:
            self._remove(path)
            raise
        except requests.Timeout as e:
            self._remove(path)
            raise DownloadFailedError(
                url, f"timed out after {self.timeout}s", original_error=e, timed_out=True
            ) from e
        except requests.RequestException as e:
            self._remove(path)
            raise DownloadFailedError(url, str(e), original_error=e) from e
        except OSError as e:
            self._remove(path)
            raise DownloadFailedError(url, f"could not write file: {e}", original_error=e) from e
        except Exception:
            self._remove(path)
            raise

        logger.debug(f"Job {job_id}: fetched {url} -> {path.name}")
        return path

    @staticmethod
    def _local_name(job_id: str, index: int, url_path: str) -> str:
        extension = Path(url_path).suffix.lower()
        if extension not in VIDEO_EXTENSIONS:
            extension = DEFAULT_EXTENSION
        timestamp = int(time.time() * 1000)
        return f"{job_id}_{index}_{timestamp}_{secrets.token_hex(4)}{extension}"

    @staticmethod
    def _remove(path: Path) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to delete {path}: {e}")
            return False
