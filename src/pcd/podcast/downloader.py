"""Episode downloader with optional progress mirroring.

Streams an episode's media file into a directory. An optional observer
(any object with a ``write(bytes)`` method) receives every chunk written to
the file, which makes it easy to track progress or transfer speed.

Filenames are taken verbatim from the last segment of the media URL and
existing files are overwritten, so episode URLs are trusted input.
"""

import logging
import os
from typing import BinaryIO, List, Optional
from urllib.parse import urlparse

import requests

from .. import __version__
from ..errors import ErrorKind, PodcastError
from .models import Episode

logger = logging.getLogger(__name__)


class MultiWriter:
    """Writes each chunk to several sinks.

    Every sink is attempted for every chunk; if any of them fails, the
    first failure is raised once all sinks have been tried.
    """

    def __init__(self, *sinks):
        self.sinks: List = list(sinks)

    def write(self, data: bytes) -> int:
        error = None
        for sink in self.sinks:
            try:
                sink.write(data)
            except Exception as e:
                if error is None:
                    error = e
        if error is not None:
            raise error
        return len(data)


def filename_from_url(url: str) -> str:
    """Return the final path segment of a URL."""
    return os.path.basename(urlparse(url).path)


class EpisodeDownloader:
    """Downloads single podcast episodes.

    Example:
        downloader = EpisodeDownloader(timeout=300)
        path = downloader.download(episode, "/opt/podcasts/show")
    """

    DEFAULT_USER_AGENT = f"pcd/{__version__}"
    DEFAULT_CHUNK_SIZE = 8192
    DEFAULT_TIMEOUT = 300  # 5 minutes

    def __init__(
        self,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        user_agent: Optional[str] = None,
    ):
        """Initialize the episode downloader.

        Args:
            timeout: Transport timeout in seconds
            chunk_size: Chunk size for streaming downloads
            user_agent: Custom user agent string
        """
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.user_agent = user_agent or self.DEFAULT_USER_AGENT

        self._session = requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})

    def download(
        self,
        episode: Episode,
        directory: str,
        observer: Optional[BinaryIO] = None,
    ) -> str:
        """Download an episode into a directory.

        Args:
            episode: Episode to download
            directory: Existing destination directory
            observer: Optional writer that mirrors everything written to the file

        Returns:
            Path of the downloaded file

        Raises:
            PodcastError: DOWNLOAD_FAILED on any failure
        """
        output_path = os.path.join(directory, filename_from_url(episode.url))
        logger.info(f"Downloading: {episode.title}")

        try:
            with self._session.get(episode.url, stream=True, timeout=self.timeout) as response:
                if response.status_code != 200:
                    logger.error(
                        f"Could not download episode: {episode.url} returned {response.status_code}"
                    )
                    raise PodcastError(ErrorKind.DOWNLOAD_FAILED)

                downloaded = self._write_body(response, output_path, observer)
        except PodcastError:
            raise
        except Exception as e:
            # Transport, file creation and write failures (file or observer)
            logger.error(f"Could not download episode {episode.url}: {e}")
            raise PodcastError(ErrorKind.DOWNLOAD_FAILED, cause=e) from e

        logger.info(f"Downloaded: {episode.title} ({downloaded / 1024 / 1024:.1f} MB)")
        return output_path

    def _write_body(
        self,
        response: requests.Response,
        output_path: str,
        observer: Optional[BinaryIO],
    ) -> int:
        """Stream the response body to disk, removing the file on failure.

        Returns:
            Number of bytes written
        """
        downloaded = 0
        with open(output_path, "wb") as f:
            writer = MultiWriter(f, observer) if observer is not None else f
            try:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        writer.write(chunk)
                        downloaded += len(chunk)
            except Exception:
                f.close()
                self._remove_partial(output_path)
                raise

        return downloaded

    @staticmethod
    def _remove_partial(output_path: str):
        """Delete a partially written file."""
        if os.path.exists(output_path):
            try:
                os.remove(output_path)
            except OSError as e:
                logger.warning(f"Could not remove partial file {output_path}: {e}")

    def close(self):
        """Close the downloader and release resources."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
