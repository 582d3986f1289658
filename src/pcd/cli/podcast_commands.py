"""CLI commands for podcast synchronization.

Provides commands for:
- Syncing feeds into the local episode cache
- Listing cached episodes
- Downloading an episode
"""

import argparse
import logging
import sys
import time

from ..config import Config
from ..errors import CacheWriteError, ErrorKind, PodcastError
from ..podcast.downloader import EpisodeDownloader
from ..podcast.fetcher import FeedFetcher

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ProgressWriter:
    """Download observer that reports bytes written on a stream.

    Passed as the observer of EpisodeDownloader.download(); every chunk
    written to the destination file is also written here.
    """

    def __init__(self, total=0, stream=None, interval=0.5):
        self.total = total
        self.stream = stream or sys.stderr
        self.interval = interval
        self.written = 0
        self._started = time.monotonic()
        self._last_report = 0.0

    def write(self, data):
        self.written += len(data)
        now = time.monotonic()
        if now - self._last_report >= self.interval:
            self._last_report = now
            self.report()
        return len(data)

    def report(self):
        """Print the current progress line."""
        elapsed = max(time.monotonic() - self._started, 1e-6)
        speed = self.written / elapsed / 1024
        if self.total > 0:
            percentage = min(self.written / self.total * 100, 100.0)
            line = f"{self.written}/{self.total} bytes ({percentage:.1f}%) {speed:.1f} KB/s"
        else:
            line = f"{self.written} bytes {speed:.1f} KB/s"
        self.stream.write(f"\r{line}")
        self.stream.flush()

    def finish(self):
        """Print the final progress line and end it."""
        self.report()
        self.stream.write("\n")
        self.stream.flush()


def _select_podcasts(args, config: Config):
    podcasts = config.load_podcasts()
    if getattr(args, "podcast", None):
        return [config.find_podcast(podcasts, args.podcast)]
    return podcasts


def sync_feeds(args, config: Config):
    """
    Sync one podcast (args.podcast) or every configured podcast in sequence.

    A failing podcast is reported and the remaining podcasts are still synced.
    Exits with status 1 if any podcast failed.
    """
    podcasts = _select_podcasts(args, config)
    failed = 0

    with FeedFetcher(
        timeout=config.PODCAST_REQUEST_TIMEOUT,
        user_agent=config.USER_AGENT,
    ) as fetcher:
        for podcast in podcasts:
            try:
                podcast.sync(fetcher=fetcher)
            except CacheWriteError as e:
                failed += 1
                print(f"{podcast.name}: {len(podcast.episodes)} episodes fetched, cache not saved: {e}")
                continue
            except PodcastError as e:
                failed += 1
                logger.debug(f"Sync of {podcast.name} failed", exc_info=True)
                print(f"{podcast.name}: Error: {e}")
                continue

            print(f"{podcast.name}: {len(podcast.episodes)} episodes")

    if failed:
        sys.exit(1)


def list_episodes(args, config: Config):
    """Print the cached episode listing of args.podcast."""
    podcast = config.find_podcast(config.load_podcasts(), args.podcast)

    try:
        podcast.load()
    except PodcastError as e:
        if e.kind is ErrorKind.CACHE_UNAVAILABLE:
            print(f"Error: {e} Run: pcd sync {podcast.id}")
        else:
            print(f"Error: {e}")
        sys.exit(1)

    print(podcast, end="")


def download_episode(args, config: Config):
    """
    Download episode number args.episode of args.podcast into the podcast's directory.

    The episode list comes from the cache, so the podcast must have been synced.
    """
    podcast = config.find_podcast(config.load_podcasts(), args.podcast)

    try:
        podcast.load()
        episode = podcast.get_episode(args.episode)
    except (PodcastError, IndexError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    progress = ProgressWriter(total=episode.length)

    with EpisodeDownloader(
        timeout=config.PODCAST_DOWNLOAD_TIMEOUT,
        chunk_size=config.PODCAST_CHUNK_SIZE,
        user_agent=config.USER_AGENT,
    ) as downloader:
        try:
            path = downloader.download(episode, podcast.path, observer=progress)
        except PodcastError as e:
            print(f"\nError: {e}")
            sys.exit(1)

    progress.finish()
    print(f"Downloaded: {path}")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Personal podcast feed synchronizer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        help="Path to .env file",
        default=None,
    )
    parser.add_argument(
        "-l",
        "--log-level",
        help="Set log level (DEBUG, INFO, WARNING, ERROR)",
        default="WARNING",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # sync command
    sync_parser = subparsers.add_parser(
        "sync",
        help="Sync podcast feeds into the local cache",
    )
    sync_parser.add_argument(
        "podcast",
        nargs="?",
        help="Podcast id or name (default: all podcasts)",
    )

    # ls command
    ls_parser = subparsers.add_parser(
        "ls",
        help="List cached episodes of a podcast",
    )
    ls_parser.add_argument("podcast", help="Podcast id or name")

    # download command
    download_parser = subparsers.add_parser(
        "download",
        help="Download an episode",
    )
    download_parser.add_argument("podcast", help="Podcast id or name")
    download_parser.add_argument(
        "episode",
        type=int,
        help="Episode number as shown by 'ls'",
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format=LOG_FORMAT,
    )

    commands = {
        "sync": sync_feeds,
        "ls": list_episodes,
        "download": download_episode,
    }

    try:
        config = Config(env_file=args.env_file)
        commands[args.command](args, config)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
