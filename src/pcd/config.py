import os
from typing import List

import yaml
from dotenv import load_dotenv

from . import __version__
from .podcast.feed_sync import Podcast

_REQUIRED_PODCAST_KEYS = ("id", "name", "feed", "path")


class Config:
    def __init__(self, env_file=None):
        """
        Initialize configuration by loading environment variables and setting default attributes.

        Loads environment variables from the provided .env file path when `env_file` is given; otherwise loads from the default environment. Sets the podcast list location, transport timeouts, download chunk size and user agent.
        Parameters:
            env_file (str | None): Optional path to a .env file to load environment variables from.
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        # YAML file listing the configured podcasts
        self.PODCASTS_FILE = os.path.expanduser(
            os.getenv("PCD_PODCASTS_FILE", "~/.config/pcd.yml")
        )

        # Transport configuration (seconds)
        self.PODCAST_REQUEST_TIMEOUT = self._positive_int("PCD_REQUEST_TIMEOUT", "30")
        self.PODCAST_DOWNLOAD_TIMEOUT = self._positive_int("PCD_DOWNLOAD_TIMEOUT", "300")

        self.PODCAST_CHUNK_SIZE = self._positive_int("PCD_CHUNK_SIZE", "8192")
        self.USER_AGENT = os.getenv("PCD_USER_AGENT", f"pcd/{__version__}")

    @staticmethod
    def _positive_int(name, default):
        '''Read an environment variable that must be a positive integer.'''
        raw = os.getenv(name, default)
        try:
            value = int(raw)
        except ValueError:
            raise ValueError(f"{name} must be an integer, got: {raw}") from None
        if value <= 0:
            raise ValueError(f"{name} must be positive, got: {value}")
        return value

    def load_podcasts(self) -> List[Podcast]:
        """
        Read the configured podcasts from PODCASTS_FILE.

        Returns:
            List[Podcast]: Podcasts in file order, with empty episode lists.

        Raises:
            ValueError: If the file is missing or malformed.
        """
        if not os.path.isfile(self.PODCASTS_FILE):
            raise ValueError(f"Podcast configuration not found: {self.PODCASTS_FILE}")

        with open(self.PODCASTS_FILE, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid podcast configuration {self.PODCASTS_FILE}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("podcasts"), list):
            raise ValueError(f"{self.PODCASTS_FILE} must contain a 'podcasts' list")

        return [self._build_podcast(index, entry) for index, entry in enumerate(data["podcasts"])]

    def _build_podcast(self, index, entry) -> Podcast:
        '''Create a Podcast from one entry of the podcast list.'''
        if not isinstance(entry, dict):
            raise ValueError(f"Podcast entry {index} must be a mapping")

        missing = [key for key in _REQUIRED_PODCAST_KEYS if entry.get(key) in (None, "")]
        if missing:
            raise ValueError(f"Podcast entry {index} is missing: {', '.join(missing)}")

        try:
            podcast_id = int(entry["id"])
        except (TypeError, ValueError):
            raise ValueError(f"Podcast entry {index} has a non-numeric id: {entry['id']}") from None

        return Podcast(
            id=podcast_id,
            name=str(entry["name"]),
            feed=str(entry["feed"]),
            path=os.path.expanduser(str(entry["path"])),
            username=str(entry.get("username") or ""),
            password=str(entry.get("password") or ""),
        )

    @staticmethod
    def find_podcast(podcasts, key) -> Podcast:
        """
        Select a podcast by numeric id or case-insensitive name.

        Raises:
            ValueError: If no podcast matches.
        """
        key = str(key).strip()
        for podcast in podcasts:
            if key.isdigit() and podcast.id == int(key):
                return podcast
        for podcast in podcasts:
            if podcast.name.lower() == key.lower():
                return podcast
        raise ValueError(f"Podcast not found: {key}")
