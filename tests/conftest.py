"""
Pytest configuration and fixtures for pcd tests.

Environment variables read by pcd.config are cleared so tests behave the
same regardless of the caller's shell or .env file.
"""

import os
from datetime import datetime, timezone

import pytest

from pcd.podcast.models import Episode

for _name in list(os.environ):
    if _name.startswith("PCD_"):
        del os.environ[_name]


@pytest.fixture
def episodes():
    """A small ordered list of episodes."""
    return [
        Episode(
            title="Episode 1: Introduction",
            date=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
            url="https://example.com/ep1.mp3",
            length=54000000,
        ),
        Episode(
            title="Episode 2: Deep Dive",
            date=datetime(2024, 1, 8, 12, 0, tzinfo=timezone.utc),
            url="https://example.com/ep2.mp3",
            length=27000000,
        ),
    ]
