"""Shared fixtures for dev terminal tests."""

import os
import sys

import pytest

# Add src to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from terminal.config import Config
from terminal.pipeline import DevTerminalPipeline
from terminal.repository import DevTerminalRepository
from terminal.store import InMemoryRecordStore


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def repository(store):
    return DevTerminalRepository(store)


@pytest.fixture
def pipeline(repository):
    return DevTerminalPipeline(repository, config=Config())
