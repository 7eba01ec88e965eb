"""
Configuration for pytest to set up the import path and shared fixtures.
"""

import sys
from pathlib import Path
import pytest


# Add the project root to Python path so kvcollection imports without installing
parent_dir = Path(__file__).parent.parent
sys.path.insert(0, str(parent_dir))

# Import after path setup
from kvcollection import Collection, reset_settings


@pytest.fixture(autouse=True)
def clean_settings():
    """Every test starts and ends with default settings."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def people():
    """Fixture providing a small list of records keyed by position."""
    return Collection([
        {"name": "ada", "age": 36, "team": "core"},
        {"name": "bob", "age": 25, "team": "web"},
        {"name": "cyd", "age": 41, "team": "core"},
        {"name": "dee", "age": 25, "team": "ops"},
    ])


@pytest.fixture
def scores():
    """Fixture providing a string-keyed collection."""
    return Collection({"ada": 90, "bob": 72, "cyd": 85})


@pytest.fixture
def call_counter():
    """Fixture providing a counting transform: (fn, calls list)."""
    calls = []

    def track(x):
        calls.append(x)
        return x * 2

    return track, calls
