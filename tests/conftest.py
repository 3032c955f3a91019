"""
Shared pytest fixtures for tournament engine tests.

Running tests:
    pytest tests/
"""
import pytest
import random
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from league.models import sequential_ids


@pytest.fixture
def rng():
    """Deterministic random source."""
    return random.Random(42)


@pytest.fixture
def ids():
    """Match ids match-1, match-2, ..."""
    return sequential_ids()


@pytest.fixture
def clock():
    """Fixed timestamp source."""
    return lambda: '2026-01-01T12:00:00+00:00'


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the app's records, settings and lock files at a temp directory."""
    import app as app_module

    monkeypatch.setattr(app_module, 'RECORDS_FILE', str(tmp_path / 'tournaments.yaml'))
    monkeypatch.setattr(app_module, 'SETTINGS_FILE', str(tmp_path / 'settings.yaml'))
    monkeypatch.setattr(app_module, 'LOCK_FILE', str(tmp_path / '.lock'))
    return tmp_path


@pytest.fixture
def client(temp_data_dir):
    """Create a test client backed by a temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
