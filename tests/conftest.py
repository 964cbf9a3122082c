"""
Shared pytest fixtures for knockout tournament tests.

Running tests:
    pytest tests/
"""
import random

import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from knockout.elimination import build_bracket


@pytest.fixture
def four_players():
    return ['P1', 'P2', 'P3', 'P4']


@pytest.fixture
def two_tables():
    return ['T1', 'T2']


@pytest.fixture
def four_player_tournament(four_players, two_tables):
    """Scenario A bracket: P1 vs P2 on T1, P3 vs P4 on T2."""
    return build_bracket(four_players, two_tables)


@pytest.fixture
def rng():
    """Seeded random source so bracket shapes are reproducible."""
    return random.Random(1234)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Empty data directory wired in as the storage default."""
    import storage
    directory = tmp_path / "data"
    directory.mkdir()
    monkeypatch.setattr(storage, 'DATA_DIR', str(directory))
    return str(directory)


@pytest.fixture
def client(data_dir):
    """Flask test client backed by the temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    app.config['TOURNAMENT_DATA_DIR'] = data_dir
    with app.test_client() as client:
        yield client
