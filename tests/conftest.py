"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.models import Entry, Tournament
from bracket.store import MemoryMatchStore


def make_entries(count, solo=False):
    """Entries t1..tN with ratings descending, so t1 is the strongest."""
    entries = []
    for i in range(1, count + 1):
        ident = {'user_id': f"u{i}"} if solo else {'team_id': f"t{i}"}
        entries.append(Entry(f"e{i}", rating=2000 - i * 10, name=f"Team {i}", **ident))
    return entries


@pytest.fixture
def entries_factory():
    return make_entries


@pytest.fixture
def memory_store():
    """Factory creating a memory store with one tournament and N entries."""
    def _create(count, fmt='SINGLE_ELIMINATION', seeding='STANDARD', tournament_id='cup', **settings):
        store = MemoryMatchStore()
        store.save_tournament(Tournament(tournament_id, format=fmt, seeding=seeding, **settings))
        store.save_entries(tournament_id, make_entries(count))
        return store
    return _create


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Temporary YAML data directory with a single-elimination tournament of 5 teams."""
    import app as app_module

    tournament_dir = tmp_path / "tournaments" / "spring-cup"
    tournament_dir.mkdir(parents=True)
    (tournament_dir / "tournament.yaml").write_text(yaml.dump({
        'tournament_id': 'spring-cup',
        'name': 'Spring Cup',
        'format': 'SINGLE_ELIMINATION',
        'seeding': 'STANDARD',
        'max_teams': 16,
    }, default_flow_style=False))
    (tournament_dir / "entries.yaml").write_text(yaml.dump({
        'entries': [e.to_dict() for e in make_entries(5)]
    }, default_flow_style=False))

    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    return str(tmp_path)


@pytest.fixture
def client(temp_data_dir):
    """Flask test client bound to the temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
