"""
Unit tests for the match store adapters.
"""
import pytest
import sys
import os
import yaml
from filelock import FileLock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.errors import NotFound, ValidationError
from bracket.models import DOUBLE_ELIMINATION, SINGLE_ELIMINATION, Tournament
from bracket.store import MemoryMatchStore, YamlMatchStore, validate_tournament_id
from bracket.topology import generate
from conftest import make_entries


@pytest.fixture
def yaml_store(tmp_path):
    return YamlMatchStore(str(tmp_path), lock_timeout=1, default_max_teams=64)


class TestTournamentId:
    def test_valid(self):
        assert validate_tournament_id('spring-cup_2024') == 'spring-cup_2024'

    @pytest.mark.parametrize('tournament_id', ['', '../etc', 'a/b', '-cup', 'cup.yaml'])
    def test_invalid(self, tournament_id):
        with pytest.raises(ValidationError) as exc:
            validate_tournament_id(tournament_id)
        assert exc.value.code == 'INVALID_TOURNAMENT_ID'


class TestYamlMatchStore:
    """Tests for the file-backed store."""

    def test_tournament_round_trip(self, yaml_store):
        tournament = Tournament('cup', name='Cup', format=DOUBLE_ELIMINATION, max_teams=16, rng_seed=3)
        yaml_store.save_tournament(tournament)
        loaded = yaml_store.get_tournament('cup')
        assert loaded.to_dict() == tournament.to_dict()

    def test_missing_tournament(self, yaml_store):
        with pytest.raises(NotFound):
            yaml_store.get_tournament('nope')

    def test_default_max_teams(self, yaml_store, tmp_path):
        tournament_dir = tmp_path / 'tournaments' / 'cup'
        tournament_dir.mkdir(parents=True)
        (tournament_dir / 'tournament.yaml').write_text(yaml.dump({'name': 'Cup'}))
        loaded = yaml_store.get_tournament('cup')
        assert loaded.tournament_id == 'cup'
        assert loaded.max_teams == 64
        assert loaded.format == SINGLE_ELIMINATION

    def test_entries_round_trip(self, yaml_store):
        entries = make_entries(3) + make_entries(1, solo=True)
        yaml_store.save_entries('cup', entries)
        assert yaml_store.get_entries('cup') == entries

    def test_missing_files_are_empty(self, yaml_store):
        assert yaml_store.get_entries('cup') == []
        assert yaml_store.get_matches('cup') == []

    def test_replace_matches(self, yaml_store, tmp_path):
        yaml_store.replace_matches('cup', generate(make_entries(8), SINGLE_ELIMINATION, 'cup'))
        smaller = generate(make_entries(4), SINGLE_ELIMINATION, 'cup')
        yaml_store.replace_matches('cup', smaller)
        assert yaml_store.get_matches('cup') == smaller

        with open(tmp_path / 'tournaments' / 'cup' / 'matches.yaml') as f:
            data = yaml.safe_load(f)
        assert [m['match_id'] for m in data['matches']] == ['W1-M1', 'W1-M2', 'W2-M1']

    def test_no_temp_files_left(self, yaml_store, tmp_path):
        yaml_store.replace_matches('cup', generate(make_entries(4), SINGLE_ELIMINATION, 'cup'))
        leftovers = [p for p in os.listdir(tmp_path / 'tournaments' / 'cup') if p.startswith('.tmp-')]
        assert leftovers == []

    def test_lock(self, yaml_store, tmp_path):
        yaml_store.save_tournament(Tournament('cup'))
        lock = yaml_store.lock('cup')
        assert isinstance(lock, FileLock)
        assert yaml_store.lock('cup') is lock
        with lock:
            assert lock.is_locked
        assert not lock.is_locked

    def test_lock_rejects_bad_id(self, yaml_store):
        with pytest.raises(ValidationError):
            yaml_store.lock('../escape')

    def test_lock_unknown_tournament_leaves_nothing(self, yaml_store, tmp_path):
        for i in range(3):
            with pytest.raises(NotFound):
                yaml_store.lock(f'nosuch{i}')
        assert not (tmp_path / 'tournaments').exists()
        assert yaml_store._locks == {}


class TestMemoryMatchStore:
    """Tests for the in-process store."""

    def test_returns_copies(self):
        store = MemoryMatchStore()
        store.replace_matches('cup', generate(make_entries(4), SINGLE_ELIMINATION, 'cup'))
        loaded = store.get_matches('cup')
        loaded[0].winner_id = 't1'
        assert store.get_matches('cup')[0].winner_id is None

    def test_missing_tournament(self):
        with pytest.raises(NotFound):
            MemoryMatchStore().get_tournament('cup')

    def test_lock_is_reentrant(self):
        store = MemoryMatchStore()
        with store.lock('cup'):
            with store.lock('cup'):
                store.save_tournament(Tournament('cup'))
        assert store.get_tournament('cup').name == 'cup'
