"""
Match store adapters. The engine only needs to fetch all matches for a
tournament and replace them in one step; locking serialises
read-modify-write cycles per tournament.
"""
import logging
import os
import re
import tempfile
import threading
from contextlib import contextmanager
from typing import Dict, List

import yaml
from filelock import FileLock

from .errors import NotFound, ValidationError
from .models import Entry, Match, Tournament

logger = logging.getLogger(__name__)

_TOURNAMENT_ID_RE = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_-]*$')


def validate_tournament_id(tournament_id: str) -> str:
    if not tournament_id or not _TOURNAMENT_ID_RE.match(tournament_id):
        raise ValidationError(f"Invalid tournament id: {tournament_id!r}", code='INVALID_TOURNAMENT_ID')
    return tournament_id


class MatchStore:
    """Interface every store implements."""

    def get_tournament(self, tournament_id: str) -> Tournament:
        raise NotImplementedError

    def save_tournament(self, tournament: Tournament):
        raise NotImplementedError

    def get_entries(self, tournament_id: str) -> List[Entry]:
        raise NotImplementedError

    def save_entries(self, tournament_id: str, entries: List[Entry]):
        raise NotImplementedError

    def get_matches(self, tournament_id: str) -> List[Match]:
        raise NotImplementedError

    def replace_matches(self, tournament_id: str, matches: List[Match]):
        """Swap the whole match set of a tournament in a single step."""
        raise NotImplementedError

    def lock(self, tournament_id: str):
        """Context manager giving exclusive access to one tournament."""
        raise NotImplementedError


class MemoryMatchStore(MatchStore):
    """In-process store, mainly for tests and embedding."""

    def __init__(self):
        self._tournaments: Dict[str, Dict] = {}
        self._entries: Dict[str, List[Dict]] = {}
        self._matches: Dict[str, List[Dict]] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def get_tournament(self, tournament_id):
        if tournament_id not in self._tournaments:
            raise NotFound(f"Tournament {tournament_id} not found")
        return Tournament.from_dict(self._tournaments[tournament_id])

    def save_tournament(self, tournament):
        self._tournaments[tournament.tournament_id] = tournament.to_dict()

    def get_entries(self, tournament_id):
        return [Entry.from_dict(e) for e in self._entries.get(tournament_id, [])]

    def save_entries(self, tournament_id, entries):
        self._entries[tournament_id] = [e.to_dict() for e in entries]

    def get_matches(self, tournament_id):
        return [Match.from_dict(m) for m in self._matches.get(tournament_id, [])]

    def replace_matches(self, tournament_id, matches):
        self._matches[tournament_id] = [m.to_dict() for m in matches]

    @contextmanager
    def lock(self, tournament_id):
        with self._guard:
            lock = self._locks.setdefault(tournament_id, threading.RLock())
        with lock:
            yield


class YamlMatchStore(MatchStore):
    """
    File-backed store: one directory per tournament holding
    tournament.yaml, entries.yaml and matches.yaml, guarded by a FileLock.
    """

    def __init__(self, data_dir: str, lock_timeout: float = 10, default_max_teams: int = 128):
        self.data_dir = data_dir
        self.lock_timeout = lock_timeout
        self.default_max_teams = default_max_teams
        self._locks: Dict[str, FileLock] = {}
        self._guard = threading.Lock()

    def _tournament_dir(self, tournament_id: str) -> str:
        return os.path.join(self.data_dir, 'tournaments', validate_tournament_id(tournament_id))

    def _file_path(self, tournament_id: str, filename: str) -> str:
        return os.path.join(self._tournament_dir(tournament_id), filename)

    def _load(self, path: str, default):
        if not os.path.exists(path):
            return default
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return data if data else default

    def _dump(self, path: str, data):
        """Write YAML through a temp file and rename so readers never see a partial file."""
        directory = os.path.dirname(path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.tmp-', suffix='.yaml')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False)
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get_tournament(self, tournament_id):
        data = self._load(self._file_path(tournament_id, 'tournament.yaml'), None)
        if data is None:
            raise NotFound(f"Tournament {tournament_id} not found")
        data.setdefault('tournament_id', tournament_id)
        return Tournament.from_dict(data, default_max_teams=self.default_max_teams)

    def save_tournament(self, tournament):
        self._dump(self._file_path(tournament.tournament_id, 'tournament.yaml'), tournament.to_dict())

    def get_entries(self, tournament_id):
        data = self._load(self._file_path(tournament_id, 'entries.yaml'), {})
        return [Entry.from_dict(e) for e in data.get('entries', [])]

    def save_entries(self, tournament_id, entries):
        self._dump(self._file_path(tournament_id, 'entries.yaml'), {'entries': [e.to_dict() for e in entries]})

    def get_matches(self, tournament_id):
        data = self._load(self._file_path(tournament_id, 'matches.yaml'), {})
        return [Match.from_dict(m) for m in data.get('matches', [])]

    def replace_matches(self, tournament_id, matches):
        self._dump(self._file_path(tournament_id, 'matches.yaml'), {'matches': [m.to_dict() for m in matches]})
        logger.debug("Stored %d matches for %s", len(matches), tournament_id)

    def lock(self, tournament_id):
        """Lock file beside tournament.yaml; unknown tournaments get no directory or lock."""
        lock_path = self._file_path(tournament_id, '.lock')
        with self._guard:
            if tournament_id not in self._locks:
                if not os.path.exists(self._file_path(tournament_id, 'tournament.yaml')):
                    raise NotFound(f"Tournament {tournament_id} not found")
                self._locks[tournament_id] = FileLock(lock_path, timeout=self.lock_timeout)
            return self._locks[tournament_id]
