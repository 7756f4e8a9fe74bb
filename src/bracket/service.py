"""
Bracket service: the operations tournament endpoints call.

Each write operation holds the tournament lock for the whole
load / mutate / replace cycle, so concurrent result submissions and
regeneration never interleave.
"""
import logging
from typing import Callable, Dict, List, Optional

from . import progression
from .double_elimination import get_double_elimination_bracket_display
from .elimination import get_elimination_bracket_display
from .errors import BracketAlreadyHasResults, ConsistencyError, NotFound, UnsupportedFormat
from .models import (
    CANCELLED,
    COMPLETED,
    DOUBLE_ELIMINATION,
    ROUND_ROBIN,
    SINGLE_ELIMINATION,
    SWISS,
    TOURNAMENT_COMPLETED,
    TOURNAMENT_IN_PROGRESS,
    Match,
    StandingsRow,
)
from .progression import Resolution, index_matches, ordered
from .seeding import seed_entries
from .standings import standings
from .store import MatchStore
from .swiss import build_swiss_round, default_swiss_rounds
from .topology import build

logger = logging.getLogger(__name__)


class BracketService:
    def __init__(self, store: MatchStore, rating_hook: Optional[Callable[[str, str, Match], None]] = None):
        self.store = store
        self.rating_hook = rating_hook

    def _find(self, matches: List[Match], match_id: str) -> Match:
        for match in matches:
            if match.match_id == match_id:
                return match
        raise NotFound(f"Match {match_id} not found")

    def _refresh_status(self, tournament, bracket, entry_count: int):
        """Move the tournament to COMPLETED once its deciding match is resolved, or back if undone."""
        matches = list(bracket.values())
        done = all(m.status in (COMPLETED, CANCELLED) for m in matches)
        if tournament.format in (SINGLE_ELIMINATION, DOUBLE_ELIMINATION):
            finished = progression.champion(bracket, tournament.format) is not None
        elif tournament.format == ROUND_ROBIN:
            finished = done
        else:
            cap = tournament.swiss_rounds or default_swiss_rounds(entry_count)
            finished = done and max((m.round for m in matches), default=0) >= cap

        status = TOURNAMENT_COMPLETED if finished else TOURNAMENT_IN_PROGRESS
        if status != tournament.status:
            tournament.status = status
            self.store.save_tournament(tournament)
            logger.info("Tournament %s is now %s", tournament.tournament_id, status)

    def _persist(self, tournament, bracket, entry_count: int):
        self.store.replace_matches(tournament.tournament_id, ordered(bracket))
        self._refresh_status(tournament, bracket, entry_count)

    def generate_bracket(self, tournament_id: str, force: bool = False) -> List[Match]:
        """
        (Re)generate the full match set. A bracket with played matches is only
        replaced when force is set; the replacement is always total.
        """
        with self.store.lock(tournament_id):
            tournament = self.store.get_tournament(tournament_id)
            entries = self.store.get_entries(tournament_id)
            existing = self.store.get_matches(tournament_id)

            played = [m for m in existing if m.status == COMPLETED and not m.is_bye]
            if played and not force:
                raise BracketAlreadyHasResults(
                    f"Tournament {tournament_id} already has {len(played)} completed matches; use force to regenerate")
            if played:
                logger.warning("Force-regenerating %s, discarding %d results", tournament_id, len(played))

            slots = seed_entries(entries, tournament.seeding, tournament.rng_seed)
            matches = build(slots, tournament.format, tournament.max_teams, tournament_id)

            seeded = {slot.entry_id: slot for slot in slots if slot is not None}
            self.store.save_entries(tournament_id, [seeded.get(e.entry_id, e) for e in entries])
            self.store.replace_matches(tournament_id, matches)
            tournament.status = TOURNAMENT_IN_PROGRESS
            self.store.save_tournament(tournament)

        logger.info("Generated %d matches for %s", len(matches), tournament_id)
        return matches

    def submit_result(self, tournament_id: str, match_id: str, home_score=None, away_score=None,
                      winner_id=None, correct: bool = False) -> Resolution:
        """
        Record a result. With correct set, a different winner replaces the
        recorded one after reverting everything it caused downstream.
        """
        ratings = []

        def collect(winner, loser, match):
            ratings.append((winner, loser, match))

        with self.store.lock(tournament_id):
            tournament = self.store.get_tournament(tournament_id)
            matches = self.store.get_matches(tournament_id)
            bracket = index_matches(matches)
            match = self._find(matches, match_id)

            operation = progression.correct if correct else progression.resolve
            try:
                resolution = operation(bracket, match, home_score, away_score, winner_id,
                                       fmt=tournament.format, rating_hook=collect)
            except ConsistencyError as e:
                logger.error("Bracket for %s is inconsistent: %s", tournament_id, e.message)
                raise

            if resolution.changed:
                self._persist(tournament, bracket, len(self.store.get_entries(tournament_id)))

        if self.rating_hook is not None:
            for winner, loser, match in ratings:
                self.rating_hook(winner, loser, match)
        return resolution

    def undo_result(self, tournament_id: str, match_id: str) -> List[Match]:
        with self.store.lock(tournament_id):
            tournament = self.store.get_tournament(tournament_id)
            matches = self.store.get_matches(tournament_id)
            bracket = index_matches(matches)
            match = self._find(matches, match_id)
            try:
                changed = progression.undo(bracket, match, fmt=tournament.format)
            except ConsistencyError as e:
                logger.error("Bracket for %s is inconsistent: %s", tournament_id, e.message)
                raise
            if changed:
                self._persist(tournament, bracket, len(self.store.get_entries(tournament_id)))
        return changed

    def start_match(self, tournament_id: str, match_id: str) -> Match:
        with self.store.lock(tournament_id):
            matches = self.store.get_matches(tournament_id)
            bracket = index_matches(matches)
            match = progression.start(bracket, self._find(matches, match_id))
            self.store.replace_matches(tournament_id, ordered(bracket))
        return match

    def next_swiss_round(self, tournament_id: str) -> List[Match]:
        with self.store.lock(tournament_id):
            tournament = self.store.get_tournament(tournament_id)
            if tournament.format != SWISS:
                raise UnsupportedFormat(f"Tournament {tournament_id} is not a Swiss tournament", code='NOT_SWISS')
            entries = self.store.get_entries(tournament_id)
            matches = self.store.get_matches(tournament_id)
            new_matches = build_swiss_round(entries, matches, tournament_id, tournament.swiss_rounds)
            bracket = index_matches(matches + new_matches)
            self._persist(tournament, bracket, len(entries))
        return new_matches

    def get_standings(self, tournament_id: str) -> List[StandingsRow]:
        tournament = self.store.get_tournament(tournament_id)
        entries = self.store.get_entries(tournament_id)
        matches = self.store.get_matches(tournament_id)
        return standings(entries, matches, count_byes=tournament.format == SWISS)

    def get_champion(self, tournament_id: str) -> Optional[str]:
        tournament = self.store.get_tournament(tournament_id)
        bracket = index_matches(self.store.get_matches(tournament_id))
        return progression.champion(bracket, tournament.format)

    def get_bracket(self, tournament_id: str) -> Dict:
        """Bracket grouped by named rounds for display."""
        tournament = self.store.get_tournament(tournament_id)
        matches = self.store.get_matches(tournament_id)

        if tournament.format == SINGLE_ELIMINATION:
            display = get_elimination_bracket_display(matches)
        elif tournament.format == DOUBLE_ELIMINATION:
            display = get_double_elimination_bracket_display(matches)
        else:
            rounds = {}
            for match in ordered(index_matches(matches)):
                rounds.setdefault(f"Round {match.round}", []).append(match.to_dict())
            display = {'rounds': rounds, 'total_rounds': len(rounds), 'champion': None}

        display['format'] = tournament.format
        display['status'] = tournament.status
        return display
