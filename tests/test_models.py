"""
Unit tests for data models.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.errors import BracketError, ConsistencyError, InvalidWinner, StateConflict, ValidationError
from bracket.models import (
    BYE,
    COMPLETED,
    GRAND_FINAL,
    PENDING,
    REGISTRATION,
    SINGLE_ELIMINATION,
    Entry,
    Match,
    Tournament,
)


class TestEntry:
    """Tests for Entry."""

    def test_team_entry(self):
        entry = Entry('e1', team_id='t1', rating=1500)
        assert entry.participant_id == 't1'
        assert entry.seed is None

    def test_solo_entry(self):
        assert Entry('e1', user_id='u1').participant_id == 'u1'

    def test_needs_exactly_one_identity(self):
        with pytest.raises(ValidationError) as exc:
            Entry('e1')
        assert exc.value.code == 'INVALID_ENTRY'
        with pytest.raises(ValidationError):
            Entry('e1', team_id='t1', user_id='u1')

    def test_seed_must_be_positive(self):
        with pytest.raises(ValidationError) as exc:
            Entry('e1', team_id='t1', seed=0)
        assert exc.value.code == 'INVALID_SEED'

    def test_with_seed_copies(self):
        entry = Entry('e1', team_id='t1', rating=1200, name='Alpha')
        seeded = entry.with_seed(3)
        assert seeded.seed == 3
        assert seeded.name == 'Alpha'
        assert entry.seed is None

    def test_dict_round_trip(self):
        entry = Entry('e1', team_id='t1', seed=2, rating=1400, qualifier_points=12, matches_played=5)
        assert Entry.from_dict(entry.to_dict()) == entry


class TestMatch:
    """Tests for Match."""

    def test_defaults(self):
        match = Match('W1-M1', 'cup', 1, 0)
        assert match.status == PENDING
        assert match.key == ('UPPER', 1, 0)
        assert not match.is_ready
        assert not match.is_bye

    def test_ready(self):
        assert Match('W1-M1', 'cup', 1, 0, home_id='a', away_id='b').is_ready

    def test_bye(self):
        match = Match('W1-M1', 'cup', 1, 0, home_id='a', away_id=BYE)
        assert match.is_bye
        assert not match.is_ready
        assert match.participants() == ['a']

    def test_loser(self):
        match = Match('W1-M1', 'cup', 1, 0, home_id='a', away_id='b', winner_id='b', status=COMPLETED)
        assert match.loser_id == 'a'
        assert match.is_completed
        assert not match.is_draw

    def test_draw(self):
        match = Match('R1-M1', 'cup', 1, 0, home_id='a', away_id='b', home_score=1, away_score=1,
                      status=COMPLETED)
        assert match.is_draw
        assert match.loser_id is None

    def test_copy_is_independent(self):
        match = Match('GF', 'cup', 4, 0, GRAND_FINAL)
        clone = match.copy()
        clone.home_id = 'a'
        assert match.home_id is None
        assert clone.bracket_type == GRAND_FINAL


class TestTournament:
    def test_defaults(self):
        tournament = Tournament.from_dict({'tournament_id': 'cup'}, default_max_teams=32)
        assert tournament.name == 'cup'
        assert tournament.format == SINGLE_ELIMINATION
        assert tournament.seeding == 'STANDARD'
        assert tournament.max_teams == 32
        assert tournament.status == REGISTRATION

    def test_round_trip(self):
        tournament = Tournament('cup', name='Cup', format='SWISS', swiss_rounds=5, rng_seed=9)
        assert Tournament.from_dict(tournament.to_dict()).to_dict() == tournament.to_dict()


class TestErrors:
    """Tests for the error taxonomy."""

    def test_status_codes(self):
        assert ValidationError('x').status_code == 400
        assert StateConflict('x').status_code == 409
        assert ConsistencyError('x').status_code == 500

    def test_default_and_custom_codes(self):
        assert InvalidWinner('x').code == 'INVALID_WINNER'
        assert StateConflict('x', code='MATCH_CANCELLED').code == 'MATCH_CANCELLED'

    def test_hierarchy(self):
        assert issubclass(InvalidWinner, ValidationError)
        assert issubclass(ValidationError, BracketError)
        assert str(InvalidWinner('bad winner')) == 'bad winner'
