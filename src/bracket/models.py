"""
Data model for the bracket engine: entries, matches, standings rows and
tournament settings.
"""
from typing import Dict, Optional

from .errors import ValidationError

# Tournament formats
SINGLE_ELIMINATION = 'SINGLE_ELIMINATION'
DOUBLE_ELIMINATION = 'DOUBLE_ELIMINATION'
ROUND_ROBIN = 'ROUND_ROBIN'
SWISS = 'SWISS'
FORMATS = (SINGLE_ELIMINATION, DOUBLE_ELIMINATION, ROUND_ROBIN, SWISS)
ELIMINATION_FORMATS = (SINGLE_ELIMINATION, DOUBLE_ELIMINATION)
POINTS_FORMATS = (ROUND_ROBIN, SWISS)

# Bracket types
UPPER = 'UPPER'
LOWER = 'LOWER'
GRAND_FINAL = 'GRAND_FINAL'

# Match status
PENDING = 'PENDING'
IN_PROGRESS = 'IN_PROGRESS'
COMPLETED = 'COMPLETED'
CANCELLED = 'CANCELLED'

# Tournament status
REGISTRATION = 'REGISTRATION'
TOURNAMENT_IN_PROGRESS = 'IN_PROGRESS'
TOURNAMENT_COMPLETED = 'COMPLETED'

# Slot value for a side that will never be filled
BYE = 'BYE'


class Entry:
    """A registered participant, either a team or a solo player."""

    def __init__(self, entry_id, team_id=None, user_id=None, seed=None, rating=0,
                 qualifier_points=0, matches_played=0, name=None):
        if bool(team_id) == bool(user_id):
            raise ValidationError(
                f"Entry {entry_id} must reference exactly one of team_id or user_id",
                code='INVALID_ENTRY')
        if seed is not None and seed < 1:
            raise ValidationError(f"Entry {entry_id} has non-positive seed {seed}", code='INVALID_SEED')
        self.entry_id = entry_id
        self.team_id = team_id
        self.user_id = user_id
        self.seed = seed
        self.rating = rating
        self.qualifier_points = qualifier_points
        self.matches_played = matches_played
        self.name = name

    @property
    def participant_id(self) -> str:
        return self.team_id or self.user_id

    def with_seed(self, seed: int) -> 'Entry':
        """Return a copy of this entry carrying a new seed."""
        return Entry(self.entry_id, team_id=self.team_id, user_id=self.user_id, seed=seed,
                     rating=self.rating, qualifier_points=self.qualifier_points,
                     matches_played=self.matches_played, name=self.name)

    def to_dict(self) -> Dict:
        return {
            'entry_id': self.entry_id,
            'team_id': self.team_id,
            'user_id': self.user_id,
            'seed': self.seed,
            'rating': self.rating,
            'qualifier_points': self.qualifier_points,
            'matches_played': self.matches_played,
            'name': self.name,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Entry':
        return cls(
            data['entry_id'],
            team_id=data.get('team_id'),
            user_id=data.get('user_id'),
            seed=data.get('seed'),
            rating=data.get('rating', 0) or 0,
            qualifier_points=data.get('qualifier_points', 0) or 0,
            matches_played=data.get('matches_played', 0) or 0,
            name=data.get('name'),
        )

    def __eq__(self, other):
        return isinstance(other, Entry) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Entry(id={self.participant_id}, seed={self.seed}, rating={self.rating})"


class Match:
    """A single match node, addressed by (bracket_type, round, position)."""

    def __init__(self, match_id, tournament_id, round, position, bracket_type=UPPER,
                 home_id=None, away_id=None, home_score=None, away_score=None,
                 winner_id=None, status=PENDING):
        self.match_id = match_id
        self.tournament_id = tournament_id
        self.round = round
        self.position = position
        self.bracket_type = bracket_type
        self.home_id = home_id
        self.away_id = away_id
        self.home_score = home_score
        self.away_score = away_score
        self.winner_id = winner_id
        self.status = status

    @property
    def key(self):
        return (self.bracket_type, self.round, self.position)

    @property
    def is_bye(self) -> bool:
        return self.home_id == BYE or self.away_id == BYE

    @property
    def is_ready(self) -> bool:
        """Both slots hold real participants."""
        return self.home_id not in (None, BYE) and self.away_id not in (None, BYE)

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @property
    def is_draw(self) -> bool:
        return self.status == COMPLETED and self.winner_id is None and self.is_ready

    @property
    def loser_id(self) -> Optional[str]:
        if self.status != COMPLETED or self.winner_id is None:
            return None
        if self.winner_id == self.home_id:
            return self.away_id
        return self.home_id

    def participants(self):
        return [p for p in (self.home_id, self.away_id) if p not in (None, BYE)]

    def copy(self) -> 'Match':
        return Match.from_dict(self.to_dict())

    def to_dict(self) -> Dict:
        return {
            'match_id': self.match_id,
            'tournament_id': self.tournament_id,
            'round': self.round,
            'position': self.position,
            'bracket_type': self.bracket_type,
            'home_id': self.home_id,
            'away_id': self.away_id,
            'home_score': self.home_score,
            'away_score': self.away_score,
            'winner_id': self.winner_id,
            'status': self.status,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        return cls(
            data['match_id'],
            data['tournament_id'],
            data['round'],
            data['position'],
            bracket_type=data.get('bracket_type', UPPER),
            home_id=data.get('home_id'),
            away_id=data.get('away_id'),
            home_score=data.get('home_score'),
            away_score=data.get('away_score'),
            winner_id=data.get('winner_id'),
            status=data.get('status', PENDING),
        )

    def __eq__(self, other):
        return isinstance(other, Match) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"Match({self.match_id}, {self.home_id} vs {self.away_id}, "
                f"status={self.status}, winner={self.winner_id})")


class StandingsRow:
    def __init__(self, participant_id, seed=None, played=0, wins=0, draws=0, losses=0, points=0):
        self.participant_id = participant_id
        self.seed = seed
        self.played = played
        self.wins = wins
        self.draws = draws
        self.losses = losses
        self.points = points

    def to_dict(self) -> Dict:
        return {
            'participant_id': self.participant_id,
            'seed': self.seed,
            'played': self.played,
            'wins': self.wins,
            'draws': self.draws,
            'losses': self.losses,
            'points': self.points,
        }

    def __repr__(self):
        return (f"StandingsRow({self.participant_id}, P={self.played} W={self.wins} "
                f"D={self.draws} L={self.losses} Pts={self.points})")


class Tournament:
    """Tournament settings relevant to bracket generation."""

    def __init__(self, tournament_id, name=None, format=SINGLE_ELIMINATION, seeding='STANDARD',
                 max_teams=128, swiss_rounds=None, rng_seed=None, status=REGISTRATION):
        self.tournament_id = tournament_id
        self.name = name or tournament_id
        self.format = format
        self.seeding = seeding
        self.max_teams = max_teams
        self.swiss_rounds = swiss_rounds
        self.rng_seed = rng_seed
        self.status = status

    def to_dict(self) -> Dict:
        return {
            'tournament_id': self.tournament_id,
            'name': self.name,
            'format': self.format,
            'seeding': self.seeding,
            'max_teams': self.max_teams,
            'swiss_rounds': self.swiss_rounds,
            'rng_seed': self.rng_seed,
            'status': self.status,
        }

    @classmethod
    def from_dict(cls, data: Dict, default_max_teams: int = 128) -> 'Tournament':
        return cls(
            data['tournament_id'],
            name=data.get('name'),
            format=data.get('format', SINGLE_ELIMINATION),
            seeding=data.get('seeding', 'STANDARD'),
            max_teams=data.get('max_teams') or default_max_teams,
            swiss_rounds=data.get('swiss_rounds'),
            rng_seed=data.get('rng_seed'),
            status=data.get('status', REGISTRATION),
        )

    def __repr__(self):
        return f"Tournament(id={self.tournament_id}, format={self.format}, status={self.status})"
