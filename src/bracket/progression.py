"""
Progression engine: resolves completed matches and advances winners (and,
in double elimination, losers) into their addressed slots.

Matches are addressed by (bracket_type, round, position); every lookup is an
index computation on that key, never a stored link between matches.
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .double_elimination import double_loser_target, double_winner_target
from .elimination import HOME, single_winner_target
from .errors import (
    AlreadyResolved,
    AmbiguousResult,
    ConsistencyError,
    InvalidWinner,
    MatchNotReady,
    StateConflict,
)
from .models import (
    BYE,
    CANCELLED,
    COMPLETED,
    DOUBLE_ELIMINATION,
    GRAND_FINAL,
    IN_PROGRESS,
    LOWER,
    PENDING,
    POINTS_FORMATS,
    SINGLE_ELIMINATION,
    UPPER,
    Match,
)

logger = logging.getLogger(__name__)

WINNER = 'winner'
LOSER = 'loser'

_BRACKET_ORDER = {UPPER: 0, LOWER: 1, GRAND_FINAL: 2}

RatingHook = Callable[[str, str, Match], None]


class Resolution:
    """A resolved match plus every match whose slots or status changed."""

    def __init__(self, match: Match, changed: List[Match]):
        self.match = match
        self.changed = changed

    def to_dict(self) -> Dict:
        return {
            'match': self.match.to_dict(),
            'changed': [m.to_dict() for m in self.changed],
        }

    def __repr__(self):
        return f"Resolution({self.match.match_id}, changed={[m.match_id for m in self.changed]})"


def index_matches(matches: Iterable[Match]) -> Dict[Tuple, Match]:
    """Index matches by their (bracket_type, round, position) address."""
    bracket = {}
    for match in matches:
        if match.key in bracket:
            raise ConsistencyError(f"Duplicate match address {match.key}")
        bracket[match.key] = match
    return bracket


def ordered(bracket: Dict[Tuple, Match]) -> List[Match]:
    return sorted(bracket.values(), key=lambda m: (_BRACKET_ORDER.get(m.bracket_type, 3), m.round, m.position))


def _round_counts(bracket: Dict[Tuple, Match]) -> Tuple[int, int]:
    upper_rounds = max((m.round for m in bracket.values() if m.bracket_type == UPPER), default=0)
    lower_rounds = max((m.round for m in bracket.values() if m.bracket_type == LOWER), default=0)
    return upper_rounds, lower_rounds


def targets(bracket: Dict[Tuple, Match], match: Match, fmt: str) -> List[Tuple[str, Tuple, str]]:
    """Slots fed by a match as (role, address, side) triples."""
    upper_rounds, lower_rounds = _round_counts(bracket)
    found = []
    if fmt == SINGLE_ELIMINATION:
        found.append((WINNER, single_winner_target(match, upper_rounds)))
    elif fmt == DOUBLE_ELIMINATION:
        found.append((WINNER, double_winner_target(match, upper_rounds, lower_rounds)))
        found.append((LOSER, double_loser_target(match, upper_rounds, lower_rounds)))
    return [(role, target[0], target[1]) for role, target in found if target is not None]


def _mark(changed: List[Match], match: Match):
    if not any(m is match for m in changed):
        changed.append(match)


def _slot_attr(side: str) -> str:
    return 'home_id' if side == HOME else 'away_id'


def _lookup(bracket: Dict[Tuple, Match], key: Tuple, source: Match) -> Match:
    target = bracket.get(key)
    if target is None:
        raise ConsistencyError(f"Match {source.match_id} advances into missing slot {key}")
    return target


def _outgoing(match: Match, role: str) -> Optional[str]:
    """Participant a completed match sends along a route."""
    if match.is_bye:
        return (match.winner_id or BYE) if role == WINNER else BYE
    if match.winner_id is None:
        return None
    return match.winner_id if role == WINNER else match.loser_id


def _place(bracket, key, side, participant, source, fmt, changed):
    target = _lookup(bracket, key, source)
    attr = _slot_attr(side)
    current = getattr(target, attr)
    if current == participant:
        return
    if current is not None:
        raise ConsistencyError(
            f"Slot {side} of {target.match_id} already holds {current}, cannot place {participant}")
    setattr(target, attr, participant)
    _mark(changed, target)
    logger.debug("Placed %s into %s slot of %s", participant, side, target.match_id)
    _settle(bracket, target, fmt, changed)


def _settle(bracket, match, fmt, changed):
    """Auto-complete a match whose both slots are known and one is a bye."""
    if match.status == COMPLETED or match.home_id is None or match.away_id is None:
        return
    if not match.is_bye:
        return
    real = match.participants()
    match.status = COMPLETED
    match.winner_id = real[0] if real else None
    _mark(changed, match)
    logger.debug("Auto-completed bye match %s (winner=%s)", match.match_id, match.winner_id)
    _advance(bracket, match, fmt, changed)


def _advance(bracket, match, fmt, changed):
    for role, key, side in targets(bracket, match, fmt):
        participant = _outgoing(match, role)
        if participant is None:
            continue
        _place(bracket, key, side, participant, match, fmt, changed)


def propagate_byes(bracket: Dict[Tuple, Match], fmt: str) -> List[Match]:
    """Advance the winners of every completed bye match as if it had been played."""
    changed = []
    for match in ordered(bracket):
        if match.status == COMPLETED and match.is_bye:
            _advance(bracket, match, fmt, changed)
    return changed


def determine_winner(match: Match, home_score=None, away_score=None, winner_id=None, fmt=SINGLE_ELIMINATION):
    """
    Winner of a result submission, or None for a draw.

    An explicit winner must occupy one of the slots. Otherwise the higher
    score wins; a tie is a draw for points formats and ambiguous elsewhere.
    """
    if winner_id is not None:
        if winner_id == BYE or winner_id not in (match.home_id, match.away_id):
            raise InvalidWinner(f"{winner_id} is not a participant of match {match.match_id}")
        return winner_id

    if home_score is None or away_score is None:
        raise AmbiguousResult(f"Match {match.match_id} needs both scores or an explicit winner")
    if home_score > away_score:
        return match.home_id
    if away_score > home_score:
        return match.away_id
    if fmt in POINTS_FORMATS and match.bracket_type == UPPER:
        return None
    raise AmbiguousResult(f"Tied score {home_score}-{away_score} in match {match.match_id} needs an explicit winner")


def _check_resolvable(bracket, match):
    current = _lookup(bracket, match.key, match)
    if current.status == CANCELLED:
        raise StateConflict(f"Match {current.match_id} is cancelled", code='MATCH_CANCELLED')
    if current.status != COMPLETED and not current.is_ready:
        raise MatchNotReady(f"Match {current.match_id} does not have both participants yet")
    return current


def resolve(bracket: Dict[Tuple, Match], match: Match, home_score=None, away_score=None, winner_id=None,
            fmt: str = SINGLE_ELIMINATION, rating_hook: Optional[RatingHook] = None) -> Resolution:
    """
    Record a match result and advance its participants.

    Resolving an already completed match with the same winner returns it
    unchanged; a different winner raises AlreadyResolved and must go through
    correct(). Validation happens before any mutation.
    """
    match = _check_resolvable(bracket, match)
    winner = determine_winner(match, home_score, away_score, winner_id, fmt)

    if match.status == COMPLETED:
        if match.winner_id == winner:
            logger.info("Match %s already resolved with winner %s", match.match_id, winner)
            return Resolution(match, [])
        raise AlreadyResolved(
            f"Match {match.match_id} already resolved with winner {match.winner_id}, not {winner}")

    match.home_score = home_score
    match.away_score = away_score
    match.winner_id = winner
    match.status = COMPLETED
    changed = [match]
    _advance(bracket, match, fmt, changed)

    if winner is not None and rating_hook is not None:
        rating_hook(winner, match.loser_id, match)

    logger.info("Resolved %s: winner=%s (%d matches changed)", match.match_id, winner, len(changed))
    return Resolution(match, changed)


def _undo(bracket, match, fmt, changed):
    for role, key, side in targets(bracket, match, fmt):
        participant = _outgoing(match, role)
        if participant is None:
            continue
        target = _lookup(bracket, key, match)
        attr = _slot_attr(side)
        current = getattr(target, attr)
        if current is None:
            continue
        if current != participant:
            raise ConsistencyError(
                f"Slot {side} of {target.match_id} holds {current}, expected {participant} from {match.match_id}")
        if target.status == COMPLETED:
            _undo(bracket, target, fmt, changed)
        setattr(target, attr, None)
        if target.status == IN_PROGRESS:
            target.status = PENDING
        _mark(changed, target)

    match.home_score = None
    match.away_score = None
    match.winner_id = None
    match.status = PENDING
    _mark(changed, match)
    logger.debug("Reverted %s", match.match_id)


def undo(bracket: Dict[Tuple, Match], match: Match, fmt: str = SINGLE_ELIMINATION) -> List[Match]:
    """
    Reverse a match result and every advancement that followed from it.

    Downstream matches that were already completed are reverted first,
    recursively, before their slots are cleared.
    """
    match = _lookup(bracket, match.key, match)
    if match.status != COMPLETED:
        return []
    if match.is_bye:
        raise StateConflict(f"Match {match.match_id} is a bye and cannot be reverted", code='BYE_MATCH')
    changed = []
    _undo(bracket, match, fmt, changed)
    logger.info("Undid %s (%d matches changed)", match.match_id, len(changed))
    return changed


def correct(bracket: Dict[Tuple, Match], match: Match, home_score=None, away_score=None, winner_id=None,
            fmt: str = SINGLE_ELIMINATION, rating_hook: Optional[RatingHook] = None) -> Resolution:
    """Replace a recorded result: undo the old advancement, then resolve again."""
    match = _check_resolvable(bracket, match)
    winner = determine_winner(match, home_score, away_score, winner_id, fmt)
    if match.status != COMPLETED:
        return resolve(bracket, match, home_score, away_score, winner_id, fmt, rating_hook)
    if match.winner_id == winner:
        return Resolution(match, [])

    changed = undo(bracket, match, fmt)
    resolution = resolve(bracket, match, home_score, away_score, winner_id, fmt, rating_hook)
    for m in resolution.changed:
        _mark(changed, m)
    return Resolution(resolution.match, changed)


def start(bracket: Dict[Tuple, Match], match: Match) -> Match:
    """Mark a ready match as in progress."""
    match = _lookup(bracket, match.key, match)
    if match.status == IN_PROGRESS:
        return match
    if match.status != PENDING:
        raise StateConflict(f"Match {match.match_id} is {match.status}", code='MATCH_NOT_PENDING')
    if not match.is_ready:
        raise MatchNotReady(f"Match {match.match_id} does not have both participants yet")
    match.status = IN_PROGRESS
    return match


def champion(bracket: Dict[Tuple, Match], fmt: str) -> Optional[str]:
    """Winner of the deciding match, or None while undecided or for points formats."""
    if fmt == SINGLE_ELIMINATION:
        upper = [m for m in bracket.values() if m.bracket_type == UPPER]
        if not upper:
            return None
        final = max(upper, key=lambda m: m.round)
        return final.winner_id if final.status == COMPLETED else None
    if fmt == DOUBLE_ELIMINATION:
        final = next((m for m in bracket.values() if m.bracket_type == GRAND_FINAL), None)
        return final.winner_id if final is not None and final.status == COMPLETED else None
    return None
