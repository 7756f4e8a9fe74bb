"""
Swiss system pairing.

Round 1 is generated with the bracket (top half vs bottom half by seed).
Later rounds are generated on demand from the accumulated standings.
"""
import logging
import math
from typing import List, Optional

from .elimination import match_code
from .errors import NoPairingAvailable, RoundNotComplete, SwissRoundsExhausted
from .models import BYE, CANCELLED, COMPLETED, UPPER, Entry, Match
from .standings import standings

logger = logging.getLogger(__name__)


def default_swiss_rounds(num_entries: int) -> int:
    """Enough rounds to separate a single undefeated entry."""
    if num_entries < 2:
        return 0
    return math.ceil(math.log2(num_entries))


def _bye_match(entry_id: str, round_num: int, position: int, tournament_id: str) -> Match:
    return Match(match_code('R', round_num, position), tournament_id, round_num, position, UPPER,
                 home_id=entry_id, away_id=BYE, winner_id=entry_id, status=COMPLETED)


def _round_matches(pairs, bye_id, round_num: int, tournament_id: str) -> List[Match]:
    matches = []
    for position, (home, away) in enumerate(pairs):
        matches.append(Match(match_code('R', round_num, position), tournament_id, round_num, position,
                             UPPER, home_id=home, away_id=away))
    if bye_id is not None:
        matches.append(_bye_match(bye_id, round_num, len(matches), tournament_id))
    return matches


def generate_swiss_first_round(entries: List[Entry], tournament_id: str) -> List[Match]:
    """
    Pair the top half of the seed list against the bottom half
    (1 vs N/2+1, 2 vs N/2+2, ...). With an odd field the lowest seed gets the bye.
    """
    ordered = sorted(entries, key=lambda e: e.seed)
    bye_id = None
    if len(ordered) % 2 == 1:
        bye_id = ordered.pop().participant_id

    half = len(ordered) // 2
    top, bottom = ordered[:half], ordered[half:]
    pairs = [(t.participant_id, b.participant_id) for t, b in zip(top, bottom)]
    return _round_matches(pairs, bye_id, 1, tournament_id)


def _pair(players: List[str], played_pairs: set) -> Optional[List[str]]:
    """Backtracking pairing of a ranked list; each player takes the closest unplayed opponent."""
    if not players:
        return []
    first = players[0]
    rest = players[1:]
    for i, opponent in enumerate(rest):
        if frozenset((first, opponent)) in played_pairs:
            continue
        sub = _pair(rest[:i] + rest[i + 1:], played_pairs)
        if sub is not None:
            return [first, opponent] + sub
    return None


def build_swiss_round(entries: List[Entry], matches: List[Match], tournament_id: str,
                      max_rounds: Optional[int] = None) -> List[Match]:
    """
    Generate the next Swiss round from the current standings.

    Entries are ranked by accumulated score and each is paired with the
    closest-ranked entry it has not yet played. An odd field gives the bye to
    the lowest-ranked entry that has not had one and still leaves a
    rematch-free pairing for everyone else.
    """
    if not matches:
        return generate_swiss_first_round(entries, tournament_id)

    current_round = max(m.round for m in matches)
    unfinished = [m.match_id for m in matches
                  if m.round == current_round and m.status not in (COMPLETED, CANCELLED)]
    if unfinished:
        raise RoundNotComplete(f"Round {current_round} still has open matches: {', '.join(unfinished)}")

    if max_rounds is None:
        max_rounds = default_swiss_rounds(len(entries))
    if current_round >= max_rounds:
        raise SwissRoundsExhausted(f"All {max_rounds} Swiss rounds have been generated")

    ranked = [row.participant_id for row in standings(entries, matches, count_byes=True)]
    played_pairs = {frozenset((m.home_id, m.away_id)) for m in matches if m.is_ready}
    had_bye = {m.winner_id for m in matches if m.is_bye and m.winner_id}

    bye_id = None
    paired = None
    if len(ranked) % 2 == 1:
        # Lowest-ranked first, entries that already had a bye last
        candidates = ([p for p in reversed(ranked) if p not in had_bye] +
                      [p for p in reversed(ranked) if p in had_bye])
        for candidate in candidates:
            paired = _pair([p for p in ranked if p != candidate], played_pairs)
            if paired is not None:
                bye_id = candidate
                break
    else:
        paired = _pair(ranked, played_pairs)

    if paired is None:
        raise NoPairingAvailable(f"No rematch-free pairing exists for round {current_round + 1}")

    pairs = [(paired[i], paired[i + 1]) for i in range(0, len(paired), 2)]
    logger.info("Swiss round %d for %s: %d pairings, bye=%s",
                current_round + 1, tournament_id, len(pairs), bye_id)
    return _round_matches(pairs, bye_id, current_round + 1, tournament_id)
