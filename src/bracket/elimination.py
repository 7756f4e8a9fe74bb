"""
Single elimination bracket generation and slot routing.
"""
import math
from typing import Dict, List, Optional, Tuple

from .models import BYE, COMPLETED, UPPER, Match

HOME = 'home'
AWAY = 'away'


def get_round_name(teams_in_round: int, total_teams: int) -> str:
    """Get the name of a round based on number of teams."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def match_code(prefix: str, round_num: int, position: int) -> str:
    """Human-facing match id, e.g. W1-M1 for the first upper-bracket match."""
    return f"{prefix}{round_num}-M{position + 1}"


def calculate_upper_rounds(bracket_size: int) -> int:
    if bracket_size < 2:
        return 0
    return int(math.log2(bracket_size))


def halving_slot(round_num: int, position: int) -> Tuple[int, int, str]:
    """(round, position, side) a winner moves to under the halving rule."""
    return round_num + 1, position // 2, HOME if position % 2 == 0 else AWAY


def generate_upper_bracket(slots: List, tournament_id: str, prefix: str = 'W') -> List[Match]:
    """
    Build the upper (winners) bracket skeleton.

    Round 1 pairs consecutive slots; a pair with one empty slot becomes a
    completed bye match won by the real entry. Later rounds start empty and
    are filled by progression.
    """
    bracket_size = len(slots)
    total_rounds = calculate_upper_rounds(bracket_size)
    matches = []

    for position in range(bracket_size // 2):
        home = slots[position * 2]
        away = slots[position * 2 + 1]
        match = Match(
            match_code(prefix, 1, position), tournament_id, 1, position, UPPER,
            home_id=home.participant_id if home else BYE,
            away_id=away.participant_id if away else BYE,
        )
        if match.is_bye:
            match.status = COMPLETED
            real = match.participants()
            match.winner_id = real[0] if real else None
        matches.append(match)

    matches_in_round = bracket_size // 4
    for round_num in range(2, total_rounds + 1):
        for position in range(matches_in_round):
            matches.append(Match(match_code(prefix, round_num, position), tournament_id,
                                 round_num, position, UPPER))
        matches_in_round //= 2

    return matches


def single_winner_target(match: Match, upper_rounds: int) -> Optional[Tuple[Tuple, str]]:
    """Slot the winner of a single elimination match advances to, or None for the final."""
    if match.round >= upper_rounds:
        return None
    round_num, position, side = halving_slot(match.round, match.position)
    return (UPPER, round_num, position), side


def get_elimination_bracket_display(matches: List[Match]) -> Dict:
    """
    Get bracket data formatted for UI display.
    """
    upper = sorted((m for m in matches if m.bracket_type == UPPER), key=lambda m: (m.round, m.position))
    if not upper:
        return {'rounds': {}, 'bracket_size': 0, 'total_rounds': 0, 'byes': 0, 'champion': None}

    bracket_size = 2 * sum(1 for m in upper if m.round == 1)
    total_rounds = calculate_upper_rounds(bracket_size)

    rounds = {}
    teams_in_round = bracket_size
    for round_num in range(1, total_rounds + 1):
        round_name = get_round_name(teams_in_round, bracket_size)
        rounds[round_name] = [m.to_dict() for m in upper if m.round == round_num]
        teams_in_round //= 2

    final = upper[-1]
    return {
        'rounds': rounds,
        'bracket_size': bracket_size,
        'total_rounds': total_rounds,
        'byes': sum(1 for m in upper if m.is_bye),
        'champion': final.winner_id if final.status == COMPLETED else None,
    }
