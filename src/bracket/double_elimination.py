"""
Double elimination bracket generation and cross-bracket routing.

In double elimination:
- Teams must lose twice to be eliminated
- Upper Bracket: Teams that haven't lost yet
- Lower Bracket: Teams that have lost once in an upper round before the upper final
- Grand Final: Upper bracket champion (home) vs Lower bracket champion (away)

For an upper bracket of k rounds the lower bracket has 2k-3 rounds:
- Lower Round 1: losers of upper round 1 pair off
- Even lower rounds 2r-2: the loser of upper round r (home) meets the
  winner of the previous lower round at the same position (away)
- Odd lower rounds after that: winners of the previous lower round pair off

For 8 entries (k=3):
- L Round 1: 4 upper round-1 losers -> 2 matches
- L Round 2: 2 upper semifinal losers + 2 L1 winners -> 2 matches
- L Round 3: 2 L2 winners -> 1 match -> lower champion
"""
from typing import Dict, List, Optional, Tuple

from .elimination import (
    AWAY,
    HOME,
    calculate_upper_rounds,
    generate_upper_bracket,
    halving_slot,
    match_code,
)
from .models import COMPLETED, GRAND_FINAL, LOWER, UPPER, Match


def get_losers_round_name(round_num: int, total_losers_rounds: int) -> str:
    """Get the name for a lower bracket round (1-indexed)."""
    rounds_from_end = total_losers_rounds - round_num
    if rounds_from_end == 0:
        return "Losers Final"
    elif rounds_from_end == 1:
        return "Losers Semifinal"
    else:
        return f"Losers Round {round_num}"


def get_winners_round_name(teams_in_round: int, bracket_size: int) -> str:
    """Get the name for an upper bracket round."""
    if teams_in_round == 2:
        return "Winners Final"
    elif teams_in_round == 4:
        return "Winners Semifinal"
    elif teams_in_round == 8:
        return "Winners Quarterfinal"
    else:
        return f"Winners Round of {teams_in_round}"


def calculate_losers_bracket_rounds(bracket_size: int) -> int:
    """
    Calculate number of rounds in the lower bracket.

    Upper rounds 1..k-1 feed the lower bracket, giving 2k-3 rounds.
    A two-entry bracket (k=1) has no lower bracket.
    """
    upper_rounds = calculate_upper_rounds(bracket_size)
    if upper_rounds < 2:
        return 0
    return 2 * upper_rounds - 3


def losers_round_size(bracket_size: int, round_num: int) -> int:
    """Number of matches in a lower bracket round."""
    return bracket_size >> ((round_num + 1) // 2 + 1)


def grand_final_round(upper_rounds: int, lower_rounds: int) -> int:
    return max(upper_rounds, lower_rounds) + 1


def generate_double_elimination_bracket(slots: List, tournament_id: str) -> List[Match]:
    """
    Generate the complete double elimination skeleton: upper bracket,
    empty lower bracket and a placeholder grand final.
    """
    bracket_size = len(slots)
    upper_rounds = calculate_upper_rounds(bracket_size)
    lower_rounds = calculate_losers_bracket_rounds(bracket_size)

    matches = generate_upper_bracket(slots, tournament_id, prefix='W')

    for round_num in range(1, lower_rounds + 1):
        for position in range(losers_round_size(bracket_size, round_num)):
            matches.append(Match(match_code('L', round_num, position), tournament_id,
                                 round_num, position, LOWER))

    matches.append(Match('GF', tournament_id, grand_final_round(upper_rounds, lower_rounds), 0, GRAND_FINAL))
    return matches


def double_winner_target(match: Match, upper_rounds: int, lower_rounds: int) -> Optional[Tuple[Tuple, str]]:
    """Slot the winner of a double elimination match advances to."""
    gf_key = (GRAND_FINAL, grand_final_round(upper_rounds, lower_rounds), 0)

    if match.bracket_type == UPPER:
        if match.round >= upper_rounds:
            return gf_key, HOME
        round_num, position, side = halving_slot(match.round, match.position)
        return (UPPER, round_num, position), side

    if match.bracket_type == LOWER:
        if match.round >= lower_rounds:
            return gf_key, AWAY
        if match.round % 2 == 1:
            # Odd rounds feed the drop-in round at the same position
            return (LOWER, match.round + 1, match.position), AWAY
        round_num, position, side = halving_slot(match.round, match.position)
        return (LOWER, round_num, position), side

    return None


def double_loser_target(match: Match, upper_rounds: int, lower_rounds: int) -> Optional[Tuple[Tuple, str]]:
    """Slot the loser of an upper bracket match drops into, or None if eliminated."""
    if match.bracket_type != UPPER:
        return None
    if upper_rounds == 1:
        # No lower bracket: the only other finalist gets the second chance
        return (GRAND_FINAL, grand_final_round(upper_rounds, lower_rounds), 0), AWAY
    if match.round == 1:
        _, position, side = halving_slot(0, match.position)
        return (LOWER, 1, position), side
    if match.round < upper_rounds:
        return (LOWER, 2 * match.round - 2, match.position), HOME
    return None


def get_double_elimination_bracket_display(matches: List[Match]) -> Dict:
    """
    Get double elimination bracket data formatted for UI display.
    """
    upper = sorted((m for m in matches if m.bracket_type == UPPER), key=lambda m: (m.round, m.position))
    lower = sorted((m for m in matches if m.bracket_type == LOWER), key=lambda m: (m.round, m.position))
    grand_final = next((m for m in matches if m.bracket_type == GRAND_FINAL), None)

    bracket_size = 2 * sum(1 for m in upper if m.round == 1)
    upper_rounds = calculate_upper_rounds(bracket_size)
    lower_rounds = calculate_losers_bracket_rounds(bracket_size)

    winners_bracket = {}
    teams_in_round = bracket_size
    for round_num in range(1, upper_rounds + 1):
        round_name = get_winners_round_name(teams_in_round, bracket_size)
        winners_bracket[round_name] = [m.to_dict() for m in upper if m.round == round_num]
        teams_in_round //= 2

    losers_bracket = {}
    for round_num in range(1, lower_rounds + 1):
        round_name = get_losers_round_name(round_num, lower_rounds)
        losers_bracket[round_name] = [m.to_dict() for m in lower if m.round == round_num]

    return {
        'winners_bracket': winners_bracket,
        'losers_bracket': losers_bracket,
        'grand_final': grand_final.to_dict() if grand_final else None,
        'bracket_size': bracket_size,
        'total_winners_rounds': upper_rounds,
        'total_losers_rounds': lower_rounds,
        'byes': sum(1 for m in upper if m.is_bye),
        'champion': grand_final.winner_id if grand_final and grand_final.status == COMPLETED else None,
    }
