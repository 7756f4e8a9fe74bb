"""
Round robin schedule generation using the circle method.
"""
from typing import List, Optional, Tuple

from .elimination import match_code
from .models import UPPER, Entry, Match


def circle_rounds(entries: List[Entry]) -> List[List[Tuple[Entry, Entry]]]:
    """
    Circle method: fix the first entry and rotate the rest one step per round.
    An odd field gets a dummy slot and pairings against it are dropped, so
    each entry plays at most once per round and every pair meets once.
    """
    lst: List[Optional[Entry]] = list(entries)
    if len(lst) % 2 == 1:
        lst.append(None)
    n = len(lst)
    fixed = lst[0]
    rotating = lst[1:]

    rounds = []
    for round_idx in range(n - 1):
        circle = [fixed] + rotating
        pairs = []
        for i in range(n // 2):
            first = circle[i]
            second = circle[n - 1 - i]
            if first is None or second is None:
                continue
            # Alternate home side for the fixed entry between rounds
            if i == 0 and round_idx % 2 == 1:
                pairs.append((second, first))
            else:
                pairs.append((first, second))
        rounds.append(pairs)
        rotating = [rotating[-1]] + rotating[:-1]

    return rounds


def generate_round_robin(entries: List[Entry], tournament_id: str) -> List[Match]:
    """Every entry plays every other entry once; round is the robin round."""
    matches = []
    for round_num, pairs in enumerate(circle_rounds(entries), start=1):
        for position, (home, away) in enumerate(pairs):
            matches.append(Match(match_code('R', round_num, position), tournament_id, round_num, position,
                                 UPPER, home_id=home.participant_id, away_id=away.participant_id))
    return matches
