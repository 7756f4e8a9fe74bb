"""
Standings: win/draw/loss/points tables derived from completed matches.
"""
import math
from typing import Iterable, List

from .models import COMPLETED, Entry, Match, StandingsRow

WIN_POINTS = 3
DRAW_POINTS = 1


def standings(entries: Iterable[Entry], matches: Iterable[Match], count_byes: bool = False) -> List[StandingsRow]:
    """
    Recompute standings from every completed match.

    Ordering: points desc, wins desc, played asc, then seed so the output
    is a total order. Byes are only counted (as wins) when count_byes is set.
    """
    rows = {}
    for entry in entries:
        rows[entry.participant_id] = StandingsRow(entry.participant_id, seed=entry.seed)

    for match in matches:
        if match.status != COMPLETED:
            continue

        if match.is_bye:
            if count_byes and match.winner_id in rows:
                row = rows[match.winner_id]
                row.played += 1
                row.wins += 1
                row.points += WIN_POINTS
            continue

        if not match.is_ready:
            continue

        home = rows.get(match.home_id)
        away = rows.get(match.away_id)
        for row in (home, away):
            if row:
                row.played += 1

        if match.winner_id is None:
            for row in (home, away):
                if row:
                    row.draws += 1
                    row.points += DRAW_POINTS
            continue

        winner = rows.get(match.winner_id)
        loser = rows.get(match.loser_id)
        if winner:
            winner.wins += 1
            winner.points += WIN_POINTS
        if loser:
            loser.losses += 1

    return sorted(rows.values(), key=lambda row: (
        -row.points,
        -row.wins,
        row.played,
        row.seed if row.seed is not None else math.inf,
        str(row.participant_id),
    ))
