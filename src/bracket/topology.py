"""
Bracket topology builder: turns seeded slots into the full match set for a format.
"""
import logging
from typing import List, Optional

from .double_elimination import generate_double_elimination_bracket
from .elimination import generate_upper_bracket
from .errors import CapacityExceeded, InsufficientParticipants, UnsupportedFormat
from .models import (
    DOUBLE_ELIMINATION,
    FORMATS,
    ROUND_ROBIN,
    SINGLE_ELIMINATION,
    SWISS,
    Entry,
    Match,
)
from .progression import index_matches, propagate_byes
from .round_robin import generate_round_robin
from .seeding import STANDARD, seed_entries
from .swiss import generate_swiss_first_round

logger = logging.getLogger(__name__)


def build(seeded_slots: List[Optional[Entry]], fmt: str, max_slots: int, tournament_id: str) -> List[Match]:
    """
    Build every match of a new bracket.

    seeded_slots is the Seeding Module output (None marks a bye). For the
    elimination formats, bye matches are completed here and their winners
    advanced, so the returned set is consistent on its own.
    """
    if fmt not in FORMATS:
        raise UnsupportedFormat(f"Unsupported tournament format: {fmt}")

    entries = [slot for slot in seeded_slots if slot is not None]
    if len(entries) < 2:
        raise InsufficientParticipants(f"Need at least 2 entries, got {len(entries)}")
    if max_slots is not None and len(entries) > max_slots:
        raise CapacityExceeded(f"{len(entries)} entries exceed the capacity of {max_slots}")

    if fmt == SINGLE_ELIMINATION:
        matches = generate_upper_bracket(seeded_slots, tournament_id)
    elif fmt == DOUBLE_ELIMINATION:
        matches = generate_double_elimination_bracket(seeded_slots, tournament_id)
    elif fmt == ROUND_ROBIN:
        matches = generate_round_robin(sorted(entries, key=lambda e: e.seed), tournament_id)
    else:
        matches = generate_swiss_first_round(entries, tournament_id)

    if fmt in (SINGLE_ELIMINATION, DOUBLE_ELIMINATION):
        propagate_byes(index_matches(matches), fmt)

    logger.info("Built %s bracket for %s: %d entries, %d matches",
                fmt, tournament_id, len(entries), len(matches))
    return matches


def generate(entries: List[Entry], fmt: str, tournament_id: str, policy: str = STANDARD,
             max_slots: Optional[int] = None, rng_seed: Optional[int] = None) -> List[Match]:
    """Seed entries and build the bracket in one step."""
    if fmt not in FORMATS:
        raise UnsupportedFormat(f"Unsupported tournament format: {fmt}")
    if len(entries) < 2:
        raise InsufficientParticipants(f"Need at least 2 entries, got {len(entries)}")
    return build(seed_entries(entries, policy, rng_seed), fmt, max_slots, tournament_id)
