"""
Seeding: ordering entries into initial bracket slots.
"""
import logging
import math
import random
from typing import List, Optional

from .errors import UnsupportedFormat
from .models import Entry

logger = logging.getLogger(__name__)

STANDARD = 'STANDARD'
SEQUENTIAL = 'SEQUENTIAL'
RANDOM = 'RANDOM'
POLICIES = (STANDARD, SEQUENTIAL, RANDOM)


def calculate_bracket_size(num_entries: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_entries <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_entries))


def calculate_byes(num_entries: int) -> int:
    """Calculate number of byes needed."""
    return calculate_bracket_size(num_entries) - num_entries


def generate_bracket_order(bracket_size: int) -> List[int]:
    """
    Generate the standard tournament bracket order.
    This ensures that if all higher seeds win, they meet in the proper rounds.

    For 8 slots: [1, 8, 4, 5, 2, 7, 3, 6]
    This gives matchups: 1v8, 4v5, 2v7, 3v6
    Winners: 1v4 side, 2v3 side
    Final: 1v2 (if chalk)
    """
    if bracket_size <= 1:
        return [1] if bracket_size == 1 else []
    if bracket_size == 2:
        return [1, 2]

    half_size = bracket_size // 2
    upper_half = generate_bracket_order(half_size)

    # Pair each upper seed with its complement
    result = []
    for seed in upper_half:
        result.extend([seed, bracket_size + 1 - seed])
    return result


def order_entries(entries: List[Entry], policy: str, rng_seed: Optional[int] = None) -> List[Entry]:
    """
    Return copies of the entries in seed order with seeds 1..N assigned.

    STANDARD ranks by rating (highest first), SEQUENTIAL keeps registration
    order and RANDOM shuffles with a reproducible generator.
    """
    if policy not in POLICIES:
        raise UnsupportedFormat(f"Unknown seeding policy: {policy}", code='UNSUPPORTED_SEEDING')

    indexed = list(enumerate(entries))
    if policy == STANDARD:
        # Ties on rating fall back to any existing seed, then registration order
        indexed.sort(key=lambda pair: (
            -(pair[1].rating or 0),
            pair[1].seed if pair[1].seed is not None else math.inf,
            pair[0],
        ))
    elif policy == RANDOM:
        random.Random(rng_seed).shuffle(indexed)

    return [entry.with_seed(seed) for seed, (_, entry) in enumerate(indexed, start=1)]


def seed_entries(entries: List[Entry], policy: str = STANDARD,
                 rng_seed: Optional[int] = None) -> List[Optional[Entry]]:
    """
    Place entries into bracket-slot order, padded with None byes up to the
    next power of two. Consecutive slot pairs form the first-round matches.

    Byes always take the lowest seed numbers, so the top seeds receive them.
    """
    ordered = order_entries(entries, policy, rng_seed)
    bracket_size = calculate_bracket_size(len(ordered))
    num_byes = bracket_size - len(ordered)

    if policy == STANDARD:
        seed_to_entry = {entry.seed: entry for entry in ordered}
        slots = [seed_to_entry.get(seed) for seed in generate_bracket_order(bracket_size)]
    else:
        # Keep the given order and give the first entries an empty opponent
        slots = []
        for index, entry in enumerate(ordered):
            slots.append(entry)
            if index < num_byes:
                slots.append(None)

    logger.debug("Seeded %d entries into %d slots (%d byes, policy=%s)",
                 len(ordered), bracket_size, num_byes, policy)
    return slots
