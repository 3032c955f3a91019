"""
Bracket seeding helpers.
"""
import math
from typing import List


def calculate_bracket_size(num_players: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_players <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_players))


def calculate_byes(num_players: int) -> int:
    """Calculate number of byes needed."""
    return calculate_bracket_size(num_players) - num_players


def seed_order(bracket_size: int) -> List[int]:
    """
    Generate the standard tournament bracket order.
    This ensures that if all higher seeds win, they meet in the proper rounds,
    and that two byes never meet in the first round.

    For 8 players: [1, 8, 4, 5, 2, 7, 3, 6]
    This gives matchups: 1v8, 4v5, 2v7, 3v6
    """
    if bracket_size < 2 or bracket_size & (bracket_size - 1):
        raise ValueError(f"Bracket size must be a power of two >= 2, got {bracket_size}")

    if bracket_size == 2:
        return [1, 2]

    order = []
    for seed in seed_order(bracket_size // 2):
        order.extend([seed, bracket_size + 1 - seed])
    return order
