"""
Challenge ladder: players climb by beating someone ranked above them.
"""
import copy
import logging
import random
from typing import Dict, List, Optional

from .elimination import shuffled
from .models import Clock, utc_now

logger = logging.getLogger(__name__)

DEFAULT_MAX_RUNGS = 3


def create_ladder(players: List[str], randomize: bool = True,
                  rng: Optional[random.Random] = None) -> List[Dict]:
    """Create initial ladder; rank 1 is the top rung."""
    ordered = shuffled(players, rng) if randomize else list(players)
    return [
        {
            'rank': index + 1,
            'player': player,
            'wins': 0,
            'losses': 0,
            'challenges': 0,
            'defenses': 0,
            'last_active': None
        }
        for index, player in enumerate(ordered)
    ]


def is_valid_challenge(ladder: List[Dict], challenger_rank: int, defender_rank: int,
                       max_rungs: int = DEFAULT_MAX_RUNGS) -> bool:
    """A challenge must go upward and reach at most max_rungs."""
    if defender_rank >= challenger_rank:
        return False
    return challenger_rank - defender_rank <= max_rungs


def get_available_targets(ladder: List[Dict], challenger_rank: int,
                          max_rungs: int = DEFAULT_MAX_RUNGS) -> List[Dict]:
    """Get the entries a player at challenger_rank may challenge."""
    return [entry for entry in ladder if is_valid_challenge(ladder, challenger_rank, entry['rank'], max_rungs)]


def _entry_at(ladder: List[Dict], rank: int) -> Optional[Dict]:
    for entry in ladder:
        if entry['rank'] == rank:
            return entry
    return None


def process_challenge(ladder: List[Dict], challenger_rank: int, defender_rank: int,
                      challenger_wins: bool, now: Optional[Clock] = None) -> List[Dict]:
    """
    Process a challenge result.

    A winning challenger swaps ranks with the defender; otherwise ranks stay.
    Both sides' records are updated either way. The challenge is not
    validated here, see is_valid_challenge. Unknown ranks return the
    input ladder unchanged.
    """
    if _entry_at(ladder, challenger_rank) is None or _entry_at(ladder, defender_rank) is None:
        logger.debug("process_challenge: rank %s or %s not on ladder", challenger_rank, defender_rank)
        return ladder

    new_ladder = copy.deepcopy(ladder)
    challenger = _entry_at(new_ladder, challenger_rank)
    defender = _entry_at(new_ladder, defender_rank)
    timestamp = (now or utc_now)()

    challenger['challenges'] += 1
    defender['defenses'] += 1
    challenger['last_active'] = timestamp
    defender['last_active'] = timestamp

    if challenger_wins:
        challenger['wins'] += 1
        defender['losses'] += 1
        challenger['rank'], defender['rank'] = defender_rank, challenger_rank
    else:
        defender['wins'] += 1
        challenger['losses'] += 1

    new_ladder.sort(key=lambda entry: entry['rank'])
    return new_ladder
