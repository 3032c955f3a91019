"""
Shared match vocabulary for all tournament formats.

Every format engine stores its state as plain dicts and lists so that a
tournament can be dumped to YAML or JSON without conversion.
"""
import itertools
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

BYE = 'BYE'

PLAYER1 = 'player1'
PLAYER2 = 'player2'
DRAW = 'draw'

IdSource = Callable[[], str]
Clock = Callable[[], str]


def sequential_ids(prefix: str = 'match', start: int = 1) -> IdSource:
    """Return an id source yielding prefix-1, prefix-2, ..."""
    counter = itertools.count(start)
    return lambda: f"{prefix}-{next(counter)}"


def uuid_ids() -> IdSource:
    """Return an id source yielding random UUID strings."""
    return lambda: str(uuid.uuid4())


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_match(match_id: str, round_number: int, player1: Optional[str], player2: Optional[str],
              position: Optional[int] = None) -> Dict:
    """Create an unplayed match."""
    match = {
        'id': match_id,
        'round': round_number,
        'player1': player1,
        'player2': player2,
        'score1': None,
        'score2': None,
        'winner': None,
        'completed': False,
    }
    if position is not None:
        match['position'] = position
    return match


def set_result(match: Dict, score1, score2, winner: Optional[str]) -> None:
    match['score1'] = score1
    match['score2'] = score2
    match['winner'] = winner
    match['completed'] = True


def winner_name(match: Dict) -> Optional[str]:
    """Name of the side the match's winner field points at."""
    if match.get('winner') == PLAYER1:
        return match['player1']
    if match.get('winner') == PLAYER2:
        return match['player2']
    return None


def loser_name(match: Dict) -> Optional[str]:
    if match.get('winner') == PLAYER1:
        return match['player2']
    if match.get('winner') == PLAYER2:
        return match['player1']
    return None
