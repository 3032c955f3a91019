"""
Killer game logic.

Rules:
- Each player starts with a set number of lives (default: 3)
- Turn order is randomized at game start
- Miss a pot: lose 1 life
- Commit a foul: lose 1 life
- Pot the black: gain 1 life
- Player with 0 lives is eliminated
- Last player standing wins
"""
import copy
import logging
import random
from typing import Dict, List, Optional

from .elimination import shuffled
from .models import Clock, utc_now

logger = logging.getLogger(__name__)

POT = 'pot'
MISS = 'miss'
FOUL = 'foul'
BLACK = 'black'
ACTIONS = (POT, MISS, FOUL, BLACK)

DEFAULT_STARTING_LIVES = 3


def create_killer_game(players: List[str], starting_lives: int = DEFAULT_STARTING_LIVES,
                       rng: Optional[random.Random] = None) -> Dict:
    """Create initial game state with a random turn order."""
    return {
        'type': 'killer',
        'players': [
            {'name': name, 'lives': starting_lives, 'eliminated': False}
            for name in shuffled(players, rng)
        ],
        'current_player_index': 0,
        'game_over': False,
        'winner': None,
        'turn_history': []
    }


def get_current_player(state: Dict) -> Optional[Dict]:
    """Get the player whose turn it is, or None once the game is over."""
    if state['game_over']:
        return None
    return state['players'][state['current_player_index']]


def _next_active_index(state: Dict) -> int:
    num_players = len(state['players'])
    index = (state['current_player_index'] + 1) % num_players
    attempts = 0
    while state['players'][index]['eliminated'] and attempts < num_players:
        index = (index + 1) % num_players
        attempts += 1
    return index


def check_winner(state: Dict) -> Optional[Dict]:
    """Return the sole remaining player, if only one is left."""
    active = [p for p in state['players'] if not p['eliminated']]
    if len(active) == 1:
        return active[0]
    return None


def process_turn(state: Dict, result: str, now: Optional[Clock] = None) -> Dict:
    """
    Apply the current player's turn result and pass the turn on.

    Returns a new state. Unknown results and turns after the game is
    over leave the state unchanged.
    """
    if result not in ACTIONS or state['game_over']:
        logger.debug("process_turn: ignoring %r (game_over=%s)", result, state['game_over'])
        return state

    new_state = copy.deepcopy(state)
    player = new_state['players'][new_state['current_player_index']]

    if result in (MISS, FOUL):
        player['lives'] = max(0, player['lives'] - 1)
        if player['lives'] == 0:
            player['eliminated'] = True
    elif result == BLACK:
        player['lives'] += 1

    new_state['turn_history'].append({
        'player': player['name'],
        'action': result,
        'lives_after': player['lives'],
        'timestamp': (now or utc_now)()
    })

    winner = check_winner(new_state)
    if winner:
        new_state['game_over'] = True
        new_state['winner'] = winner['name']
    else:
        new_state['current_player_index'] = _next_active_index(new_state)
    return new_state


def get_game_stats(state: Dict) -> Dict:
    active = [p for p in state['players'] if not p['eliminated']]
    return {
        'active_players': len(active),
        'eliminated_players': len(state['players']) - len(active),
        'total_lives': sum(p['lives'] for p in state['players']),
        'turns_played': len(state['turn_history'])
    }


def get_elimination_order(state: Dict) -> List[str]:
    """Players in elimination order (first eliminated = last place)."""
    eliminated = []
    for turn in state['turn_history']:
        if turn['lives_after'] == 0 and turn['player'] not in eliminated:
            eliminated.append(turn['player'])
    return eliminated
