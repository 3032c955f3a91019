"""
Single elimination bracket generation and management.
"""
import copy
import logging
import math
import random
from typing import Dict, List, Optional

from .models import BYE, PLAYER1, PLAYER2, IdSource, new_match, sequential_ids, set_result, winner_name
from .seeding import calculate_bracket_size, seed_order

logger = logging.getLogger(__name__)


def get_round_name(total_rounds: int, round_number: int) -> str:
    """Get the name of a round from how far it is from the final."""
    remaining = total_rounds - round_number
    if remaining == 0:
        return "Final"
    elif remaining == 1:
        return "Semifinals"
    elif remaining == 2:
        return "Quarterfinals"
    return f"Round {round_number}"


def shuffled(players: List[str], rng: Optional[random.Random] = None) -> List[str]:
    """Return a uniformly shuffled copy of players."""
    rng = rng or random.Random()
    result = list(players)
    rng.shuffle(result)
    return result


def find_match(rounds: List[Dict], match_id: str) -> Optional[Dict]:
    """Locate a match by id across a sequence of rounds."""
    for round_data in rounds:
        for match in round_data['matches']:
            if match['id'] == match_id:
                return match
    return None


def place_in_slot(match: Dict, player: Optional[str], source_position: int) -> None:
    """Even source positions feed slot 1, odd ones feed slot 2."""
    if source_position % 2 == 0:
        match['player1'] = player
    else:
        match['player2'] = player


def build_winners_rounds(players: List[str], bracket_size: int, ids: IdSource) -> List[Dict]:
    """
    Build the full round tree for a bracket, with byes applied to round 1.

    players must already be in seed order (index 0 is seed 1).
    """
    num_rounds = int(math.log2(bracket_size))
    slots = [players[seed - 1] if seed <= len(players) else None for seed in seed_order(bracket_size)]

    first_round = []
    for i in range(bracket_size // 2):
        player1 = slots[i * 2]
        player2 = slots[i * 2 + 1]
        match = new_match(ids(), 1, player1 or BYE, player2 or BYE, position=i)
        # Seed order never pairs two byes
        if player1 is None:
            match['winner'] = PLAYER2
            match['completed'] = True
        elif player2 is None:
            match['winner'] = PLAYER1
            match['completed'] = True
        match['next_match_id'] = None
        first_round.append(match)

    rounds = [{'number': 1, 'name': get_round_name(num_rounds, 1), 'matches': first_round}]

    previous = first_round
    for round_number in range(2, num_rounds + 1):
        round_matches = []
        for i in range(len(previous) // 2):
            match = new_match(ids(), round_number, None, None, position=i)
            match['next_match_id'] = None
            match['source_match1'] = previous[i * 2]['id']
            match['source_match2'] = previous[i * 2 + 1]['id']
            previous[i * 2]['next_match_id'] = match['id']
            previous[i * 2 + 1]['next_match_id'] = match['id']
            round_matches.append(match)

        rounds.append({
            'number': round_number,
            'name': get_round_name(num_rounds, round_number),
            'matches': round_matches
        })
        previous = round_matches

    _advance_bye_winners(rounds)
    return rounds


def _advance_bye_winners(rounds: List[Dict]) -> None:
    for match in rounds[0]['matches']:
        if not (match['completed'] and match['next_match_id']):
            continue
        advancing = winner_name(match)
        if advancing != BYE:
            place_in_slot(find_match(rounds, match['next_match_id']), advancing, match['position'])


def generate_single_elimination(players: List[str], seeded: bool = False,
                                rng: Optional[random.Random] = None,
                                ids: Optional[IdSource] = None) -> Dict:
    """
    Generate a single elimination bracket.

    Args:
        players: Player names; when seeded, list order is seed order
        seeded: Use the given order instead of a random draw
        rng: Random source for the draw
        ids: Match id source

    Returns dict with:
    - 'type': 'single_elimination'
    - 'bracket_size': next power of two >= number of players
    - 'num_rounds': log2(bracket_size)
    - 'rounds': list of {number, name, matches}
    - 'players': players in seed order
    """
    ids = ids or sequential_ids()
    seeded_players = list(players) if seeded else shuffled(players, rng)

    bracket_size = calculate_bracket_size(len(seeded_players))
    if bracket_size < 2:
        # Nothing to play; a lone player gets an empty tree
        return {
            'type': 'single_elimination',
            'bracket_size': bracket_size,
            'num_rounds': 0,
            'rounds': [],
            'players': seeded_players
        }

    return {
        'type': 'single_elimination',
        'bracket_size': bracket_size,
        'num_rounds': int(math.log2(bracket_size)),
        'rounds': build_winners_rounds(seeded_players, bracket_size, ids),
        'players': seeded_players
    }


def update_match(bracket: Dict, match_id: str, score1, score2, winner: str) -> Dict:
    """
    Record a match result and advance the winner.

    Returns a new bracket; the input bracket is left untouched.
    An unknown match_id is a no-op.
    """
    bracket = copy.deepcopy(bracket)
    match = find_match(bracket['rounds'], match_id)
    if match is None:
        logger.debug("update_match: no match %s in bracket", match_id)
        return bracket

    set_result(match, score1, score2, winner)
    if match.get('next_match_id'):
        next_match = find_match(bracket['rounds'], match['next_match_id'])
        place_in_slot(next_match, winner_name(match), match['position'])
    return bracket


def _final_match(rounds: List[Dict]) -> Optional[Dict]:
    if not rounds or not rounds[-1]['matches']:
        return None
    return rounds[-1]['matches'][0]


def is_bracket_complete(bracket: Dict) -> bool:
    """Check if the final has been played."""
    final = _final_match(bracket['rounds'])
    return bool(final and final['completed'])


def get_bracket_winner(bracket: Dict) -> Optional[str]:
    """Get the bracket champion, or None while the final is open."""
    final = _final_match(bracket['rounds'])
    if not final or not final['completed']:
        return None
    return winner_name(final)
