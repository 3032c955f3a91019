"""
Round robin scheduling (circle method) and standings.
"""
import copy
import logging
from typing import Dict, List, Optional

from .models import DRAW, PLAYER1, PLAYER2, IdSource, new_match, set_result, uuid_ids

logger = logging.getLogger(__name__)


def generate_round_robin_schedule(players: List[str], ids: Optional[IdSource] = None) -> Dict:
    """
    Generate a round robin schedule using the circle method.
    Each player plays every other player exactly once.

    With an odd number of players a bye placeholder is added; whoever
    draws the placeholder sits the round out.
    """
    if len(players) < 2:
        return {'type': 'round_robin', 'players': list(players), 'rounds': [], 'matches': []}

    ids = ids or uuid_ids()
    participants = list(players) + [None] if len(players) % 2 == 1 else list(players)
    num_rounds = len(participants) - 1
    half_size = len(participants) // 2

    # Participant 0 stays fixed, the rest rotate around it
    rotating = participants[1:]

    rounds = []
    all_matches = []
    for round_index in range(num_rounds):
        number = round_index + 1
        pairs = [(participants[0], rotating[0])]
        for i in range(1, half_size):
            pairs.append((rotating[i], rotating[len(rotating) - i]))

        round_matches = []
        for player1, player2 in pairs:
            if player1 is None or player2 is None:
                continue
            match = new_match(ids(), number, player1, player2)
            round_matches.append(match)
            all_matches.append(match)

        rounds.append({'number': number, 'matches': round_matches})
        rotating.insert(0, rotating.pop())

    return {'type': 'round_robin', 'players': list(players), 'rounds': rounds, 'matches': all_matches}


def record_round_robin_result(schedule: Dict, match_id: str, score1, score2, winner: str) -> Dict:
    """
    Record a result in both the round view and the flattened match list.
    Returns a new schedule; an unknown match_id is a no-op.
    """
    schedule = copy.deepcopy(schedule)
    found = False
    for match in schedule['matches']:
        if match['id'] == match_id:
            set_result(match, score1, score2, winner)
            found = True
    for round_data in schedule['rounds']:
        for match in round_data['matches']:
            if match['id'] == match_id:
                set_result(match, score1, score2, winner)

    if not found:
        logger.debug("record_round_robin_result: no match %s in schedule", match_id)
    return schedule


def calculate_standings(players: List[str], matches: List[Dict]) -> List[Dict]:
    """
    Calculate standings from round robin results.

    Only completed matches count. Sorted by wins, then point differential,
    then points scored (all descending).
    """
    stats = {
        player: {
            'player': player,
            'played': 0,
            'wins': 0,
            'losses': 0,
            'draws': 0,
            'points_for': 0,
            'points_against': 0,
            'point_diff': 0
        }
        for player in players
    }

    for match in matches:
        if not match['completed']:
            continue
        score1 = match['score1'] or 0
        score2 = match['score2'] or 0
        sides = ((match['player1'], score1, score2, PLAYER1), (match['player2'], score2, score1, PLAYER2))
        for player, scored, conceded, side in sides:
            entry = stats.get(player)
            if entry is None:
                continue
            entry['played'] += 1
            entry['points_for'] += scored
            entry['points_against'] += conceded
            if match['winner'] == side:
                entry['wins'] += 1
            elif match['winner'] == DRAW:
                entry['draws'] += 1
            elif match['winner'] is not None:
                entry['losses'] += 1

    standings = []
    for entry in stats.values():
        entry['point_diff'] = entry['points_for'] - entry['points_against']
        standings.append(entry)

    standings.sort(key=lambda s: (-s['wins'], -s['point_diff'], -s['points_for']))
    return standings


def is_round_robin_complete(matches: List[Dict]) -> bool:
    """Check if all matches are completed."""
    return len(matches) > 0 and all(m['completed'] for m in matches)


def get_head_to_head(matches: List[Dict], player_a: str, player_b: str) -> Optional[str]:
    """Get the winner between two players, or None if unplayed or drawn."""
    for match in matches:
        if {match['player1'], match['player2']} != {player_a, player_b}:
            continue
        if not match['completed']:
            return None
        if match['winner'] == PLAYER1:
            return match['player1']
        if match['winner'] == PLAYER2:
            return match['player2']
        return None
    return None
