"""
Swiss system tournaments.

Players with similar scores are paired each round, never twice against
the same opponent. Ties in the standings are broken by Buchholz score,
the sum of the current points of everyone a player has faced.
"""
import copy
import logging
import math
from typing import Dict, List, Optional

from .models import BYE, DRAW, PLAYER1, PLAYER2, IdSource, new_match, set_result, uuid_ids

logger = logging.getLogger(__name__)

WIN_POINTS = 1
DRAW_POINTS = 0.5


def default_round_count(num_players: int) -> int:
    """ceil(log2(n)) + 1 rounds."""
    if num_players < 2:
        return 1
    return math.ceil(math.log2(num_players)) + 1


def create_swiss_tournament(players: List[str], num_rounds: Optional[int] = None) -> Dict:
    """Create initial Swiss tournament state."""
    return {
        'type': 'swiss',
        'players': [
            {
                'name': player,
                'points': 0,
                'wins': 0,
                'losses': 0,
                'draws': 0,
                'opponents': [],
                'buchholz': 0,
                'byes': 0
            }
            for player in players
        ],
        'rounds': [],
        'current_round': 0,
        'total_rounds': num_rounds or default_round_count(len(players)),
        'completed': False
    }


def _pairing_order(players: List[Dict]) -> List[Dict]:
    # sorted() is stable, so equal players keep roster order
    return sorted(players, key=lambda p: (-p['points'], -p['buchholz']))


def _choose_bye(ordered: List[Dict]) -> Dict:
    """Lowest ranked player among those with the fewest byes so far."""
    fewest = min(p['byes'] for p in ordered)
    return [p for p in ordered if p['byes'] == fewest][-1]


def generate_next_round(tournament: Dict, ids: Optional[IdSource] = None) -> Dict:
    """
    Generate pairings for the next round using Swiss system.

    Pairing is greedy: walking down the standings, each unpaired player
    takes the nearest unpaired player below them they have not yet faced.
    With an odd field one player gets a bye worth a win. Players that can
    only be paired through a rematch sit the round out.
    """
    tournament = copy.deepcopy(tournament)
    if tournament['current_round'] >= tournament['total_rounds']:
        tournament['completed'] = is_tournament_complete(tournament)
        return tournament

    ids = ids or uuid_ids()
    round_number = tournament['current_round'] + 1
    ordered = _pairing_order(tournament['players'])

    bye_player = None
    if len(ordered) % 2 == 1:
        bye_player = _choose_bye(ordered)
        ordered = [p for p in ordered if p is not bye_player]

    paired = set()
    matches = []
    for i, player in enumerate(ordered):
        if player['name'] in paired:
            continue
        for candidate in ordered[i + 1:]:
            if candidate['name'] in paired or candidate['name'] in player['opponents']:
                continue
            paired.update((player['name'], candidate['name']))
            matches.append(new_match(ids(), round_number, player['name'], candidate['name']))
            break

    unpaired = [p['name'] for p in ordered if p['name'] not in paired]
    if unpaired:
        logger.warning("Round %d: no fresh opponent for %s, sitting out", round_number, ', '.join(unpaired))

    if bye_player is not None:
        bye_match = new_match(ids(), round_number, bye_player['name'], BYE)
        set_result(bye_match, 1, 0, PLAYER1)
        matches.append(bye_match)
        bye_player['points'] += WIN_POINTS
        bye_player['wins'] += 1
        bye_player['byes'] += 1
        update_buchholz(tournament)

    tournament['rounds'].append({'number': round_number, 'matches': matches})
    tournament['current_round'] = round_number
    return tournament


def _find_player(tournament: Dict, name: str) -> Optional[Dict]:
    for player in tournament['players']:
        if player['name'] == name:
            return player
    return None


def record_result(tournament: Dict, match_id: str, score1, score2, winner: str) -> Dict:
    """
    Record match result, update both players' records and recompute
    every Buchholz score.

    Returns a new tournament. Unknown or already completed matches are a no-op.
    """
    tournament = copy.deepcopy(tournament)
    match = None
    for round_data in tournament['rounds']:
        for candidate in round_data['matches']:
            if candidate['id'] == match_id:
                match = candidate
    if match is None or match['completed']:
        logger.debug("record_result: match %s unknown or already recorded", match_id)
        return tournament

    set_result(match, score1, score2, winner)

    player1 = _find_player(tournament, match['player1'])
    player2 = _find_player(tournament, match['player2'])
    if player1 is not None and player2 is not None and match['player2'] != BYE:
        player1['opponents'].append(player2['name'])
        player2['opponents'].append(player1['name'])

        if winner == PLAYER1:
            player1['points'] += WIN_POINTS
            player1['wins'] += 1
            player2['losses'] += 1
        elif winner == PLAYER2:
            player2['points'] += WIN_POINTS
            player2['wins'] += 1
            player1['losses'] += 1
        elif winner == DRAW:
            player1['points'] += DRAW_POINTS
            player2['points'] += DRAW_POINTS
            player1['draws'] += 1
            player2['draws'] += 1

    update_buchholz(tournament)
    tournament['completed'] = is_tournament_complete(tournament)
    return tournament


def update_buchholz(tournament: Dict) -> None:
    """Recompute every Buchholz score from current points (in place)."""
    points = {p['name']: p['points'] for p in tournament['players']}
    for player in tournament['players']:
        player['buchholz'] = sum(points.get(name, 0) for name in player['opponents'])


def get_standings(tournament: Dict) -> List[Dict]:
    """Players ordered by points, then Buchholz, then wins."""
    return sorted(tournament['players'], key=lambda p: (-p['points'], -p['buchholz'], -p['wins']))


def is_round_complete(tournament: Dict) -> bool:
    if not tournament['rounds']:
        return True
    return all(m['completed'] for m in tournament['rounds'][-1]['matches'])


def is_tournament_complete(tournament: Dict) -> bool:
    return tournament['current_round'] >= tournament['total_rounds'] and is_round_complete(tournament)
