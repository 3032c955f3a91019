"""
Double elimination bracket generation and management.

In double elimination:
- Players must lose twice to be eliminated
- Winners Bracket: Players that haven't lost yet
- Losers Bracket: Players that have lost once
- Grand Final: Winners bracket champion vs Losers bracket champion
- Bracket Reset: If losers bracket winner wins Grand Final, a final match decides the champion
"""
import copy
import logging
import random
from typing import Dict, List, Optional

from .elimination import find_match, generate_single_elimination
from .models import (
    BYE, PLAYER1, PLAYER2, IdSource, loser_name, new_match, sequential_ids, set_result, winner_name
)

logger = logging.getLogger(__name__)

GRAND_FINAL_ID = 'grand-final'
BRACKET_RESET_ID = 'bracket-reset'


def get_losers_round_name(round_number: int, total_losers_rounds: int) -> str:
    """Get the name for a losers bracket round (1-indexed)."""
    rounds_from_end = total_losers_rounds - round_number
    if rounds_from_end == 0:
        return "Losers Final"
    elif rounds_from_end == 1:
        return "Losers Semifinal"
    return f"Losers Round {round_number}"


def calculate_losers_bracket_rounds(num_rounds: int) -> int:
    """
    Calculate number of rounds in losers bracket.
    A winners bracket of N rounds feeds 2 * (N - 1) losers rounds.

    Pattern: minor, major, minor, major, ... ending with a major round
    """
    if num_rounds < 1:
        return 0
    return 2 * (num_rounds - 1)


def _link(source: Dict, target: Dict, slot: str) -> None:
    source['next_match_id'] = target['id']
    source['next_slot'] = slot


def _link_loser(source: Dict, target: Dict, slot: str) -> None:
    source['loser_next_match_id'] = target['id']
    source['loser_next_slot'] = slot


def _build_losers_rounds(winners_rounds: List[Dict], ids: IdSource) -> List[Dict]:
    """
    Build the losers bracket and wire winners-bracket losers into it.

    For 8 players:
    - L Round 1 (minor): 4 W1 losers pair off -> 2 matches
    - L Round 2 (major): 2 W2 losers vs 2 L1 winners -> 2 matches
    - L Round 3 (minor): 2 L2 winners pair off -> 1 match
    - L Round 4 (major): W final loser vs L3 winner -> Losers Final
    """
    total = calculate_losers_bracket_rounds(len(winners_rounds))
    losers = []
    previous = []

    for index in range(total):
        number = index + 1
        is_major_round = index % 2 == 1

        if index == 0:
            feeders = winners_rounds[0]['matches']
            matches = [new_match(ids(), number, None, None, position=i) for i in range(len(feeders) // 2)]
            for i, feeder in enumerate(feeders):
                _link_loser(feeder, matches[i // 2], PLAYER1 if i % 2 == 0 else PLAYER2)
        elif is_major_round:
            dropping = winners_rounds[index // 2 + 1]['matches']
            matches = [new_match(ids(), number, None, None, position=i) for i in range(len(previous))]
            for i, match in enumerate(matches):
                _link_loser(dropping[i], match, PLAYER1)
                _link(previous[i], match, PLAYER2)
        else:
            matches = [new_match(ids(), number, None, None, position=i) for i in range(len(previous) // 2)]
            for i, feeder in enumerate(previous):
                _link(feeder, matches[i // 2], PLAYER1 if i % 2 == 0 else PLAYER2)

        for match in matches:
            match['next_match_id'] = None
            match['next_slot'] = None
        losers.append({'number': number, 'name': get_losers_round_name(number, total), 'matches': matches})
        previous = matches

    return losers


def _grand_final_shell(match_id: str) -> Dict:
    match = new_match(match_id, None, None, None)
    del match['round']
    return match


def generate_double_elimination(players: List[str], seeded: bool = False,
                                rng: Optional[random.Random] = None,
                                ids: Optional[IdSource] = None) -> Dict:
    """
    Generate complete double elimination bracket structure.

    Returns dict with:
    - 'winners': winners bracket rounds (a single elimination tree)
    - 'losers': losers bracket rounds, wired to receive winners-bracket losers
    - 'grand_final': winners champion (slot 1) vs losers champion (slot 2)
    - 'bracket_reset': played only if the losers champion wins the grand final
    """
    ids = ids or sequential_ids()
    winners = generate_single_elimination(players, seeded=seeded, rng=rng, ids=ids)
    winners_rounds = winners['rounds']

    # Winners side routes by explicit slot too so every match moves players the same way
    for round_data in winners_rounds:
        for match in round_data['matches']:
            match['next_slot'] = PLAYER1 if match['position'] % 2 == 0 else PLAYER2

    losers_rounds = _build_losers_rounds(winners_rounds, ids) if winners_rounds else []

    grand_final = _grand_final_shell(GRAND_FINAL_ID)
    grand_final['needs_reset'] = False
    bracket_reset = _grand_final_shell(BRACKET_RESET_ID)

    if winners_rounds:
        winners_final = winners_rounds[-1]['matches'][0]
        _link(winners_final, grand_final, PLAYER1)
        if losers_rounds:
            _link(losers_rounds[-1]['matches'][0], grand_final, PLAYER2)
        else:
            _link_loser(winners_final, grand_final, PLAYER2)

    state = {
        'type': 'double_elimination',
        'bracket_size': winners['bracket_size'],
        'num_rounds': winners['num_rounds'],
        'winners': winners_rounds,
        'losers': losers_rounds,
        'grand_final': grand_final,
        'bracket_reset': bracket_reset,
        'players': winners['players']
    }

    # First-round byes have no real loser to send down
    for match in winners_rounds[0]['matches'] if winners_rounds else []:
        if match['completed']:
            _send(state, match.get('loser_next_match_id'), match.get('loser_next_slot'), BYE)
    _resolve_byes(state)
    return state


def _locate(state: Dict, match_id: str) -> Optional[Dict]:
    if match_id == GRAND_FINAL_ID:
        return state['grand_final']
    if match_id == BRACKET_RESET_ID:
        return state['bracket_reset']
    return find_match(state['winners'], match_id) or find_match(state['losers'], match_id)


def _send(state: Dict, target_id: Optional[str], slot: Optional[str], player: Optional[str]) -> None:
    if not target_id:
        return
    target = _locate(state, target_id)
    if target is not None:
        target[slot] = player


def _resolve_byes(state: Dict) -> None:
    """Auto-complete losers matches where one side is a bye."""
    for round_data in state['losers']:
        for match in round_data['matches']:
            if match['completed'] or match['player1'] is None or match['player2'] is None:
                continue
            if BYE not in (match['player1'], match['player2']):
                continue
            match['winner'] = PLAYER2 if match['player1'] == BYE and match['player2'] != BYE else PLAYER1
            match['completed'] = True
            _send(state, match['next_match_id'], match['next_slot'], winner_name(match))


def update_double_match(state: Dict, match_id: str, score1, score2, winner: str) -> Dict:
    """
    Record a result anywhere in a double elimination bracket.

    Winners move along next_match_id, winners-bracket losers drop into
    the losers bracket, and a grand final lost by the winners champion
    opens the bracket reset. Returns a new state; unknown ids are a no-op.
    """
    state = copy.deepcopy(state)
    match = _locate(state, match_id)
    if match is None:
        logger.debug("update_double_match: no match %s in bracket", match_id)
        return state

    set_result(match, score1, score2, winner)

    if match_id == GRAND_FINAL_ID:
        reset = state['bracket_reset']
        match['needs_reset'] = winner == PLAYER2
        if match['needs_reset']:
            reset['player1'] = match['player1']
            reset['player2'] = match['player2']
        else:
            state['bracket_reset'] = _grand_final_shell(BRACKET_RESET_ID)
        return state

    if match_id == BRACKET_RESET_ID:
        return state

    _send(state, match.get('next_match_id'), match.get('next_slot'), winner_name(match))
    _send(state, match.get('loser_next_match_id'), match.get('loser_next_slot'), loser_name(match))
    _resolve_byes(state)
    return state


def is_double_elimination_complete(state: Dict) -> bool:
    grand_final = state['grand_final']
    if not grand_final['completed']:
        return False
    if grand_final['needs_reset']:
        return state['bracket_reset']['completed']
    return True


def get_double_elimination_winner(state: Dict) -> Optional[str]:
    """Champion after the grand final (and reset, if one was needed)."""
    if not is_double_elimination_complete(state):
        return None
    if state['grand_final']['needs_reset']:
        return winner_name(state['bracket_reset'])
    return winner_name(state['grand_final'])
