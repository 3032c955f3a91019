"""
Format dispatch over the six tournament engines.

Every tournament state carries a 'type' tag. The functions here pick the
engine by that tag and add the validation the engines leave to their
callers: bad rosters, unknown match ids, invalid challenges and so on
raise FormatError subclasses instead of silently doing nothing.
"""
import copy
import logging
import random
from typing import Callable, Dict, List, Optional

from . import double_elimination, elimination, killer, ladder, round_robin, swiss
from .models import BYE, DRAW, PLAYER1, PLAYER2, IdSource, winner_name
from .settings import resolve_config

logger = logging.getLogger(__name__)


class FormatError(ValueError):
    """Base class for tournament validation errors."""


class UnknownFormatError(FormatError):
    pass


class InvalidRosterError(FormatError):
    pass


class InvalidResultError(FormatError):
    pass


class FormatEngine:
    """Operations of one tournament format."""

    def __init__(self, name: str, label: str, create: Callable, apply_result: Callable,
                 is_complete: Callable, get_winner: Callable, get_standings: Callable):
        self.name = name
        self.label = label
        self.create = create
        self.apply_result = apply_result
        self.is_complete = is_complete
        self.get_winner = get_winner
        self.get_standings = get_standings

    def __repr__(self):
        return f"FormatEngine(name={self.name}, label={self.label})"


# --- match lookup and validation -------------------------------------------

def _all_matches(state: Dict) -> List[Dict]:
    if state['type'] == 'double_elimination':
        rounds = state['winners'] + state['losers']
        extra = [state['grand_final'], state['bracket_reset']]
    else:
        rounds = state['rounds']
        extra = []
    return [m for r in rounds for m in r['matches']] + extra


def _find_open_match(state: Dict, match_id: str) -> Dict:
    match = next((m for m in _all_matches(state) if m['id'] == match_id), None)
    if match is None:
        raise InvalidResultError(f"Unknown match '{match_id}'")
    if match['player1'] in (None, BYE) or match['player2'] in (None, BYE):
        raise InvalidResultError(f"Match '{match_id}' is not ready to be played")
    if match['completed']:
        # A recorded result has already been counted or fed forward
        raise InvalidResultError(f"Match '{match_id}' already has a result")
    return match


def _match_result(result: Dict, allow_draw: bool):
    allowed = (PLAYER1, PLAYER2, DRAW) if allow_draw else (PLAYER1, PLAYER2)
    winner = result.get('winner')
    if winner not in allowed:
        raise InvalidResultError(f"winner must be one of {', '.join(allowed)}")
    scores = (result.get('score1'), result.get('score2'))
    for score in scores:
        if isinstance(score, bool) or not isinstance(score, (int, float)) or score < 0:
            raise InvalidResultError("score1 and score2 must be non-negative numbers")
    return result.get('match_id'), scores[0], scores[1], winner


# --- per-format adapters ----------------------------------------------------

def _create_single(players, config, rng, ids):
    return elimination.generate_single_elimination(players, seeded=config['seeded'], rng=rng, ids=ids)


def _create_double(players, config, rng, ids):
    return double_elimination.generate_double_elimination(players, seeded=config['seeded'], rng=rng, ids=ids)


def _create_round_robin(players, config, rng, ids):
    return round_robin.generate_round_robin_schedule(players, ids=ids)


def _create_swiss(players, config, rng, ids):
    tournament = swiss.create_swiss_tournament(players, config['num_rounds'])
    return swiss.generate_next_round(tournament, ids=ids)


def _create_ladder(players, config, rng, ids):
    return {
        'type': 'ladder',
        'ladder': ladder.create_ladder(players, randomize=config['randomize'], rng=rng),
        'max_rungs': config['max_rungs']
    }


def _create_killer(players, config, rng, ids):
    return killer.create_killer_game(players, starting_lives=config['starting_lives'], rng=rng)


def _apply_single(state, result):
    match_id, score1, score2, winner = _match_result(result, allow_draw=False)
    _find_open_match(state, match_id)
    return elimination.update_match(state, match_id, score1, score2, winner)


def _apply_double(state, result):
    match_id, score1, score2, winner = _match_result(result, allow_draw=False)
    _find_open_match(state, match_id)
    return double_elimination.update_double_match(state, match_id, score1, score2, winner)


def _apply_round_robin(state, result):
    match_id, score1, score2, winner = _match_result(result, allow_draw=True)
    _find_open_match(state, match_id)
    return round_robin.record_round_robin_result(state, match_id, score1, score2, winner)


def _apply_swiss(state, result):
    match_id, score1, score2, winner = _match_result(result, allow_draw=True)
    _find_open_match(state, match_id)
    return swiss.record_result(state, match_id, score1, score2, winner)


def _apply_ladder(state, result):
    challenger_rank = result.get('challenger_rank')
    defender_rank = result.get('defender_rank')
    challenger_wins = result.get('challenger_wins')
    if not isinstance(challenger_wins, bool):
        raise InvalidResultError("challenger_wins must be true or false")
    ranks = {entry['rank'] for entry in state['ladder']}
    if challenger_rank not in ranks or defender_rank not in ranks:
        raise InvalidResultError(f"Unknown rank in challenge {challenger_rank} -> {defender_rank}")
    if not ladder.is_valid_challenge(state['ladder'], challenger_rank, defender_rank, state['max_rungs']):
        raise InvalidResultError(
            f"Rank {challenger_rank} cannot challenge rank {defender_rank} "
            f"(upward only, at most {state['max_rungs']} rungs)"
        )
    new_state = dict(state)
    new_state['ladder'] = ladder.process_challenge(state['ladder'], challenger_rank, defender_rank, challenger_wins)
    return new_state


def _apply_killer(state, result):
    action = result.get('action')
    if action not in killer.ACTIONS:
        raise InvalidResultError(f"action must be one of {', '.join(killer.ACTIONS)}")
    if state['game_over']:
        raise InvalidResultError("The game is already over")
    return killer.process_turn(state, action)


def _elimination_standings(matches: List[Dict]) -> List[Dict]:
    """Match wins and losses per player, most wins first."""
    records = {}
    for match in matches:
        if not match['completed'] or BYE in (match['player1'], match['player2']):
            continue
        for side in (PLAYER1, PLAYER2):
            name = match[side]
            entry = records.setdefault(name, {'player': name, 'wins': 0, 'losses': 0})
            if winner_name(match) == name:
                entry['wins'] += 1
            else:
                entry['losses'] += 1
    return sorted(records.values(), key=lambda e: (-e['wins'], e['losses']))


def _killer_standings(state: Dict) -> List[Dict]:
    order = killer.get_elimination_order(state)
    active = sorted((p for p in state['players'] if not p['eliminated']), key=lambda p: -p['lives'])
    eliminated = sorted((p for p in state['players'] if p['eliminated']),
                        key=lambda p: -order.index(p['name']) if p['name'] in order else 0)
    return [dict(p) for p in active + eliminated]


def _round_robin_winner(state: Dict) -> Optional[str]:
    if not round_robin.is_round_robin_complete(state['matches']):
        return None
    return round_robin.calculate_standings(state['players'], state['matches'])[0]['player']


def _swiss_winner(state: Dict) -> Optional[str]:
    if not swiss.is_tournament_complete(state):
        return None
    return swiss.get_standings(state)[0]['name']


FORMATS = {
    'single_elimination': FormatEngine(
        'single_elimination', 'Single Elimination', _create_single, _apply_single,
        elimination.is_bracket_complete, elimination.get_bracket_winner,
        lambda s: _elimination_standings(_all_matches(s))),
    'double_elimination': FormatEngine(
        'double_elimination', 'Double Elimination', _create_double, _apply_double,
        double_elimination.is_double_elimination_complete, double_elimination.get_double_elimination_winner,
        lambda s: _elimination_standings(_all_matches(s))),
    'round_robin': FormatEngine(
        'round_robin', 'Round Robin', _create_round_robin, _apply_round_robin,
        lambda s: round_robin.is_round_robin_complete(s['matches']), _round_robin_winner,
        lambda s: round_robin.calculate_standings(s['players'], s['matches'])),
    'swiss': FormatEngine(
        'swiss', 'Swiss System', _create_swiss, _apply_swiss,
        swiss.is_tournament_complete, _swiss_winner, swiss.get_standings),
    'ladder': FormatEngine(
        'ladder', 'Ladder', _create_ladder, _apply_ladder,
        lambda s: False, lambda s: None, lambda s: list(s['ladder'])),
    'killer': FormatEngine(
        'killer', 'Killer', _create_killer, _apply_killer,
        lambda s: s['game_over'], lambda s: s['winner'], _killer_standings),
}


# --- public dispatch --------------------------------------------------------

def get_engine(format_type: str) -> FormatEngine:
    engine = FORMATS.get(format_type)
    if engine is None:
        raise UnknownFormatError(f"Unknown tournament format '{format_type}'")
    return engine


def validate_roster(players) -> List[str]:
    """Check a roster is a list of at least two unique, non-empty names."""
    if not isinstance(players, list) or not all(isinstance(p, str) for p in players):
        raise InvalidRosterError("Players must be a list of names")
    names = [p.strip() for p in players]
    if any(not name for name in names):
        raise InvalidRosterError("Player names cannot be empty")
    if BYE in names:
        raise InvalidRosterError(f"'{BYE}' is reserved and cannot be a player name")
    if len(set(names)) != len(names):
        raise InvalidRosterError("Player names must be unique")
    if len(names) < 2:
        raise InvalidRosterError("At least two players are required")
    return names


def create_tournament(format_type: str, players: List[str], config: Optional[Dict] = None,
                      rng: Optional[random.Random] = None, ids: Optional[IdSource] = None,
                      settings: Optional[Dict[str, Dict]] = None) -> Dict:
    """
    Build the initial state for a format. Swiss tournaments come back with
    round 1 already paired.
    """
    engine = get_engine(format_type)
    names = validate_roster(players)
    resolved = resolve_config(format_type, config, settings)
    state = engine.create(names, resolved, rng, ids)
    logger.debug("Created %s tournament for %d players", format_type, len(names))
    return state


def apply_result(state: Dict, result: Dict) -> Dict:
    """Validate a reported result and apply it, returning the new state."""
    if not isinstance(result, dict):
        raise InvalidResultError("Result must be a mapping")
    return get_engine(state.get('type')).apply_result(state, result)


def advance(state: Dict, ids: Optional[IdSource] = None) -> Dict:
    """Pair the next Swiss round once the current one is finished."""
    if state.get('type') != 'swiss':
        raise InvalidResultError("Only Swiss tournaments are played round by round")
    if not swiss.is_round_complete(state):
        raise InvalidResultError("The current round still has unfinished matches")
    if state['current_round'] >= state['total_rounds']:
        raise InvalidResultError("All rounds have been played")
    return swiss.generate_next_round(state, ids=ids)


def is_complete(state: Dict) -> bool:
    return get_engine(state.get('type')).is_complete(state)


def get_winner(state: Dict) -> Optional[str]:
    return get_engine(state.get('type')).get_winner(state)


def get_standings(state: Dict) -> List[Dict]:
    return copy.deepcopy(get_engine(state.get('type')).get_standings(state))
