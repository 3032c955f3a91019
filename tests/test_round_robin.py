"""
Unit tests for round robin scheduling and standings.
"""
import pytest
import sys
import os
from itertools import combinations

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from league.round_robin import (
    calculate_standings,
    generate_round_robin_schedule,
    get_head_to_head,
    is_round_robin_complete,
    record_round_robin_result,
)


def _pairs(schedule):
    return [frozenset((m['player1'], m['player2'])) for m in schedule['matches']]


class TestSchedule:
    """Tests for the circle method schedule."""

    def test_every_pair_exactly_once(self, ids):
        for n in range(2, 15):
            players = [f"P{i}" for i in range(n)]
            schedule = generate_round_robin_schedule(players, ids=ids)
            pairs = _pairs(schedule)
            assert len(pairs) == n * (n - 1) // 2
            assert set(pairs) == {frozenset(p) for p in combinations(players, 2)}

    def test_round_count(self, ids):
        assert len(generate_round_robin_schedule(['A', 'B', 'C', 'D'], ids=ids)['rounds']) == 3
        assert len(generate_round_robin_schedule(['A', 'B', 'C', 'D', 'E'], ids=ids)['rounds']) == 5

    def test_nobody_plays_twice_in_a_round(self, ids):
        schedule = generate_round_robin_schedule([f"P{i}" for i in range(9)], ids=ids)
        for round_data in schedule['rounds']:
            seen = [p for m in round_data['matches'] for p in (m['player1'], m['player2'])]
            assert len(seen) == len(set(seen))

    def test_four_player_rounds(self, ids):
        schedule = generate_round_robin_schedule(['A', 'B', 'C', 'D'], ids=ids)
        rounds = [[(m['player1'], m['player2']) for m in r['matches']] for r in schedule['rounds']]
        assert rounds == [
            [('A', 'B'), ('C', 'D')],
            [('A', 'D'), ('B', 'C')],
            [('A', 'C'), ('D', 'B')],
        ]

    def test_odd_count_drops_bye_pairs(self, ids):
        schedule = generate_round_robin_schedule(['A', 'B', 'C'], ids=ids)
        assert [len(r['matches']) for r in schedule['rounds']] == [1, 1, 1]
        for match in schedule['matches']:
            assert None not in (match['player1'], match['player2'])

    def test_fewer_than_two_players(self):
        assert generate_round_robin_schedule(['A'])['matches'] == []
        assert generate_round_robin_schedule([])['rounds'] == []

    def test_default_ids_are_unique(self):
        schedule = generate_round_robin_schedule([f"P{i}" for i in range(6)])
        match_ids = [m['id'] for m in schedule['matches']]
        assert len(set(match_ids)) == len(match_ids)


class TestResults:
    """Tests for recording results and standings."""

    def test_record_updates_both_views(self, ids):
        schedule = generate_round_robin_schedule(['A', 'B', 'C', 'D'], ids=ids)
        updated = record_round_robin_result(schedule, 'match-1', 21, 15, 'player1')
        assert updated['matches'][0]['completed'] is True
        assert updated['rounds'][0]['matches'][0]['winner'] == 'player1'
        assert schedule['matches'][0]['completed'] is False

    def test_unknown_match_is_noop(self, ids):
        schedule = generate_round_robin_schedule(['A', 'B'], ids=ids)
        assert record_round_robin_result(schedule, 'missing', 1, 0, 'player1') == schedule

    def test_standings_sorting(self):
        matches = [
            {'player1': 'A', 'player2': 'B', 'score1': 5, 'score2': 3, 'winner': 'player1', 'completed': True},
            {'player1': 'C', 'player2': 'A', 'score1': 5, 'score2': 0, 'winner': 'player1', 'completed': True},
            {'player1': 'B', 'player2': 'C', 'score1': 4, 'score2': 4, 'winner': 'draw', 'completed': True},
            {'player1': 'A', 'player2': 'D', 'score1': None, 'score2': None, 'winner': None, 'completed': False},
        ]
        standings = calculate_standings(['A', 'B', 'C', 'D'], matches)
        assert [s['player'] for s in standings] == ['C', 'A', 'D', 'B']

        c = standings[0]
        assert (c['played'], c['wins'], c['draws'], c['points_for'], c['points_against'], c['point_diff']) == \
            (2, 1, 1, 9, 4, 5)
        a = standings[1]
        assert (a['wins'], a['losses'], a['point_diff']) == (1, 1, -3)
        assert standings[2]['played'] == 0

    def test_points_for_breaks_ties(self):
        matches = [
            {'player1': 'A', 'player2': 'B', 'score1': 10, 'score2': 8, 'winner': 'player1', 'completed': True},
            {'player1': 'C', 'player2': 'D', 'score1': 4, 'score2': 2, 'winner': 'player1', 'completed': True},
        ]
        standings = calculate_standings(['C', 'A', 'B', 'D'], matches)
        assert [s['player'] for s in standings][:2] == ['A', 'C']

    def test_is_complete(self, ids):
        schedule = generate_round_robin_schedule(['A', 'B', 'C'], ids=ids)
        assert not is_round_robin_complete(schedule['matches'])
        for match in schedule['matches']:
            schedule = record_round_robin_result(schedule, match['id'], 1, 0, 'player1')
        assert is_round_robin_complete(schedule['matches'])
        assert not is_round_robin_complete([])

    def test_head_to_head(self, ids):
        schedule = generate_round_robin_schedule(['A', 'B', 'C', 'D'], ids=ids)
        assert get_head_to_head(schedule['matches'], 'A', 'B') is None
        schedule = record_round_robin_result(schedule, 'match-1', 2, 5, 'player2')
        assert get_head_to_head(schedule['matches'], 'A', 'B') == 'B'
        assert get_head_to_head(schedule['matches'], 'B', 'A') == 'B'
        assert get_head_to_head(schedule['matches'], 'A', 'Z') is None
