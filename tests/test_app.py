"""
Unit tests for the Flask tournament API.
"""
import pytest
import sys
import os
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import app as app_module


def _create(client, format_type='single_elimination', players=None, **extra):
    payload = {'name': 'Friday Night', 'type': format_type, 'players': players or ['A', 'B', 'C', 'D']}
    payload.update(extra)
    return client.post('/api/tournaments', json=payload)


def _create_seeded(client):
    response = _create(client, config={'seeded': True})
    return response.get_json()['tournament']['id']


class TestFormatsRoute:
    """Tests for GET /api/formats."""

    def test_lists_formats(self, client):
        response = client.get('/api/formats')
        assert response.status_code == 200
        formats = {f['id']: f['name'] for f in response.get_json()['formats']}
        assert formats['round_robin'] == 'Round Robin'
        assert len(formats) == 6


class TestCreateTournament:
    """Tests for POST /api/tournaments."""

    def test_create(self, client, temp_data_dir):
        response = _create(client, players=[' A ', 'B', 'C'])
        assert response.status_code == 201
        data = response.get_json()
        assert data['success'] is True
        record = data['tournament']
        assert record['type'] == 'single_elimination'
        assert record['players'] == ['A', 'B', 'C']
        assert record['status'] == 'active'
        assert record['state']['bracket_size'] == 4

        saved = yaml.safe_load((temp_data_dir / 'tournaments.yaml').read_text())
        assert saved['tournaments'][0]['id'] == record['id']

    def test_name_required(self, client):
        response = _create(client, name='  ')
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_unknown_format(self, client):
        response = _create(client, format_type='bowling')
        assert response.status_code == 400
        assert 'Unknown tournament format' in response.get_json()['error']

    def test_bad_roster(self, client):
        assert _create(client, players=['A', 'A']).status_code == 400
        response = client.post('/api/tournaments', json={'name': 'x', 'type': 'killer'})
        assert response.status_code == 400

    def test_bad_config(self, client):
        response = _create(client, format_type='killer', config={'starting_lives': 0})
        assert response.status_code == 400
        assert 'starting_lives' in response.get_json()['error']

    def test_settings_file_defaults(self, client, temp_data_dir):
        (temp_data_dir / 'settings.yaml').write_text(
            "tournament_settings:\n  killer:\n    starting_lives: 6\n"
        )
        record = _create(client, format_type='killer').get_json()['tournament']
        assert all(p['lives'] == 6 for p in record['state']['players'])


class TestReadAndDelete:
    """Tests for listing, fetching and deleting tournaments."""

    def test_list_and_filter(self, client):
        _create(client)
        _create(client, format_type='round_robin', players=['A', 'B'])
        assert len(client.get('/api/tournaments').get_json()['tournaments']) == 2
        active = client.get('/api/tournaments?status=active').get_json()['tournaments']
        assert len(active) == 2
        assert 'state' not in active[0]
        assert client.get('/api/tournaments?status=completed').get_json()['tournaments'] == []

    def test_get(self, client):
        tournament_id = _create_seeded(client)
        response = client.get(f'/api/tournaments/{tournament_id}')
        assert response.status_code == 200
        assert response.get_json()['tournament']['state']['type'] == 'single_elimination'

    def test_get_missing(self, client):
        response = client.get('/api/tournaments/nope')
        assert response.status_code == 404
        assert response.get_json()['success'] is False

    def test_delete(self, client):
        tournament_id = _create_seeded(client)
        assert client.delete(f'/api/tournaments/{tournament_id}').get_json()['success'] is True
        assert client.get(f'/api/tournaments/{tournament_id}').status_code == 404
        assert client.delete(f'/api/tournaments/{tournament_id}').status_code == 404


class TestResults:
    """Tests for recording results over HTTP."""

    def test_play_bracket_to_completion(self, client):
        tournament_id = _create_seeded(client)
        url = f'/api/tournaments/{tournament_id}/results'
        client.post(url, json={'match_id': 'match-1', 'score1': 3, 'score2': 0, 'winner': 'player1'})
        client.post(url, json={'match_id': 'match-2', 'score1': 3, 'score2': 1, 'winner': 'player1'})
        response = client.post(url, json={'match_id': 'match-3', 'score1': 2, 'score2': 3, 'winner': 'player2'})

        data = response.get_json()
        assert response.status_code == 200
        assert data['winner'] == 'B'
        assert data['tournament']['status'] == 'completed'

        standings = client.get(f'/api/tournaments/{tournament_id}/standings').get_json()
        assert standings['completed'] is True
        assert standings['winner'] == 'B'
        assert standings['standings'][0]['player'] == 'B'

    def test_invalid_result(self, client):
        tournament_id = _create_seeded(client)
        url = f'/api/tournaments/{tournament_id}/results'
        response = client.post(url, json={'match_id': 'match-3', 'score1': 1, 'score2': 0, 'winner': 'player1'})
        assert response.status_code == 400
        assert 'not ready' in response.get_json()['error']
        assert client.post(url, data='junk').status_code == 400

    def test_result_for_missing_tournament(self, client):
        response = client.post('/api/tournaments/nope/results', json={'action': 'pot'})
        assert response.status_code == 404

    def test_killer_turns(self, client):
        record = _create(client, format_type='killer', players=['A', 'B'],
                         config={'starting_lives': 1}).get_json()['tournament']
        first, second = [p['name'] for p in record['state']['players']]
        url = f"/api/tournaments/{record['id']}/results"
        data = client.post(url, json={'action': 'miss'}).get_json()
        assert data['winner'] == second
        assert data['tournament']['status'] == 'completed'
        assert client.post(url, json={'action': 'pot'}).status_code == 400

    def test_swiss_next_round(self, client):
        record = _create(client, format_type='swiss', config={'num_rounds': 2}).get_json()['tournament']
        url = f"/api/tournaments/{record['id']}"
        assert client.post(f'{url}/next-round').status_code == 400

        for match in record['state']['rounds'][0]['matches']:
            client.post(f'{url}/results', json={
                'match_id': match['id'], 'score1': 1, 'score2': 0, 'winner': 'player1'
            })
        response = client.post(f'{url}/next-round')
        assert response.status_code == 200
        assert response.get_json()['tournament']['state']['current_round'] == 2

    def test_next_round_for_non_swiss(self, client):
        tournament_id = _create_seeded(client)
        assert client.post(f'/api/tournaments/{tournament_id}/next-round').status_code == 400


class TestBackup:
    """Tests for JSON export and import."""

    def test_export_import_cycle(self, client):
        tournament_id = _create_seeded(client)
        backup = client.get('/api/export').get_json()
        assert backup['version'] == app_module.BACKUP_VERSION
        assert [t['id'] for t in backup['tournaments']] == [tournament_id]
        assert backup['settings']['killer'] == {'starting_lives': 3}

        client.delete(f'/api/tournaments/{tournament_id}')
        response = client.post('/api/import', json=backup)
        assert response.get_json() == {'success': True, 'count': 1}
        assert client.get(f'/api/tournaments/{tournament_id}').status_code == 200

    def test_import_rejects_bad_backups(self, client):
        backup = client.get('/api/export').get_json()
        record = {'id': 'x', 'type': 'killer', 'name': 'n', 'players': [], 'config': {},
                  'status': 'active', 'created_at': 'now', 'state': {'type': 'ladder'}}
        bad_backups = [
            {},
            {'version': '0.1', 'tournaments': []},
            dict(backup, tournaments=[{'id': 'x'}]),
            dict(backup, tournaments=[record]),
        ]
        for bad in bad_backups:
            assert client.post('/api/import', json=bad).status_code == 400

    def test_corrupt_records_file(self, client, temp_data_dir):
        (temp_data_dir / 'tournaments.yaml').write_text("tournaments: [unclosed\n")
        assert client.get('/api/tournaments').get_json()['tournaments'] == []

    def test_records_file_without_mapping(self, client, temp_data_dir):
        for content in ("- just\n- a list\n", "plain text\n"):
            (temp_data_dir / 'tournaments.yaml').write_text(content)
            response = client.get('/api/tournaments')
            assert response.status_code == 200
            assert response.get_json()['tournaments'] == []

    def test_timestamps_are_utc(self, client):
        record = _create(client).get_json()['tournament']
        assert record['created_at'].endswith('+00:00')
        assert client.get('/api/export').get_json()['exported_at'].endswith('+00:00')
