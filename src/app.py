"""
HTTP API over the tournament engines.

Tournament records are kept in a single YAML file in the data directory;
every write goes through a file lock so concurrent requests cannot
interleave their read-modify-write cycles.
"""
import os
import uuid
import logging

import yaml
from filelock import FileLock
from flask import Flask, jsonify, request

from league.formats import (
    FORMATS, FormatError, advance, apply_result, create_tournament, get_standings, get_winner, is_complete
)
from league.models import utc_now
from league.settings import DATA_DIR, SettingsError, load_settings

app = Flask(__name__)

SETTINGS_FILE = os.path.join(DATA_DIR, 'settings.yaml')
RECORDS_FILE = os.path.join(DATA_DIR, 'tournaments.yaml')
LOCK_FILE = os.path.join(DATA_DIR, '.lock')
BACKUP_VERSION = '1.0'

RECORD_KEYS = {'id', 'type', 'name', 'players', 'config', 'status', 'created_at', 'state'}


class _NoAliasDumper(yaml.SafeDumper):
    """Round-robin schedules share match dicts between views; write them out in full."""

    def ignore_aliases(self, data):
        return True


def _lock() -> FileLock:
    os.makedirs(os.path.dirname(LOCK_FILE), exist_ok=True)
    return FileLock(LOCK_FILE, timeout=10)


def load_records() -> list:
    """Load tournament records from YAML."""
    if not os.path.exists(RECORDS_FILE):
        return []
    try:
        with open(RECORDS_FILE, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {RECORDS_FILE}: {e}')
        return []
    if not isinstance(data, dict):
        if data:
            app.logger.warning(f'Ignoring {RECORDS_FILE}: expected a mapping at the top level')
        return []
    return data.get('tournaments') or []


def save_records(records: list):
    """Save tournament records to YAML."""
    os.makedirs(os.path.dirname(RECORDS_FILE), exist_ok=True)
    with open(RECORDS_FILE, 'w', encoding='utf-8') as f:
        yaml.dump({'tournaments': records}, f, Dumper=_NoAliasDumper, default_flow_style=False)


def _find_record(records: list, tournament_id: str):
    return next((r for r in records if r['id'] == tournament_id), None)


def _summary(record: dict) -> dict:
    return {k: record[k] for k in ('id', 'type', 'name', 'players', 'status', 'created_at')}


def _not_found(tournament_id: str):
    return jsonify({'success': False, 'error': f'Tournament {tournament_id} not found.'}), 404


def _update_state(tournament_id: str, transform):
    """Apply transform to a record's state under the lock and persist it."""
    with _lock():
        records = load_records()
        record = _find_record(records, tournament_id)
        if record is None:
            return _not_found(tournament_id)
        try:
            record['state'] = transform(record['state'])
        except FormatError as e:
            return jsonify({'success': False, 'error': str(e)}), 400
        record['status'] = 'completed' if is_complete(record['state']) else 'active'
        save_records(records)
    return jsonify({'success': True, 'tournament': record, 'winner': get_winner(record['state'])})


@app.route('/api/formats', methods=['GET'])
def api_formats():
    return jsonify({'formats': [{'id': f.name, 'name': f.label} for f in FORMATS.values()]})


@app.route('/api/tournaments', methods=['GET'])
def api_list_tournaments():
    status = request.args.get('status')
    records = load_records()
    if status:
        records = [r for r in records if r['status'] == status]
    return jsonify({'tournaments': [_summary(r) for r in records]})


@app.route('/api/tournaments', methods=['POST'])
def api_create_tournament():
    data = request.get_json(silent=True) or {}
    format_type = data.get('type')
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'success': False, 'error': 'Tournament name is required.'}), 400

    try:
        settings = load_settings(SETTINGS_FILE)
        state = create_tournament(format_type, data.get('players'), data.get('config') or {}, settings=settings)
    except (FormatError, SettingsError) as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    record = {
        'id': str(uuid.uuid4()),
        'type': format_type,
        'name': name,
        'players': [p.strip() for p in data['players']],
        'config': data.get('config') or {},
        'status': 'completed' if is_complete(state) else 'active',
        'created_at': utc_now(),
        'state': state
    }
    with _lock():
        records = load_records()
        records.append(record)
        save_records(records)

    app.logger.info(f'Created {format_type} tournament {record["id"]} ({name})')
    return jsonify({'success': True, 'tournament': record}), 201


@app.route('/api/tournaments/<tournament_id>', methods=['GET'])
def api_get_tournament(tournament_id):
    record = _find_record(load_records(), tournament_id)
    if record is None:
        return _not_found(tournament_id)
    return jsonify({'tournament': record})


@app.route('/api/tournaments/<tournament_id>', methods=['DELETE'])
def api_delete_tournament(tournament_id):
    with _lock():
        records = load_records()
        remaining = [r for r in records if r['id'] != tournament_id]
        if len(remaining) == len(records):
            return _not_found(tournament_id)
        save_records(remaining)
    app.logger.info(f'Deleted tournament {tournament_id}')
    return jsonify({'success': True})


@app.route('/api/tournaments/<tournament_id>/results', methods=['POST'])
def api_record_result(tournament_id):
    result = request.get_json(silent=True)
    return _update_state(tournament_id, lambda state: apply_result(state, result))


@app.route('/api/tournaments/<tournament_id>/next-round', methods=['POST'])
def api_next_round(tournament_id):
    return _update_state(tournament_id, advance)


@app.route('/api/tournaments/<tournament_id>/standings', methods=['GET'])
def api_standings(tournament_id):
    record = _find_record(load_records(), tournament_id)
    if record is None:
        return _not_found(tournament_id)
    return jsonify({
        'standings': get_standings(record['state']),
        'completed': is_complete(record['state']),
        'winner': get_winner(record['state'])
    })


@app.route('/api/export', methods=['GET'])
def api_export():
    """Export all tournaments and settings as a JSON backup."""
    return jsonify({
        'version': BACKUP_VERSION,
        'exported_at': utc_now(),
        'tournaments': load_records(),
        'settings': load_settings(SETTINGS_FILE)
    })


@app.route('/api/import', methods=['POST'])
def api_import():
    """Replace all tournaments with the ones from a JSON backup."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get('tournaments'), list):
        return jsonify({'success': False, 'error': 'Backup must contain a tournaments list.'}), 400
    if data.get('version') != BACKUP_VERSION:
        return jsonify({'success': False, 'error': f'Unsupported backup version {data.get("version")!r}.'}), 400

    for record in data['tournaments']:
        if not isinstance(record, dict) or not RECORD_KEYS.issubset(record):
            return jsonify({'success': False, 'error': 'Backup contains a malformed tournament record.'}), 400
        if record['type'] not in FORMATS or not isinstance(record['state'], dict) \
                or record['state'].get('type') != record['type']:
            return jsonify({'success': False, 'error': f'Tournament {record["id"]} has an invalid state.'}), 400

    with _lock():
        save_records(data['tournaments'])
    app.logger.info(f'Imported {len(data["tournaments"])} tournaments')
    return jsonify({'success': True, 'count': len(data['tournaments'])})


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    app.run(debug=True)
