"""
Flask web application exposing tournament status and the bracket API.
"""
import os

from flask import Flask, Response, jsonify, request

import storage
from commands import CommandDispatcher
from knockout.elimination import record_result, round_name_for
from knockout.errors import (
    InsufficientPlayers,
    InvalidWinner,
    MatchAlreadyDecided,
    MatchNotFound,
    NoActiveTournament,
    NoTablesAvailable,
    RoundNotResolved,
    TournamentError,
)
from knockout.formats import current_status

app = Flask(__name__)
app.config['TOURNAMENT_DATA_DIR'] = os.environ.get('TOURNAMENT_DATA_DIR')

ERROR_STATUS = {
    InsufficientPlayers: 400,
    NoTablesAvailable: 400,
    InvalidWinner: 400,
    MatchNotFound: 404,
    NoActiveTournament: 404,
    RoundNotResolved: 409,
    MatchAlreadyDecided: 409,
}


def _data_dir():
    return app.config.get('TOURNAMENT_DATA_DIR')


def _error(message: str, status: int):
    return jsonify({'success': False, 'error': message}), status


@app.errorhandler(TournamentError)
def handle_tournament_error(e):
    status = ERROR_STATUS.get(type(e), 400)
    app.logger.info(f'{request.method} {request.path} rejected: {e}')
    return _error(str(e), status)


@app.errorhandler(storage.StorageError)
def handle_storage_error(e):
    app.logger.warning(f'{request.method} {request.path} storage error: {e}')
    return _error(str(e), 409)


def tournament_payload(tournament) -> dict:
    """JSON shape consumed by the bracket viewer."""
    data = tournament.to_dict()
    data['player_ids'] = list(tournament.players)
    data['champion'] = tournament.champion
    data['round_names'] = [round_name_for(tournament, i) for i in range(len(tournament.rounds))]
    return data


@app.route('/status')
def status():
    """Plain-text status of the latest tournament."""
    with storage.transaction(_data_dir(), readonly=True) as db:
        text = current_status(storage.latest_tournament(db))
    return Response(text + '\n', mimetype='text/plain')


@app.route('/api/tournament', methods=['GET'])
def api_tournament():
    with storage.transaction(_data_dir(), readonly=True) as db:
        tournament = storage.latest_tournament(db)
        if tournament is None:
            return _error('No tournament found', 404)
        return jsonify(tournament_payload(tournament))


@app.route('/api/tournament/start', methods=['POST'])
def api_start_tournament():
    with storage.transaction(_data_dir()) as db:
        tournament = storage.start_tournament(db)
        payload = tournament_payload(tournament)
    app.logger.info(f'Tournament {payload["id"]} started')
    return jsonify({'success': True, 'tournament': payload}), 201


@app.route('/api/matches/<match_id>/result', methods=['POST'])
def api_match_result(match_id):
    data = request.get_json(silent=True) or {}
    winner = (data.get('winner') or '').strip()
    if not winner:
        return _error('Missing required field: winner', 400)
    with storage.transaction(_data_dir()) as db:
        tournament = storage.active_tournament(db)
        record_result(tournament, match_id, winner)
        payload = tournament_payload(tournament)
    return jsonify({'success': True, 'tournament': payload})


@app.route('/api/players', methods=['GET', 'POST'])
def api_players():
    if request.method == 'POST':
        data = request.get_json(silent=True) or {}
        username = (data.get('username') or '').strip()
        if not username:
            return _error('Missing required field: username', 400)
        with storage.transaction(_data_dir()) as db:
            player = storage.add_player(db, username)
        return jsonify({'success': True, 'player': player.to_dict()}), 201

    with storage.transaction(_data_dir(), readonly=True) as db:
        return jsonify({'players': [p.to_dict() for p in db.players]})


@app.route('/api/tables', methods=['GET', 'POST'])
def api_tables():
    if request.method == 'POST':
        data = request.get_json(silent=True) or {}
        count = data.get('count')
        if not isinstance(count, int) or isinstance(count, bool):
            return _error('count must be an integer', 400)
        with storage.transaction(_data_dir()) as db:
            tables = storage.add_tables(db, count)
        return jsonify({'success': True, 'tables': [t.to_dict() for t in tables]}), 201

    with storage.transaction(_data_dir(), readonly=True) as db:
        return jsonify({'tables': [t.to_dict() for t in db.tables]})


@app.route('/api/command', methods=['POST'])
def api_command():
    """Run one chat command and return the reply."""
    data = request.get_json(silent=True) or {}
    text = (data.get('command') or '').strip()
    if not text:
        return _error('Missing required field: command', 400)
    dispatcher = CommandDispatcher(data_dir=_data_dir())
    reply = dispatcher.handle(text)
    return jsonify(reply.to_dict()), (200 if reply.ok else 400)


if __name__ == '__main__':
    app.run(debug=True, port=5000)
