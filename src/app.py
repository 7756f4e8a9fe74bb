"""
Flask web application exposing the bracket engine as a JSON API.
"""
import os
import logging
from filelock import Timeout
from flask import Flask, request, jsonify
from bracket.errors import BracketError
from bracket.service import BracketService
from bracket.store import YamlMatchStore

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))
LOCK_TIMEOUT = float(os.environ.get('BRACKET_LOCK_TIMEOUT', '10'))
DEFAULT_MAX_TEAMS = int(os.environ.get('BRACKET_MAX_TEAMS', '128'))

# One store per data directory so its file locks are shared between requests
_stores = {}


def get_service() -> BracketService:
    """Service bound to the current data directory."""
    store = _stores.get(DATA_DIR)
    if store is None:
        store = YamlMatchStore(DATA_DIR, lock_timeout=LOCK_TIMEOUT, default_max_teams=DEFAULT_MAX_TEAMS)
        _stores[DATA_DIR] = store
    return BracketService(store)


def _optional_int(data: dict, key: str):
    value = data.get(key)
    if value is None or value == '':
        return None
    # JSON true/false and 2.9 would otherwise slip through int()
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return value


@app.errorhandler(BracketError)
def handle_bracket_error(e):
    """Report engine errors with their reason code."""
    if e.status_code >= 500:
        app.logger.error(f'{e.code}: {e.message}')
    else:
        app.logger.warning(f'{e.code}: {e.message}')
    return jsonify({'error': e.message, 'code': e.code}), e.status_code


@app.errorhandler(Timeout)
def handle_lock_timeout(e):
    app.logger.warning(f'Tournament lock timeout: {e}')
    return jsonify({'error': 'Tournament is busy, try again', 'code': 'LOCK_TIMEOUT'}), 503


@app.route('/api/tournaments/<tournament_id>/bracket', methods=['POST'])
def api_generate_bracket(tournament_id):
    """Generate (or with force, regenerate) the bracket."""
    data = request.get_json(silent=True) or {}
    force = bool(data.get('force', False))
    matches = get_service().generate_bracket(tournament_id, force=force)
    app.logger.info(f'Bracket generated for {tournament_id} (force={force})')
    return jsonify({'success': True, 'matches': [m.to_dict() for m in matches]})


@app.route('/api/tournaments/<tournament_id>/bracket', methods=['GET'])
def api_get_bracket(tournament_id):
    return jsonify(get_service().get_bracket(tournament_id))


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>/result', methods=['POST'])
def api_submit_result(tournament_id, match_id):
    """
    Record a match result. Body: home_score, away_score, winner_id, correct.
    Returns the resolved match and every match that changed, for notification.
    """
    data = request.get_json(silent=True) or {}
    try:
        home_score = _optional_int(data, 'home_score')
        away_score = _optional_int(data, 'away_score')
    except (TypeError, ValueError):
        return jsonify({'error': 'Scores must be integers', 'code': 'INVALID_SCORE'}), 400

    resolution = get_service().submit_result(
        tournament_id, match_id,
        home_score=home_score,
        away_score=away_score,
        winner_id=data.get('winner_id') or None,
        correct=bool(data.get('correct', False)),
    )
    return jsonify({'success': True, **resolution.to_dict()})


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>/undo', methods=['POST'])
def api_undo_result(tournament_id, match_id):
    changed = get_service().undo_result(tournament_id, match_id)
    return jsonify({'success': True, 'changed': [m.to_dict() for m in changed]})


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>/start', methods=['POST'])
def api_start_match(tournament_id, match_id):
    match = get_service().start_match(tournament_id, match_id)
    return jsonify({'success': True, 'match': match.to_dict()})


@app.route('/api/tournaments/<tournament_id>/swiss/next', methods=['POST'])
def api_next_swiss_round(tournament_id):
    """Pair the next Swiss round from current standings."""
    matches = get_service().next_swiss_round(tournament_id)
    return jsonify({'success': True, 'matches': [m.to_dict() for m in matches]})


@app.route('/api/tournaments/<tournament_id>/standings', methods=['GET'])
def api_standings(tournament_id):
    rows = get_service().get_standings(tournament_id)
    return jsonify({'standings': [row.to_dict() for row in rows]})


@app.route('/api/tournaments/<tournament_id>/champion', methods=['GET'])
def api_champion(tournament_id):
    return jsonify({'champion': get_service().get_champion(tournament_id)})


if __name__ == '__main__':
    logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO'))
    app.run(debug=True)
