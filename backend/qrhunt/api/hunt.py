from flask import Blueprint, jsonify, request, current_app
from qrhunt import get_engine
from qrhunt.services.hunt.errors import BadRequest, GameError


hunt = Blueprint('hunt', __name__)


@hunt.errorhandler(GameError)
def handle_game_error(err: GameError):
    if err.status_code >= 500:
        current_app.logger.error(f"[game-error] kind={err.kind} detail={err.detail}")
    return jsonify(err.to_dict()), err.status_code


def _require(data: dict, *fields):
    missing = [f for f in fields if data.get(f) in (None, '')]
    if missing:
        raise BadRequest(f"Missing field(s): {', '.join(missing)}", missing=missing)


def _request_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest('Expected a JSON object body')
    # Older scanner clients post camelCase
    if 'team_id' not in data and 'teamId' in data:
        data['team_id'] = data['teamId']
    return data


@hunt.route('/scan', methods=['POST'])
def scan():
    """Returns the question for the scanned level. ``started_at`` is the first scan of the level, not reset by rescans."""
    data = _request_body()
    _require(data, 'token', 'team_id')
    result = get_engine().scan(str(data['token']), str(data['team_id']))
    return jsonify(result.to_dict())


@hunt.route('/answer', methods=['POST'])
def answer():
    data = _request_body()
    _require(data, 'token', 'team_id')
    if data.get('answer') is None:
        raise BadRequest('Missing field(s): answer', missing=['answer'])
    result = get_engine().answer(str(data['token']), str(data['team_id']), data['answer'])
    return jsonify(result.to_dict())


@hunt.route('/team/<string:team_id>', methods=['GET'])
def get_team(team_id):
    return jsonify(get_engine().team_snapshot(team_id))


@hunt.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    return jsonify([entry.to_dict() for entry in get_engine().leaderboard()])
