import logging
from flask import Blueprint, current_app, jsonify, request

from ..game.exceptions import GameException, NotFoundException

log = logging.getLogger(__name__)

# Read-only HTTP views. The GameService is injected by the app factory into
# app.extensions['game_service'] (None when running degraded).
main_bp = Blueprint('main', __name__)


def _service():
    return current_app.extensions.get('game_service')


@main_bp.errorhandler(NotFoundException)
def handle_not_found(e):
    log.debug(f"Not found: {e}")
    return jsonify({"error": str(e)}), 404


@main_bp.errorhandler(GameException)
def handle_game_error(e):
    log.warning(f"Game error on HTTP request: {e}")
    return jsonify({"error": str(e)}), 400


@main_bp.before_request
def require_service():
    if request.endpoint != "main.health_check" and _service() is None:
        log.error("HTTP request while the game service is unavailable")
        return jsonify({"error": "Game service unavailable."}), 503


@main_bp.route('/health')
def health_check():
    """Basic health check endpoint."""
    log.debug("Health check requested.")
    if _service() is None:
        return {"status": "degraded"}, 503
    return {"status": "ok"}, 200


@main_bp.route('/api/players/<player_id>')
def get_player(player_id):
    player = _service().get_player(player_id)
    return jsonify(player.model_dump(mode='json'))


@main_bp.route('/api/players/<player_id>/inventory')
def get_inventory(player_id):
    stacks = _service().get_inventory(player_id)
    return jsonify({"items": [stack.model_dump(mode='json') for stack in stacks]})


@main_bp.route('/api/players/<player_id>/stats')
def get_stats(player_id):
    stats = _service().get_stats(player_id)
    if stats is None:
        return jsonify({"error": f"No stats recorded for player '{player_id}'."}), 404
    return jsonify(stats.model_dump(mode='json'))


@main_bp.route('/api/players/<player_id>/quests')
def get_quests(player_id):
    board = _service().get_quest_board(player_id)
    return jsonify(board.model_dump(mode='json'))


@main_bp.route('/api/players/<player_id>/npcs')
def get_npc_interactions(player_id):
    interactions = _service().get_npc_interactions(player_id)
    return jsonify({"interactions": [row.model_dump(mode='json') for row in interactions]})
