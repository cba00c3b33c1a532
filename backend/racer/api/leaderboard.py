from flask import Blueprint, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from racer import db
from racer.services.leaderboard.scoring import ranked_leaderboard
from racer.services.leaderboard.stats import aggregate_stats, recent_daily_stats

leaderboard = Blueprint('leaderboard', __name__)


def _database_error(exc):
    db.session.rollback()
    current_app.logger.error(f"[database-error] {exc}")
    return jsonify({'error': 'Database error'}), 500


@leaderboard.route('/leaderboard', defaults={'filter_name': 'daily'}, methods=['GET'])
@leaderboard.route('/leaderboard/<string:filter_name>', methods=['GET'])
def get_leaderboard(filter_name):
    try:
        return jsonify(ranked_leaderboard(filter_name))
    except SQLAlchemyError as exc:
        return _database_error(exc)


@leaderboard.route('/stats', methods=['GET'])
def get_stats():
    try:
        return jsonify(aggregate_stats())
    except SQLAlchemyError as exc:
        return _database_error(exc)


@leaderboard.route('/stats/daily', methods=['GET'])
def get_daily_stats():
    try:
        return jsonify(recent_daily_stats())
    except SQLAlchemyError as exc:
        return _database_error(exc)
