from flask import current_app, request
from flask_socketio import emit
from sqlalchemy.exc import SQLAlchemyError

from racer import db, socketio
from racer.services.leaderboard.scoring import ranked_leaderboard
from racer.services.leaderboard.submissions import broadcast_leaderboard, submit_score
from racer.services.leaderboard.validation import SubmissionError

NAMESPACE = '/'


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _emit_leaderboard(filter_name: str) -> None:
    try:
        rows = ranked_leaderboard(filter_name)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[leaderboard-fail] sid={_get_sid()} filter={filter_name} error={exc}")
        emit('error', {'message': 'Leaderboard unavailable'})
        return
    emit('leaderboard_update', rows)


def handle_connect():
    current_app.logger.info(f"[connect] sid={_get_sid()}")
    _emit_leaderboard('daily')


def handle_disconnect(*args):
    current_app.logger.info(f"[disconnect] sid={_get_sid()}")


def handle_get_leaderboard(data=None):
    filter_name = data.get('filter') if isinstance(data, dict) else None
    _emit_leaderboard(filter_name or 'daily')


def handle_submit_score(data=None):
    try:
        record, score = submit_score(data)
    except SubmissionError as exc:
        current_app.logger.info(f"[score-reject] sid={_get_sid()} reason={exc}")
        emit('score_submitted', {'success': False, 'error': str(exc)})
        return
    except SQLAlchemyError as exc:
        current_app.logger.error(f"[score-fail] sid={_get_sid()} error={exc}")
        emit('score_submitted', {'success': False, 'error': 'Failed to save score'})
        return

    emit('score_submitted', {'success': True, 'id': record.id, 'score': score})
    # Broadcast updated leaderboard to all clients
    broadcast_leaderboard('daily')


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the default namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('get_leaderboard', handle_get_leaderboard, namespace=NAMESPACE)
    socketio.on_event('submit_score', handle_submit_score, namespace=NAMESPACE)
