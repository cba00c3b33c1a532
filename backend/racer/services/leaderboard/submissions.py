import threading
from datetime import datetime
from typing import Optional, Tuple

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from racer import db, socketio
from racer.models import DailyStats, Score
from .scoring import calculate_score, day_bounds, local_date, ranked_leaderboard
from .validation import validate_submission

# Serializes insert + aggregate recomputation so two submissions never
# interleave their daily_stats upserts.
_submit_lock = threading.Lock()


def update_daily_stats(day, tz_name: Optional[str] = None) -> DailyStats:
    """Recompute the aggregate row for ``day`` from that day's scores.

    Adds to the current session; the caller commits.
    """
    start, end = day_bounds(day, tz_name)
    total, average, highest, players = (
        db.session.query(
            func.count(Score.id),
            func.avg(Score.wpm),
            func.max(Score.wpm),
            func.count(func.distinct(Score.name)),
        )
        .filter(Score.timestamp >= start, Score.timestamp < end)
        .one()
    )
    stats = db.session.merge(DailyStats(
        date=day,
        total_races=total or 0,
        average_wpm=float(average or 0),
        highest_wpm=highest or 0,
        total_players=players or 0,
    ))
    return stats


def submit_score(payload, now: Optional[datetime] = None) -> Tuple[Score, float]:
    """Validate, persist and aggregate one race result.

    Raises ``SubmissionError`` for invalid data and ``SQLAlchemyError`` when
    the store fails; in both cases nothing is persisted.
    """
    fields = validate_submission(payload, now)
    tz_name = current_app.config.get('LEADERBOARD_TIMEZONE', 'UTC')
    with _submit_lock:
        try:
            record = Score(**fields)
            db.session.add(record)
            db.session.flush()
            update_daily_stats(local_date(record.timestamp, tz_name), tz_name)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
    score = calculate_score(record.wpm, record.accuracy, record.difficulty)
    current_app.logger.info(
        f"[score-submit] id={record.id} name={record.name!r} wpm={record.wpm} accuracy={record.accuracy} difficulty={record.difficulty} score={score}"
    )
    return record, score


def broadcast_leaderboard(filter_name: str = 'daily') -> bool:
    """Push the ranked view to every connected client; never raises."""
    try:
        rows = ranked_leaderboard(filter_name)
        socketio.emit('leaderboard_update', rows, namespace='/')
        return True
    except Exception as exc:
        db.session.rollback()
        current_app.logger.warning(f"[broadcast-fail] filter={filter_name} error={exc}")
        return False
