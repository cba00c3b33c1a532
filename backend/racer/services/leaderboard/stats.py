from datetime import datetime
from typing import Optional

from flask import current_app
from sqlalchemy import func

from racer import db
from racer.models import DailyStats, Score, utcnow
from .scoring import day_bounds, local_date


def aggregate_stats(now: Optional[datetime] = None) -> dict:
    """Totals across every stored score plus today's count and a per-difficulty breakdown."""
    tz_name = current_app.config.get('LEADERBOARD_TIMEZONE', 'UTC')
    total, average, highest, players = db.session.query(
        func.count(Score.id),
        func.avg(Score.wpm),
        func.max(Score.wpm),
        func.count(func.distinct(Score.name)),
    ).one()

    start, end = day_bounds(local_date(now or utcnow(), tz_name), tz_name)
    today = Score.query.filter(Score.timestamp >= start, Score.timestamp < end).count()

    by_difficulty = (
        db.session.query(
            Score.difficulty,
            func.count(Score.id),
            func.avg(Score.wpm),
            func.max(Score.wpm),
        )
        .group_by(Score.difficulty)
        .order_by(Score.difficulty)
        .all()
    )
    return {
        'total_races': total or 0,
        'average_wpm': round(float(average or 0), 2),
        'highest_wpm': highest or 0,
        'total_players': players or 0,
        'today_races': today,
        'difficulty_stats': [
            {
                'difficulty': difficulty,
                'count': count,
                'avg_wpm': round(float(avg or 0), 2),
                'max_wpm': max_wpm or 0,
            }
            for difficulty, count, avg, max_wpm in by_difficulty
        ],
    }


def recent_daily_stats(days: int = 7):
    """Most recent ``days`` aggregate rows, newest first."""
    rows = DailyStats.query.order_by(DailyStats.date.desc()).limit(days).all()
    return [row.to_dict() for row in rows]
