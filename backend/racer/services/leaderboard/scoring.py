from datetime import datetime, timedelta, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo

from flask import current_app
from sqlalchemy import Numeric, case, cast

from racer import db
from racer.models import Score, utcnow

DIFFICULTY_MULTIPLIERS = {
    'easy': 1.0,
    'medium': 1.2,
    'hard': 1.5,
    'expert': 2.0,
    'nightmare': 3.0,
}

FILTERS = ('daily', 'weekly', 'alltime')
# Lower bound used by the alltime filter
ALLTIME_EPOCH = datetime(2020, 1, 1)


def difficulty_multiplier(difficulty: str) -> float:
    return DIFFICULTY_MULTIPLIERS.get(difficulty, 1.0)


def calculate_score(wpm, accuracy, difficulty) -> float:
    """Weighted score: wpm x (accuracy / 100) x difficulty multiplier."""
    return round(wpm * (accuracy / 100) * difficulty_multiplier(difficulty), 2)


def score_expression():
    """Unrounded SQL counterpart of ``calculate_score``, used for ordering."""
    multiplier = case(DIFFICULTY_MULTIPLIERS, value=Score.difficulty, else_=1.0)
    return cast(Score.wpm * (Score.accuracy / 100.0) * multiplier, Numeric(asdecimal=False))


def _zone(tz_name: Optional[str]):
    return ZoneInfo(tz_name or 'UTC')


def _as_utc(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def local_midnight(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> datetime:
    """Midnight of the current day in ``tz_name``, as an aware datetime."""
    local = _as_utc(now).astimezone(_zone(tz_name))
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def day_bounds(day, tz_name: Optional[str] = None):
    """Naive UTC [start, end) of a calendar day in ``tz_name``."""
    zone = _zone(tz_name)
    start = datetime(day.year, day.month, day.day, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), datetime.min.time(), tzinfo=zone)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )


def local_date(timestamp: datetime, tz_name: Optional[str] = None):
    """Calendar date of a naive UTC timestamp in ``tz_name``."""
    return _as_utc(timestamp).astimezone(_zone(tz_name)).date()


def filter_start(filter_name: str, now: Optional[datetime] = None, tz_name: Optional[str] = None) -> datetime:
    """Naive UTC lower bound for a leaderboard filter.

    daily: midnight today; weekly: Monday midnight of the current ISO week;
    anything else falls back to the alltime epoch.
    """
    if filter_name == 'daily':
        start = local_midnight(now, tz_name)
    elif filter_name == 'weekly':
        midnight = local_midnight(now, tz_name)
        start = midnight - timedelta(days=midnight.weekday())
    else:
        return ALLTIME_EPOCH
    return start.astimezone(timezone.utc).replace(tzinfo=None)


def ranked_leaderboard(filter_name: str = 'daily', now: Optional[datetime] = None, limit: Optional[int] = None) -> List[dict]:
    """Top scores for ``filter_name`` in leaderboard order.

    Order: score desc, wpm desc, accuracy desc; timestamp and id break any
    remaining tie so identical inputs always rank identically.
    """
    cfg = current_app.config
    tz_name = cfg.get('LEADERBOARD_TIMEZONE', 'UTC')
    if limit is None:
        limit = int(cfg.get('LEADERBOARD_LIMIT', 50))
    since = filter_start(filter_name, now or utcnow(), tz_name)
    score_col = score_expression().label('score')
    rows = (
        db.session.query(Score, score_col)
        .filter(Score.timestamp >= since)
        .order_by(
            score_col.desc(),
            Score.wpm.desc(),
            Score.accuracy.desc(),
            Score.timestamp.asc(),
            Score.id.asc(),
        )
        .limit(limit)
        .all()
    )
    return [record.to_dict(score=round(float(score or 0), 2)) for record, score in rows]
