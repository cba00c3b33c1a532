import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from racer.engine.texts import DIFFICULTIES
from racer.models import utcnow

NAME_MAX_LENGTH = 20
WPM_RANGE = (0, 300)
ACCURACY_RANGE = (0, 100)
TIME_RANGE = (1, 600)
# Submissions faster than this share of the expected time are rejected
MIN_TIME_RATIO = 0.3


class SubmissionError(ValueError):
    """A score submission that must not be persisted."""


def _number(data: Dict[str, Any], key: str) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SubmissionError(f'{key} must be a number')
    if not math.isfinite(value):
        raise SubmissionError(f'{key} must be a finite number')
    return value


def _in_range(key: str, value: float, bounds) -> None:
    low, high = bounds
    if value < low or value > high:
        raise SubmissionError(f'{key} must be between {low} and {high}')


def expected_time(wpm: float) -> float:
    """Rough time (seconds) a ``wpm`` typist needs for ten words."""
    return (60 / wpm) * 10 if wpm > 0 else 0


def parse_timestamp(raw, now: Optional[datetime] = None) -> datetime:
    """Client timestamp as naive UTC; missing, bad or future values become ``now``."""
    now = now or utcnow()
    if not isinstance(raw, str) or not raw:
        return now
    try:
        parsed = datetime.fromisoformat(raw.replace('Z', '+00:00'))
    except ValueError:
        return now
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return min(parsed, now)


def validate_submission(data, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Check a ``submit_score`` payload and return the cleaned record fields.

    Raises ``SubmissionError`` with a user-facing message on the first
    problem found.
    """
    if not isinstance(data, dict):
        raise SubmissionError('Invalid score data')

    name = data.get('name')
    if not isinstance(name, str) or not name.strip():
        raise SubmissionError('name is required')
    name = name.strip()
    if len(name) > NAME_MAX_LENGTH:
        raise SubmissionError(f'name must be at most {NAME_MAX_LENGTH} characters')

    wpm = _number(data, 'wpm')
    accuracy = _number(data, 'accuracy')
    elapsed = _number(data, 'time')
    _in_range('wpm', wpm, WPM_RANGE)
    _in_range('accuracy', accuracy, ACCURACY_RANGE)
    _in_range('time', elapsed, TIME_RANGE)

    difficulty = data.get('difficulty')
    if difficulty not in DIFFICULTIES:
        raise SubmissionError(f"difficulty must be one of: {', '.join(DIFFICULTIES)}")

    if elapsed < expected_time(wpm) * MIN_TIME_RATIO:
        raise SubmissionError('Implausibly fast submission')

    return {
        'name': name,
        'wpm': int(round(wpm)),
        'accuracy': int(round(accuracy)),
        'time': float(elapsed),
        'difficulty': difficulty,
        'timestamp': parse_timestamp(data.get('timestamp'), now),
    }
