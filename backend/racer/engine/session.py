"""Race session value and its transitions.

A ``RaceSession`` is immutable: every transition returns a new value, so
the engine that owns it can swap it atomically under its lock and tests can
drive it without any timers.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

CHARS_PER_WORD = 5


class RaceState(str, Enum):
    IDLE = 'idle'
    RACING = 'racing'
    FINISHED = 'finished'


class KeyOutcome(str, Enum):
    IGNORED = 'ignored'
    ADVANCED = 'advanced'
    ERROR = 'error'
    SHIELDED = 'shielded'
    FINISHED = 'finished'


@dataclass(frozen=True)
class RaceSession:
    text: str
    difficulty: str = 'medium'
    state: RaceState = RaceState.IDLE
    cursor: int = 0
    error_count: int = 0
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    @property
    def progress(self) -> float:
        if not self.text:
            return 0.0
        return self.cursor / len(self.text)

    @property
    def words_remaining(self) -> int:
        return max(0, len(self.text[self.cursor:].split(' ')) - 1)


def new_session(text: str, difficulty: str) -> RaceSession:
    return RaceSession(text=text, difficulty=difficulty)


def start(session: RaceSession, now: float) -> RaceSession:
    """Idle -> Racing. Starting a race that is already running is a no-op."""
    if session.state == RaceState.RACING:
        return session
    return replace(
        session,
        state=RaceState.RACING,
        cursor=0,
        error_count=0,
        start_time=now,
        end_time=None,
    )


def apply_key(session: RaceSession, typed: str, now: float, shielded: bool = False) -> Tuple[RaceSession, KeyOutcome]:
    """Apply the most recently typed character to a racing session."""
    if session.state != RaceState.RACING or not typed:
        return session, KeyOutcome.IGNORED
    char = typed[-1]
    if session.cursor < len(session.text) and char == session.text[session.cursor]:
        cursor = session.cursor + 1
        if cursor >= len(session.text):
            return replace(session, cursor=cursor, state=RaceState.FINISHED, end_time=now), KeyOutcome.FINISHED
        return replace(session, cursor=cursor), KeyOutcome.ADVANCED
    if shielded:
        return session, KeyOutcome.SHIELDED
    return replace(session, error_count=session.error_count + 1), KeyOutcome.ERROR


def elapsed_seconds(session: RaceSession, now: float) -> float:
    if session.start_time is None:
        return 0.0
    end = session.end_time if session.end_time is not None else now
    return max(0.0, end - session.start_time)


def words_per_minute(chars: int, seconds: float) -> int:
    minutes = seconds / 60.0
    if minutes <= 0:
        return 0
    return max(0, round((chars / CHARS_PER_WORD) / minutes))


def accuracy_percent(chars: int, errors: int) -> int:
    if chars <= 0:
        return 100
    return min(100, max(0, round((chars - errors) / chars * 100)))


def live_wpm(session: RaceSession, now: float, boost: float = 1.0) -> int:
    base = words_per_minute(session.cursor, elapsed_seconds(session, now))
    if boost != 1.0:
        return round(base * boost)
    return base


def live_accuracy(session: RaceSession) -> int:
    return accuracy_percent(session.cursor, session.error_count)


def final_wpm(session: RaceSession) -> int:
    """Whole-race average; speed boosts never apply to the final figure."""
    return words_per_minute(len(session.text), elapsed_seconds(session, session.end_time or 0.0))


def final_accuracy(session: RaceSession) -> int:
    return accuracy_percent(len(session.text), session.error_count)
