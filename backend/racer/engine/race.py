import logging
import random
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from .achievements import Achievement, default_achievements, evaluate_achievements
from .opponents import Opponent, advance_opponents, default_opponents
from .powerups import (
    ACTIVATION_MESSAGES,
    SPEED_BOOST_MULTIPLIER,
    PowerUpInventory,
    PowerUpKind,
    award_powerups,
    starting_inventory,
)
from .scheduler import Notification, NotificationQueue, Scheduler
from .session import (
    KeyOutcome,
    RaceSession,
    RaceState,
    apply_key,
    elapsed_seconds,
    final_accuracy,
    final_wpm,
    live_accuracy,
    live_wpm,
    new_session,
    start as start_session,
)
from .texts import DIFFICULTIES, pick_text

logger = logging.getLogger(__name__)

OPPONENT_TICK_SEC = 0.05
ERROR_FLASH_SEC = 0.2
ACHIEVEMENT_FIRST_DELAY_SEC = 1.0
ACHIEVEMENT_SPACING_SEC = 2.0
POWERUP_AWARD_DELAY_SEC = 2.0
MAX_NAME_LENGTH = 20


class InvalidPlayerName(ValueError):
    pass


@dataclass(frozen=True)
class LiveStats:
    wpm: int
    accuracy: int
    progress: float
    rank: int
    elapsed_seconds: float
    words_remaining: int


@dataclass(frozen=True)
class RaceResult:
    wpm: int
    accuracy: int
    time: float
    position: int
    difficulty: str
    achievements: Tuple[str, ...] = ()
    awarded: Tuple[str, ...] = ()

    def to_submission(self, name: str, timestamp: Optional[datetime] = None) -> Dict:
        """Build the ``submit_score`` payload for this result."""
        cleaned = (name or '').strip()
        if not cleaned:
            raise InvalidPlayerName('Please enter your name!')
        if len(cleaned) > MAX_NAME_LENGTH:
            raise InvalidPlayerName(f'Name must be at most {MAX_NAME_LENGTH} characters')
        ts = timestamp or datetime.now(timezone.utc)
        return {
            'name': cleaned,
            'wpm': self.wpm,
            'accuracy': self.accuracy,
            'time': round(self.time, 1),
            'difficulty': self.difficulty,
            'timestamp': ts.isoformat(),
        }


class RaceEngine:
    """Owns one player's race and the process-lifetime state around it.

    Power-up inventory and achievement flags outlive ``reset``; the session,
    opponents and every scheduled timer do not. All public methods take the
    engine lock, so input events and a background ticker can interleave.
    """

    def __init__(
        self,
        difficulty: str = 'medium',
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        opponents: Optional[List[Opponent]] = None,
        powerups: Optional[PowerUpInventory] = None,
        achievements: Optional[List[Achievement]] = None,
    ):
        if difficulty not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty: {difficulty!r}")
        self._lock = threading.RLock()
        self._clock = clock
        self._rng = rng or random.Random()
        self.opponents = opponents if opponents is not None else default_opponents()
        self.powerups = powerups if powerups is not None else starting_inventory(self._rng)
        self.achievements = achievements if achievements is not None else default_achievements()
        self.scheduler = Scheduler()
        self.notifications = NotificationQueue()
        self.session: RaceSession = new_session(pick_text(difficulty, self._rng), difficulty)
        self.result: Optional[RaceResult] = None
        self._error_flash_until: Optional[float] = None

    @property
    def state(self) -> RaceState:
        return self.session.state

    @property
    def difficulty(self) -> str:
        return self.session.difficulty

    def _now(self, now: Optional[float]) -> float:
        return self._clock() if now is None else now

    # ---- lifecycle ----

    def start(self, now: Optional[float] = None) -> bool:
        with self._lock:
            now = self._now(now)
            if self.session.state == RaceState.RACING:
                return False
            if self.session.state == RaceState.FINISHED:
                self._reset_locked(self.session.difficulty)
            self.session = start_session(self.session, now)
            for opponent in self.opponents:
                opponent.reset()
            self.scheduler.call_at(now + OPPONENT_TICK_SEC, self._opponent_tick)
            logger.debug('race started difficulty=%s length=%d', self.session.difficulty, len(self.session.text))
            return True

    def reset(self, difficulty: Optional[str] = None) -> None:
        with self._lock:
            self._reset_locked(difficulty or self.session.difficulty)

    def set_difficulty(self, difficulty: str) -> None:
        """Switch level; regenerates the text and returns to Idle."""
        if difficulty not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty: {difficulty!r}")
        self.reset(difficulty)

    def _reset_locked(self, difficulty: str) -> None:
        # Stale ticks and expiries must never touch the next race
        self.scheduler.cancel_all()
        self.powerups.deactivate_all()
        for opponent in self.opponents:
            opponent.reset()
        self.session = new_session(pick_text(difficulty, self._rng), difficulty)
        self.result = None
        self._error_flash_until = None

    # ---- input ----

    def handle_key(self, typed: str, now: Optional[float] = None) -> KeyOutcome:
        with self._lock:
            now = self._now(now)
            self.scheduler.run_until(now)
            if self.session.state == RaceState.IDLE and typed:
                self.start(now)
            shielded = self.powerups.is_active(PowerUpKind.ACCURACY_SHIELD, now)
            self.session, outcome = apply_key(self.session, typed, now, shielded=shielded)
            if outcome in (KeyOutcome.ADVANCED, KeyOutcome.FINISHED):
                self._error_flash_until = None
            elif outcome == KeyOutcome.ERROR:
                self._error_flash_until = now + ERROR_FLASH_SEC
            if outcome == KeyOutcome.FINISHED:
                self._finish(now)
            return outcome

    def activate_powerup(self, kind, now: Optional[float] = None) -> bool:
        with self._lock:
            now = self._now(now)
            self.scheduler.run_until(now)
            if self.session.state != RaceState.RACING:
                return False
            powerup = self.powerups[kind]
            if not powerup.activate(now):
                return False
            self.scheduler.call_at(powerup.expires_at, self._expire_powerup, powerup.kind)
            title, description = ACTIVATION_MESSAGES[powerup.kind]
            self.notifications.push(title, description, now)
            logger.debug('power-up %s active until %.3f', powerup.kind.value, powerup.expires_at)
            return True

    # ---- timers ----

    def advance(self, now: Optional[float] = None) -> int:
        """Run every timer due by ``now``."""
        with self._lock:
            return self.scheduler.run_until(self._now(now))

    def _opponent_tick(self, when: float) -> None:
        if self.session.state != RaceState.RACING:
            return
        frozen = self.powerups.is_active(PowerUpKind.TIME_FREEZE, when)
        advance_opponents(self.opponents, self._rng, frozen=frozen)
        self.scheduler.call_at(when + OPPONENT_TICK_SEC, self._opponent_tick)

    def _expire_powerup(self, when: float, kind: PowerUpKind) -> None:
        self.powerups[kind].deactivate()

    # ---- finish ----

    def _finish(self, now: float) -> None:
        session = self.session
        wpm = final_wpm(session)
        accuracy = final_accuracy(session)
        total_time = elapsed_seconds(session, now)
        position = 1 + sum(1 for o in self.opponents if o.finished)

        unlocked = evaluate_achievements(self.achievements, wpm, accuracy)
        awarded = award_powerups(self.powerups, wpm, accuracy)

        for index, achievement in enumerate(unlocked):
            due = now + ACHIEVEMENT_FIRST_DELAY_SEC + index * ACHIEVEMENT_SPACING_SEC
            self.notifications.push(achievement.name, achievement.description, due)
        if awarded:
            plural = 's' if len(awarded) > 1 else ''
            self.notifications.push(
                'Power-ups Earned!',
                f'You earned {len(awarded)} power-up{plural}!',
                now + POWERUP_AWARD_DELAY_SEC,
            )

        self.result = RaceResult(
            wpm=wpm,
            accuracy=accuracy,
            time=total_time,
            position=position,
            difficulty=session.difficulty,
            achievements=tuple(a.id for a in unlocked),
            awarded=tuple(k.value for k in awarded),
        )
        logger.info(
            'race finished wpm=%d accuracy=%d time=%.1fs position=%d', wpm, accuracy, total_time, position
        )

    # ---- read side ----

    def stats(self, now: Optional[float] = None) -> LiveStats:
        """Snapshot of the live figures; reading never changes race state."""
        with self._lock:
            now = self._now(now)
            session = self.session
            boost = SPEED_BOOST_MULTIPLIER if self.powerups.is_active(PowerUpKind.SPEED_BOOST, now) else 1.0
            progress = session.progress
            rank = 1 + sum(1 for o in self.opponents if o.progress > progress)
            return LiveStats(
                wpm=live_wpm(session, now, boost),
                accuracy=live_accuracy(session),
                progress=progress,
                rank=rank,
                elapsed_seconds=elapsed_seconds(session, now),
                words_remaining=session.words_remaining,
            )

    def error_flash_active(self, now: Optional[float] = None) -> bool:
        with self._lock:
            until = self._error_flash_until
            return until is not None and self._now(now) < until

    def pop_notifications(self, now: Optional[float] = None) -> List[Notification]:
        with self._lock:
            return self.notifications.pop_due(self._now(now))


class RaceTicker:
    """Background loop that drives ``RaceEngine.advance`` at a fixed interval."""

    def __init__(self, engine: RaceEngine, interval: float = OPPONENT_TICK_SEC):
        self.engine = engine
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name='race-ticker', daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 1.0) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.engine.advance()
            except Exception:
                # One failed tick must not end the race loop
                logger.exception('race tick failed')
