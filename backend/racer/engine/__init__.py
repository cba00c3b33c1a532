"""Client-side race engine.

Runs a full race locally: text selection, keystroke validation, timing,
power-ups, simulated opponents and achievements. It never talks to the
leaderboard service; a finished race yields a ``RaceResult`` that the
client may submit.
"""

from .achievements import Achievement, default_achievements, evaluate_achievements
from .opponents import Opponent, default_opponents
from .powerups import PowerUp, PowerUpInventory, PowerUpKind, award_powerups
from .race import InvalidPlayerName, LiveStats, RaceEngine, RaceResult, RaceTicker
from .scheduler import Notification, NotificationQueue, Scheduler
from .session import KeyOutcome, RaceSession, RaceState
from .texts import DIFFICULTIES, TEXT_POOLS, pick_text

__all__ = [
    'Achievement',
    'DIFFICULTIES',
    'InvalidPlayerName',
    'KeyOutcome',
    'LiveStats',
    'Notification',
    'NotificationQueue',
    'Opponent',
    'PowerUp',
    'PowerUpInventory',
    'PowerUpKind',
    'RaceEngine',
    'RaceResult',
    'RaceSession',
    'RaceState',
    'RaceTicker',
    'Scheduler',
    'TEXT_POOLS',
    'award_powerups',
    'default_achievements',
    'default_opponents',
    'evaluate_achievements',
    'pick_text',
]
