import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class PowerUpKind(str, Enum):
    SPEED_BOOST = 'speedBoost'
    ACCURACY_SHIELD = 'accuracyShield'
    TIME_FREEZE = 'timeFreeze'


POWERUP_DURATIONS_MS = {
    PowerUpKind.SPEED_BOOST: 10000,
    PowerUpKind.ACCURACY_SHIELD: 5000,
    PowerUpKind.TIME_FREEZE: 3000,
}

# Live WPM multiplier while a speed boost runs
SPEED_BOOST_MULTIPLIER = 1.2

ACTIVATION_MESSAGES = {
    PowerUpKind.SPEED_BOOST: ('Speed Boost!', '+20% WPM for 10 seconds'),
    PowerUpKind.ACCURACY_SHIELD: ('Accuracy Shield!', 'No typing penalties for 5 seconds'),
    PowerUpKind.TIME_FREEZE: ('Time Freeze!', 'Opponents frozen for 3 seconds'),
}


@dataclass
class PowerUp:
    kind: PowerUpKind
    duration_ms: int
    count: int = 0
    active: bool = False
    expires_at: Optional[float] = None

    def can_activate(self) -> bool:
        return self.count > 0 and not self.active

    def activate(self, now: float) -> bool:
        if not self.can_activate():
            return False
        self.count -= 1
        self.active = True
        self.expires_at = now + self.duration_ms / 1000.0
        return True

    def in_effect(self, now: Optional[float] = None) -> bool:
        """Active and, when ``now`` is given, not yet past its expiry."""
        if not self.active:
            return False
        return now is None or self.expires_at is None or now < self.expires_at

    def deactivate(self) -> None:
        self.active = False
        self.expires_at = None

    def to_dict(self):
        return {
            'kind': self.kind.value,
            'count': self.count,
            'active': self.active,
            'duration_ms': self.duration_ms,
        }


class PowerUpInventory:
    """Power-ups owned by one player; survives race resets."""

    def __init__(self, counts: Optional[Dict[PowerUpKind, int]] = None):
        counts = counts or {}
        self._items = {
            kind: PowerUp(kind=kind, duration_ms=duration, count=max(0, int(counts.get(kind, 0))))
            for kind, duration in POWERUP_DURATIONS_MS.items()
        }

    def __getitem__(self, kind) -> PowerUp:
        return self._items[PowerUpKind(kind)]

    def __iter__(self):
        return iter(self._items.values())

    def is_active(self, kind, now: Optional[float] = None) -> bool:
        return self[kind].in_effect(now)

    def award(self, kind, amount: int = 1) -> None:
        self[kind].count += amount

    def deactivate_all(self) -> None:
        for item in self._items.values():
            item.deactivate()

    def to_dict(self):
        return {item.kind.value: item.to_dict() for item in self._items.values()}


def starting_inventory(rng=None) -> PowerUpInventory:
    rng = rng or random
    return PowerUpInventory({
        PowerUpKind.SPEED_BOOST: rng.randint(1, 3),
        PowerUpKind.ACCURACY_SHIELD: rng.randint(1, 2),
        PowerUpKind.TIME_FREEZE: rng.randint(1, 2),
    })


def award_powerups(inventory: PowerUpInventory, wpm: int, accuracy: int) -> List[PowerUpKind]:
    """Grant the end-of-race bonuses; several may fire from one race."""
    awarded = []
    if wpm >= 50:
        awarded.append(PowerUpKind.SPEED_BOOST)
    if accuracy >= 90:
        awarded.append(PowerUpKind.ACCURACY_SHIELD)
    if wpm >= 40 and accuracy >= 85:
        awarded.append(PowerUpKind.TIME_FREEZE)
    for kind in awarded:
        inventory.award(kind)
    return awarded
