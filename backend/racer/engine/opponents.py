import random
from dataclasses import dataclass
from typing import Iterable, List

DEFAULT_OPPONENTS = (
    ('Speed Demon', 0.8),
    ('Turbo Type', 0.9),
)

# Per-tick jitter applied to each opponent's base speed
RANDOM_FACTOR_RANGE = (0.8, 1.2)


@dataclass
class Opponent:
    name: str
    speed: float
    progress: float = 0.0

    @property
    def finished(self) -> bool:
        return self.progress >= 1.0

    def advance(self, random_factor: float) -> None:
        self.progress = min(1.0, self.progress + (self.speed * random_factor) / 100)

    def reset(self) -> None:
        self.progress = 0.0

    def to_dict(self):
        return {'name': self.name, 'speed': self.speed, 'progress': self.progress}


def default_opponents() -> List[Opponent]:
    return [Opponent(name=name, speed=speed) for name, speed in DEFAULT_OPPONENTS]


def advance_opponents(opponents: Iterable[Opponent], rng=None, frozen: bool = False) -> None:
    """Advance every opponent by one tick unless time is frozen."""
    rng = rng or random
    low, high = RANDOM_FACTOR_RANGE
    for opponent in opponents:
        if frozen:
            continue
        opponent.advance(rng.uniform(low, high))
