from dataclasses import dataclass, field
from typing import Callable, Iterable, List

Predicate = Callable[[int, int], bool]


@dataclass
class Achievement:
    id: str
    name: str
    description: str
    predicate: Predicate = field(repr=False)
    unlocked: bool = False

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'unlocked': self.unlocked,
        }


# Session milestones come first, then performance achievements
CATALOG = (
    ('first_race', 'First Steps', 'Complete your first race', lambda wpm, acc: True),
    ('speed_demon', 'Speed Demon', 'Reach 60+ WPM', lambda wpm, acc: wpm >= 60),
    ('accuracy_master', 'Accuracy Master', 'Achieve 95%+ accuracy', lambda wpm, acc: acc >= 95),
    ('lightning_fast', 'Lightning Fast', 'Reach 100+ WPM', lambda wpm, acc: wpm >= 100),
    ('perfectionist', 'Perfectionist', 'Complete a race with 100% accuracy', lambda wpm, acc: acc == 100),
)


def default_achievements() -> List[Achievement]:
    return [Achievement(id=a, name=n, description=d, predicate=p) for a, n, d, p in CATALOG]


def evaluate_achievements(achievements: Iterable[Achievement], wpm: int, accuracy: int) -> List[Achievement]:
    """Unlock every achievement whose predicate holds; returns the new ones in catalog order."""
    unlocked = []
    for achievement in achievements:
        if achievement.unlocked:
            continue
        if achievement.predicate(wpm, accuracy):
            achievement.unlocked = True
            unlocked.append(achievement)
    return unlocked
