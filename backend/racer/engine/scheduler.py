"""Clock-driven timers and notifications for a race.

Nothing here sleeps or spawns threads. Whoever owns the clock calls
``Scheduler.run_until(now)``; due tasks fire in (due time, insertion) order,
so a race replays identically for the same clock and random source.
"""

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, List, Tuple


@dataclass(order=True)
class ScheduledTask:
    when: float
    seq: int
    callback: Callable[..., Any] = field(compare=False)
    args: Tuple[Any, ...] = field(default=(), compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    def __init__(self):
        self._queue: List[ScheduledTask] = []
        self._seq = itertools.count()

    def call_at(self, when: float, callback: Callable[..., Any], *args) -> ScheduledTask:
        task = ScheduledTask(when, next(self._seq), callback, args)
        heapq.heappush(self._queue, task)
        return task

    def run_until(self, now: float) -> int:
        """Fire every task due at or before ``now``. Returns how many ran."""
        fired = 0
        while self._queue and self._queue[0].when <= now:
            task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            task.callback(task.when, *task.args)
            fired += 1
        return fired

    def cancel_all(self) -> None:
        for task in self._queue:
            task.cancel()
        self._queue.clear()

    @property
    def pending(self) -> int:
        return sum(1 for task in self._queue if not task.cancelled)


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    due_at: float


class NotificationQueue:
    """Toasts waiting to be shown, ordered by due time then by push order."""

    def __init__(self):
        self._entries: List[Tuple[float, int, Notification]] = []
        self._seq = itertools.count()

    def push(self, title: str, description: str, due_at: float) -> Notification:
        note = Notification(title, description, due_at)
        heapq.heappush(self._entries, (due_at, next(self._seq), note))
        return note

    def pop_due(self, now: float) -> List[Notification]:
        due = []
        while self._entries and self._entries[0][0] <= now:
            due.append(heapq.heappop(self._entries)[2])
        return due

    def pending(self) -> List[Notification]:
        return [entry[2] for entry in sorted(self._entries)]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self):
        return len(self._entries)
