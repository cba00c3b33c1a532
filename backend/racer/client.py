"""Leaderboard channel used by a game client.

Wraps a python-socketio client. Every call degrades to a logged no-op when
the channel is down, so a race can always finish offline.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import socketio
from socketio import exceptions as sio_exceptions

from racer.engine.race import RaceResult

logger = logging.getLogger(__name__)


class LeaderboardClient:
    def __init__(self, url: str, sio: Optional[Any] = None,
                 on_leaderboard: Optional[Callable[[List[Dict]], None]] = None):
        self.url = url
        self.sio = sio if sio is not None else socketio.Client(reconnection=True)
        self.leaderboard: List[Dict] = []
        self.last_reply: Optional[Dict] = None
        self.filter_name = 'daily'
        self._on_leaderboard_cb = on_leaderboard
        self.sio.on('leaderboard_update', self._on_leaderboard)
        self.sio.on('score_submitted', self._on_score_submitted)
        self.sio.on('disconnect', self._on_disconnect)

    @property
    def connected(self) -> bool:
        return bool(getattr(self.sio, 'connected', False))

    def connect(self) -> bool:
        try:
            self.sio.connect(self.url)
        except sio_exceptions.ConnectionError as exc:
            logger.warning('leaderboard unavailable at %s: %s', self.url, exc)
            return False
        return True

    def disconnect(self) -> None:
        if self.connected:
            self.sio.disconnect()

    def _emit(self, event: str, payload: Dict) -> bool:
        if not self.connected:
            logger.info('offline, dropping %s', event)
            return False
        try:
            self.sio.emit(event, payload)
        except sio_exceptions.SocketIOError as exc:
            logger.warning('failed to send %s: %s', event, exc)
            return False
        return True

    def request_leaderboard(self, filter_name: str = 'daily') -> bool:
        self.filter_name = filter_name
        return self._emit('get_leaderboard', {'filter': filter_name})

    def submit_result(self, result: RaceResult, name: str) -> bool:
        """Send a finished race. Raises ``InvalidPlayerName`` before any I/O."""
        payload = result.to_submission(name)
        return self._emit('submit_score', payload)

    def _on_leaderboard(self, data) -> None:
        self.leaderboard = list(data or [])
        if self._on_leaderboard_cb:
            try:
                self._on_leaderboard_cb(self.leaderboard)
            except Exception:
                logger.exception('leaderboard display failed')

    def _on_score_submitted(self, reply) -> None:
        self.last_reply = reply or {}
        if self.last_reply.get('success'):
            self.request_leaderboard(self.filter_name)
        else:
            logger.info('score rejected: %s', self.last_reply.get('error'))

    def _on_disconnect(self, *args) -> None:
        logger.info('leaderboard channel closed; leaderboard is now stale')
