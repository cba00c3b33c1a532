import time
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app

from racer import db, socketio
from racer.models import Score, utcnow


def retention_cutoff(now: Optional[datetime] = None, days: Optional[int] = None) -> datetime:
    if days is None:
        days = int(current_app.config.get('SCORE_RETENTION_DAYS', 30))
    return (now or utcnow()) - timedelta(days=days)


def purge_old_scores(now: Optional[datetime] = None, days: Optional[int] = None) -> int:
    """Delete scores strictly older than the retention window.

    A record stamped exactly at the cutoff is kept. Safe to run repeatedly
    or concurrently with submissions.
    """
    cutoff = retention_cutoff(now, days)
    try:
        removed = Score.query.filter(Score.timestamp < cutoff).delete(synchronize_session=False)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"[retention] cutoff={cutoff.isoformat()} removed={removed}")
    return removed


def schedule_retention(app) -> None:
    """Run ``purge_old_scores`` every RETENTION_INTERVAL_SEC in the background.

    No-ops in TESTING mode or when the interval is 0.
    """
    if app.config.get('TESTING'):
        return
    interval = int(app.config.get('RETENTION_INTERVAL_SEC', 0))
    if interval <= 0:
        return

    def _worker(delay: int):
        while True:
            time.sleep(delay)
            with app.app_context():
                try:
                    purge_old_scores()
                except Exception as exc:
                    app.logger.warning(f"[retention-fail] error={exc}")

    app.logger.info(f"[retention-set] interval={interval}s")
    socketio.start_background_task(_worker, interval)
