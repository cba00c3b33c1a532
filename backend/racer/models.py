from racer import db
from datetime import datetime, timezone
import uuid


def utcnow():
    """Current time as naive UTC, the form timestamps are stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_score_id():
    """Generate a unique id for a score record."""
    return str(uuid.uuid4())


class Score(db.Model):
    __tablename__ = 'scores'
    id = db.Column(db.String(36), primary_key=True, default=generate_score_id)
    name = db.Column(db.String(20), nullable=False)
    wpm = db.Column(db.Integer, nullable=False, index=True)
    accuracy = db.Column(db.Integer, nullable=False)
    time = db.Column(db.Float, nullable=False)
    difficulty = db.Column(db.String(16), nullable=False, index=True)
    # Stored as naive UTC
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self, score=None):
        data = {
            'id': self.id,
            'name': self.name,
            'wpm': self.wpm,
            'accuracy': self.accuracy,
            'time': self.time,
            'difficulty': self.difficulty,
            'timestamp': self.timestamp.isoformat() + 'Z' if self.timestamp else None,
        }
        if score is not None:
            data['score'] = score
        return data


class DailyStats(db.Model):
    __tablename__ = 'daily_stats'
    date = db.Column(db.Date, primary_key=True)
    total_races = db.Column(db.Integer, nullable=False, default=0)
    average_wpm = db.Column(db.Float, nullable=False, default=0.0)
    highest_wpm = db.Column(db.Integer, nullable=False, default=0)
    total_players = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {
            'date': self.date.isoformat(),
            'total_races': self.total_races,
            'average_wpm': self.average_wpm,
            'highest_wpm': self.highest_wpm,
            'total_players': self.total_players,
        }
