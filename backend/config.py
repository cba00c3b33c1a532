import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///leaderboard.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Origins allowed for HTTP and Socket.IO ("*" or comma separated list)
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    # Leaderboard query shape
    LEADERBOARD_LIMIT = int(os.environ.get('LEADERBOARD_LIMIT', '50'))
    # Timezone used for daily/weekly boundaries
    LEADERBOARD_TIMEZONE = os.environ.get('LEADERBOARD_TIMEZONE', 'UTC')
    # Retention: scores older than this many days are purged
    SCORE_RETENTION_DAYS = int(os.environ.get('SCORE_RETENTION_DAYS', '30'))
    # Background purge period (sec). 0 disables.
    RETENTION_INTERVAL_SEC = int(os.environ.get('RETENTION_INTERVAL_SEC', '86400'))
