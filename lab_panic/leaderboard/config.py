import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///lab_panic.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # 'sql' persists through SQLAlchemy, 'memory' keeps everything in process
    SCORE_STORE = os.environ.get('SCORE_STORE', 'sql')
    # Session lifetime (seconds)
    SESSION_TTL_SEC = int(os.environ.get('SESSION_TTL_SEC', '7200'))
    # Expired-session reaper interval (seconds). 0 disables.
    REAPER_INTERVAL_SEC = int(os.environ.get('REAPER_INTERVAL_SEC', '60'))
    LEADERBOARD_DEFAULT_LIMIT = int(os.environ.get('LEADERBOARD_DEFAULT_LIMIT', '25'))
    LEADERBOARD_MAX_LIMIT = int(os.environ.get('LEADERBOARD_MAX_LIMIT', '100'))
    AVAILABLE_WEEKS_CAP = int(os.environ.get('AVAILABLE_WEEKS_CAP', '52'))
    # Optional: base for share links. Falls back to the request host.
    PUBLIC_BASE_URL = os.environ.get('PUBLIC_BASE_URL')
    APP_ENV = os.environ.get('APP_ENV', 'development')
    APP_VERSION = '1.0.0'
