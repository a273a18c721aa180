import os


def _database_url():
    url = os.environ.get('DATABASE_URL') or 'sqlite:///arena.db'
    # Hosted Postgres often hands out postgres://, SQLAlchemy wants postgresql://
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Browser origins allowed for both HTTP and Socket.IO
    ALLOWED_ORIGINS = [o.strip() for o in os.environ.get(
        'ALLOWED_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080',
    ).split(',') if o.strip()]
    # Namespace carrying the game message contract
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Entries sent in every leaderboard_update
    LEADERBOARD_LIMIT = int(os.environ.get('LEADERBOARD_LIMIT', '50'))
    # Default page size for /api/history
    HISTORY_LIMIT = int(os.environ.get('HISTORY_LIMIT', '20'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Create missing tables at startup; migrations still own schema changes
    AUTO_CREATE_TABLES = os.environ.get('AUTO_CREATE_TABLES', '1') == '1'
