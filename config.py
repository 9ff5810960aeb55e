import os

basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(basedir, 'enrollments.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True}

    # wall-clock timezone for session dates/times and for the daily trigger
    TIMEZONE = os.environ.get('ARCHIVE_TIMEZONE', 'America/New_York')
    ARCHIVE_JOB_HOUR = int(os.environ.get('ARCHIVE_JOB_HOUR', '4'))
    ARCHIVE_JOB_MINUTE = int(os.environ.get('ARCHIVE_JOB_MINUTE', '0'))
    SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'False').lower() == 'true'

    BACKUP_FOLDER = os.environ.get('BACKUP_FOLDER') or os.path.join(basedir, 'backups')

    # PostgreSQL only, 0 disables
    DB_STATEMENT_TIMEOUT_MS = int(os.environ.get('DB_STATEMENT_TIMEOUT_MS', '0'))
