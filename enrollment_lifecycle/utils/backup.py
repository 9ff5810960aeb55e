import os
import shutil
import logging
from flask import current_app
from sqlalchemy.engine import make_url
from enrollment_lifecycle.utils.helpers import local_now

logger = logging.getLogger(__name__)


class BackupManager:

    @staticmethod
    def database_path():
        """Path of the SQLite database file, None for server or in-memory databases."""
        url = make_url(current_app.config['SQLALCHEMY_DATABASE_URI'])
        if url.get_backend_name() != 'sqlite':
            return None
        if not url.database or url.database == ':memory:':
            return None
        return url.database

    @staticmethod
    def create_data_backup(label='data'):
        database_path = BackupManager.database_path()
        if database_path is None or not os.path.exists(database_path):
            logger.info("No local database file to back up, skipping backup")
            return None

        backup_folder = current_app.config['BACKUP_FOLDER']
        os.makedirs(backup_folder, exist_ok=True)

        timestamp = local_now().strftime('%Y%m%d_%H%M%S')
        backup_file = os.path.join(backup_folder, f'{label}_{timestamp}.db')
        shutil.copy(database_path, backup_file)

        logger.info(f"Database backed up to {backup_file}")
        return backup_file

