from enrollment_lifecycle import db
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError
import logging

logger = logging.getLogger(__name__)

ENROLLMENT_UNIQUE_INDEX = 'uq_enrollments_user_session'


def enrollment_unique_index_exists(connection):
    inspector = inspect(connection)
    names = {index['name'] for index in inspector.get_indexes('enrollments') if index.get('unique')}
    names.update(constraint['name'] for constraint in inspector.get_unique_constraints('enrollments'))
    return ENROLLMENT_UNIQUE_INDEX in names


def create_enrollment_unique_index(connection):
    """Returns True when the index had to be created."""
    if enrollment_unique_index_exists(connection):
        return False

    connection.execute(text(
        f"CREATE UNIQUE INDEX IF NOT EXISTS {ENROLLMENT_UNIQUE_INDEX} "
        "ON enrollments (user_id, session_id)"
    ))
    return True


def initialize_database():
    inspector = inspect(db.engine)

    if 'enrollments' in inspector.get_table_names():
        try:
            with db.engine.begin() as connection:
                if create_enrollment_unique_index(connection):
                    logger.info(f"Created unique index {ENROLLMENT_UNIQUE_INDEX} on enrollments")
        except IntegrityError:
            logger.warning(
                "Duplicate enrollments prevent the (user_id, session_id) unique index; "
                "run cleanup_duplicate_enrollments.py to repair them"
            )

    logger.info("Database initialization completed successfully")
