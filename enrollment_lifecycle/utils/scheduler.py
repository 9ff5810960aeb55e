import atexit
import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.exc import SQLAlchemyError
from enrollment_lifecycle import db
from enrollment_lifecycle.utils.archival import archive_ended_sessions

logger = logging.getLogger(__name__)

SESSION_ARCHIVAL_JOB_ID = 'session_archival_job'

scheduler = None


def run_session_archival_job(app):
    """One scheduled tick. Returns the run report, or None when the run could not start."""
    with app.app_context():
        try:
            return archive_ended_sessions()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Session archival run aborted: {e}")
            return None
        finally:
            db.session.remove()


def create_scheduler(app, scheduler_class=BackgroundScheduler):
    timezone = app.config['TIMEZONE']
    hour = app.config['ARCHIVE_JOB_HOUR']
    minute = app.config['ARCHIVE_JOB_MINUTE']

    new_scheduler = scheduler_class(timezone=timezone)
    new_scheduler.add_job(
        func=run_session_archival_job,
        args=[app],
        trigger=CronTrigger(hour=hour, minute=minute, timezone=timezone),
        id=SESSION_ARCHIVAL_JOB_ID,
        name='Daily Session Archival',
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )

    logger.info(f"Session archival scheduled daily at {hour:02d}:{minute:02d} ({timezone})")
    return new_scheduler


def init_scheduler(app):
    global scheduler

    if scheduler is None:
        scheduler = create_scheduler(app)
        scheduler.start()
        atexit.register(shutdown_scheduler)
        logger.info("Scheduler started successfully")

    return scheduler


def shutdown_scheduler():
    global scheduler

    if scheduler is not None:
        if scheduler.running:
            scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Scheduler shut down successfully")
