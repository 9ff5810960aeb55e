"""
Daily archival of ended sessions.

Each eligible session is archived in its own transaction: the session row is
locked, copied into historical_sessions, its enrollments are copied into
historical_enrollments and removed from the live table, and the session is
soft-deleted. A failing session is rolled back and stays live, so the next run
picks it up again.
"""
import logging
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from enrollment_lifecycle import db
from enrollment_lifecycle.models import ClassSession, Enrollment, HistoricalSession, HistoricalEnrollment
from enrollment_lifecycle.utils.counters import sync_enrolled_counts
from enrollment_lifecycle.utils.eligibility import is_session_ended
from enrollment_lifecycle.utils.helpers import get_clock, insert_ignoring_conflicts

logger = logging.getLogger(__name__)

ARCHIVED_REASON = 'ended — automatic archival'


def find_ended_session_ids(now):
    # coarse filter in SQL on the end day, exact check on end date + end time below
    candidates = ClassSession.query.filter(
        ClassSession.deleted_at.is_(None),
        func.coalesce(ClassSession.end_date, ClassSession.session_date) <= now.date()
    ).order_by(ClassSession.id).all()

    return [session.id for session in candidates if is_session_ended(session, now)]


def ensure_historical_session(session, now):
    result = insert_ignoring_conflicts(HistoricalSession, {
        'original_session_id': session.id,
        'class_id': session.class_id,
        'session_date': session.session_date,
        'end_date': session.end_date,
        'start_time': session.start_time,
        'end_time': session.end_time,
        'capacity': session.capacity,
        'enrolled_count': session.enrolled_count or 0,
        'instructor_id': session.instructor_id,
        'status': ClassSession.STATUS_COMPLETED,
        'archived_at': now,
        'archived_reason': ARCHIVED_REASON,
    }, index_elements=['original_session_id'])

    historical_session_id = result.scalar_one_or_none()
    if historical_session_id is None:
        historical_session_id = db.session.query(HistoricalSession.id).filter_by(
            original_session_id=session.id
        ).scalar()
        logger.info(f"Historical session already exists for session {session.id}, reusing {historical_session_id}")

    return historical_session_id


def archive_enrollment(enrollment, historical_session_id, now):
    """Copy one live enrollment into history. Returns False if it was already there."""
    result = insert_ignoring_conflicts(HistoricalEnrollment, {
        'original_enrollment_id': enrollment.id,
        'user_id': enrollment.user_id,
        'class_id': enrollment.class_id,
        'session_id': enrollment.session_id,
        'historical_session_id': historical_session_id,
        'payment_status': enrollment.payment_status or 'unknown',
        'payment_method': enrollment.payment_method,
        'enrollment_status': enrollment.enrollment_status,
        'admin_notes': enrollment.admin_notes,
        'reviewed_at': enrollment.reviewed_at,
        'reviewed_by': enrollment.reviewed_by,
        'enrolled_at': enrollment.enrolled_at,
        'archived_at': now,
        'archived_reason': ARCHIVED_REASON,
    }, index_elements=['original_enrollment_id'])

    return result.scalar_one_or_none() is not None


def archive_session(session, now):
    """Move one ended session and its enrollments into the historical tables.

    Runs inside the caller's transaction. Returns the number of enrollments
    newly written to historical_enrollments.
    """
    session.status = ClassSession.STATUS_COMPLETED

    enrollments = session.enrollments.order_by(Enrollment.id).all()
    archived = 0

    # sessions without enrollments are only soft-deleted, no history row
    if enrollments:
        historical_session_id = ensure_historical_session(session, now)
        session.archived_into_id = historical_session_id

        for enrollment in enrollments:
            if archive_enrollment(enrollment, historical_session_id, now):
                archived += 1
            else:
                logger.info(f"Enrollment {enrollment.id} already archived, skipping")

        Enrollment.query.filter_by(session_id=session.id).delete(synchronize_session=False)
        sync_enrolled_counts([session.id])

    session.deleted_at = now
    return archived


def lock_live_session(session_id):
    return ClassSession.query.filter(
        ClassSession.id == session_id,
        ClassSession.deleted_at.is_(None)
    ).with_for_update().first()


def archive_ended_sessions(now=None):
    """One tick of the daily job. Safe to re-run."""
    now = now or get_clock().now()
    logger.info(f"Starting session archival run at {now.isoformat()}")

    session_ids = find_ended_session_ids(now)
    db.session.commit()

    report = {
        'checked_at': now,
        'eligible': len(session_ids),
        'sessions_archived': 0,
        'enrollments_archived': 0,
        'failed_session_ids': [],
    }

    for session_id in session_ids:
        try:
            session = lock_live_session(session_id)
            if session is None or not is_session_ended(session, now):
                db.session.rollback()
                logger.info(f"Session {session_id} changed since the scan, skipping")
                continue

            archived = archive_session(session, now)
            end_day = session.end_date or session.session_date
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            report['failed_session_ids'].append(session_id)
            logger.error(f"Error archiving session {session_id}, will retry next run: {e}")
            continue

        report['sessions_archived'] += 1
        report['enrollments_archived'] += archived
        logger.info(
            f"Archived session {session_id} (ended {end_day}) - "
            f"{archived} enrollment(s) moved to history"
        )

    logger.info(
        f"Session archival run completed: {report['sessions_archived']} session(s) archived, "
        f"{report['enrollments_archived']} enrollment(s) archived, "
        f"{len(report['failed_session_ids'])} failure(s)"
    )
    return report
