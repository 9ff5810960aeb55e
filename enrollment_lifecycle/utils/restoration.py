"""
Bring back enrollments that were archived while their session was still running.

A historical enrollment (pending or approved) is restored when its session, live
or historical, ends in the future. Each restore runs in a SAVEPOINT so a bad
row is skipped without losing the others.
"""
import logging
from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from enrollment_lifecycle import db
from enrollment_lifecycle.models import ClassSession, Enrollment, HistoricalSession, HistoricalEnrollment
from enrollment_lifecycle.utils.counters import sync_enrolled_counts
from enrollment_lifecycle.utils.eligibility import is_session_upcoming
from enrollment_lifecycle.utils.helpers import get_clock, insert_ignoring_conflicts

logger = logging.getLogger(__name__)

RESTORED_NOTE = 'Restored from historical - was incorrectly archived'

ACTIVE_SESSION_EXISTS = 'active_session_exists'
SHOULD_RESTORE = 'should_restore'
SESSION_ENDED = 'session_ended'
NO_SESSION_FOUND = 'no_session_found'


def restore_reason(live_session, historical_session, now):
    if live_session is not None:
        return ACTIVE_SESSION_EXISTS if is_session_upcoming(live_session, now) else SESSION_ENDED
    if historical_session is not None:
        return SHOULD_RESTORE if is_session_upcoming(historical_session, now) else SESSION_ENDED
    return NO_SESSION_FOUND


def find_archived_enrollments(now):
    """Every archived pending/approved enrollment with the reason it should or should not come back."""
    rows = db.session.query(
        HistoricalEnrollment, ClassSession, HistoricalSession
    ).outerjoin(
        ClassSession, and_(
            ClassSession.id == HistoricalEnrollment.session_id,
            ClassSession.deleted_at.is_(None)
        )
    ).outerjoin(
        HistoricalSession, HistoricalSession.id == HistoricalEnrollment.historical_session_id
    ).filter(
        HistoricalEnrollment.enrollment_status.in_(Enrollment.COUNTED_STATUSES)
    ).order_by(
        HistoricalEnrollment.archived_at.desc(), HistoricalEnrollment.id.desc()
    ).all()

    return [
        (historical, live_session, restore_reason(live_session, historical_session, now))
        for historical, live_session, historical_session in rows
    ]


def live_enrollment_exists(historical):
    if historical.original_enrollment_id is None:
        return False
    return db.session.get(Enrollment, historical.original_enrollment_id) is not None


def reopen_session(session_id, now):
    """Undo the soft-delete of a session that has not ended yet."""
    session = ClassSession.query.filter(
        ClassSession.id == session_id,
        ClassSession.deleted_at.isnot(None)
    ).first()

    if session is None or not is_session_upcoming(session, now):
        return False

    session.deleted_at = None
    session.status = ClassSession.STATUS_SCHEDULED
    logger.info(f"Restored soft-deleted session {session_id}")
    return True


def restore_enrollment(historical, now):
    """Re-create the live row for one historical enrollment. Returns the new id, or None if skipped."""
    values = {
        'user_id': historical.user_id,
        'class_id': historical.class_id,
        'session_id': historical.session_id,
        'payment_status': historical.payment_status or 'pending',
        'payment_method': historical.payment_method,
        'enrollment_status': historical.enrollment_status,
        'admin_notes': historical.admin_notes or RESTORED_NOTE,
        'reviewed_at': historical.reviewed_at,
        'reviewed_by': historical.reviewed_by,
        'enrolled_at': historical.enrolled_at,
    }
    if historical.original_enrollment_id is not None:
        values['id'] = historical.original_enrollment_id

    restored_id = insert_ignoring_conflicts(Enrollment, values).scalar_one_or_none()
    if restored_id is None:
        return None

    if historical.session_id is not None:
        reopen_session(historical.session_id, now)
        sync_enrolled_counts([historical.session_id])

    db.session.delete(historical)
    return restored_id


def restore_incorrectly_archived_enrollments(dry_run=False, now=None):
    now = now or get_clock().now()
    logger.info(f"Searching for incorrectly archived enrollments at {now.isoformat()}")

    checked = find_archived_enrollments(now)
    matches = [
        (historical, live_session, reason)
        for historical, live_session, reason in checked
        if reason in (ACTIVE_SESSION_EXISTS, SHOULD_RESTORE)
    ]

    report = {
        'checked': len(checked),
        'matched': len(matches),
        'restored': 0,
        'skipped': 0,
        'dry_run': dry_run,
        'enrollments': [],
    }

    try:
        for historical, live_session, reason in matches:
            entry = {
                'historical_id': historical.id,
                'original_id': historical.original_enrollment_id,
                'user_id': historical.user_id,
                'class_id': historical.class_id,
                'session_id': historical.session_id,
                'status': historical.enrollment_status,
                'reason': reason,
            }

            if live_enrollment_exists(historical):
                logger.info(
                    f"Enrollment {historical.original_enrollment_id} is already live, "
                    f"skipping historical row {historical.id}"
                )
                entry['already_live'] = True
                report['skipped'] += 1
                if dry_run:
                    report['enrollments'].append(entry)
                continue

            if dry_run:
                entry['would_restore'] = True
                report['enrollments'].append(entry)
                report['skipped'] += 1
                continue

            try:
                with db.session.begin_nested():
                    restored_id = restore_enrollment(historical, now)
            except SQLAlchemyError as e:
                logger.error(f"Error restoring historical enrollment {entry['historical_id']}: {e}")
                report['skipped'] += 1
                continue

            if restored_id is None:
                logger.info(f"Enrollment for historical row {entry['historical_id']} already exists, skipped")
                report['skipped'] += 1
                continue

            entry['restored_id'] = restored_id
            report['enrollments'].append(entry)
            report['restored'] += 1
            logger.info(f"Restored historical enrollment {entry['historical_id']} as enrollment {restored_id}")

        if dry_run:
            db.session.rollback()
        else:
            db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Restoration complete: {report['restored']} restored, {report['skipped']} skipped")
    return report
