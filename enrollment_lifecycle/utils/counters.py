"""
Keeps sessions.enrolled_count equal to the number of live pending/approved
enrollments of each session.

ORM-level enrollment changes are picked up by session events and recounted
right before commit. Bulk statements (archival, repairs) call
sync_enrolled_counts / adjust_enrolled_count themselves.
"""
import logging
from sqlalchemy import case, event, func, select, update
from sqlalchemy.orm import attributes
from enrollment_lifecycle import db
from enrollment_lifecycle.models import ClassSession, Enrollment

logger = logging.getLogger(__name__)

TOUCHED_SESSIONS_KEY = 'enrollment_sessions_touched'


def live_count_subquery():
    return (
        select(func.count(Enrollment.id))
        .where(
            Enrollment.session_id == ClassSession.id,
            Enrollment.enrollment_status.in_(Enrollment.COUNTED_STATUSES),
        )
        .scalar_subquery()
    )


def live_enrollment_count(session_id):
    return db.session.query(func.count(Enrollment.id)).filter(
        Enrollment.session_id == session_id,
        Enrollment.enrollment_status.in_(Enrollment.COUNTED_STATUSES)
    ).scalar()


def sync_enrolled_counts(session_ids, session=None):
    """Recompute enrolled_count from the live enrollments table, returns rows updated."""
    session_ids = sorted({sid for sid in session_ids if sid is not None})
    if not session_ids:
        return 0

    table = ClassSession.__table__
    stmt = (
        update(table)
        .where(table.c.id.in_(session_ids))
        .values(enrolled_count=live_count_subquery())
    )
    result = (session or db.session).execute(stmt)
    return result.rowcount


def adjust_enrolled_count(session_id, delta):
    """Shift enrolled_count by delta, never below zero."""
    table = ClassSession.__table__
    new_value = table.c.enrolled_count + delta
    stmt = (
        update(table)
        .where(table.c.id == session_id)
        .values(enrolled_count=case((new_value < 0, 0), else_=new_value))
    )
    db.session.execute(stmt)


def find_enrolled_count_drift():
    live_count = live_count_subquery().label('live_count')
    rows = db.session.execute(
        select(ClassSession.id, ClassSession.enrolled_count, live_count).order_by(ClassSession.id)
    ).all()

    return [
        {'session_id': row.id, 'stored': row.enrolled_count, 'actual': row.live_count}
        for row in rows
        if row.enrolled_count != row.live_count
    ]


def _collect_touched_sessions(session, flush_context):
    touched = session.info.setdefault(TOUCHED_SESSIONS_KEY, set())

    for obj in list(session.new) + list(session.dirty) + list(session.deleted):
        if not isinstance(obj, Enrollment):
            continue
        # old and new session_id, so a moved enrollment updates both sessions
        history = attributes.get_history(obj, 'session_id', passive=attributes.PASSIVE_NO_INITIALIZE)
        touched.update(history.sum())
        touched.add(obj.__dict__.get('session_id'))


def _sync_touched_sessions(session):
    if session.new or session.dirty or session.deleted:
        session.flush()

    touched = session.info.pop(TOUCHED_SESSIONS_KEY, None)
    if not touched:
        return

    updated = sync_enrolled_counts(touched, session=session)
    logger.debug(f'Recounted enrolled_count for {updated} session(s)')


def _discard_touched_sessions(session):
    session.info.pop(TOUCHED_SESSIONS_KEY, None)


def setup_enrollment_counter_sync():
    listeners = (
        ('after_flush', _collect_touched_sessions),
        ('before_commit', _sync_touched_sessions),
        ('after_rollback', _discard_touched_sessions),
    )

    for identifier, fn in listeners:
        if not event.contains(db.session, identifier, fn):
            event.listen(db.session, identifier, fn)
