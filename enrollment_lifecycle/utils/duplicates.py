"""
Collapse duplicate live enrollments for the same (user, session).

The kept row is the one with the best status (approved > pending > rejected >
anything else), then the most recent enrolled_at, then the highest id.
Removed rows are integrity defects, not lifecycle events, so they are not
copied into historical_enrollments.
"""
import logging
from sqlalchemy import case, func
from enrollment_lifecycle import db
from enrollment_lifecycle.models import Enrollment
from enrollment_lifecycle.utils.counters import adjust_enrolled_count
from enrollment_lifecycle.utils.init_db import create_enrollment_unique_index

logger = logging.getLogger(__name__)

STATUS_RANK = {'approved': 3, 'pending': 2, 'rejected': 1}


def status_rank():
    return case(STATUS_RANK, value=Enrollment.enrollment_status, else_=0)


def find_duplicate_groups():
    return db.session.query(
        Enrollment.user_id,
        Enrollment.session_id,
        func.count(Enrollment.id).label('count')
    ).filter(
        Enrollment.user_id.isnot(None),
        Enrollment.session_id.isnot(None)
    ).group_by(
        Enrollment.user_id, Enrollment.session_id
    ).having(
        func.count(Enrollment.id) > 1
    ).order_by(
        func.count(Enrollment.id).desc(), Enrollment.user_id, Enrollment.session_id
    ).all()


def ranked_group(user_id, session_id):
    """Rows of one (user, session) group, best first."""
    return db.session.query(
        Enrollment.id, Enrollment.enrollment_status, Enrollment.enrolled_at, Enrollment.session_id
    ).filter(
        Enrollment.user_id == user_id,
        Enrollment.session_id == session_id
    ).order_by(
        status_rank().desc(),
        Enrollment.enrolled_at.desc().nulls_last(),
        Enrollment.id.desc()
    ).all()


def resolve_duplicate_enrollments():
    groups = find_duplicate_groups()
    logger.info(f"Found {len(groups)} user/session combination(s) with duplicate enrollments")

    report = {
        'groups': len(groups),
        'deleted': 0,
        'decremented': 0,
        'index_created': False,
        'remaining_duplicates': 0,
        'details': [],
    }

    try:
        for group in groups:
            rows = ranked_group(group.user_id, group.session_id)
            if len(rows) < 2:
                continue

            keep, duplicates = rows[0], rows[1:]
            logger.info(
                f"user_id={group.user_id}, session_id={group.session_id}: keeping enrollment {keep.id} "
                f"({keep.enrollment_status}), deleting {len(duplicates)} duplicate(s)"
            )

            for row in duplicates:
                if row.enrollment_status in Enrollment.COUNTED_STATUSES:
                    adjust_enrolled_count(row.session_id, -1)
                    report['decremented'] += 1

                Enrollment.query.filter(Enrollment.id == row.id).delete(synchronize_session=False)
                report['deleted'] += 1

            report['details'].append({
                'user_id': group.user_id,
                'session_id': group.session_id,
                'kept_id': keep.id,
                'kept_status': keep.enrollment_status,
                'deleted_ids': [row.id for row in duplicates],
            })

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    report['index_created'] = create_enrollment_unique_index(db.session.connection())
    db.session.commit()

    report['remaining_duplicates'] = len(find_duplicate_groups())
    if report['remaining_duplicates']:
        logger.warning(f"{report['remaining_duplicates']} duplicate combination(s) still exist")

    logger.info(f"Duplicate cleanup deleted {report['deleted']} enrollment(s)")
    return report
