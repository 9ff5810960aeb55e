from sqlalchemy import update
from enrollment_lifecycle import db
from enrollment_lifecycle.models import ClassSession, Enrollment
from enrollment_lifecycle.utils.counters import (
    TOUCHED_SESSIONS_KEY, adjust_enrolled_count, find_enrolled_count_drift,
    live_enrollment_count, sync_enrolled_counts
)
from tests.conftest import future_day


def enrolled_count(session_id):
    db.session.expire_all()
    return db.session.get(ClassSession, session_id).enrolled_count


def test_only_pending_and_approved_are_counted(make_session, make_user, make_enrollment):
    session = make_session(future_day(3))
    make_enrollment(make_user(), session, status='approved')
    make_enrollment(make_user(), session, status='pending')
    make_enrollment(make_user(), session, status='rejected')

    assert enrolled_count(session.id) == 2
    assert live_enrollment_count(session.id) == 2


def test_status_change_is_recounted_on_commit(make_session, make_user, make_enrollment):
    session = make_session(future_day(3))
    enrollment = make_enrollment(make_user(), session, status='pending')
    assert enrolled_count(session.id) == 1

    enrollment.enrollment_status = 'rejected'
    db.session.commit()
    assert enrolled_count(session.id) == 0

    enrollment.enrollment_status = 'approved'
    db.session.commit()
    assert enrolled_count(session.id) == 1


def test_deleting_an_enrollment_releases_the_seat(make_session, make_user, make_enrollment):
    session = make_session(future_day(3))
    enrollment = make_enrollment(make_user(), session)
    make_enrollment(make_user(), session)

    db.session.delete(enrollment)
    db.session.commit()

    assert enrolled_count(session.id) == 1


def test_moving_an_enrollment_updates_both_sessions(make_session, make_user, make_enrollment):
    first = make_session(future_day(3))
    second = make_session(future_day(4))
    enrollment = make_enrollment(make_user(), first)

    enrollment.session_id = second.id
    db.session.commit()

    assert enrolled_count(first.id) == 0
    assert enrolled_count(second.id) == 1


def test_moving_an_expired_enrollment_releases_the_old_seat(make_session, make_user, make_enrollment):
    first = make_session(future_day(3))
    second = make_session(future_day(4))
    make_enrollment(make_user(), first, status='pending')
    make_enrollment(make_user(), first)
    first_id, second_id = first.id, second.id
    db.session.expire_all()

    enrollment = Enrollment.query.filter_by(session_id=first_id, enrollment_status='pending').one()
    db.session.expire(enrollment)
    enrollment.session_id = second_id
    db.session.commit()

    assert enrolled_count(first_id) == 1
    assert enrolled_count(second_id) == 1
    assert find_enrolled_count_drift() == []


def test_rolled_back_changes_leave_count_untouched(make_session, make_user, course):
    session = make_session(future_day(3))
    user = make_user()

    db.session.add(Enrollment(user_id=user.id, class_id=course.id, session_id=session.id))
    db.session.flush()
    db.session.rollback()

    assert TOUCHED_SESSIONS_KEY not in db.session.info
    assert enrolled_count(session.id) == 0


def test_adjust_never_goes_below_zero(make_session):
    session = make_session(future_day(3))

    adjust_enrolled_count(session.id, -1)
    db.session.commit()
    assert enrolled_count(session.id) == 0

    adjust_enrolled_count(session.id, 2)
    db.session.commit()
    assert enrolled_count(session.id) == 2


def test_drift_is_found_and_fixed(make_session, make_user, make_enrollment):
    accurate = make_session(future_day(3))
    drifted = make_session(future_day(4))
    make_enrollment(make_user(), accurate)
    make_enrollment(make_user(), drifted)

    db.session.execute(
        update(ClassSession.__table__).where(ClassSession.__table__.c.id == drifted.id).values(enrolled_count=7)
    )
    db.session.commit()

    assert find_enrolled_count_drift() == [{'session_id': drifted.id, 'stored': 7, 'actual': 1}]

    assert sync_enrolled_counts([drifted.id, None]) == 1
    db.session.commit()

    assert find_enrolled_count_drift() == []
    assert enrolled_count(drifted.id) == 1
