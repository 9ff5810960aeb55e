from datetime import datetime
import pytest
from sqlalchemy.exc import IntegrityError
from enrollment_lifecycle import db
from enrollment_lifecycle.models import ClassSession, Enrollment, HistoricalEnrollment
from enrollment_lifecycle.utils.duplicates import resolve_duplicate_enrollments
from enrollment_lifecycle.utils.init_db import enrollment_unique_index_exists
from tests.conftest import future_day

pytestmark = pytest.mark.usefixtures('without_unique_index')


def remaining_ids(user, session):
    return [e.id for e in Enrollment.query.filter_by(user_id=user.id, session_id=session.id).all()]


def test_approved_today_beats_pending_yesterday(make_session, make_user, make_enrollment):
    session = make_session(future_day(5))
    user = make_user()
    pending = make_enrollment(user, session, status='pending', enrolled_at=datetime(2026, 3, 8, 9, 0))
    approved = make_enrollment(user, session, status='approved', enrolled_at=datetime(2026, 3, 9, 9, 0))
    pending_id, approved_id = pending.id, approved.id
    assert db.session.get(ClassSession, session.id).enrolled_count == 2

    report = resolve_duplicate_enrollments()

    assert report['groups'] == 1
    assert report['deleted'] == 1
    assert report['decremented'] == 1
    assert report['remaining_duplicates'] == 0
    assert report['details'][0]['kept_id'] == approved_id
    assert report['details'][0]['deleted_ids'] == [pending_id]
    assert remaining_ids(user, session) == [approved_id]

    db.session.expire_all()
    assert db.session.get(ClassSession, session.id).enrolled_count == 1
    assert HistoricalEnrollment.query.count() == 0


def test_most_recent_wins_between_equal_statuses(make_session, make_user, make_enrollment):
    session = make_session(future_day(5))
    user = make_user()
    make_enrollment(user, session, status='approved', enrolled_at=datetime(2026, 3, 2, 9, 0))
    newest = make_enrollment(user, session, status='approved', enrolled_at=datetime(2026, 3, 5, 9, 0))
    make_enrollment(user, session, status='approved', enrolled_at=datetime(2026, 3, 3, 9, 0))
    newest_id = newest.id

    report = resolve_duplicate_enrollments()

    assert report['deleted'] == 2
    assert remaining_ids(user, session) == [newest_id]


def test_highest_id_breaks_full_ties(make_session, make_user, make_enrollment):
    session = make_session(future_day(5))
    user = make_user()
    same_moment = datetime(2026, 3, 4, 9, 0)
    make_enrollment(user, session, status='pending', enrolled_at=same_moment)
    later = make_enrollment(user, session, status='pending', enrolled_at=same_moment)
    later_id = later.id

    resolve_duplicate_enrollments()

    assert remaining_ids(user, session) == [later_id]


def test_rejected_duplicates_do_not_free_a_seat(make_session, make_user, make_enrollment):
    session = make_session(future_day(5))
    user = make_user()
    keep = make_enrollment(user, session, status='approved', enrolled_at=datetime(2026, 3, 1, 9, 0))
    make_enrollment(user, session, status='rejected', enrolled_at=datetime(2026, 3, 9, 9, 0))
    make_enrollment(user, session, status='waitlisted', enrolled_at=datetime(2026, 3, 9, 10, 0))
    keep_id = keep.id

    report = resolve_duplicate_enrollments()

    assert report['deleted'] == 2
    assert report['decremented'] == 0
    assert remaining_ids(user, session) == [keep_id]
    db.session.expire_all()
    assert db.session.get(ClassSession, session.id).enrolled_count == 1


def test_unrelated_enrollments_are_untouched(make_session, make_user, make_enrollment):
    session = make_session(future_day(5))
    other_session = make_session(future_day(6))
    user, other_user = make_user(), make_user()
    make_enrollment(user, session, status='pending')
    make_enrollment(user, session, status='approved')
    make_enrollment(user, other_session)
    make_enrollment(other_user, session)

    report = resolve_duplicate_enrollments()

    assert report['groups'] == 1
    assert Enrollment.query.count() == 3


def test_unique_index_is_restored(make_session, make_user, make_enrollment, course):
    session = make_session(future_day(5))
    user = make_user()
    make_enrollment(user, session, status='pending')
    make_enrollment(user, session, status='pending')
    assert not enrollment_unique_index_exists(db.session.connection())

    report = resolve_duplicate_enrollments()

    assert report['index_created'] is True
    assert enrollment_unique_index_exists(db.session.connection())

    db.session.add(Enrollment(user_id=user.id, class_id=course.id, session_id=session.id))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()

    assert resolve_duplicate_enrollments()['index_created'] is False


def test_startup_warns_when_duplicates_block_the_index(make_session, make_user, make_enrollment, caplog):
    from enrollment_lifecycle.utils.init_db import initialize_database

    session = make_session(future_day(5))
    user = make_user()
    make_enrollment(user, session, status='pending')
    make_enrollment(user, session, status='approved')
    db.session.commit()

    with caplog.at_level('WARNING'):
        initialize_database()

    assert 'cleanup_duplicate_enrollments.py' in caplog.text
    assert not enrollment_unique_index_exists(db.session.connection())


def test_nothing_to_do_without_duplicates(make_session, make_user, make_enrollment):
    make_enrollment(make_user(), make_session(future_day(5)))

    report = resolve_duplicate_enrollments()

    assert report['groups'] == 0
    assert report['deleted'] == 0
    assert report['details'] == []
    assert report['index_created'] is True
