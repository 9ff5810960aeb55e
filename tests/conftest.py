from datetime import date, datetime, time
import pytest
from sqlalchemy import text
from config import Config
from enrollment_lifecycle import create_app, db
from enrollment_lifecycle.models import User, Course, ClassSession, Enrollment
from enrollment_lifecycle.utils.helpers import FixedClock

NOW = datetime(2026, 3, 10, 0, 0)


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SCHEDULER_ENABLED = False
    DB_STATEMENT_TIMEOUT_MS = 0


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def app(clock, tmp_path):
    class AppConfig(TestingConfig):
        BACKUP_FOLDER = str(tmp_path / 'backups')

    app = create_app(AppConfig, clock=clock)

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def course(app):
    course = Course(title='Wilderness First Aid')
    db.session.add(course)
    db.session.commit()
    return course


@pytest.fixture
def make_user(app):
    created = []

    def _make(**kwargs):
        n = len(created) + 1
        user = User(
            email=kwargs.pop('email', f'student{n}@example.com'),
            first_name=kwargs.pop('first_name', 'Student'),
            last_name=kwargs.pop('last_name', str(n)),
            **kwargs
        )
        db.session.add(user)
        db.session.commit()
        created.append(user)
        return user

    return _make


@pytest.fixture
def make_session(course):
    def _make(session_date, end_time=time(14, 0), end_date=None, **kwargs):
        session = ClassSession(
            class_id=course.id,
            session_date=session_date,
            end_date=end_date,
            start_time=kwargs.pop('start_time', time(9, 0)),
            end_time=end_time,
            capacity=kwargs.pop('capacity', 12),
            **kwargs
        )
        db.session.add(session)
        db.session.commit()
        return session

    return _make


@pytest.fixture
def make_enrollment(course):
    def _make(user, session, status='approved', enrolled_at=None, **kwargs):
        enrollment = Enrollment(
            user_id=user.id,
            class_id=course.id,
            session_id=session.id,
            enrollment_status=status,
            payment_status=kwargs.pop('payment_status', 'paid'),
            enrolled_at=enrolled_at or datetime(2026, 3, 1, 12, 0),
            **kwargs
        )
        db.session.add(enrollment)
        db.session.commit()
        return enrollment

    return _make


@pytest.fixture
def without_unique_index(app):
    """Simulate a database where the (user, session) uniqueness was lost."""
    db.session.execute(text('DROP INDEX uq_enrollments_user_session'))
    db.session.commit()


def past_day(days=1):
    return date.fromordinal(NOW.date().toordinal() - days)


def future_day(days=1):
    return date.fromordinal(NOW.date().toordinal() + days)
