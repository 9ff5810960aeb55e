from enrollment_lifecycle.models.user import User
from enrollment_lifecycle.models.course import Course
from enrollment_lifecycle.models.class_session import ClassSession
from enrollment_lifecycle.models.enrollment import Enrollment
from enrollment_lifecycle.models.historical_session import HistoricalSession
from enrollment_lifecycle.models.historical_enrollment import HistoricalEnrollment

__all__ = [
    'User', 'Course', 'ClassSession', 'Enrollment',
    'HistoricalSession', 'HistoricalEnrollment'
]
