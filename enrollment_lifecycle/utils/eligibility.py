"""
When does a session end?

Multi-day sessions end at end_date + end_time, single-day sessions at
session_date + end_time. Works on live and historical session rows alike.
"""
from datetime import datetime


def effective_end(session):
    end_day = session.end_date if session.end_date is not None else session.session_date
    return datetime.combine(end_day, session.end_time)


def is_session_ended(session, now):
    return effective_end(session) < now


def is_session_upcoming(session, now):
    return effective_end(session) > now
