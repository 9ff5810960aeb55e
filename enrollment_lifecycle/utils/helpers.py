from datetime import datetime
from zoneinfo import ZoneInfo
from flask import current_app, has_app_context
from enrollment_lifecycle import db

DEFAULT_TIMEZONE = 'America/New_York'


def local_now(tz_name=None):
    """Naive wall-clock time in the institute timezone (what session dates/times are stored in)."""
    if tz_name is None:
        if has_app_context():
            tz_name = current_app.config.get('TIMEZONE', DEFAULT_TIMEZONE)
        else:
            tz_name = DEFAULT_TIMEZONE
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


class SystemClock:
    def __init__(self, tz_name=DEFAULT_TIMEZONE):
        self.tz_name = tz_name

    def now(self):
        return local_now(self.tz_name)

    def __repr__(self):
        return f'<SystemClock {self.tz_name}>'


class FixedClock:
    """Clock pinned to a given moment, moved forward by hand."""

    def __init__(self, moment):
        self.moment = moment

    def now(self):
        return self.moment

    def advance(self, delta):
        self.moment = self.moment + delta
        return self.moment

    def __repr__(self):
        return f'<FixedClock {self.moment.isoformat()}>'


def get_clock():
    return current_app.extensions['clock']


def insert_ignoring_conflicts(model, values, index_elements=None):
    """INSERT ... ON CONFLICT DO NOTHING RETURNING id.

    The returned result yields the new id, or nothing when the row already existed.
    """
    dialect = db.session.get_bind().dialect.name

    if dialect == 'postgresql':
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == 'sqlite':
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f'Unsupported database dialect for upserts: {dialect}')

    table = model.__table__
    stmt = (
        insert(table)
        .values(**values)
        .on_conflict_do_nothing(index_elements=index_elements)
        .returning(table.c.id)
    )
    return db.session.execute(stmt)
