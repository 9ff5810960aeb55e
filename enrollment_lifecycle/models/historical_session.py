from enrollment_lifecycle import db
from enrollment_lifecycle.utils.helpers import local_now

class HistoricalSession(db.Model):
    __tablename__ = 'historical_sessions'
    
    id = db.Column(db.Integer, primary_key=True)
    # traceability only, the live row may be long gone
    original_session_id = db.Column(db.Integer, unique=True)
    class_id = db.Column(db.Integer, nullable=False)
    session_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date)
    start_time = db.Column(db.Time)
    end_time = db.Column(db.Time, nullable=False)
    capacity = db.Column(db.Integer)
    enrolled_count = db.Column(db.Integer, default=0)
    instructor_id = db.Column(db.Integer)
    status = db.Column(db.String(20), default='completed')
    archived_at = db.Column(db.DateTime, default=local_now)
    archived_reason = db.Column(db.String(255))
    
    enrollments = db.relationship(
        'HistoricalEnrollment', backref='historical_session', lazy='dynamic',
        cascade='all, delete-orphan', passive_deletes=True
    )
    
    def __repr__(self):
        return f'<HistoricalSession {self.id} (original {self.original_session_id})>'
