from enrollment_lifecycle import db
from enrollment_lifecycle.utils.helpers import local_now

class ClassSession(db.Model):
    __tablename__ = 'sessions'
    
    STATUS_SCHEDULED = 'scheduled'
    STATUS_COMPLETED = 'completed'
    
    id = db.Column(db.Integer, primary_key=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False)
    session_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date)
    start_time = db.Column(db.Time)
    end_time = db.Column(db.Time, nullable=False)
    capacity = db.Column(db.Integer)
    enrolled_count = db.Column(db.Integer, nullable=False, default=0)
    instructor_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    status = db.Column(db.String(20), nullable=False, default=STATUS_SCHEDULED)
    deleted_at = db.Column(db.DateTime, index=True)
    archived_into_id = db.Column(db.Integer, db.ForeignKey('historical_sessions.id', ondelete='SET NULL'))
    created_at = db.Column(db.DateTime, default=local_now)
    updated_at = db.Column(db.DateTime, default=local_now, onupdate=local_now)
    
    enrollments = db.relationship('Enrollment', backref='class_session', lazy='dynamic')
    instructor = db.relationship('User', foreign_keys=[instructor_id])
    archived_into = db.relationship('HistoricalSession', foreign_keys=[archived_into_id])
    
    @property
    def is_live(self):
        return self.deleted_at is None
    
    def available_seats(self):
        if self.capacity:
            return max(0, self.capacity - (self.enrolled_count or 0))
        return None
    
    def __repr__(self):
        return f'<ClassSession {self.id} {self.session_date} ({self.status})>'
