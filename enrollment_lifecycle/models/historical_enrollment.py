from enrollment_lifecycle import db
from enrollment_lifecycle.utils.helpers import local_now

class HistoricalEnrollment(db.Model):
    __tablename__ = 'historical_enrollments'
    
    id = db.Column(db.Integer, primary_key=True)
    # NULL when the live row could not be resolved; NULLs never collide on the unique index
    original_enrollment_id = db.Column(db.Integer, unique=True)
    user_id = db.Column(db.Integer, nullable=False)
    class_id = db.Column(db.Integer, nullable=False)
    session_id = db.Column(db.Integer, index=True)
    historical_session_id = db.Column(
        db.Integer, db.ForeignKey('historical_sessions.id', ondelete='CASCADE'), nullable=False, index=True
    )
    payment_status = db.Column(db.String(20))
    payment_method = db.Column(db.String(50))
    enrollment_status = db.Column(db.String(20), nullable=False)
    admin_notes = db.Column(db.Text)
    reviewed_at = db.Column(db.DateTime)
    reviewed_by = db.Column(db.Integer)
    enrolled_at = db.Column(db.DateTime)
    archived_at = db.Column(db.DateTime, default=local_now)
    archived_reason = db.Column(db.String(255))
    
    def __repr__(self):
        return f'<HistoricalEnrollment {self.id} (original {self.original_enrollment_id})>'
