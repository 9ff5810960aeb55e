from enrollment_lifecycle import db
from enrollment_lifecycle.utils.helpers import local_now

class Enrollment(db.Model):
    __tablename__ = 'enrollments'
    
    # statuses that hold a seat and therefore count towards sessions.enrolled_count
    COUNTED_STATUSES = ('pending', 'approved')
    
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False)
    # old value is loaded on reassignment so both sessions of a move get recounted
    session_id = db.column_property(
        db.Column(db.Integer, db.ForeignKey('sessions.id'), index=True), active_history=True
    )
    payment_status = db.Column(db.String(20), default='pending')
    payment_method = db.Column(db.String(50))
    enrollment_status = db.Column(db.String(20), nullable=False, default='pending')
    admin_notes = db.Column(db.Text)
    reviewed_at = db.Column(db.DateTime)
    reviewed_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    enrolled_at = db.Column(db.DateTime, default=local_now)
    
    user = db.relationship('User', foreign_keys=[user_id])
    
    __table_args__ = (
        db.Index('uq_enrollments_user_session', 'user_id', 'session_id', unique=True),
    )
    
    def __repr__(self):
        return f'<Enrollment User:{self.user_id} Session:{self.session_id} ({self.enrollment_status})>'
