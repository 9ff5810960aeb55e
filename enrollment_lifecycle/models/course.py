from enrollment_lifecycle import db
from enrollment_lifecycle.utils.helpers import local_now

class Course(db.Model):
    __tablename__ = 'classes'
    
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime, default=local_now)
    
    sessions = db.relationship('ClassSession', backref='course', lazy='dynamic')
    
    def __repr__(self):
        return f'<Course {self.title}>'
