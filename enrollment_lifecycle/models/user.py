from enrollment_lifecycle import db
from enrollment_lifecycle.utils.helpers import local_now

class User(db.Model):
    __tablename__ = 'users'
    
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    role = db.Column(db.String(20), nullable=False, default='user')
    created_at = db.Column(db.DateTime, default=local_now)
    
    def __repr__(self):
        return f'<User {self.email}>'
