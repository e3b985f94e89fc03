"""User model."""
from datetime import datetime
from labsite.extensions import db

ROLE_ADMIN = 'admin'
ROLE_DIRECTOR = 'director'
ROLE_MEMBER = 'member'
VALID_ROLES = [ROLE_MEMBER, ROLE_DIRECTOR, ROLE_ADMIN]

MEMBER_TYPES = ['PhD Candidate', 'Postdoc Candidate', "Master's Candidate", 'Staff Member']


class User(db.Model):
    __tablename__ = 'users'
    
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    name = db.Column(db.String(100))  # First Name
    last_name = db.Column(db.String(100))
    role = db.Column(db.String(20), default=ROLE_MEMBER)  # admin, director, member
    member_type = db.Column(db.String(40))  # Only meaningful for members
    password_hash = db.Column(db.String(256))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def full_name(self):
        return f"{self.name or ''} {self.last_name or ''}".strip()

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'last_name': self.last_name,
            'role': self.role,
            'member_type': self.member_type,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
