"""Server-side session records backing the cookie session."""
from datetime import datetime
from labsite.extensions import db


class UserSession(db.Model):
    """One login. The browser only holds `session_id`; the idle clock lives here."""
    __tablename__ = 'user_sessions'

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(64), unique=True, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    remember_me = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_activity = db.Column(db.DateTime, default=datetime.utcnow)
    ended_at = db.Column(db.DateTime)
    end_reason = db.Column(db.String(20))  # logout, idle

    user = db.relationship('User', backref=db.backref('sessions', cascade='all, delete-orphan'))

    @property
    def is_open(self):
        return self.ended_at is None
