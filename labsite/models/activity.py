"""Notifications and the director activity log."""
from datetime import datetime
from labsite.extensions import db

NOTIFICATION_UNREAD = 'Unread'
NOTIFICATION_READ = 'Read'


class Notification(db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(300), nullable=False)
    status = db.Column(db.String(10), default=NOTIFICATION_UNREAD)
    audience = db.Column(db.String(20))  # Role the notice is for, or None when addressed to one user
    recipient_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'))
    publication_id = db.Column(db.Integer, db.ForeignKey('publications.id', ondelete='SET NULL'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'status': self.status,
            'publication_id': self.publication_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class DirectorActivity(db.Model):
    __tablename__ = 'director_activity_log'

    id = db.Column(db.Integer, primary_key=True)
    director_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))  # None once the director is deleted
    activity_type = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    director = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'director_id': self.director_id,
            'activity_type': self.activity_type,
            'description': self.description,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
