"""Dashboard notifications addressed to a role or to one user."""
from sqlalchemy import or_

from labsite.errors import NotFound, ValidationError
from labsite.models import db, Notification
from labsite.models.activity import NOTIFICATION_READ, NOTIFICATION_UNREAD


def notify(title, audience=None, recipient_id=None, publication_id=None):
    """Queue a notification on the current session; the caller commits."""
    notification = Notification(
        title=title[:300],
        audience=audience,
        recipient_id=recipient_id,
        publication_id=publication_id,
        status=NOTIFICATION_UNREAD,
    )
    db.session.add(notification)
    return notification


def _visible_to(user):
    return Notification.query.filter(
        or_(Notification.audience == user.role, Notification.recipient_id == user.id)
    )


def notifications_for(user):
    return _visible_to(user).order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def mark_notifications(user, ids, status):
    if status not in (NOTIFICATION_READ, NOTIFICATION_UNREAD):
        raise ValidationError({'status': f'Status must be {NOTIFICATION_READ} or {NOTIFICATION_UNREAD}'})
    if not ids:
        raise ValidationError({'ids': 'At least one notification id is required'})

    notifications = _visible_to(user).filter(Notification.id.in_(ids)).all()
    if not notifications:
        raise NotFound('No notifications found with the provided ids')
    for notification in notifications:
        notification.status = status
    db.session.commit()
    return len(notifications)
