"""Models package - Re-exports all models for convenient importing."""
from labsite.extensions import db
from labsite.models.user import User
from labsite.models.session import UserSession
from labsite.models.publication import Publication
from labsite.models.activity import Notification, DirectorActivity

__all__ = ['db', 'User', 'UserSession', 'Publication', 'Notification', 'DirectorActivity']
