"""
Server-side session gate.

A login opens a `UserSession` row identified by an opaque token. Every request
resolves that token back to a live session, expiring it once the caller has
been idle for longer than the configured window.
"""
import logging
import secrets
from collections import namedtuple
from datetime import datetime, timedelta

from labsite.extensions import db
from labsite.models import UserSession

logger = logging.getLogger(__name__)

STATE_UNKNOWN = 'unknown'
STATE_AUTHENTICATED = 'authenticated'
STATE_LOGGED_OUT = 'logged_out'

END_LOGOUT = 'logout'
END_IDLE = 'idle'

GateResult = namedtuple('GateResult', ['state', 'user_session', 'reason'])


class SessionGate:
    """Opens, resolves and closes server-side sessions."""

    def __init__(self, app=None, clock=None):
        self.idle_timeout = timedelta(minutes=10)
        self.remember_timeout = timedelta(days=30)
        self.clock = clock or datetime.utcnow
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.idle_timeout = app.config.get('SESSION_IDLE_TIMEOUT', self.idle_timeout)
        self.remember_timeout = app.config.get('SESSION_REMEMBER_TIMEOUT', self.remember_timeout)
        app.extensions['session_gate'] = self

    def timeout_for(self, user_session):
        return self.remember_timeout if user_session.remember_me else self.idle_timeout

    def idle_for(self, user_session, now=None):
        now = now or self.clock()
        return now - (user_session.last_activity or user_session.created_at)

    def is_idle(self, user_session, now=None):
        return self.idle_for(user_session, now) >= self.timeout_for(user_session)

    def open(self, user, remember_me=False):
        now = self.clock()
        user_session = UserSession(
            session_id=secrets.token_urlsafe(32),
            user_id=user.id,
            email=user.email,
            remember_me=bool(remember_me),
            created_at=now,
            last_activity=now,
        )
        db.session.add(user_session)
        db.session.commit()
        logger.info('Opened session for %s', user.email, extra={'task': 'Login'})
        return user_session

    def resolve(self, session_id):
        """Map a cookie token to a gate state, ending the session if it went idle."""
        if not session_id:
            return GateResult(STATE_UNKNOWN, None, None)

        user_session = UserSession.query.filter_by(session_id=session_id).first()
        if user_session is None:
            return GateResult(STATE_LOGGED_OUT, None, None)
        if not user_session.is_open:
            return GateResult(STATE_LOGGED_OUT, user_session, user_session.end_reason)

        now = self.clock()
        if self.is_idle(user_session, now):
            self._end(user_session, END_IDLE, now)
            logger.info('Session for %s expired after %s idle', user_session.email,
                        self.idle_for(user_session, now), extra={'task': 'Session Expiry'})
            return GateResult(STATE_LOGGED_OUT, user_session, END_IDLE)

        return GateResult(STATE_AUTHENTICATED, user_session, None)

    def touch(self, user_session):
        user_session.last_activity = self.clock()
        db.session.commit()

    def close(self, session_id, reason=END_LOGOUT):
        user_session = UserSession.query.filter_by(session_id=session_id).first()
        if user_session is None or not user_session.is_open:
            return None
        self._end(user_session, reason, self.clock())
        logger.info('Closed session for %s (%s)', user_session.email, reason, extra={'task': 'Logout'})
        return user_session

    def _end(self, user_session, reason, now):
        user_session.ended_at = now
        user_session.end_reason = reason
        db.session.commit()


session_gate = SessionGate()
