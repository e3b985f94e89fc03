"""Authentication routes and the per-request session gate."""
import logging
import re

from flask import Blueprint, redirect, url_for, session, request, render_template, flash, abort, g, jsonify
from flask_babel import gettext as _
from werkzeug.security import generate_password_hash, check_password_hash

from labsite.errors import wants_json
from labsite.models import db, User
from labsite.models.user import ROLE_ADMIN, ROLE_MEMBER, VALID_ROLES
from labsite.services import access
from labsite.services.session_gate import session_gate, STATE_AUTHENTICATED, END_IDLE

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)

# Endpoints that read the session without counting as user activity.
PASSIVE_ENDPOINTS = {'auth.check_auth', 'auth.check_access', 'static'}

IDENTITY_KEYS = ('session_id', 'email', 'last_activity')


def is_valid_email(email):
    """Standard email regex validation."""
    regex = r'^[\w\.\+\-]+@[\w\-]+(\.[\w\-]+)+$'
    return re.search(regex, email)


def is_strong_password(password):
    """At least 8 chars, 1 uppercase, 1 number or special char."""
    if len(password) < 8:
        return False
    if not re.search(r"[A-Z]", password):
        return False
    if not re.search(r"[\d\W]", password):
        return False
    return True


def clear_identity():
    for key in IDENTITY_KEYS:
        session.pop(key, None)


def current_user():
    return g.get('user')


# ==================== Session gate ====================

@auth_bp.before_app_request
def enforce_session_gate():
    """Resolve the caller, expire idle sessions, then apply the route guard table."""
    g.user = None
    g.session_expired = False

    result = session_gate.resolve(session.get('session_id'))
    if result.state == STATE_AUTHENTICATED:
        g.user = result.user_session.user
        if request.endpoint not in PASSIVE_ENDPOINTS:
            session_gate.touch(result.user_session)
            session['last_activity'] = result.user_session.last_activity.isoformat()
    elif 'session_id' in session:
        g.session_expired = result.reason == END_IDLE
        clear_identity()

    decision = access.authorize(request.path, g.user.role if g.user else None)
    if decision == access.LOGIN:
        return deny_unauthenticated()
    if decision == access.FORBIDDEN:
        logger.warning('%s (%s) denied access to %s', g.user.email, g.user.role, request.path,
                       extra={'task': 'Access Check'})
        abort(403)


def deny_unauthenticated():
    message = 'Session expired' if g.session_expired else 'Authentication required'
    if wants_json():
        return jsonify({'authenticated': False, 'message': message}), 401
    if g.session_expired:
        flash(_('Session expired! Please log in again.'), 'error')
        return redirect(url_for('auth.login', sessionExpired='true'))
    return redirect(url_for('auth.login', next=request.path))


@auth_bp.route('/api/check-auth')
def check_auth():
    user = current_user()
    return jsonify({
        'authenticated': user is not None,
        'role': user.role if user else None,
    })


@auth_bp.route('/api/check-access')
def check_access():
    """Does the caller hold `role` (default admin)?"""
    required = request.args.get('role', ROLE_ADMIN)
    user = current_user()
    if user is None:
        message = 'Session expired' if g.session_expired else 'Unauthorized'
        return jsonify({'success': False, 'message': message})
    return jsonify({'success': required in VALID_ROLES and user.role == required})


@auth_bp.route('/api/activity', methods=['POST'])
def record_activity():
    """Heartbeat posted by the browser on pointer and key events."""
    return jsonify({'success': True, 'last_activity': session.get('last_activity')})


# ==================== Routes ====================

@auth_bp.route('/register', methods=['GET', 'POST'])
def register():
    if request.method == 'POST':
        email = request.form.get('email', '').strip().lower()
        password = request.form.get('password', '')
        confirm_password = request.form.get('confirm_password')
        name = request.form.get('name')
        last_name = request.form.get('last_name')

        error = None

        # Validations
        if not email or not is_valid_email(email):
            error = _('Invalid email.')
        elif not name:
            error = _('Name is required.')
        elif not password:
            error = _('Password is required.')
        elif password != confirm_password:
            error = _('Passwords do not match.')
        elif not is_strong_password(password):
            error = _('Password must be at least 8 characters with one uppercase letter and one number or symbol.')
        elif User.query.filter_by(email=email).first() is not None:
            error = _('User %(email)s is already registered.', email=email)

        if error is None:
            user_count = User.query.count()
            role = ROLE_ADMIN if user_count == 0 else ROLE_MEMBER

            user = User(
                email=email,
                name=name,
                last_name=last_name,
                password_hash=generate_password_hash(password),
                role=role
            )
            db.session.add(user)
            db.session.commit()
            logger.info('Registered %s as %s', email, role, extra={'task': 'Register'})
            flash(_('Account created. Please log in.'))
            return redirect(url_for('auth.login'))

        flash(error)

    return render_template('auth/register.html')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'POST':
        data = request.get_json(silent=True) if request.is_json else request.form
        data = data or {}
        email = (data.get('email') or '').strip().lower()
        password = data.get('password') or ''
        remember_me = data.get('remember_me') in (True, 'true', 'on', '1')

        user = User.query.filter_by(email=email).first()
        if user is None or not user.password_hash or not check_password_hash(user.password_hash, password):
            logger.warning('Failed login attempt for %s from %s', email,
                           request.headers.get('X-Forwarded-For', request.remote_addr),
                           extra={'task': 'Login'})
            if request.is_json:
                return jsonify({'success': False, 'message': 'Invalid email or password'}), 401
            flash(_('Invalid email or password.'))
            return render_template('auth/login.html'), 401

        if 'session_id' in session:
            session_gate.close(session['session_id'])
        session.clear()
        user_session = session_gate.open(user, remember_me=remember_me)
        session.permanent = remember_me
        session['session_id'] = user_session.session_id
        session['email'] = user.email
        session['last_activity'] = user_session.last_activity.isoformat()

        target = access.landing_page(user.role)
        if request.is_json:
            return jsonify({'success': True, 'role': user.role, 'redirect': target})
        return redirect(target)

    return render_template('auth/login.html', session_expired=request.args.get('sessionExpired') == 'true')


@auth_bp.route('/logout', methods=['GET', 'POST'])
def logout():
    session_id = session.get('session_id')
    if session_id:
        session_gate.close(session_id)
    session.clear()
    if wants_json():
        return jsonify({'success': True, 'message': 'Logout Successful'})
    return redirect(url_for('auth.login'))


@auth_bp.route('/profile', methods=['GET', 'POST'])
def profile():
    user = current_user()

    if request.method == 'POST':
        # Update allowed fields
        user.name = request.form.get('name') or user.name
        user.last_name = request.form.get('last_name', user.last_name)

        # Update password if provided
        new_password = request.form.get('new_password')
        confirm_password = request.form.get('confirm_password')

        if new_password:
            if new_password != confirm_password:
                flash(_('Passwords do not match.'))
                return render_template('auth/profile.html', user=user)
            if not is_strong_password(new_password):
                flash(_('Password must be at least 8 characters with one uppercase letter and one number or symbol.'))
                return render_template('auth/profile.html', user=user)
            user.password_hash = generate_password_hash(new_password)

        db.session.commit()
        flash(_('Profile updated.'))
        return redirect(url_for('auth.profile'))

    return render_template('auth/profile.html', user=user)
