"""Admin routes - dashboard and user/role management."""
import logging

from flask import Blueprint, render_template, redirect, url_for, request, flash
from flask_babel import gettext as _
from sqlalchemy import func
from werkzeug.security import generate_password_hash

from labsite.models import db, DirectorActivity, Notification, Publication, User
from labsite.models.user import MEMBER_TYPES, ROLE_MEMBER, VALID_ROLES
from labsite.routes.auth import current_user, is_valid_email

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/dashboard')
def dashboard():
    users_by_role = dict(db.session.query(User.role, func.count(User.id)).group_by(User.role).all())
    publications_by_status = dict(
        db.session.query(Publication.approval_status, func.count(Publication.id))
        .group_by(Publication.approval_status).all()
    )
    return render_template(
        'admin/dashboard.html',
        users_by_role=users_by_role,
        publications_by_status=publications_by_status,
    )


# ==================== USER MANAGEMENT ====================

@admin_bp.route('/admin/users')
def users_list():
    """List all users for admin management."""
    users = User.query.order_by(User.created_at.desc()).all()
    return render_template('admin/users.html', users=users, valid_roles=VALID_ROLES,
                           member_types=MEMBER_TYPES, current_user_id=current_user().id)


@admin_bp.route('/admin/users/<int:user_id>/role', methods=['POST'])
def update_user_role(user_id):
    """Update a user's role."""
    user = User.query.get_or_404(user_id)
    new_role = request.form.get('role')

    # Prevent admin from demoting themselves
    if user.id == current_user().id:
        flash(_('You cannot change your own role.'))
        return redirect(url_for('admin.users_list'))

    if new_role not in VALID_ROLES:
        flash(_('Invalid role.'))
        return redirect(url_for('admin.users_list'))

    user.role = new_role
    db.session.commit()
    logger.info('Role of %s changed to %s', user.email, new_role, extra={'task': 'Role Management'})
    flash(_('Role of %(email)s updated to %(role)s.', email=user.email, role=new_role))
    return redirect(url_for('admin.users_list'))


@admin_bp.route('/admin/users/create', methods=['POST'])
def create_user():
    """Create a new user from admin panel."""
    email = request.form.get('email', '').strip().lower()
    name = request.form.get('name')
    last_name = request.form.get('last_name')
    password = request.form.get('password')
    role = request.form.get('role', ROLE_MEMBER)
    member_type = request.form.get('member_type') or None

    # Validations
    if not email or not name or not password:
        flash(_('Email, name and password are required.'))
        return redirect(url_for('admin.users_list'))

    if not is_valid_email(email):
        flash(_('Invalid email.'))
        return redirect(url_for('admin.users_list'))

    if User.query.filter_by(email=email).first():
        flash(_('The email %(email)s is already registered.', email=email))
        return redirect(url_for('admin.users_list'))

    if role not in VALID_ROLES:
        role = ROLE_MEMBER
    if member_type not in MEMBER_TYPES:
        member_type = None

    user = User(
        email=email,
        name=name,
        last_name=last_name,
        member_type=member_type,
        password_hash=generate_password_hash(password),
        role=role
    )
    db.session.add(user)
    db.session.commit()
    logger.info('Created user %s with role %s', email, role, extra={'task': 'Role Management'})
    flash(_('User %(email)s created with role %(role)s.', email=email, role=role))
    return redirect(url_for('admin.user_edit_form', user_id=user.id))


@admin_bp.route('/admin/users/<int:user_id>/edit')
def user_edit_form(user_id):
    """Edit user form."""
    user = User.query.get_or_404(user_id)
    return render_template('admin/user_edit.html', user=user, current_user_id=current_user().id,
                           valid_roles=VALID_ROLES, member_types=MEMBER_TYPES)


@admin_bp.route('/admin/users/<int:user_id>/update', methods=['POST'])
def update_user(user_id):
    """Update user details."""
    user = User.query.get_or_404(user_id)

    # Update fields
    user.name = request.form.get('name', user.name)
    user.last_name = request.form.get('last_name', user.last_name)
    member_type = request.form.get('member_type')
    if member_type is not None:
        user.member_type = member_type if member_type in MEMBER_TYPES else None

    # Update role (but not for self)
    new_role = request.form.get('role')
    if new_role and new_role in VALID_ROLES and user.id != current_user().id:
        user.role = new_role

    db.session.commit()
    flash(_('User updated.'))
    return redirect(url_for('admin.user_edit_form', user_id=user.id))


@admin_bp.route('/admin/users/<int:user_id>/delete', methods=['POST'])
def delete_user(user_id):
    """Delete a user."""
    user = User.query.get_or_404(user_id)

    # Prevent admin from deleting themselves
    if user.id == current_user().id:
        flash(_('You cannot delete yourself.'))
        return redirect(url_for('admin.user_edit_form', user_id=user.id))

    if Publication.query.filter_by(owner_id=user.id).count():
        flash(_('Users with submitted publications cannot be deleted.'))
        return redirect(url_for('admin.user_edit_form', user_id=user.id))

    # Review history outlives the reviewer.
    Publication.query.filter_by(reviewed_by=user.id).update({'reviewed_by': None})
    DirectorActivity.query.filter_by(director_id=user.id).update({'director_id': None})
    Notification.query.filter_by(recipient_id=user.id).delete()

    email = user.email
    db.session.delete(user)
    db.session.commit()
    logger.info('Deleted user %s', email, extra={'task': 'Role Management'})
    flash(_('User %(email)s deleted.', email=email))
    return redirect(url_for('admin.users_list'))
