"""Director dashboard - publication review and notifications."""
from flask import Blueprint, render_template, request, jsonify, current_app

from labsite.models.publication import APPROVAL_STATUSES, PUBLICATION_TYPES
from labsite.routes.auth import current_user
from labsite.routes.member import publication_form_data
from labsite.services import publications
from labsite.services.notifications import notifications_for, mark_notifications

director_bp = Blueprint('director', __name__)


def _panel_args():
    return dict(
        page=request.args.get('page', 1, type=int),
        limit=request.args.get('limit', current_app.config['APPROVAL_PANEL_PAGE_SIZE'], type=int),
        search=request.args.get('search', '').strip(),
        status=request.args.get('status', ''),
        pub_type=request.args.get('type', ''),
    )


@director_bp.route('/director_dashboard')
def dashboard():
    user = current_user()
    panel = publications.approval_panel(status='Pending', limit=5)
    return render_template(
        'director/dashboard.html',
        user=user,
        pending=panel['publications'],
        activity=publications.recent_activity(user),
        notifications=notifications_for(user),
    )


@director_bp.route('/director_dashboard/approval_panel')
def approval_panel_page():
    args = _panel_args()
    panel = publications.approval_panel(**args)
    return render_template(
        'director/approval_panel.html',
        panel=panel,
        filters=args,
        statuses=APPROVAL_STATUSES,
        publication_types=PUBLICATION_TYPES,
    )


@director_bp.route('/api/director/publications')
def approval_panel():
    panel = publications.approval_panel(**_panel_args())
    return jsonify({
        'success': True,
        'publications': [p.to_dict() for p in panel['publications']],
        'stats': panel['stats'],
        'pagination': panel['pagination'],
    })


@director_bp.route('/api/director/publications/<int:publication_id>/status', methods=['POST'])
def update_status(publication_id):
    data = request.get_json(silent=True) or request.form
    publication = publications.get_publication(publication_id)
    publications.review_publication(
        publication,
        current_user(),
        data.get('approval_status') or data.get('status'),
        data.get('feedback'),
    )
    return jsonify({'success': True, 'updatedPublication': publication.to_dict()})


@director_bp.route('/api/director/publications/<int:publication_id>', methods=['PUT'])
def edit_publication(publication_id):
    publication = publications.get_publication(publication_id)
    publications.update_publication(
        publication, current_user(), publication_form_data(), request.files.get('document')
    )
    return jsonify({'success': True, 'publication': publication.to_dict()})


@director_bp.route('/api/director/notifications', methods=['GET'])
def notifications():
    return jsonify([n.to_dict() for n in notifications_for(current_user())])


@director_bp.route('/api/director/notifications', methods=['POST'])
def mark_read():
    data = request.get_json(silent=True) or {}
    ids = data.get('ids') or ([data['id']] if data.get('id') else [])
    updated = mark_notifications(current_user(), ids, data.get('status', 'Read'))
    return jsonify({'success': True, 'updated': updated})


@director_bp.route('/api/director/activity')
def activity():
    return jsonify([a.to_dict() for a in publications.recent_activity(current_user())])
