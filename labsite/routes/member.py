"""Member dashboard - submitting and editing own publications."""
from flask import Blueprint, render_template, request, jsonify

from labsite.models.publication import PUBLICATION_TYPES
from labsite.routes.auth import current_user
from labsite.services import publications
from labsite.services.notifications import notifications_for

member_bp = Blueprint('member', __name__)

FORM_FIELDS = ['type', 'title', 'publishing_year', 'authors', 'link', 'published_date']


def publication_form_data():
    """Collect the submitted fields, from JSON or multipart, keeping only those present."""
    if request.is_json:
        source = request.get_json(silent=True) or {}
    else:
        source = request.form
    data = {field: source.get(field) for field in FORM_FIELDS if field in source}
    # Older forms post the year as `year`.
    if 'publishing_year' not in data and 'year' in source:
        data['publishing_year'] = source.get('year')
    return data


@member_bp.route('/member_dashboard')
def dashboard():
    user = current_user()
    return render_template(
        'member/dashboard.html',
        publications=publications.list_owner_publications(user),
        publication_types=PUBLICATION_TYPES,
        user=user,
    )


@member_bp.route('/api/member/publications', methods=['GET'])
def list_publications():
    items = publications.list_owner_publications(current_user())
    return jsonify([p.to_dict() for p in items])


@member_bp.route('/api/member/publications', methods=['POST'])
def add_publication():
    publication = publications.create_publication(
        current_user(), publication_form_data(), request.files.get('document')
    )
    return jsonify({
        'success': True,
        'message': 'Publication added successfully',
        'publication': publication.to_dict(),
    }), 201


@member_bp.route('/api/member/publications/<int:publication_id>', methods=['GET'])
def get_publication(publication_id):
    publication = publications.get_owned_publication(publication_id, current_user())
    return jsonify({'publication': publication.to_dict()})


@member_bp.route('/api/member/publications/<int:publication_id>', methods=['PUT'])
def edit_publication(publication_id):
    user = current_user()
    publication = publications.get_owned_publication(publication_id, user)
    publications.update_publication(
        publication, user, publication_form_data(), request.files.get('document')
    )
    return jsonify({
        'success': True,
        'message': 'Publication updated successfully',
        'publication': publication.to_dict(),
    })


@member_bp.route('/api/member/publications/<int:publication_id>/document', methods=['DELETE'])
def remove_document(publication_id):
    user = current_user()
    publication = publications.get_owned_publication(publication_id, user)
    publications.remove_document(publication, user)
    return jsonify({'success': True, 'publication': publication.to_dict()})


@member_bp.route('/api/member/notifications')
def notifications():
    return jsonify([n.to_dict() for n in notifications_for(current_user())])
