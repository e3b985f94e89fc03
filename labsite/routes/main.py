"""Main routes - Index, language switching, public publication views."""
from flask import Blueprint, render_template, request, redirect, make_response, jsonify, current_app

from labsite.routes.auth import current_user
from labsite.services import publications

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    summary = publications.publication_summary()
    latest = publications.list_approved_publications()[:5]
    return render_template('index.html', user=current_user(), summary=summary, latest=latest)


@main_bp.route('/set_language/<lang>')
def set_language(lang):
    if lang not in current_app.config['LANGUAGES']:
        lang = current_app.config['BABEL_DEFAULT_LOCALE']
    resp = make_response(redirect(request.referrer or '/'))
    resp.set_cookie('babel_translation', lang)
    return resp


@main_bp.route('/api/publications')
def approved_publications():
    items = publications.list_approved_publications(request.args.get('type'))
    return jsonify([p.to_dict(public=True) for p in items])


@main_bp.route('/api/publications/summary')
def publication_summary():
    return jsonify(publications.publication_summary())
