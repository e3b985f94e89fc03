"""Routes package - Blueprint registration."""
from labsite.routes.main import main_bp
from labsite.routes.auth import auth_bp
from labsite.routes.member import member_bp
from labsite.routes.director import director_bp
from labsite.routes.admin import admin_bp


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(member_bp)
    app.register_blueprint(director_bp)
    app.register_blueprint(admin_bp)
