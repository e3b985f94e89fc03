"""
Lab Site - Application Factory
"""
import os

import click
from flask import Flask, request, current_app
from werkzeug.security import generate_password_hash

from labsite.errors import register_error_handlers
from labsite.extensions import db, babel
from labsite.logs import configure_logging
from labsite.routes import register_blueprints
from labsite.services.session_gate import session_gate
from config.settings import config


def get_locale():
    """Determine the best locale for the user."""
    languages = current_app.config['LANGUAGES']
    lang = request.cookies.get('babel_translation')
    if lang in languages:
        return lang
    return request.accept_languages.best_match(languages) or current_app.config['BABEL_DEFAULT_LOCALE']


def create_app(config_name=None, overrides=None):
    """Application Factory."""
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config.get(config_name, config['default']))
    if overrides:
        app.config.update(overrides)

    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    babel.init_app(app, locale_selector=get_locale)
    session_gate.init_app(app)

    # Context processor for templates
    @app.context_processor
    def inject_conf_var():
        return dict(get_locale=get_locale)

    # Register blueprints
    register_blueprints(app)
    register_error_handlers(app)

    # CLI Commands
    register_cli_commands(app)

    return app


def register_cli_commands(app):
    """Register CLI commands."""
    from labsite.models import User
    from labsite.models.user import VALID_ROLES, ROLE_MEMBER

    @app.cli.command("init-db")
    def init_db_command():
        """Creates database tables."""
        db.create_all()
        click.echo("Initialized the database.")

    @app.cli.command("create-user")
    @click.argument("email")
    @click.argument("password")
    @click.option("--role", type=click.Choice(VALID_ROLES), default=ROLE_MEMBER)
    @click.option("--name", default=None)
    def create_user_command(email, password, role, name):
        """Creates a user account with the given role."""
        email = email.strip().lower()
        if User.query.filter_by(email=email).first():
            raise click.ClickException(f"User {email} already exists.")
        db.session.add(User(
            email=email,
            name=name,
            role=role,
            password_hash=generate_password_hash(password),
        ))
        db.session.commit()
        click.echo(f"Created {role} {email}.")
