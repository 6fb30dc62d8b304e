import os
import logging
from flask import Flask, jsonify, redirect, url_for
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from dotenv import load_dotenv

from .config import DevConfig, ProdConfig, TestConfig

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
login_manager.login_view = 'auth.login'

CONFIGS = {
    'development': DevConfig,
    'production': ProdConfig,
    'testing': TestConfig,
}


def create_app(config_name: str | None = None) -> Flask:
    """Application factory with environment based configuration."""
    load_dotenv()

    app = Flask(__name__, instance_relative_config=True)
    os.makedirs(app.instance_path, exist_ok=True)

    # Pick configuration
    env = config_name or os.getenv('ENV') or os.getenv('FLASK_ENV') or 'production'
    app.config.from_object(CONFIGS.get(env, ProdConfig))

    # Initialise logging
    logging.basicConfig(level=logging.DEBUG if app.debug else logging.INFO)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Ensure models loaded so tables can be created
    from camrent import models  # noqa
    from camrent.access import login_denied
    login_manager.unauthorized_handler(login_denied)
    with app.app_context():
        db.create_all()

    base = app.config['BASE_PATH'].rstrip('/')

    from camrent.storefront.routes import bp as storefront_bp
    from camrent.auth.routes import bp as auth_bp
    from camrent.admin import bp as admin_bp
    from camrent.cli import catalog_cli, users_cli

    app.register_blueprint(storefront_bp, url_prefix=base or None)
    app.register_blueprint(auth_bp, url_prefix=f'{base}/auth')
    app.register_blueprint(admin_bp, url_prefix=f'{base}/admin')
    app.cli.add_command(catalog_cli)
    app.cli.add_command(users_cli)

    # Anything unrouted lands back on the storefront
    @app.route(f'{base}/<path:_unknown>')
    def catch_all(_unknown):
        return redirect(url_for('storefront.index'))

    if base:
        @app.route('/')
        def root():
            return redirect(url_for('storefront.index'))

    @app.errorhandler(400)
    def bad_request(e):
        return jsonify(error=e.description), 400

    @app.errorhandler(404)
    def not_found(_):
        return jsonify(error='Not found'), 404

    @app.errorhandler(500)
    def server_error(_):
        return jsonify(error='Internal server error'), 500

    return app
