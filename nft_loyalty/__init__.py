"""
NFT Loyalty Engine
Flask application factory
"""
import os
import logging
from flask import Flask
from flask_cors import CORS

from .extensions import db, migrate
from .config import get_config, validate_config
from .utils.cache import init_cache
from .utils.errors import (
    ErrorCode,
    bad_request,
    error_response,
    internal_error,
    loyalty_error_response,
    not_found,
)
from .utils.exceptions import LoyaltyError
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(config_name: str = None, config_overrides: dict = None) -> Flask:
    """
    Application factory for creating Flask app instances.

    Args:
        config_name: Configuration environment (development, production, testing)
        config_overrides: Extra config applied before extensions are initialized

    Returns:
        Configured Flask application
    """
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    # Setup logging before anything else
    setup_logging()
    validate_config(config_name)

    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    init_cache(app)

    CORS(app, origins=app.config['CORS_ORIGINS'], allow_headers=['Content-Type', 'Authorization'])

    # Engine is built once per app; collaborators read config here
    from .services.loyalty_engine import init_engine
    init_engine(app)

    # Register blueprints
    register_blueprints(app)

    # Register CLI commands
    from .commands import init_app as init_commands
    init_commands(app)

    # Register error handlers
    register_error_handlers(app)

    # Health check endpoint
    @app.route('/health')
    def health_check():
        return {'status': 'healthy', 'service': 'nft-loyalty'}

    logger.info(f'NFT loyalty app created ({config_name})')
    return app


def register_blueprints(app: Flask) -> None:
    """Register all API blueprints."""
    from .api.users import users_bp
    from .api.actions import actions_bp
    from .api.metadata import metadata_bp
    from .api.perks import perks_bp
    from .api.tokens import tokens_bp

    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(actions_bp, url_prefix='/api/actions')
    app.register_blueprint(metadata_bp, url_prefix='/api/metadata')
    app.register_blueprint(perks_bp, url_prefix='/api/perks')
    app.register_blueprint(tokens_bp, url_prefix='/api/tokens')


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""

    @app.errorhandler(LoyaltyError)
    def loyalty_error(error):
        return loyalty_error_response(error)

    @app.errorhandler(400)
    def handle_bad_request(error):
        return bad_request('Bad request')

    @app.errorhandler(404)
    def handle_not_found(error):
        return not_found('Not found')

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return error_response('Method not allowed', ErrorCode.INVALID_REQUEST, 405, log_error=False)

    @app.errorhandler(500)
    def handle_internal_error(error):
        db.session.rollback()
        return internal_error('Internal server error', details={'error': str(error)})
