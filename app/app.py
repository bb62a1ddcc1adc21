"""
CineLog - Watch diary, analytics and friends
Application factory and initialization
"""
import os
import sys
import logging
import warnings

# Suppress Flask-Limiter in-memory storage warning
warnings.filterwarnings("ignore", category=UserWarning, module="flask_limiter")

import flask.cli
flask.cli.show_server_banner = lambda *args: None

# Core Flask imports
from flask import Flask
import structlog

# Local imports
from constants import BUILD_VERSION, CINELOG_DB
from settings import load_settings
from db import db, init_db
from auth import auth_blueprint, login_manager, limiter
from exceptions import register_exception_handlers
from metrics import init_metrics
from utils import ColoredFormatter, FilterRemoveDateFromWerkzeugLogs, get_or_create_secret_key

# Routes
from routes.analytics import analytics_bp
from routes.friends import friends_bp
from routes.lists import lists_bp
from routes.logs import logs_bp
from routes.media import media_bp
from routes.system import system_bp
from routes.watchlist import watchlist_bp

# Logging configuration
formatter = ColoredFormatter(
    '[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(formatter)

logging.basicConfig(
    level=logging.INFO,
    handlers=[handler]
)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if os.environ.get('LOG_FORMAT') == 'json' else structlog.dev.ConsoleRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger('main')

# Apply filter to hide date from http access logs
logging.getLogger('werkzeug').addFilter(FilterRemoveDateFromWerkzeugLogs())


def create_app(test_config=None):
    """Application factory"""
    app = Flask(__name__)
    app.config["SQLALCHEMY_DATABASE_URI"] = CINELOG_DB
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    if test_config:
        app.config.update(test_config)
    if not app.config.get('SECRET_KEY'):
        app.config['SECRET_KEY'] = get_or_create_secret_key()

    # Initialize components
    db.init_app(app)
    login_manager.init_app(app)
    limiter.init_app(app)

    # Register exception handlers
    register_exception_handlers(app)

    # Register blueprints
    app.register_blueprint(auth_blueprint)
    app.register_blueprint(logs_bp)
    app.register_blueprint(analytics_bp)
    app.register_blueprint(friends_bp)
    app.register_blueprint(watchlist_bp)
    app.register_blueprint(lists_bp)
    app.register_blueprint(media_bp)
    app.register_blueprint(system_bp)

    # Initialize metrics
    init_metrics(app)

    # Global initialization
    with app.app_context():
        # Load settings
        load_settings()

        # Initialize database
        init_db(app)

    return app


if __name__ == '__main__':
    app = create_app()
    logger.info(f'Build Version: {BUILD_VERSION}')
    logger.info('Starting server on port 8465...')
    app.run(debug=False, use_reloader=False, host="0.0.0.0", port=int(os.environ.get("PORT", 8465)))
    logger.info('Shutting down server...')
