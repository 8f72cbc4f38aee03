# qrdash/__init__.py

import logging

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from qrdash.extensions import db, cors, init_redis
from qrdash.utils.error_handler import register_error_handlers
from qrdash.routes.auth_routes import auth_bp
from qrdash.routes.billing_routes import billing_bp
from qrdash.routes.core_routes import core_bp
from qrdash.routes.qr_routes import qr_bp
from qrdash.routes.redirect_routes import redirect_bp


def create_app(config_object=None) -> Flask:
    app = Flask(__name__)

    # Load configuration
    if config_object is None:
        from qrdash.config import Config
        config_object = Config
    app.config.from_object(config_object)

    if not app.debug and not app.testing:
        app.logger.setLevel(logging.INFO)

    # Initialize extensions
    cors.init_app(app)
    db.init_app(app)
    init_redis(app)

    # Fix proxy headers
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

    register_error_handlers(app)

    # Register blueprints
    app.register_blueprint(core_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(redirect_bp)
    app.register_blueprint(qr_bp)
    app.register_blueprint(billing_bp, url_prefix="/billing")

    # Create tables if not exists
    with app.app_context():
        from qrdash.models.profile import Profile  # noqa: F401
        from qrdash.models.qr_code import QRCode  # noqa: F401
        from qrdash.models.scan_event import ScanEvent  # noqa: F401
        from qrdash.models.qr_purchase import QRPurchase  # noqa: F401
        db.create_all()

    return app
