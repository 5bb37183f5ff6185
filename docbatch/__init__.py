"""
docbatch Application Factory
"""
import logging
import os
from datetime import datetime, timezone
from flask import Flask, jsonify
from flask_wtf.csrf import CSRFProtect
from config import config

csrf = CSRFProtect()

# Version info
APP_VERSION = os.environ.get("APP_VERSION", "2026.10")
BUILD_TIME = os.environ.get("BUILD_TIME", "")
GIT_COMMIT = os.environ.get("GIT_COMMIT", "")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(app):
    """Route app and service loggers through one handler at LOG_LEVEL."""
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    package_logger = logging.getLogger("docbatch")
    package_logger.setLevel(level)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
    app.logger.setLevel(level)


def create_app(config_name='default'):
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    configure_logging(app)

    # Initialize extensions
    csrf.init_app(app)

    # Register blueprints
    from docbatch.api import api_bp
    from docbatch.views import views_bp

    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(views_bp)

    # Exempt API routes from CSRF (upload script posts plain FormData)
    csrf.exempt(api_bp)

    # Health check endpoint
    @app.route('/healthz')
    def healthz():
        """Health check for load balancers and monitoring"""
        from docbatch.services.native_service import soffice_ready

        backend = app.config.get("CONVERTER_BACKEND", "text")
        status = "ok"
        backend_status = "ok"
        if backend == "libreoffice":
            ready, msg = soffice_ready(app.config.get("SOFFICE_BINARY", "soffice"))
            if not ready:
                status = "degraded"
                backend_status = f"error: {msg}"

        return jsonify({
            "status": status,
            "version": APP_VERSION,
            "backend": backend,
            "backend_status": backend_status,
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    # Version endpoint
    @app.route('/version')
    def version():
        """Version and build info"""
        return jsonify({
            "version": APP_VERSION,
            "build_time": BUILD_TIME,
            "git_commit": GIT_COMMIT,
            "features": {
                "text_backend": True,
                "libreoffice_backend": True,
                "folder_upload": True,
                "error_manifest": True,
            }
        })

    app.logger.info('docbatch started (backend=%s)', app.config.get("CONVERTER_BACKEND"))
    return app
