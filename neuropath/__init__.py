from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from neuropath.config import config
from neuropath.utils.helpers import _iso, _utcnow
import logging
from logging.handlers import RotatingFileHandler
import os

def _error_body(error_code, message):
    return {
        "success": False,
        "errorCode": error_code,
        "message": message,
        "timestamp": _iso(_utcnow()),
    }

def create_app():
    app = Flask(__name__)

    # Configure Logging
    os.makedirs(config.LOG_DIR, exist_ok=True)
    if not any(isinstance(h, RotatingFileHandler) for h in app.logger.handlers):
        file_handler = RotatingFileHandler(os.path.join(config.LOG_DIR, 'app.log'), maxBytes=10240, backupCount=10)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
    app.logger.setLevel(logging.INFO)
    app.logger.info('NeuroPath startup')

    # Apply Config
    app.config['MAX_CONTENT_LENGTH'] = config.MAX_CONTENT_LENGTH
    app.json.ensure_ascii = config.JSON_AS_ASCII
    app.json.sort_keys = config.JSON_SORT_KEYS

    CORS(app, resources={r"/api/*": {"origins": config.CORS_ORIGINS}}, supports_credentials=True)

    # Register Blueprints
    from neuropath.routes.auth import auth_bp
    from neuropath.routes.games import games_bp
    from neuropath.routes.activities import activities_bp
    from neuropath.routes.ai import ai_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(games_bp)
    app.register_blueprint(activities_bp)
    app.register_blueprint(ai_bp)

    # Error Handlers
    @app.errorhandler(HTTPException)
    def http_error(e):
        app.logger.warning(f'HTTP {e.code}: {e.description}')
        return jsonify(_error_body(e.name.upper().replace(' ', '_'), e.description)), e.code

    @app.errorhandler(ValueError)
    def argument_error(e):
        app.logger.warning(f'Argument error: {e}')
        return jsonify(_error_body("ARGUMENT_ERROR", str(e))), 400

    @app.errorhandler(PermissionError)
    def unauthorized(e):
        app.logger.warning(f'Unauthorized: {e}')
        return jsonify(_error_body("UNAUTHORIZED", "You are not authorized to perform this action")), 401

    @app.errorhandler(LookupError)
    def not_found(e):
        app.logger.warning(f'Not found: {e}')
        return jsonify(_error_body("NOT_FOUND", str(e))), 404

    @app.errorhandler(Exception)
    def internal_error(e):
        app.logger.error(f'Server Error: {e}', exc_info=e)
        return jsonify(_error_body("INTERNAL_SERVER_ERROR", "An unexpected error occurred")), 500

    return app
