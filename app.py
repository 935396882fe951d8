"""Mathscribe: Flask application entry point."""
import logging
import logging.handlers
import traceback

from flask import Flask, jsonify, request as flask_request

from config import settings
from routes.convert import convert_bp
from routes.export import export_bp
from routes.session import session_bp

# --- File logging with daily rotation, 3-day retention ---
file_handler = logging.handlers.TimedRotatingFileHandler(
    settings.LOG_FILE, when='midnight', backupCount=3, encoding='utf-8', delay=True,
)
file_handler.setLevel(logging.DEBUG)
file_handler.setFormatter(logging.Formatter(
    '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
))

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    handlers=[logging.StreamHandler(), file_handler],
)

CSP = ("default-src 'self'; img-src 'self' data:; "
       "style-src 'self' 'unsafe-inline'; script-src 'self'")


def create_app():
    app = Flask(__name__)
    app.secret_key = settings.SECRET_KEY
    app.config['MAX_CONTENT_LENGTH'] = settings.MAX_INPUT_CHARS * 2

    app.register_blueprint(convert_bp)
    app.register_blueprint(export_bp, url_prefix='/export')
    app.register_blueprint(session_bp, url_prefix='/session')

    # --- Request/response logging ---
    req_logger = logging.getLogger('mathscribe.requests')

    @app.before_request
    def log_request():
        body = flask_request.get_json(silent=True) or {}
        size = len(body.get('input') or '') if isinstance(body, dict) else 0
        req_logger.info('>>> %s %s  input_chars=%d', flask_request.method,
                        flask_request.full_path.rstrip('?'), size)

    @app.after_request
    def log_response(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['Content-Security-Policy'] = CSP
        req_logger.info('<<< %s %s  status=%d',
                        flask_request.method,
                        flask_request.full_path.rstrip('?'),
                        response.status_code)
        return response

    @app.errorhandler(Exception)
    def log_error(error):
        code = getattr(error, 'code', None)
        if isinstance(code, int) and code < 500:
            return jsonify({'error': getattr(error, 'description', str(error))}), code
        req_logger.error('!!! %s %s  EXCEPTION:\n%s',
                         flask_request.method,
                         flask_request.full_path.rstrip('?'),
                         traceback.format_exc())
        return jsonify({'error': 'Internal Server Error'}), 500

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True, host='0.0.0.0', port=settings.PORT, threaded=True)
