"""
HTTP entry point for the chain gateway.

Serves the explorer proxies for Mantle and Base Sepolia, and the contract
calls signed through the Lit network.
"""
import traceback
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

import config as config_module
from config import Config, get_config
from logger_config import get_logger
from routes.explorer import EXPLORER_NETWORKS, create_explorer_blueprint
from routes.signing import create_signing_blueprint
from utils.decorators import error_body, utc_timestamp

logger = get_logger(__name__)

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'SAMEORIGIN',
    'Referrer-Policy': 'no-referrer',
    'Strict-Transport-Security': 'max-age=15552000; includeSubDomains',
    'X-DNS-Prefetch-Control': 'off',
    'X-Download-Options': 'noopen',
    'X-Permitted-Cross-Domain-Policies': 'none',
    'Cross-Origin-Opener-Policy': 'same-origin',
    'Cross-Origin-Resource-Policy': 'same-origin',
}


def create_app(config: Optional[Config] = None) -> Flask:
    """
    Build the Flask application.

    Args:
        config: Configuration to use; read from the environment when omitted

    Returns:
        Configured Flask app
    """
    if config is not None:
        config_module._config = config
    config = get_config()

    app = Flask(__name__)
    app.json.sort_keys = False
    CORS(app)

    @app.after_request
    def set_security_headers(response):
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'healthy', 'timestamp': utc_timestamp()})

    app.register_blueprint(create_signing_blueprint())
    for slug, network in EXPLORER_NETWORKS.items():
        app.register_blueprint(create_explorer_blueprint(network), url_prefix=f'/{slug}')

    @app.errorhandler(404)
    def not_found(error):
        return jsonify(error_body('Route not found')), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify(error_body('Method not allowed')), 405

    @app.errorhandler(Exception)
    def unhandled_error(error):
        if isinstance(error, HTTPException):
            return jsonify(error_body(error.description)), error.code
        stack = ''.join(traceback.format_exception(type(error), error, error.__traceback__))
        logger.error(f'Unhandled error: {str(error)}', exc_info=error)
        return jsonify(error_body('Something broke!', stack)), 500

    logger.info(f"Environment: {config.environment or 'development'}")
    return app


if __name__ == '__main__':
    load_dotenv()
    application = create_app()
    port = get_config().port
    logger.info(f'Server running on port {port}')
    application.run(host='0.0.0.0', port=port, debug=get_config().is_development)
