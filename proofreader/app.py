"""
SGC Proofreader Application
===========================
Flask application factory and main entry point.
"""
from flask import Flask, send_from_directory
from flask_cors import CORS

from proofreader import __version__
from proofreader.config import config
from proofreader.services.reviewer import ReviewService, build_review_service
from proofreader.api.routes import (
    create_segments_blueprint,
    create_actions_blueprint,
    create_settings_blueprint,
    create_health_blueprint,
    create_logs_blueprint
)
from proofreader.api.middleware import add_rate_limit_headers
from proofreader.utils.logging import get_logger


def _register_error_handlers(app: Flask) -> None:
    """Answer HTTP errors with JSON so the page can show them."""
    logger = get_logger().api_logger
    messages = {
        400: 'Bad request',
        404: 'Resource not found',
        405: 'Method not allowed',
        429: 'Rate limit exceeded',
    }

    def client_error(e):
        return {'error': messages[e.code], 'details': e.description}, e.code

    for code in messages:
        app.register_error_handler(code, client_error)

    @app.errorhandler(500)
    def internal_error(e):
        logger.error(f"Internal error: {e}")
        return {'error': 'Internal server error'}, 500


def create_app(testing: bool = False, service: ReviewService = None) -> Flask:
    """
    Application factory for Flask app.

    Args:
        testing: If True, configure for testing
        service: Review service to serve; built from configuration when omitted

    Returns:
        Configured Flask application
    """
    app = Flask(
        __name__,
        static_folder=config.paths.static_folder,
        static_url_path='/static'
    )
    app.config.update(SECRET_KEY=config.server.secret_key, TESTING=testing)
    app.json.sort_keys = False

    CORS(
        app,
        resources={r"/api/*": {"origins": ['*'] if testing else config.server.cors_origins}}
    )

    service = service or build_review_service()
    app.extensions['proofreader'] = service

    for blueprint in (
        create_segments_blueprint(service),
        create_actions_blueprint(service),
        create_settings_blueprint(service),
        create_health_blueprint(service),
        create_logs_blueprint(),
    ):
        app.register_blueprint(blueprint)

    app.after_request(add_rate_limit_headers)
    _register_error_handlers(app)

    @app.route('/')
    def index():
        return send_from_directory(config.paths.static_folder, 'index.html')

    get_logger().app_logger.info(
        f"Proofreader ready with {len(service.store)} segments "
        f"(model {service.client.model}, API key {'set' if service.preferences.has_api_key else 'missing'})"
    )
    return app


def run_server():
    """Run the Flask development server until interrupted."""
    app = create_app()
    service: ReviewService = app.extensions['proofreader']

    print(f"""
SGC Proofreader v{__version__}
  Server: http://{config.server.host}:{config.server.port}
  Model:  {config.gemini.model}
  Debug:  {'Enabled' if config.server.debug else 'Disabled'}
""")

    try:
        app.run(
            host=config.server.host,
            port=config.server.port,
            debug=config.server.debug,
            use_reloader=False,
            threaded=True
        )
    finally:
        # Let a call already in progress write its result before exiting
        service.serializer.shutdown(timeout=config.gemini.read_timeout)
        service.client.close()


if __name__ == '__main__':
    run_server()
