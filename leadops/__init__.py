"""
Flask application factory.

Creates and configures the app, registers blueprints and guards the API with
an optional bearer token.
"""
import hmac

from flask import Flask, request, jsonify


def create_app(runner=None):
    """
    Create and configure the Flask application.

    `runner` overrides the BatchScoringRunner built from the SQL stores
    (tests pass one wired to an in-memory database).
    """
    from leadops.config import API_TOKEN, SECRET_KEY
    from leadops.logging_config import configure_logging

    app = Flask(__name__)
    configure_logging(app)
    app.secret_key = SECRET_KEY

    if runner is not None:
        app.extensions['scoring_runner'] = runner

    OPEN_PATHS = {'/health'}

    @app.before_request
    def require_token():
        if not API_TOKEN:
            return  # No token set — open access (local dev)
        if request.path in OPEN_PATHS:
            return
        header = request.headers.get('Authorization', '')
        supplied = header[len('Bearer '):] if header.startswith('Bearer ') else ''
        if supplied and hmac.compare_digest(supplied, API_TOKEN):
            return
        return jsonify({'error': 'Unauthorized'}), 401

    from leadops.routes.health import bp as health_bp
    from leadops.routes.scoring import bp as scoring_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(scoring_bp)

    # Import models so Base.metadata knows about them.
    # Schema is managed by Alembic — no create_all() call.
    import importlib
    importlib.import_module('leadops.models.lead')
    importlib.import_module('leadops.models.conversion_rate')
    importlib.import_module('leadops.models.scoring_run')

    return app
