"""Flask application entry point."""

import logging

from flask import Flask, jsonify
from flask_cors import CORS

from .config import settings
from .db import get_schema_version, init_db
from .exceptions import QuizAuthError

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# Create Flask app
app = Flask(__name__)

# CORS configuration
CORS(app, origins=settings.cors_origins, supports_credentials=True)


def initialize_database():
    """Initialize database on app startup."""
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


with app.app_context():
    initialize_database()


# ============================================================================
# Error Envelope
# ============================================================================


def _error_response(message: str, status_code: int, details: dict | None = None):
    """Build the {success: false, message, statusCode} error envelope."""
    body = {
        "success": False,
        "message": message,
        "statusCode": status_code,
    }
    if details:
        body["details"] = details
    return jsonify(body), status_code


@app.errorhandler(QuizAuthError)
def handle_quiz_auth_error(error):
    """Render any QuizAuthError with its own status code."""
    if error.status_code >= 500:
        logger.error(f"{error.__class__.__name__}: {error.message}")
    return _error_response(error.message, error.status_code, error.details)


@app.errorhandler(404)
def handle_not_found(error):
    """Handle unknown routes."""
    return _error_response("Resource not found", 404)


@app.errorhandler(405)
def handle_method_not_allowed(error):
    """Handle known routes called with the wrong method."""
    return _error_response("Method not allowed", 405)


@app.errorhandler(500)
def handle_internal_error(error):
    """Handle internal server errors."""
    logger.error(f"Internal error: {error}")
    return _error_response("An internal error occurred", 500)


# Health check endpoint
@app.route("/health")
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok", "schema_version": get_schema_version()})


# Register API blueprints
from .auth.api import auth_bp

app.register_blueprint(auth_bp, url_prefix=settings.api_prefix)


if __name__ == "__main__":
    app.run(debug=True)
