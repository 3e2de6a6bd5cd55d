import os
import logging
from typing import Any
from dotenv import load_dotenv

# Initialize environment configuration from local or project-level .env files
dotenv_paths = [
    os.path.join(os.path.dirname(__file__), '.env'),
    os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env'),
    os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env.example')
]

for path in dotenv_paths:
    if os.path.exists(path):
        load_dotenv(path)
        break

from flask import Flask, jsonify
from flask_cors import CORS
from config import load_config
from db import init_db
from routes.pricing import pricing_bp

config = load_config()

# Configure high-level logging defaults for the backend application
logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def create_app() -> Flask:
    """
    Builds the Flask application with CORS and all blueprints registered.

    Returns:
        A configured Flask instance.
    """
    flask_app = Flask(__name__)
    CORS(flask_app, origins=list(config.CORS_ORIGINS))

    flask_app.register_blueprint(pricing_bp, url_prefix=config.API_PREFIX)

    @flask_app.route(f"{config.API_PREFIX}/health")
    def health() -> Any:
        """
        Verifies the operational status of the Flask application.

        Returns:
            A JSON response indicating the service is healthy.
        """
        return jsonify({"status": "ok"})

    return flask_app


app = create_app()

if __name__ == "__main__":
    # Ensure the database schema is initialized before accepting requests
    init_db()
    app.run(port=config.PORT, debug=config.DEBUG)
