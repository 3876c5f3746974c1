"""Flask application factory."""

import json
import os
from flask import Flask
from flask_cors import CORS

from services.settings import JiraSettings

CONFIG_PATH = os.path.join(
    os.path.dirname(__file__), "..", "config", "jira-config.json"
)


def load_jira_config(app, config_path=CONFIG_PATH):
    """Load Jira field settings from config file, falling back to defaults."""
    settings = JiraSettings()

    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                settings = JiraSettings.from_dict(json.load(f))
                app.logger.info(
                    f"Loaded Jira config: story points field {settings.story_points_field}, "
                    f"page size {settings.page_size}"
                )
        except (json.JSONDecodeError, IOError, ValueError, TypeError, AttributeError) as e:
            app.logger.warning(f"Failed to load Jira config: {e}")
            settings = JiraSettings()
    else:
        app.logger.info("No jira-config.json found, using default Jira fields")

    app.config["JIRA_SETTINGS"] = settings
    return settings


def create_app(config_path=CONFIG_PATH):
    """Create and configure the Flask application."""
    app = Flask(__name__)

    # Enable CORS for frontend
    CORS(app, resources={
        r"/api/*": {
            "origins": ["http://localhost:5173", "http://127.0.0.1:5173"],
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": [
                "Content-Type",
                "X-Jira-Token", "X-Jira-Email", "X-Jira-Server"
            ]
        }
    })

    # Register blueprints
    from app.api import epics
    app.register_blueprint(epics.bp)

    load_jira_config(app, config_path)

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}

    return app
