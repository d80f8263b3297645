"""Initialize the Flask app and the Firebase Admin SDK."""

import json
import os

import firebase_admin
from firebase_admin import credentials, firestore
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def _env_flag(name, default):
    return (os.environ.get(name) or default).lower() in ["true", "1", "t"]


def init_firebase(app):
    """Initialize Firebase from env JSON, a credentials file, or default creds."""
    cred = None
    project_id = None

    # First, try to load from environment variable (for production)
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id")
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # If env var fails or is not present, try loading from file (for local dev)
    if not cred:
        cred_path = app.config["FIREBASE_CREDENTIALS_FILE"]
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    cred_info = json.load(f)
                project_id = cred_info.get("project_id")
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    # If both methods fail, fallback to default credentials
    if not cred:
        cred = credentials.ApplicationDefault()
        project_id = os.environ.get("FIREBASE_PROJECT_ID")

    if not firebase_admin._apps:
        options = {"projectId": project_id} if project_id else {}
        try:
            firebase_admin.initialize_app(cred, options)
        except ValueError:
            # This can happen if the app is already initialized, which is fine.
            app.logger.info("Firebase app already initialized.")


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        FIREBASE_CREDENTIALS_FILE=os.environ.get("FIREBASE_CREDENTIALS_FILE")
        or os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        ),
        MUSIC_PROVIDER=os.environ.get("MUSIC_PROVIDER") or "deezer",
        MUSIC_PROVIDER_BASE_URL=os.environ.get("MUSIC_PROVIDER_BASE_URL")
        or "https://api.deezer.com",
        MUSIC_PROVIDER_TIMEOUT=float(os.environ.get("MUSIC_PROVIDER_TIMEOUT") or 10),
        MUSIC_SEARCH_LIMIT=int(os.environ.get("MUSIC_SEARCH_LIMIT") or 10),
        ROUND_WATCHER_ENABLED=_env_flag("ROUND_WATCHER_ENABLED", "true"),
        ADMIN_TOKEN=(os.environ.get("ADMIN_TOKEN") or "").strip() or None,
    )

    if test_config:
        app.config.update(test_config)

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        init_firebase(app)

    # Register blueprints
    from . import game as game_bp

    app.register_blueprint(game_bp.bp)

    from . import round as round_bp

    app.register_blueprint(round_bp.bp)

    from . import scoring as scoring_bp

    app.register_blueprint(scoring_bp.bp)

    from . import challenge as challenge_bp

    app.register_blueprint(challenge_bp.bp)

    from . import music as music_bp

    app.register_blueprint(music_bp.bp)

    from . import admin as admin_bp

    app.register_blueprint(admin_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    if not app.config.get("TESTING") and app.config["ROUND_WATCHER_ENABLED"]:
        from .round.triggers import RoundStatusWatcher

        watcher = RoundStatusWatcher(app, firestore.client())
        watcher.start()
        app.extensions["round_watcher"] = watcher

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
