from flask import Flask, current_app, session

from .auth import auth_bp, login_manager
from .config import load_config
from .logging_config import configure_logging
from .sheet_client import SheetClient
from .views import views


def sheet_api_url():
    return session.get("sheet_api_url") or current_app.config["SHEET_API_URL"]


def create_app(overrides=None, session_factory=None):
    app = Flask(__name__)
    load_config(app, overrides)
    configure_logging(app)

    login_manager.init_app(app)
    app.extensions["sheet_client"] = SheetClient(
        sheet_api_url,
        timeout=app.config["REQUEST_TIMEOUT"],
        folder_id=app.config["UPLOAD_FOLDER_ID"],
        session=session_factory() if session_factory else None,
    )

    app.register_blueprint(auth_bp)
    app.register_blueprint(views)
    return app
