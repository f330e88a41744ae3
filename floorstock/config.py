import os

from werkzeug.security import generate_password_hash


def _default_users():
    return [
        {"username": "admin", "password_hash": generate_password_hash("admin123"), "role": "Admin"},
        {"username": "manager", "password_hash": generate_password_hash("manager123"), "role": "Manager"},
        {"username": "staff", "password_hash": generate_password_hash("staff123"), "role": "Staff"},
    ]


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "devkey-please-change-in-production")

    # Front-end
    SHEET_API_URL = os.environ.get("SHEET_API_URL", "http://127.0.0.1:5001/")
    UPLOAD_FOLDER_ID = os.environ.get("UPLOAD_FOLDER_ID", "receipts")
    REQUEST_TIMEOUT = float(os.environ.get("REQUEST_TIMEOUT", "10"))
    USERS = _default_users()

    # Sheet endpoint
    WORKBOOK_PATH = os.environ.get("WORKBOOK_PATH", os.path.join("data", "inventory.xlsx"))
    UPLOAD_ROOT = os.environ.get("UPLOAD_ROOT", os.path.join("data", "uploads"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL")
    LOG_REDACT_PII = os.environ.get("LOG_REDACT_PII", "1") != "0"


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False
    ENV = "production"


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}


def load_config(app, overrides=None):
    env = os.environ.get("FLASK_ENV", "default")
    app.config.from_object(config.get(env, config["default"]))
    if overrides:
        app.config.update(overrides)
