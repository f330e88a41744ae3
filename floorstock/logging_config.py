import logging
import re

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
QUIET_LOGGERS = ("werkzeug", "urllib3")

# Staff emails and the endpoint's credentials may end up in request logs.
_EMAIL = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
_SECRET = re.compile(r"\b(password|token|secret|api[_-]?key)=\S+", re.IGNORECASE)


def redact(message):
    message = _EMAIL.sub("[email]", message)
    return _SECRET.sub(lambda m: f"{m.group(1)}=[redacted]", message)


class RedactingFilter(logging.Filter):
    def filter(self, record):
        record.msg = redact(record.getMessage())
        record.args = ()
        return True


def log_level(app):
    name = str(app.config.get("LOG_LEVEL") or ("DEBUG" if app.debug else "INFO")).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(app):
    level = log_level(app)
    root = logging.getLogger()
    root.setLevel(level)
    app.logger.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING if level > logging.DEBUG else level)

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in root.handlers + app.logger.handlers:
        handler.setFormatter(formatter)
        if app.config.get("LOG_REDACT_PII", True) and not any(
            isinstance(f, RedactingFilter) for f in handler.filters
        ):
            handler.addFilter(RedactingFilter())
