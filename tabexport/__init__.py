from flask import Flask
import logging
import os

from .config import config_map


class PathPrefixMiddleware:
    """Adjust SCRIPT_NAME/PATH_INFO when the app is mounted under a URL prefix."""

    def __init__(self, app, prefix: str):
        self.app = app
        self.prefix = prefix

    def __call__(self, environ, start_response):
        if self.prefix:
            path_info = environ.get("PATH_INFO", "")
            if path_info.startswith(self.prefix):
                environ["SCRIPT_NAME"] = self.prefix
                stripped = path_info[len(self.prefix):]
                environ["PATH_INFO"] = stripped if stripped else "/"
        return self.app(environ, start_response)


def _normalized_prefix(raw: str | None) -> str:
    if not raw:
        return ""
    prefix = raw.strip()
    if not prefix:
        return ""
    if not prefix.startswith("/"):
        prefix = f"/{prefix}"
    prefix = prefix.rstrip("/")
    return prefix if prefix else ""


def create_app(env: str | None = None, url_prefix: str | None = None):
    env = env or os.getenv("FLASK_ENV", "development")
    url_prefix = _normalized_prefix(url_prefix or os.getenv("URL_PREFIX"))

    app = Flask(__name__)

    cfg_cls = config_map.get(env, config_map["default"])
    cfg_cls.validate()
    app.config.from_object(cfg_cls)
    if url_prefix:
        app.config["APPLICATION_ROOT"] = url_prefix

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Register blueprints
    from .reports.routes import bp as reports_bp

    app.register_blueprint(reports_bp)

    if url_prefix:
        # WSGI middleware so a proxied deployment sees the correct SCRIPT_NAME
        app.wsgi_app = PathPrefixMiddleware(app.wsgi_app, url_prefix)  # type: ignore[attr-defined]

    return app
