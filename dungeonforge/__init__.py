"""
project: Dungeon Forge
module: __init__.py

Flask application factory and core extensions setup.

The generation core lives in ``dungeonforge.layout`` and runs without an
app; inside an app context it reads its ``LAYOUT_*`` settings from
``current_app.config``. This module wires the HTTP surface and persistence
around it. Configuration is sourced from environment variables (optionally
loaded from a local ``.env``) with development defaults, and a local
``instance/`` directory holds the SQLite database and the log file.
"""

import logging
import os
import uuid
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy

# Load .env if present so `SECRET_KEY`, `DATABASE_URL`, etc. can be supplied
# without exporting shell variables during development.
load_dotenv()

db = SQLAlchemy(session_options={"expire_on_commit": False})


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def create_app(overrides: dict | None = None) -> Flask:
    """Build a configured Flask app with the layout API registered.

    ``overrides`` is applied on top of the environment-derived config before
    the database is bound (tests pass ``SQLALCHEMY_DATABASE_URI`` here).
    """
    app = Flask(__name__, instance_relative_config=True)
    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        logging.getLogger(__name__).warning("could not create instance folder %s", app.instance_path)

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        db_path = Path(app.instance_path) / "dungeonforge.db"
        # POSIX path for SQLAlchemy URI compatibility across OS
        database_url = f"sqlite:///{db_path.as_posix()}"

    app.config.update(
        SECRET_KEY=os.getenv("SECRET_KEY", "dev-secret-change-me"),
        SQLALCHEMY_DATABASE_URI=database_url,
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        # Layout generation settings
        LAYOUT_ENABLE_GENERATION_METRICS=_env_flag("LAYOUT_ENABLE_GENERATION_METRICS", "1"),
        LAYOUT_SPACING_SCOPE=os.getenv("LAYOUT_SPACING_SCOPE", "all"),
        LAYOUT_MAX_ATTEMPTS=int(os.getenv("LAYOUT_MAX_ATTEMPTS", "5")),
        LAYOUT_CACHE_SIZE=int(os.getenv("LAYOUT_CACHE_SIZE", "8")),
    )
    if overrides:
        app.config.update(overrides)

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:"):
        # busy timeout for sqlite; allow use across the dev server's threads
        app.config.setdefault(
            "SQLALCHEMY_ENGINE_OPTIONS",
            {"connect_args": {"timeout": 10, "check_same_thread": False}},
        )

    db.init_app(app)

    from dungeonforge import models  # noqa: F401 register tables
    from dungeonforge.routes.layout_api import bp_layout

    app.register_blueprint(bp_layout)

    @app.errorhandler(500)
    def internal_error(e):
        error_id = uuid.uuid4().hex[:8]
        logging.exception("Unhandled exception (id=%s)", error_id)
        return jsonify({"error": "internal server error", "error_id": error_id}), 500

    with app.app_context():
        db.create_all()
    return app
