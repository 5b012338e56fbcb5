"""
project: Dungeon Forge
module: server.py

Server bootstrap.

Creates the app, ensures tables exist, configures rotating-file logging and
runs Flask's development server.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from dungeonforge import create_app, db


def start_server(host="0.0.0.0", port=5000, debug: bool = False, overrides=None):  # pragma: no cover (runtime only)
    """Start the HTTP server.

    When debug=True, Flask's debugger and reloader provide verbose tracebacks.
    """
    app = create_app(overrides)
    with app.app_context():
        db.create_all()
    _configure_logging(app)
    try:
        logging.getLogger(__name__).info("Starting layout server on %s:%s", host, port)
        app.run(host=host, port=port, debug=debug)
    except KeyboardInterrupt:
        print("\n[INFO] Server stopped by user (Ctrl+C)")
        sys.exit(0)


def _configure_logging(app, level=logging.INFO):
    """Configure logging to both console and a rotating file in instance/.

    The file path will be instance/app.log. Retains a few backups to avoid growth.
    Returns the log file path.
    """
    log_dir = app.instance_path
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, "app.log")

    root = logging.getLogger()
    root.setLevel(level)
    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3)
    file_handler.setLevel(level)
    file_handler.setFormatter(fmt)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)

    # Avoid duplicate handlers if reconfigured
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    root.addHandler(file_handler)
    root.addHandler(console)
    return log_path
