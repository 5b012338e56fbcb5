import os
import sys

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from dungeonforge import create_app  # noqa: E402
from dungeonforge.routes.layout_api import clear_layout_cache  # noqa: E402


@pytest.fixture()
def test_app(tmp_path):
    db_path = tmp_path / "test.db"
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path.as_posix()}",
            "LAYOUT_SPACING_SCOPE": "all",
            "LAYOUT_MAX_ATTEMPTS": 5,
        }
    )
    clear_layout_cache()
    yield app
    clear_layout_cache()


@pytest.fixture()
def client(test_app):
    return test_app.test_client()
