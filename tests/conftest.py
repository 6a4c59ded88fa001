import pytest

from solarbill.db import init_db


@pytest.fixture
def db_path(tmp_path):
    """A freshly initialized database in a temporary directory."""
    path = tmp_path / "test.db"
    init_db(path)
    return path
