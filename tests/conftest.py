import pytest

from app import security


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    security.reset_rate_limits()
    yield
    security.reset_rate_limits()


@pytest.fixture
def member():
    return {"id": 7, "email": "member@example.com", "role": "user", "active": True}


@pytest.fixture
def admin_user():
    return {"id": 1, "email": "admin@example.com", "role": "admin", "active": True}
