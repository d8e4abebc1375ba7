import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app


def make_settings(**overrides):
    values = {
        "DATABASE_URL": "sqlite://",
        "SECRET_KEY": "test-secret",
        "SEED_DEFAULT_CATEGORIES": False,
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def app():
    return create_app(make_settings())


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def register_user(client, name="A", email="a@x.com", password="secret"):
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client):
    return bearer(register_user(client)["token"])


@pytest.fixture
def other_auth_headers(client):
    return bearer(register_user(client, name="B", email="b@x.com")["token"])


@pytest.fixture
def make_category(client, auth_headers):
    def _make(name="Salary", type="income", headers=None):
        response = client.post(
            "/api/categories",
            json={"name": name, "type": type},
            headers=headers or auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_transaction(client, auth_headers):
    def _make(category_id, amount=100, description="item", date="2024-01-15", type="expense", headers=None):
        response = client.post(
            "/api/transactions",
            json={
                "amount": amount,
                "description": description,
                "category_id": category_id,
                "date": date,
                "type": type,
            },
            headers=headers or auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _make
