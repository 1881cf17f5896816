"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path
import sys
from typing import Generator

import pytest
from flask import Flask

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from estate_hub.app import create_app
from estate_hub.config import TestingConfig
from estate_hub.data_access import listings_dao, seed, users_dao
from estate_hub.data_access.db import get_db, init_db

PASSWORD = seed.SEED_PASSWORD


class _TestConfig(TestingConfig):
    DATABASE_URL: str = ""


@pytest.fixture()
def app(tmp_path: Path) -> Generator[Flask, None, None]:
    """Configure a Flask application for testing with a temp SQLite database."""

    db_path = tmp_path / "test.db"
    _TestConfig.DATABASE_URL = f"sqlite:///{db_path}"
    application = create_app(_TestConfig)
    with application.app_context():
        init_db(application)
        seed.seed()
    yield application


@pytest.fixture()
def client(app: Flask):
    """Flask test client."""

    return app.test_client()


@pytest.fixture()
def runner(app: Flask):
    """Flask CLI runner."""

    return app.test_cli_runner()


@pytest.fixture()
def db(app: Flask):
    """Provide a database connection for direct queries."""

    with app.app_context():
        yield get_db()


@pytest.fixture()
def seller(app: Flask):
    with app.app_context():
        return users_dao.get_user_by_email("sam@estatehub.io")


@pytest.fixture()
def buyer(app: Flask):
    with app.app_context():
        return users_dao.get_user_by_email("benny@estatehub.io")


@pytest.fixture()
def other_user(app: Flask):
    with app.app_context():
        return users_dao.get_user_by_email("casey@estatehub.io")


def _seller_listing(app: Flask, seller, kind: str):
    with app.app_context():
        for listing in listings_dao.list_listings_for_owner(seller.user_id):
            if listing.kind == kind:
                return listing
    raise AssertionError(f"Expected a seeded {kind} listing.")


@pytest.fixture()
def sale_listing(app: Flask, seller):
    return _seller_listing(app, seller, "sale")


@pytest.fixture()
def rental_listing(app: Flask, seller):
    return _seller_listing(app, seller, "rent")


@pytest.fixture()
def night_stay_listing(app: Flask, seller):
    return _seller_listing(app, seller, "night-stay")


def login(client, email: str, password: str = PASSWORD):
    """Sign in through the API; the test client keeps the cookie."""

    response = client.post("/api/auth/signin", json={"email": email, "password": password})
    assert response.status_code == 200, response.get_json()
    return response


@pytest.fixture()
def seller_client(app: Flask):
    client = app.test_client()
    login(client, "sam@estatehub.io")
    return client


@pytest.fixture()
def buyer_client(app: Flask):
    client = app.test_client()
    login(client, "benny@estatehub.io")
    return client


@pytest.fixture()
def other_client(app: Flask):
    client = app.test_client()
    login(client, "casey@estatehub.io")
    return client
