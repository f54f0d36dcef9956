# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")

from roadwatch.db.session import Base, configure_sqlite_engine
from roadwatch.db.session import get_db as app_get_session
from roadwatch.main import app as fastapi_app
from roadwatch.models import Account, HazardReport, HazardType, StoreItem
from roadwatch.services.ledger import Location, TokenEconomyEngine
from tests.helpers import bearer

TEST_DB_URL = "sqlite://"

_ACCOUNT_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite_engine(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    """Session whose commits only release savepoints of an outer transaction.

    Everything a test writes, committed or not, is discarded afterwards.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = Session(bind=connection, join_transaction_mode="create_savepoint")
    try:
        yield session
    finally:
        session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def ledger(db_session: Session) -> TokenEconomyEngine:
    """Token economy engine bound to the test session."""
    return TokenEconomyEngine(db_session)


@pytest.fixture()
def make_account(db_session: Session) -> Callable[..., Account]:
    """Factory persisting an account with the given balance and admin flag."""

    def _make(tokens: int = 0, is_admin: bool = False, full_name: str | None = None) -> Account:
        number = next(_ACCOUNT_COUNTER)
        account = Account(
            id=f"account-{number}",
            full_name=full_name or f"User {number}",
            tokens=tokens,
            is_admin=is_admin,
        )
        db_session.add(account)
        db_session.commit()
        return account

    return _make


@pytest.fixture()
def test_user(make_account: Callable[..., Account]) -> Account:
    """Primary (non-admin) user with an empty balance."""
    return make_account(full_name="Test User")


@pytest.fixture()
def other_user(make_account: Callable[..., Account]) -> Account:
    """Second non-admin user."""
    return make_account(full_name="Other User")


@pytest.fixture()
def admin_user(make_account: Callable[..., Account]) -> Account:
    """Administrator account."""
    return make_account(is_admin=True, full_name="Admin")


@pytest.fixture()
def auth_token(test_user: Account) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return bearer(test_user)


@pytest.fixture()
def other_auth_token(other_user: Account) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return bearer(other_user)


@pytest.fixture()
def admin_auth_token(admin_user: Account) -> dict[str, str]:
    """Return authorization headers for the administrator."""
    return bearer(admin_user)


@pytest.fixture()
def make_item(db_session: Session) -> Callable[..., StoreItem]:
    """Factory persisting a catalog item."""

    def _make(token_cost: int = 10, available: bool = True, name: str = "Coffee voucher") -> StoreItem:
        item = StoreItem(
            name=name,
            description=f"{name} for helpful reporters",
            token_cost=token_cost,
            available=available,
        )
        db_session.add(item)
        db_session.commit()
        return item

    return _make


@pytest.fixture()
def store_item(make_item: Callable[..., StoreItem]) -> StoreItem:
    return make_item()


@pytest.fixture()
def test_report(ledger: TokenEconomyEngine, test_user: Account) -> HazardReport:
    """Report filed by ``test_user``; credits them the default reward."""
    return ledger.create_report(
        test_user.id,
        HazardType.POTHOLE,
        "Deep pothole in the left lane",
        Location(lat=12.97, lng=77.59, address="MG Road"),
    )
