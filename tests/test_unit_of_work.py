# tests/test_unit_of_work.py
"""Tests for the transaction boundary."""

import pytest
from sqlalchemy.exc import IntegrityError

from roadwatch.models import Account, StoreItem
from roadwatch.services.accounts import get_or_create_account
from roadwatch.services.errors import NotFound, StorageError
from roadwatch.services.unit_of_work import unit_of_work


def test_commits_on_success(db_session) -> None:
    with unit_of_work(db_session, "add"):
        db_session.add(Account(id="kept", full_name="Kept", tokens=3))
    db_session.expunge_all()
    assert db_session.get(Account, "kept").tokens == 3


def test_business_error_rolls_back(db_session) -> None:
    with pytest.raises(NotFound):
        with unit_of_work(db_session, "add"):
            db_session.add(Account(id="dropped", full_name="Dropped"))
            db_session.flush()
            raise NotFound("Thing")
    assert db_session.get(Account, "dropped") is None


def test_backend_failure_becomes_storage_error(db_session) -> None:
    with pytest.raises(StorageError) as excinfo:
        with unit_of_work(db_session, "bad_item"):
            db_session.add(StoreItem(name="Broken", description="", token_cost=0))
    assert isinstance(excinfo.value.__cause__, IntegrityError)
    assert excinfo.value.kind == "storage_error"


def test_negative_balance_is_refused_by_the_database(db_session, test_user) -> None:
    with pytest.raises(StorageError):
        with unit_of_work(db_session, "overdraw"):
            test_user.tokens = -1
    db_session.refresh(test_user)
    assert test_user.tokens == 0


def test_get_or_create_account_is_idempotent(db_session) -> None:
    first = get_or_create_account(db_session, "sub-1", full_name="Ravi")
    second = get_or_create_account(db_session, "sub-1", full_name="Someone else")
    assert first is second
    assert second.full_name == "Ravi"
    assert second.tokens == 0


def test_get_or_create_account_default_name(db_session) -> None:
    account = get_or_create_account(db_session, "sub-2")
    assert account.full_name == "Anonymous"
