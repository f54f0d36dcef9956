# tests/test_scripts.py
"""Tests for operator scripts."""

import pytest
from sqlalchemy import update

from roadwatch.core.security import decode_access_token
from roadwatch.models import Account, HazardReport
from roadwatch.scripts import ensure_db, manage


@pytest.fixture
def mock_session_local(mocker, db_session):
    # Patch SessionLocal to hand out the test session as a context manager
    mock_sl = mocker.patch("roadwatch.scripts.manage.SessionLocal", return_value=mocker.MagicMock())
    mock_sl.return_value.__enter__.return_value = db_session
    mock_sl.return_value.__exit__.return_value = None
    return mock_sl


def test_split_database_url() -> None:
    dsn, target = ensure_db.split_database_url("postgresql+psycopg://rw:secret@db:5432/roadwatch")
    assert dsn == "postgresql://rw:secret@db:5432/postgres"
    assert target == "roadwatch"


def test_split_database_url_rejects_sqlite() -> None:
    with pytest.raises(ValueError):
        ensure_db.split_database_url("sqlite:///./roadwatch.db")


def test_ensure_database_creates_missing(mocker) -> None:
    connect = mocker.patch("roadwatch.scripts.ensure_db.psycopg.connect")
    cursor = connect.return_value.__enter__.return_value.cursor.return_value.__enter__.return_value
    cursor.fetchone.return_value = None

    assert ensure_db.ensure_database_exists("postgresql://rw@db/roadwatch") is True
    assert cursor.execute.call_count == 2


def test_ensure_database_existing(mocker) -> None:
    connect = mocker.patch("roadwatch.scripts.ensure_db.psycopg.connect")
    cursor = connect.return_value.__enter__.return_value.cursor.return_value.__enter__.return_value
    cursor.fetchone.return_value = (1,)

    assert ensure_db.ensure_database_exists("postgresql://rw@db/roadwatch") is False
    cursor.execute.assert_called_once()


def test_issue_token() -> None:
    token = manage.issue_token("acct-1", "Asha", None)
    claims = decode_access_token(token)
    assert claims["sub"] == "acct-1"
    assert claims["name"] == "Asha"


def test_grant_admin(mock_session_local, db_session, test_user) -> None:
    manage.grant_admin(test_user.id)
    assert db_session.get(Account, test_user.id).is_admin is True

    manage.grant_admin(test_user.id, revoke=True)
    assert db_session.get(Account, test_user.id).is_admin is False


def test_audit_counters(mock_session_local, db_session, test_report, capsys) -> None:
    assert manage.audit_counters() == 0

    db_session.execute(update(HazardReport).where(HazardReport.id == test_report.id).values(votes=4))
    assert manage.audit_counters() == 1
    assert test_report.id in capsys.readouterr().out
