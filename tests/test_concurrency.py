# tests/test_concurrency.py
"""Concurrent engine operations and SQLite locking against file-backed databases."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from roadwatch.db.session import Base, configure_sqlite_engine
from roadwatch.models import Account, HazardReport, HazardType, HazardVote, Redemption, StoreItem
from roadwatch.services.counters import find_counter_drift
from roadwatch.services.errors import InsufficientBalance, StorageError
from roadwatch.services.ledger import Location, TokenEconomyEngine
from roadwatch.services.unit_of_work import unit_of_work


@pytest.fixture()
def file_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    configure_sqlite_engine(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


def test_double_redeem_spends_balance_once(file_engine: Engine) -> None:
    with Session(file_engine) as session:
        session.add(Account(id="racer", full_name="Racer", tokens=10))
        session.add(StoreItem(id="mug", name="Mug", description="", token_cost=10))
        session.commit()

    barrier = threading.Barrier(2)
    outcomes: list[object] = []
    lock = threading.Lock()

    def attempt() -> None:
        with Session(file_engine) as session:
            engine = TokenEconomyEngine(session)
            barrier.wait()
            try:
                result: object = engine.redeem_item("racer", "mug")
            except InsufficientBalance as err:
                result = err
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert len(outcomes) == 2
    assert sum(isinstance(o, Redemption) for o in outcomes) == 1
    assert sum(isinstance(o, InsufficientBalance) for o in outcomes) == 1

    with Session(file_engine) as session:
        assert session.get(Account, "racer").tokens == 0
        rows = session.execute(select(func.count()).select_from(Redemption)).scalar_one()
        assert rows == 1


def test_concurrent_toggles_keep_counter_and_rows_in_step(file_engine: Engine) -> None:
    with Session(file_engine) as session:
        session.add_all(
            [
                Account(id="voter", full_name="Voter"),
                Account(id="reporter", full_name="Reporter"),
            ]
        )
        session.commit()
        report_id = TokenEconomyEngine(session).create_report(
            "reporter",
            HazardType.POTHOLE,
            "Pothole by the school gate",
            Location(lat=10.0, lng=76.0, address="School Road"),
        ).id

    barrier = threading.Barrier(6)
    errors: list[Exception] = []
    lock = threading.Lock()

    def toggle_repeatedly() -> None:
        with Session(file_engine) as session:
            engine = TokenEconomyEngine(session)
            barrier.wait()
            for _ in range(5):
                try:
                    engine.toggle_vote("voter", report_id)
                except Exception as err:  # collected and asserted below
                    with lock:
                        errors.append(err)

    threads = [threading.Thread(target=toggle_repeatedly) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=120)

    assert errors == []
    with Session(file_engine) as session:
        report = session.get(HazardReport, report_id)
        rows = session.execute(
            select(func.count()).select_from(HazardVote).where(HazardVote.hazard_id == report_id)
        ).scalar_one()
        assert rows in (0, 1)
        assert report.votes == rows
        assert find_counter_drift(session) == []


@pytest.fixture()
def impatient_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'locks.db'}",
        connect_args={"check_same_thread": False, "timeout": 0.2},
    )
    configure_sqlite_engine(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


def test_open_read_transactions_do_not_block_each_other(impatient_engine: Engine) -> None:
    with Session(impatient_engine) as first, Session(impatient_engine) as second:
        first.execute(select(Account)).all()
        second.execute(select(Account)).all()
        assert first.in_transaction()
        assert second.in_transaction()


def test_unit_of_work_holds_the_write_lock(impatient_engine: Engine) -> None:
    with Session(impatient_engine) as first, Session(impatient_engine) as second:
        with unit_of_work(first, "holder"):
            first.add(Account(id="holder", full_name="Holder"))
            first.flush()
            with pytest.raises(StorageError):
                with unit_of_work(second, "waiter"):
                    second.add(Account(id="waiter", full_name="Waiter"))

        assert second.get(Account, "waiter") is None
        assert second.get(Account, "holder") is not None
