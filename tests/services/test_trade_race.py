"""한 제안에 대한 accept 경쟁 (파일 SQLite, 실제 스레드)"""

import threading

import pytest
from sqlalchemy import create_engine, event as sa_event
from sqlalchemy.orm import sessionmaker

from drop_economy.core.economy.errors import EconomyError, OfferNotPending
from drop_economy.core.economy.models import OfferStatus
from drop_economy.core.event_bus import EventBus
from drop_economy.db.models import Base
from drop_economy.services.container import build_services


@pytest.fixture()
def file_engine(tmp_path):
    """BEGIN IMMEDIATE SQLite. 동시 writer가 직렬화됨."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @sa_event.listens_for(engine, "connect")
    def _no_implicit_begin(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None

    @sa_event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


def test_exactly_one_accept_wins(file_engine, config):
    factory = sessionmaker(bind=file_engine, autoflush=False)
    bus = EventBus()

    with factory() as db:
        services = build_services(db, bus, config)
        badge = services.catalog.add_definition("Badge", "", "common", {"kind": "badge"})
        alice = services.users.register("alice").user_id
        bob = services.users.register("bob").user_id
        d1 = services.ledger.grant(badge.item_id, alice).drop_id
        d2 = services.ledger.grant(badge.item_id, bob).drop_id
        offer_id = services.trades.propose(alice, bob, [d1], [d2]).offer_id

    barrier = threading.Barrier(2)
    outcomes: list[object] = []
    lock = threading.Lock()

    def accept():
        with factory() as db:
            trades = build_services(db, bus, config).trades
            barrier.wait()
            try:
                result = trades.accept(offer_id, bob)
            except EconomyError as e:
                result = e
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=accept) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert len(outcomes) == 2
    wins = [o for o in outcomes if not isinstance(o, Exception)]
    losses = [o for o in outcomes if isinstance(o, Exception)]
    assert len(wins) == 1
    assert wins[0].status is OfferStatus.ACCEPTED
    assert len(losses) == 1
    assert isinstance(losses[0], OfferNotPending)

    with factory() as db:
        services = build_services(db, bus, config)
        assert services.ledger.owner_of(d1) == bob
        assert services.ledger.owner_of(d2) == alice


def test_stale_snapshot_loses_at_status_guard(file_engine, config, monkeypatch):
    """다른 세션이 accept하기 전에 제안을 PROPOSED로 읽어둔 세션"""
    factory = sessionmaker(bind=file_engine, autoflush=False)
    bus = EventBus()

    with factory() as db:
        services = build_services(db, bus, config)
        badge = services.catalog.add_definition("Badge", "", "common", {"kind": "badge"})
        alice = services.users.register("alice").user_id
        bob = services.users.register("bob").user_id
        d1 = services.ledger.grant(badge.item_id, alice).drop_id
        d2 = services.ledger.grant(badge.item_id, bob).drop_id
        offer_id = services.trades.propose(alice, bob, [d1], [d2]).offer_id

    first, second = factory(), factory()
    try:
        second_trades = build_services(second, bus, config).trades
        stale = second_trades.get_offer(offer_id)
        assert stale.status is OfferStatus.PROPOSED
        second.rollback()

        build_services(first, bus, config).trades.accept(offer_id, bob)

        real_load = second_trades._load
        calls = []

        def load_stale_first(oid):
            calls.append(oid)
            return stale if len(calls) == 1 else real_load(oid)

        monkeypatch.setattr(second_trades, "_load", load_stale_first)

        with pytest.raises(OfferNotPending) as exc:
            second_trades.accept(offer_id, bob)
        assert exc.value.offer_id == offer_id
        assert exc.value.status == "accepted"
        # guarded UPDATE가 거부한 뒤 실제 상태를 다시 읽음
        assert len(calls) == 2
    finally:
        first.close()
        second.close()

    with factory() as db:
        services = build_services(db, bus, config)
        assert services.ledger.owner_of(d1) == bob
        assert services.ledger.owner_of(d2) == alice
        assert services.trades.get_offer(offer_id).status is OfferStatus.ACCEPTED
