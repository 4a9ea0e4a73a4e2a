"""Shared test fixtures."""

from __future__ import annotations

from typing import Callable, Sequence

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event as sa_event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from drop_economy.config import Settings
from drop_economy.core.economy.models import DropInstance, ItemDefinition
from drop_economy.core.event_bus import EconomyEvent, EventBus
from drop_economy.core.event_types import EventTypes
from drop_economy.db.database import get_db
from drop_economy.db.models import Base
from drop_economy.main import app
from drop_economy.services.container import EconomyServices, build_services


class ScriptedRandom:
    """random.Random 대신 쓰는 결정적 난수원.

    random()은 `rolls`에서 꺼냄 (소진 후 0.99: 드롭 없음, common 등급)
    randrange()는 `patterns`에서 꺼냄 (소진 후 0)
    choice()는 시퀀스 길이로 clamp한 `choice_index` 선택
    """

    def __init__(
        self,
        rolls: Sequence[float] = (),
        patterns: Sequence[int] = (),
        choice_index: int = 0,
    ):
        self.rolls = list(rolls)
        self.patterns = list(patterns)
        self.choice_index = choice_index

    def random(self) -> float:
        return self.rolls.pop(0) if self.rolls else 0.99

    def randrange(self, stop: int) -> int:
        value = self.patterns.pop(0) if self.patterns else 0
        return value % stop

    def choice(self, seq):
        return seq[min(self.choice_index, len(seq) - 1)]


def make_engine(url: str = "sqlite:///:memory:"):
    engine = create_engine(
        url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @sa_event.listens_for(engine, "connect")
    def _set_fk(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def db_engine():
    engine = make_engine()
    yield engine
    engine.dispose()


@pytest.fixture()
def db(db_engine) -> Session:
    """Raw database session for direct DB assertions."""
    session = sessionmaker(bind=db_engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def events(bus: EventBus) -> list[EconomyEvent]:
    """`bus`에 발행된 모든 이벤트 (발행 순)"""
    seen: list[EconomyEvent] = []
    for name, value in vars(EventTypes).items():
        if not name.startswith("_"):
            bus.subscribe(value, seen.append)
    return seen


@pytest.fixture()
def config() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        REWARD_COOLDOWN_SECONDS=86400,
        DROP_CHANCE=0.15,
        MAX_EQUIPPED_BADGES=3,
        MEDIA_LEVEL_THRESHOLD=3,
    )


@pytest.fixture()
def rng() -> ScriptedRandom:
    return ScriptedRandom()


@pytest.fixture()
def services(db: Session, bus: EventBus, config: Settings, rng) -> EconomyServices:
    return build_services(db, bus, config, rng=rng)


@pytest.fixture()
def items(services: EconomyServices) -> dict[str, ItemDefinition]:
    """작은 카탈로그: kind별 1개 + 강한 음수 리액션"""
    catalog = services.catalog
    return {
        "thumbs_up": catalog.add_definition(
            "Thumbs Up", "+5", "common", {"kind": "reaction", "experience_delta": 5}
        ),
        "boo": catalog.add_definition(
            "Boo", "-100", "uncommon", {"kind": "reaction", "experience_delta": -100}
        ),
        "early_bird": catalog.add_definition(
            "Early Bird", "", "common", {"kind": "badge"}
        ),
        "necromancer": catalog.add_definition(
            "Thread Necromancer", "", "rare", {"kind": "badge"}
        ),
        "tabby": catalog.add_definition(
            "Tabby Cat", "", "uncommon", {"kind": "avatar", "asset": "tabby.png"}
        ),
        "slate": catalog.add_definition(
            "Slate",
            "",
            "common",
            {"kind": "background", "colors": ["#333", "#777"]},
            pattern_count=360,
        ),
    }


@pytest.fixture()
def users(services: EconomyServices) -> dict[str, int]:
    return {
        name: services.users.register(name).user_id
        for name in ("alice", "bob", "carol")
    }


@pytest.fixture()
def give(
    services: EconomyServices, items: dict[str, ItemDefinition]
) -> Callable[[str, int], DropInstance]:
    """give("thumbs_up", user_id) → 새로 지급된 드롭"""

    def _give(item_key: str, owner_id: int) -> DropInstance:
        return services.ledger.grant(items[item_key].item_id, owner_id)

    return _give


@pytest.fixture()
def client(db_engine, bus: EventBus, config: Settings, rng) -> TestClient:
    """FastAPI TestClient wired to the test database, bus and RNG."""
    factory = sessionmaker(bind=db_engine, autoflush=False)

    def _override_get_db():
        session = factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.state.event_bus = bus
    app.state.settings = config
    app.state.rng = rng
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.rng = None
