"""카탈로그 Store - 아이템 정의, 읽기 위주

정의는 쓰기 시점에 검증(닫힌 ItemKind variant)하고 이후에는 `available`
플래그만 바뀐다. Store는 필요한 쪽에 명시적으로 넘기는 handle이며
모듈 레벨 공유 카탈로그는 없다.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from drop_economy.core.economy.catalog import (
    item_kind_to_json,
    parse_item_kind,
    parse_rarity,
    validate_definition_fields,
)
from drop_economy.core.economy.errors import ValidationError
from drop_economy.core.economy.models import (
    DEFAULT_PATTERN_COUNT,
    ItemDefinition,
    Rarity,
)
from drop_economy.core.logging import get_logger
from drop_economy.db.database import conditional_update, unit_of_work
from drop_economy.db.models import ItemDefinitionModel

logger = get_logger(__name__)


class CatalogStore:
    """아이템 정의 조회 + 시딩"""

    def __init__(self, db: Session):
        self._db = db

    # === 조회 ===

    def get(self, item_id: int) -> Optional[ItemDefinition]:
        orm = self._db.get(ItemDefinitionModel, item_id)
        if orm is None:
            return None
        return self._definition_to_core(orm)

    def list_available(self, rarity: Optional[Rarity] = None) -> list[ItemDefinition]:
        """현재 드롭 가능한 정의 목록 (id 순)."""
        stmt = select(ItemDefinitionModel).where(
            ItemDefinitionModel.available.is_(True)
        )
        if rarity is not None:
            stmt = stmt.where(ItemDefinitionModel.rarity == rarity.value)
        rows = self._db.execute(stmt.order_by(ItemDefinitionModel.id)).scalars()
        return [self._definition_to_core(r) for r in rows]

    def count(self) -> int:
        return self._db.scalar(select(func.count()).select_from(ItemDefinitionModel))

    # === 쓰기 (카탈로그 관리 / 시딩) ===

    def add_definition(
        self,
        name: str,
        description: str,
        rarity: Rarity | str,
        kind: Any,
        attributes: Optional[dict[str, Any]] = None,
        available: bool = True,
        pattern_count: int = DEFAULT_PATTERN_COUNT,
    ) -> ItemDefinition:
        """정의 검증 + 삽입. 잘못된 payload는 ValidationError."""
        parsed_rarity = parse_rarity(rarity)
        parsed_kind = parse_item_kind(kind)
        attrs = validate_definition_fields(name, description, pattern_count, attributes)

        with unit_of_work(self._db):
            orm = ItemDefinitionModel(
                name=name.strip(),
                description=description,
                rarity=parsed_rarity.value,
                kind=item_kind_to_json(parsed_kind),
                attributes=attrs,
                available=bool(available),
                pattern_count=pattern_count,
            )
            self._db.add(orm)
            self._db.flush()
            definition = self._definition_to_core(orm)

        logger.info(
            "카탈로그 추가: %s (id=%d, rarity=%s, kind=%s)",
            definition.name,
            definition.item_id,
            definition.rarity.value,
            definition.kind.kind,
        )
        return definition

    def set_availability(self, item_id: int, available: bool) -> bool:
        """드롭 가능 여부 전환. 없는 id면 False."""
        with unit_of_work(self._db):
            touched = conditional_update(
                self._db,
                update(ItemDefinitionModel)
                .where(ItemDefinitionModel.id == item_id)
                .values(available=bool(available)),
            )
        if touched:
            logger.info("카탈로그: 아이템 %d available=%s", item_id, available)
        return bool(touched)

    def load_from_json(self, path: str | Path) -> int:
        """시드 파일 로더. 삽입된 정의 수 반환.

        파일은 객체 JSON 배열이며 키는
        name, description, rarity, kind, attributes?, available?, pattern_count?.
        잘못된 항목은 로그 후 건너뛴다. 최상위가 배열이 아니면 ValidationError.
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw_list: Any = json.load(f)
        if not isinstance(raw_list, list):
            raise ValidationError(f"seed file {path} must hold a JSON array")

        count = 0
        for raw in raw_list:
            if not isinstance(raw, dict):
                logger.warning("객체가 아닌 시드 항목 건너뜀: %r", raw)
                continue
            try:
                self.add_definition(
                    name=raw["name"],
                    description=raw.get("description", ""),
                    rarity=raw["rarity"],
                    kind=raw["kind"],
                    attributes=raw.get("attributes"),
                    available=raw.get("available", True),
                    pattern_count=raw.get("pattern_count", DEFAULT_PATTERN_COUNT),
                )
                count += 1
            except (KeyError, ValidationError) as e:
                logger.warning(
                    "아이템 정의 로드 실패: %s - %s", raw.get("name", "?"), e
                )

        logger.info("아이템 정의 %d개 로드 완료: %s", count, path)
        return count

    # === ORM → Core ===

    def _definition_to_core(self, orm: ItemDefinitionModel) -> ItemDefinition:
        return ItemDefinition(
            item_id=orm.id,
            name=orm.name,
            description=orm.description,
            rarity=Rarity(orm.rarity),
            kind=parse_item_kind(orm.kind),
            available=orm.available,
            attributes=dict(orm.attributes or {}),
            pattern_count=orm.pattern_count,
        )
