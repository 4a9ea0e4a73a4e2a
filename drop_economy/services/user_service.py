"""유저 Service - 등록 + 이코노미 프로필 조회"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from drop_economy.core.economy.errors import ValidationError
from drop_economy.core.economy.models import EquipSlots, UserEconomy
from drop_economy.core.logging import get_logger
from drop_economy.db.database import unit_of_work
from drop_economy.db.models import UserModel

logger = get_logger(__name__)

MAX_USER_NAME_LENGTH = 50


class UserService:
    def __init__(self, db: Session):
        self._db = db

    def register(self, name: str) -> UserEconomy:
        """신규 유저: 경험치 0, 보상 이력 없음, 장착 없음."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("User name cannot be empty")
        if len(name) > MAX_USER_NAME_LENGTH:
            raise ValidationError(
                f"User name longer than {MAX_USER_NAME_LENGTH} characters"
            )

        with unit_of_work(self._db):
            taken = self._db.execute(
                select(UserModel.id).where(UserModel.name == name)
            ).first()
            if taken is not None:
                raise ValidationError(f"User name already taken: {name}")

            orm = UserModel(
                name=name,
                experience=0,
                last_reward=None,
                equip_badges=[],
                slots_version=0,
            )
            self._db.add(orm)
            self._db.flush()
            user = self._user_to_core(orm)

        logger.info("유저 등록: %d (%s)", user.user_id, user.name)
        return user

    def get(self, user_id: int) -> Optional[UserEconomy]:
        orm = self._db.get(UserModel, user_id, populate_existing=True)
        return self._user_to_core(orm) if orm is not None else None

    def leaderboard(self, limit: int = 10) -> list[UserEconomy]:
        """경험치 높은 순. 동률은 등록 순."""
        stmt = (
            select(UserModel)
            .order_by(UserModel.experience.desc(), UserModel.id)
            .limit(limit)
        )
        return [self._user_to_core(r) for r in self._db.execute(stmt).scalars()]

    @staticmethod
    def _user_to_core(orm: UserModel) -> UserEconomy:
        return UserEconomy(
            user_id=orm.id,
            name=orm.name,
            experience=orm.experience,
            last_reward=orm.last_reward,
            slots=EquipSlots(
                profile_pic=orm.equip_profile_pic,
                background=orm.equip_background,
                badges=tuple(orm.equip_badges or ()),
            ),
        )
