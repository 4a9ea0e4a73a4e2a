"""SQLAlchemy declarative models for the drop economy."""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import JSON

from drop_economy.core.economy.models import utcnow


class Base(DeclarativeBase):
    """Base class for all database models."""


class UserModel(Base):
    """User record, economy fields only."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)

    experience: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    # None = never rewarded
    last_reward: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    equip_profile_pic: Mapped[int | None] = mapped_column(Integer, nullable=True)
    equip_background: Mapped[int | None] = mapped_column(Integer, nullable=True)
    equip_badges: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    # bumped on every slot write; guards read-modify-write of the slots
    slots_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )


class ItemDefinitionModel(Base):
    """Catalog entry. `kind` holds the validated tagged variant as JSON."""

    __tablename__ = "item_definitions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    rarity: Mapped[str] = mapped_column(String, nullable=False)
    kind: Mapped[dict] = mapped_column(JSON, nullable=False)
    attributes: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    pattern_count: Mapped[int] = mapped_column(Integer, nullable=False, default=65536)

    __table_args__ = (Index("idx_item_rarity_available", "rarity", "available"),)


class DropModel(Base):
    """Minted item instance. Owner and consumed change only via guarded UPDATEs."""

    __tablename__ = "drops"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("item_definitions.id"), nullable=False
    )
    pattern: Mapped[int] = mapped_column(Integer, nullable=False)
    consumed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (Index("idx_drop_owner", "owner_id"),)


class PostModel(Base):
    """Forum post. reward_drop_id is written once, at insert."""

    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    thread_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    posted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    has_media: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reward_drop_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("drops.id"), nullable=True, unique=True
    )

    __table_args__ = (Index("idx_post_author", "author_id"),)


class PostReactionModel(Base):
    """Append-only reaction list of a post. A drop is applied at most once."""

    __tablename__ = "post_reactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id"), nullable=False
    )
    drop_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("drops.id"), nullable=False, unique=True
    )
    reactor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    applied_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (Index("idx_reaction_post", "post_id"),)


class TradeOfferModel(Base):
    """Trade offer. Item lists are fixed at proposal; status moves once."""

    __tablename__ = "trade_offers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    sender_items: Mapped[list] = mapped_column(JSON, nullable=False)
    receiver_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    receiver_items: Mapped[list] = mapped_column(JSON, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="proposed")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_offer_receiver_status", "receiver_id", "status"),
        Index("idx_offer_sender_status", "sender_id", "status"),
    )
