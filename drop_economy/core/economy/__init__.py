"""드롭 이코노미 Core - 순수 Python, DB 없음"""

from .errors import (
    EconomyError,
    InternalStoreError,
    LimitError,
    OwnershipError,
    StateConflictError,
    ValidationError,
)
from .models import (
    Avatar,
    Background,
    Badge,
    DropInstance,
    EquipSlots,
    ItemDefinition,
    ItemKind,
    OfferStatus,
    Post,
    Rarity,
    Reaction,
    SlotKind,
    TradeOffer,
    UserEconomy,
)

__all__ = [
    "EconomyError",
    "InternalStoreError",
    "LimitError",
    "OwnershipError",
    "StateConflictError",
    "ValidationError",
    "Avatar",
    "Background",
    "Badge",
    "DropInstance",
    "EquipSlots",
    "ItemDefinition",
    "ItemKind",
    "OfferStatus",
    "Post",
    "Rarity",
    "Reaction",
    "SlotKind",
    "TradeOffer",
    "UserEconomy",
]
