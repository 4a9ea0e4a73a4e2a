"""카탈로그 payload 검증 - 아이템 kind는 쓰기 시점에 검증, 읽기 시점엔 신뢰하지 않음"""

from __future__ import annotations

import logging
from typing import Any

from .errors import ValidationError
from .models import (
    DEFAULT_PATTERN_COUNT,
    Avatar,
    Background,
    Badge,
    ItemKind,
    Rarity,
    Reaction,
)

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100


def parse_rarity(value: Any) -> Rarity:
    if isinstance(value, Rarity):
        return value
    try:
        return Rarity(str(value).strip().lower().replace("-", "_"))
    except ValueError:
        raise ValidationError(f"Unknown rarity: {value!r}") from None


def parse_item_kind(raw: Any) -> ItemKind:
    """JSON payload → ItemKind.

    허용 형태:
        {"kind": "badge"}
        {"kind": "reaction", "experience_delta": -5}
        {"kind": "background", "colors": ["#000", "#fff"]}
        {"kind": "avatar", "asset": "avatars/cat.png"}
    """
    if isinstance(raw, (Badge, Reaction, Background, Avatar)):
        return raw
    if not isinstance(raw, dict):
        raise ValidationError(f"Item kind must be an object, got {type(raw).__name__}")

    kind = raw.get("kind")
    if kind == Badge.kind:
        return Badge()

    if kind == Reaction.kind:
        delta = raw.get("experience_delta")
        # bool은 int 서브클래스
        if not isinstance(delta, int) or isinstance(delta, bool):
            raise ValidationError("Reaction requires an integer experience_delta")
        if delta == 0:
            raise ValidationError("Reaction experience_delta must be non-zero")
        return Reaction(experience_delta=delta)

    if kind == Background.kind:
        colors = raw.get("colors")
        if not isinstance(colors, (list, tuple)) or not colors:
            raise ValidationError("Background requires a non-empty colors list")
        if not all(isinstance(c, str) and c.strip() for c in colors):
            raise ValidationError("Background colors must be non-empty strings")
        return Background(colors=tuple(c.strip() for c in colors))

    if kind == Avatar.kind:
        asset = raw.get("asset")
        if not isinstance(asset, str) or not asset.strip():
            raise ValidationError("Avatar requires a non-empty asset reference")
        return Avatar(asset=asset.strip())

    raise ValidationError(f"Unknown item kind: {kind!r}")


def item_kind_to_json(kind: ItemKind) -> dict[str, Any]:
    """ItemKind → JSON payload (parse_item_kind의 역변환)."""
    if isinstance(kind, Reaction):
        return {"kind": kind.kind, "experience_delta": kind.experience_delta}
    if isinstance(kind, Background):
        return {"kind": kind.kind, "colors": list(kind.colors)}
    if isinstance(kind, Avatar):
        return {"kind": kind.kind, "asset": kind.asset}
    return {"kind": kind.kind}


def validate_definition_fields(
    name: str,
    description: str,
    pattern_count: int = DEFAULT_PATTERN_COUNT,
    attributes: Any = None,
) -> dict[str, Any]:
    """신규 카탈로그 항목 스칼라 검증. 정규화된 attributes 반환."""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Item name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Item name longer than {MAX_NAME_LENGTH} characters")
    if not isinstance(description, str):
        raise ValidationError("Item description must be a string")
    if (
        not isinstance(pattern_count, int)
        or isinstance(pattern_count, bool)
        or pattern_count < 1
    ):
        raise ValidationError("pattern_count must be a positive integer")
    if attributes is None:
        return {}
    if not isinstance(attributes, dict):
        raise ValidationError("Item attributes must be an object")
    return dict(attributes)
