"""카탈로그 payload 검증 + 쿨다운 판정"""

from datetime import datetime, timedelta

import pytest

from drop_economy.core.economy.catalog import (
    item_kind_to_json,
    parse_item_kind,
    parse_rarity,
    validate_definition_fields,
)
from drop_economy.core.economy.cooldown import cooldown_elapsed, cooldown_remaining
from drop_economy.core.economy.errors import ValidationError
from drop_economy.core.economy.models import (
    Avatar,
    Background,
    Badge,
    Rarity,
    Reaction,
)


class TestParseRarity:
    def test_aliases(self):
        assert parse_rarity("Ultra-Rare") is Rarity.ULTRA_RARE
        assert parse_rarity(Rarity.RARE) is Rarity.RARE

    def test_unknown(self):
        with pytest.raises(ValidationError):
            parse_rarity("mythic")


class TestParseItemKind:
    def test_variants(self):
        assert parse_item_kind({"kind": "badge"}) == Badge()
        assert parse_item_kind(
            {"kind": "reaction", "experience_delta": -5}
        ) == Reaction(-5)
        assert parse_item_kind(
            {"kind": "background", "colors": ["#000", "#fff"]}
        ) == Background(("#000", "#fff"))
        assert parse_item_kind({"kind": "avatar", "asset": " cat.png "}) == Avatar(
            "cat.png"
        )

    @pytest.mark.parametrize(
        "raw",
        [
            {"kind": "reaction"},
            {"kind": "reaction", "experience_delta": 0},
            {"kind": "reaction", "experience_delta": True},
            {"kind": "reaction", "experience_delta": "5"},
            {"kind": "background", "colors": []},
            {"kind": "avatar", "asset": ""},
            {"kind": "hat"},
            "badge",
        ],
    )
    def test_rejects_malformed(self, raw):
        with pytest.raises(ValidationError):
            parse_item_kind(raw)

    def test_json_shape(self):
        assert item_kind_to_json(Reaction(7)) == {
            "kind": "reaction",
            "experience_delta": 7,
        }
        assert item_kind_to_json(Badge()) == {"kind": "badge"}


class TestDefinitionFields:
    def test_defaults_attributes(self):
        assert validate_definition_fields("Badge", "") == {}

    @pytest.mark.parametrize(
        "name, description, pattern_count, attributes",
        [
            ("", "", 10, None),
            ("x" * 101, "", 10, None),
            ("ok", "", True, None),
            ("ok", "", "10", None),
            ("ok", None, 10, None),
            ("ok", "", 0, None),
            ("ok", "", 10, ["not", "a", "map"]),
        ],
    )
    def test_rejects(self, name, description, pattern_count, attributes):
        with pytest.raises(ValidationError):
            validate_definition_fields(name, description, pattern_count, attributes)


class TestCooldown:
    NOW = datetime(2024, 5, 1, 12, 0, 0)
    DAY = timedelta(days=1)

    def test_never_rewarded(self):
        assert cooldown_elapsed(None, self.NOW, self.DAY)
        assert cooldown_remaining(None, self.NOW, self.DAY) == timedelta(0)

    def test_inside_window(self):
        last = self.NOW - timedelta(hours=23)
        assert not cooldown_elapsed(last, self.NOW, self.DAY)
        assert cooldown_remaining(last, self.NOW, self.DAY) == timedelta(hours=1)

    def test_boundary_is_eligible(self):
        assert cooldown_elapsed(self.NOW - self.DAY, self.NOW, self.DAY)
