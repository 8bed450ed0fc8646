import json
from pathlib import Path

import pytest
from conftest import make_data

from idlewild.data_schema import EffectType, UnlockType
from idlewild.game_data import DEFAULT_GAME_DATA_PATH, default_state, load_game_data, parse_game_data
from idlewild.schema import find_dangling_references, validate_game_data


def test_bundled_game_data_is_valid() -> None:
    raw = json.loads(DEFAULT_GAME_DATA_PATH.read_text(encoding="utf-8"))
    assert validate_game_data(raw) == []
    data = load_game_data()
    assert data.producers and data.upgrades and data.expeditions
    assert {need.id for need in data.needs} == {"hunger", "thirst", "warmth"}


def test_bundled_game_data_references_resolve() -> None:
    raw = json.loads(DEFAULT_GAME_DATA_PATH.read_text(encoding="utf-8"))
    warnings = find_dangling_references(raw)
    # the shelter upgrade deliberately waits on colonists, which never unlock
    assert len(warnings) == 1
    assert "colonist" in warnings[0]


def test_load_game_data_from_file(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text(json.dumps(make_data()), encoding="utf-8")
    data = load_game_data(path)
    assert data.upgrade("sharp_picks").effect.type is EffectType.MULTIPLIER
    assert data.upgrade("bunkhouse").unlock_type is UnlockType.UNSUPPORTED
    assert data.forage_activity("berries").base_amount == 0.5
    assert data.expedition("missing") is None


@pytest.mark.parametrize(
    ("overrides", "match"),
    [
        ({"producers": "nope"}, "must be a list"),
        ({"producers": [{"name": "No id"}]}, "missing a valid 'id'"),
        (
            {"resources": [{"id": "a", "name": "A"}, {"id": "a", "name": "Again"}]},
            "duplicate resource IDs",
        ),
        (
            {"producers": [{"id": "p", "resource": "a", "baseCost": 1, "growth": 1, "power": 1}]},
            "'growth' must be greater than 1",
        ),
        (
            {
                "upgrades": [
                    {"id": "u", "cost": 1, "effect": {"type": "teleport", "target": "x", "value": 1}}
                ]
            },
            "unsupported effect type",
        ),
        (
            {"expeditions": [{"id": "e", "duration": 0, "costs": [], "rewards": []}]},
            "positive integer 'duration'",
        ),
        (
            {
                "expeditions": [
                    {"id": "e", "duration": 5, "rewards": [{"resourceId": "a", "min": 4, "max": 2}]}
                ]
            },
            "must not exceed",
        ),
        ({"settings": []}, "'settings' must be an object"),
    ],
)
def test_parse_game_data_rejects_invalid_shapes(overrides: dict, match: str) -> None:
    with pytest.raises(ValueError, match=match):
        parse_game_data(make_data(**overrides))


def test_unsupported_unlocks_are_accepted() -> None:
    upgrades = [
        {
            "id": "u",
            "cost": 1,
            "costResource": "materials",
            "effect": {"type": "multiplier", "target": "miner", "value": 2},
            "unlock": {"type": "campfire"},
        }
    ]
    data = parse_game_data(make_data(upgrades=upgrades))
    assert data.upgrades[0].unlock_type is UnlockType.UNSUPPORTED


def test_error_messages_carry_paths() -> None:
    errors = validate_game_data(
        make_data(survival={"needs": [{"id": "hunger", "max": 0, "current": 5}]})
    )
    assert errors == ["survival.needs[0].max: Need 'hunger': 'max' must be greater than 0."]


def test_dangling_references_are_reported() -> None:
    data = make_data()
    data["upgrades"][0]["effect"]["target"] = "drill"
    data["expeditions"][1]["unlock"] = {"type": "resource", "id": "gold"}
    data["upgrades"][1]["unlock"] = {"type": "weather"}
    warnings = find_dangling_references(data)
    assert any("unknown producer 'drill'" in w for w in warnings)
    assert any("unknown resource 'gold'" in w for w in warnings)
    assert any("'weather' is not a known unlock type" in w for w in warnings)
    assert any("'colonist' is never satisfied" in w for w in warnings)


def test_default_state_uses_config_defaults(game_data) -> None:
    state = default_state(game_data, now_ms=42)
    assert state.last_saved == 42
    assert state.upgrades_purchased == () and state.upgrades_discovered == ()
    assert state.active_expedition is None
    assert {e.id: e.discovered for e in state.expeditions} == {"scout": True, "deep_woods": False}
    assert state.survival.campfire.lit is False
