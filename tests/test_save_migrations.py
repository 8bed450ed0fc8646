import pytest

from idlewild.save_migrations import SCHEMA_VERSION, SaveMigrationError, migrate_save_payload


def test_bare_state_is_wrapped_and_upgraded() -> None:
    legacy = {"resources": [], "producers": [], "lastSaved": 123}
    migrated = migrate_save_payload(legacy)
    assert migrated["version"] == SCHEMA_VERSION
    assert migrated["metadata"]["schema"] == "save_v2"
    assert migrated["state"]["lastSaved"] == 123
    assert migrated["state"]["expeditions"] == []


def test_inactive_exploration_becomes_no_expedition() -> None:
    payload = {
        "version": 1,
        "metadata": {},
        "state": {
            "survival": {"needs": [], "exploration": {"active": False, "timeRemaining": 0}},
            "expeditions": [{"id": "scout"}],
        },
    }
    migrated = migrate_save_payload(payload)
    survival = migrated["state"]["survival"]
    assert "exploration" not in survival
    assert survival["activeExpedition"] is None
    assert migrated["state"]["expeditions"] == [{"id": "scout"}]


def test_active_exploration_becomes_anonymous_expedition() -> None:
    payload = {
        "version": 1,
        "state": {"survival": {"exploration": {"active": True, "timeRemaining": 7, "totalTime": 30}}},
    }
    migrated = migrate_save_payload(payload)
    assert migrated["state"]["survival"]["activeExpedition"] == {
        "expeditionId": None,
        "timeRemaining": 7,
        "totalTime": 30,
    }


def test_input_payload_is_not_modified() -> None:
    payload = {"version": 1, "state": {"survival": {"exploration": {"active": True}}}}
    migrate_save_payload(payload)
    assert "exploration" in payload["state"]["survival"]


def test_current_version_passes_through() -> None:
    payload = {"version": 2, "metadata": {"schema": "save_v2"}, "state": {"resources": []}}
    assert migrate_save_payload(payload) == payload


@pytest.mark.parametrize(
    "payload, match",
    [
        ([], "not an object"),
        ({"version": "two"}, "invalid"),
        ({"version": 3, "state": {}}, "newer"),
        ({"metadata": {}}, "Missing state"),
        ({"version": 1, "state": "oops"}, "no state"),
    ],
)
def test_unmigratable_payloads_raise(payload, match: str) -> None:
    with pytest.raises(SaveMigrationError, match=match):
        migrate_save_payload(payload)
