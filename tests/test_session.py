import asyncio
import random

from conftest import amount_of, with_count

from idlewild.events import EventKind
from idlewild.game_data import default_state
from idlewild.save_manager import MemoryStorage, SaveManager
from idlewild.session import GameSession
from idlewild.settings import GameSettings


def make_session(game_data, clock, store=None, settings=None) -> tuple:
    messages: list = []
    store = store if store is not None else MemoryStorage()
    saves = SaveManager(game_data, store, print_func=messages.append, clock=clock)
    session = GameSession(
        game_data,
        save_manager=saves,
        settings=settings,
        rng=random.Random(3),
        print_func=messages.append,
        clock=clock,
    )
    return session, store, messages


def test_start_without_save_is_a_new_game(game_data, clock) -> None:
    session, _, _ = make_session(game_data, clock)
    assert session.start() == default_state(game_data, clock())


def test_start_applies_offline_progress(game_data, state, clock) -> None:
    session, store, _ = make_session(game_data, clock)
    session.saves.save(with_count(state, "miner", 2))
    clock.advance(30)

    fresh, _, _ = make_session(game_data, clock, store=store)
    loaded = fresh.start()
    assert amount_of(loaded, "materials") == 60
    assert loaded.last_saved == clock()
    assert fresh.consume_events()[0].kind is EventKind.OFFLINE_PROGRESS


def test_actions_report_whether_they_applied(game_data, clock) -> None:
    session, _, _ = make_session(game_data, clock)
    session.start()
    assert not session.buy_producer("miner")
    for _ in range(20):
        assert session.forage("berries")
    assert session.click_gather("materials", 12)
    assert session.buy_producer("miner")
    assert session.light_campfire()
    assert session.consume_resource("food", 1)
    assert not session.consume_resource("food", 1000)
    assert not session.purchase_upgrade("sharp_picks")
    assert amount_of(session.state, "materials") == 0
    assert amount_of(session.state, "food") == 19


def test_start_expedition_emits_event_and_ticks_to_completion(game_data, clock) -> None:
    session, _, _ = make_session(game_data, clock)
    session.start()
    session.replace_state(with_count(session.state, "miner", 1))
    assert session.start_expedition("scout")
    assert not session.start_expedition("scout")
    for _ in range(3):
        session.tick()
    kinds = [e.kind for e in session.consume_events()]
    assert kinds[0] is EventKind.EXPEDITION_STARTED
    assert EventKind.EXPEDITION_COMPLETED in kinds
    assert session.state.active_expedition is None
    assert session.consume_events() == []


def test_reset_clears_save_and_restores_defaults(game_data, clock) -> None:
    session, store, messages = make_session(game_data, clock)
    session.start()
    session.click_gather("materials", 30)
    assert session.save()
    assert session.saves.has_save()

    reset = session.reset()
    assert reset == default_state(game_data, clock())
    assert store.items == {}
    assert messages[-1] == "[Save] Progress reset."


def test_export_and_import_through_session(game_data, clock) -> None:
    session, _, _ = make_session(game_data, clock)
    session.start()
    session.click_gather("materials", 4)
    text = session.export_state()
    session.reset()
    assert amount_of(session.import_state(text), "materials") == 4


def test_timers_tick_and_autosave(game_data, clock) -> None:
    settings = GameSettings(default_tick_interval_ms=50, autosave_interval_ms=250)
    session, store, _ = make_session(game_data, clock, settings=settings)
    session.start()
    session.replace_state(with_count(session.state, "miner", 1))

    asyncio.run(session.run(duration=0.6))

    assert not session.running
    assert amount_of(session.state, "materials") >= 1
    assert session.saves.has_save()


def test_stop_without_save(game_data, clock) -> None:
    session, _, _ = make_session(game_data, clock)

    async def scenario() -> None:
        session.start_timers()
        assert session.running
        await session.stop(save=False)

    asyncio.run(scenario())
    assert not session.running
    assert not session.saves.has_save()
