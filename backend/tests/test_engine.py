import random

import pytest

from racer.engine import (
    DIFFICULTIES,
    TEXT_POOLS,
    InvalidPlayerName,
    KeyOutcome,
    Opponent,
    PowerUpInventory,
    PowerUpKind,
    RaceEngine,
    RaceResult,
    RaceState,
    pick_text,
)
from racer.engine.scheduler import NotificationQueue, Scheduler
from racer.engine.session import (
    RaceSession,
    accuracy_percent,
    apply_key,
    live_wpm,
    new_session,
    start,
    words_per_minute,
)


def make_engine(clock, rng, **kwargs):
    kwargs.setdefault('powerups', PowerUpInventory({kind: 2 for kind in PowerUpKind}))
    return RaceEngine(difficulty=kwargs.pop('difficulty', 'easy'), clock=clock, rng=rng, **kwargs)


def type_text(engine, text, start_at=0.0, per_char=0.01):
    t = start_at
    outcome = None
    for ch in text:
        t += per_char
        outcome = engine.handle_key(ch, now=t)
    return t, outcome


# ---- text generation ----

@pytest.mark.parametrize('difficulty', DIFFICULTIES)
def test_pick_text_draws_from_pool(difficulty, rng):
    for _ in range(10):
        text = pick_text(difficulty, rng)
        assert text
        assert text in TEXT_POOLS[difficulty]


def test_pick_text_rejects_unknown_level(rng):
    with pytest.raises(ValueError):
        pick_text('impossible', rng)


def test_set_difficulty_regenerates_and_resets(clock, rng):
    engine = make_engine(clock, rng)
    engine.handle_key(engine.session.text[0], now=0.1)
    engine.handle_key('#', now=0.2)
    engine.set_difficulty('hard')
    assert engine.state == RaceState.IDLE
    assert engine.session.text in TEXT_POOLS['hard']
    assert engine.session.cursor == 0
    assert engine.session.error_count == 0


# ---- session transitions ----

def test_apply_key_transitions():
    session = start(new_session('ab', 'easy'), now=0.0)
    session, outcome = apply_key(session, 'x', 0.1)
    assert outcome == KeyOutcome.ERROR
    assert session.error_count == 1 and session.cursor == 0
    session, outcome = apply_key(session, 'a', 0.2)
    assert outcome == KeyOutcome.ADVANCED
    session, outcome = apply_key(session, 'zb', 0.3)
    assert outcome == KeyOutcome.FINISHED
    assert session.state == RaceState.FINISHED
    assert session.end_time == 0.3
    # Finished sessions ignore input
    same, outcome = apply_key(session, 'a', 0.4)
    assert outcome == KeyOutcome.IGNORED
    assert same is session


def test_apply_key_shielded_mismatch_is_ignored():
    session = start(new_session('ab', 'easy'), now=0.0)
    after, outcome = apply_key(session, 'x', 0.1, shielded=True)
    assert outcome == KeyOutcome.SHIELDED
    assert after == session


def test_idle_session_ignores_keys():
    session = RaceSession(text='abc')
    after, outcome = apply_key(session, 'a', 1.0)
    assert outcome == KeyOutcome.IGNORED
    assert after.cursor == 0


def test_derived_values_stay_in_range():
    assert accuracy_percent(0, 0) == 100
    assert accuracy_percent(1, 7) == 0
    assert accuracy_percent(10, 1) == 90
    assert words_per_minute(0, 10) == 0
    assert words_per_minute(50, 0) == 0
    assert words_per_minute(50, 60) == 10


# ---- engine ----

def test_first_key_starts_race(clock, rng):
    engine = make_engine(clock, rng)
    outcome = engine.handle_key(engine.session.text[0], now=0.5)
    assert engine.state == RaceState.RACING
    assert outcome == KeyOutcome.ADVANCED
    assert engine.session.start_time == 0.5
    assert engine.session.cursor == 1


def test_cursor_never_exceeds_text(clock, rng):
    engine = make_engine(clock, rng)
    text = engine.session.text
    end, outcome = type_text(engine, text)
    assert outcome == KeyOutcome.FINISHED
    assert engine.session.cursor == len(text)
    assert engine.handle_key('x', now=end + 1) == KeyOutcome.IGNORED
    assert engine.session.cursor == len(text)


def test_perfect_race_unlocks_achievements_once(clock, rng):
    engine = make_engine(clock, rng)
    type_text(engine, engine.session.text, per_char=0.01)
    result = engine.result
    assert result.accuracy == 100
    assert result.achievements[0] == 'first_race'
    assert 'perfectionist' in result.achievements

    engine.reset()
    engine.start(now=100.0)
    type_text(engine, engine.session.text, start_at=100.0)
    assert engine.result.achievements == ()
    unlocked = [a.id for a in engine.achievements if a.unlocked]
    assert unlocked.count('first_race') == 1


def test_finish_uses_whole_race_average(clock, rng):
    engine = make_engine(clock, rng)
    text = engine.session.text
    engine.start(now=0.0)
    assert engine.activate_powerup(PowerUpKind.SPEED_BOOST, now=0.0)
    end, _ = type_text(engine, text, per_char=0.1)
    expected = round((len(text) / 5) / (end / 60))
    assert engine.result.wpm == expected
    assert engine.result.time == pytest.approx(end)


def test_live_wpm_includes_speed_boost(clock, rng):
    engine = make_engine(clock, rng)
    engine.start(now=0.0)
    type_text(engine, engine.session.text[:10], per_char=0.6)
    plain = engine.stats(now=6.0).wpm
    assert plain == 20
    engine.activate_powerup(PowerUpKind.SPEED_BOOST, now=6.0)
    assert engine.stats(now=6.0).wpm == 24


def test_speed_boost_ends_at_expiry_without_timer_run(clock, rng):
    engine = make_engine(clock, rng)
    engine.start(now=0.0)
    type_text(engine, engine.session.text[:50], per_char=0.1)
    assert engine.activate_powerup(PowerUpKind.SPEED_BOOST, now=5.0)
    session = engine.session
    assert engine.stats(now=14.0).wpm == live_wpm(session, 14.0, 1.2)
    # No timer has run since activation; the flag is still set
    assert engine.powerups[PowerUpKind.SPEED_BOOST].active
    assert engine.stats(now=15.0).wpm == live_wpm(session, 15.0, 1.0)
    assert engine.stats(now=30.0).wpm == live_wpm(session, 30.0, 1.0) == 20


def test_stats_is_side_effect_free(clock, rng):
    engine = make_engine(clock, rng)
    engine.start(now=0.0)
    engine.handle_key('#', now=0.1)
    before = engine.session
    first = engine.stats(now=1.0)
    second = engine.stats(now=1.0)
    assert first == second
    assert engine.session is before
    assert 0 <= first.accuracy <= 100
    assert first.wpm >= 0


def test_final_rank_counts_finished_opponents(clock, rng):
    rocket = Opponent(name='Rocket', speed=100.0)
    snail = Opponent(name='Snail', speed=0.001)
    engine = make_engine(clock, rng, opponents=[rocket, snail])
    engine.start(now=0.0)
    type_text(engine, engine.session.text, per_char=0.05)
    assert rocket.finished
    assert not snail.finished
    assert engine.result.position == 2


def test_power_up_awards(clock, rng):
    engine = make_engine(clock, rng)
    before = {p.kind: p.count for p in engine.powerups}
    type_text(engine, engine.session.text, per_char=0.01)
    assert set(engine.result.awarded) == {k.value for k in PowerUpKind}
    for item in engine.powerups:
        assert item.count == before[item.kind] + 1


def test_activation_without_inventory_is_noop(clock, rng):
    engine = make_engine(clock, rng, powerups=PowerUpInventory())
    engine.start(now=0.0)
    pending = engine.scheduler.pending
    assert not engine.activate_powerup(PowerUpKind.TIME_FREEZE, now=0.1)
    item = engine.powerups[PowerUpKind.TIME_FREEZE]
    assert item.count == 0 and not item.active
    assert engine.scheduler.pending == pending
    assert len(engine.notifications) == 0


def test_activation_requires_racing(clock, rng):
    engine = make_engine(clock, rng)
    assert not engine.activate_powerup(PowerUpKind.SPEED_BOOST, now=0.0)
    assert engine.powerups[PowerUpKind.SPEED_BOOST].count == 2


def test_power_up_expires_after_exact_duration(clock, rng):
    engine = make_engine(clock, rng)
    engine.start(now=0.0)
    assert engine.activate_powerup(PowerUpKind.SPEED_BOOST, now=1.0)
    # Re-activation while active does nothing
    assert not engine.activate_powerup(PowerUpKind.SPEED_BOOST, now=2.0)
    assert engine.powerups[PowerUpKind.SPEED_BOOST].count == 1
    engine.advance(10.999)
    assert engine.powerups.is_active(PowerUpKind.SPEED_BOOST)
    engine.advance(11.0)
    assert not engine.powerups.is_active(PowerUpKind.SPEED_BOOST)


def test_accuracy_shield_suppresses_errors(clock, rng):
    engine = make_engine(clock, rng)
    engine.start(now=0.0)
    engine.activate_powerup(PowerUpKind.ACCURACY_SHIELD, now=0.0)
    assert engine.handle_key('#', now=1.0) == KeyOutcome.SHIELDED
    assert engine.session.error_count == 0
    assert engine.handle_key('#', now=5.0) == KeyOutcome.ERROR
    assert engine.session.error_count == 1


def test_time_freeze_holds_opponents(clock, rng):
    engine = make_engine(clock, rng)
    engine.start(now=0.0)
    engine.activate_powerup(PowerUpKind.TIME_FREEZE, now=0.0)
    engine.advance(2.9)
    assert all(o.progress == 0 for o in engine.opponents)
    engine.advance(3.5)
    assert all(0 < o.progress <= 1 for o in engine.opponents)


def test_opponent_progress_is_capped(clock, rng):
    engine = make_engine(clock, rng)
    engine.start(now=0.0)
    engine.advance(60.0)
    assert all(o.progress == 1.0 for o in engine.opponents)


def test_opponent_finish_time_distribution():
    ticks = []
    for seed in range(20):
        opponent = Opponent(name='Turbo Type', speed=0.9)
        local = random.Random(seed)
        count = 0
        while not opponent.finished:
            opponent.advance(local.uniform(0.8, 1.2))
            count += 1
        ticks.append(count)
    # Mean factor is 1.0, so roughly 100 / 0.9 ticks
    assert 95 <= sum(ticks) / len(ticks) <= 130
    assert all(84 <= t <= 140 for t in ticks)


def test_reset_cancels_timers(clock, rng):
    engine = make_engine(clock, rng)
    engine.start(now=0.0)
    engine.activate_powerup(PowerUpKind.SPEED_BOOST, now=0.0)
    engine.advance(1.0)
    assert any(o.progress > 0 for o in engine.opponents)

    engine.reset()
    assert engine.state == RaceState.IDLE
    assert engine.scheduler.pending == 0
    assert not engine.powerups.is_active(PowerUpKind.SPEED_BOOST)
    # Inventory survives the reset
    assert engine.powerups[PowerUpKind.SPEED_BOOST].count == 1
    engine.advance(100.0)
    assert all(o.progress == 0 for o in engine.opponents)


def test_error_flash_is_transient(clock, rng):
    engine = make_engine(clock, rng)
    engine.start(now=0.0)
    engine.handle_key('#', now=1.0)
    assert engine.error_flash_active(now=1.1)
    assert not engine.error_flash_active(now=1.2)
    engine.handle_key('#', now=2.0)
    engine.handle_key(engine.session.text[0], now=2.05)
    assert not engine.error_flash_active(now=2.06)


def test_achievement_notifications_are_staggered(clock, rng):
    engine = make_engine(clock, rng)
    end, _ = type_text(engine, engine.session.text, per_char=0.01)
    assert engine.pop_notifications(now=end + 0.5) == []
    first = engine.pop_notifications(now=end + 1.0)
    assert [n.title for n in first] == ['First Steps']
    rest = engine.pop_notifications(now=end + 20.0)
    titles = [n.title for n in rest]
    assert titles[0] == 'Power-ups Earned!'
    assert titles[1:] == ['Speed Demon', 'Accuracy Master', 'Lightning Fast', 'Perfectionist']


def test_start_after_finish_begins_new_race(clock, rng):
    engine = make_engine(clock, rng)
    type_text(engine, engine.session.text)
    assert engine.state == RaceState.FINISHED
    assert engine.start(now=50.0)
    assert engine.state == RaceState.RACING
    assert engine.session.cursor == 0
    assert engine.result is None


# ---- scheduler ----

def test_scheduler_runs_in_due_order():
    scheduler = Scheduler()
    fired = []
    scheduler.call_at(2.0, lambda when, tag: fired.append(tag), 'b')
    scheduler.call_at(1.0, lambda when, tag: fired.append(tag), 'a')
    scheduler.call_at(2.0, lambda when, tag: fired.append(tag), 'c')
    assert scheduler.run_until(1.5) == 1
    assert scheduler.run_until(2.0) == 2
    assert fired == ['a', 'b', 'c']


def test_scheduler_cancel():
    scheduler = Scheduler()
    fired = []
    task = scheduler.call_at(1.0, lambda when: fired.append(when))
    task.cancel()
    scheduler.call_at(1.0, lambda when: fired.append(when))
    scheduler.cancel_all()
    assert scheduler.run_until(5.0) == 0
    assert fired == []


def test_notification_queue_orders_ties_by_push():
    queue = NotificationQueue()
    queue.push('late', '', 3.0)
    queue.push('first', '', 1.0)
    queue.push('second', '', 1.0)
    assert [n.title for n in queue.pop_due(2.0)] == ['first', 'second']
    assert [n.title for n in queue.pending()] == ['late']


# ---- submission payload ----

def test_result_submission_payload():
    result = RaceResult(wpm=50, accuracy=100, time=60.04, position=1, difficulty='medium')
    payload = result.to_submission('  Alice ')
    assert payload['name'] == 'Alice'
    assert payload['time'] == 60.0
    assert payload['difficulty'] == 'medium'
    assert payload['timestamp']


@pytest.mark.parametrize('name', ['', '   ', None, 'x' * 21])
def test_result_submission_rejects_bad_names(name):
    result = RaceResult(wpm=50, accuracy=100, time=60, position=1, difficulty='medium')
    with pytest.raises(InvalidPlayerName):
        result.to_submission(name)


def test_ticker_drives_engine(clock, rng):
    import time
    from racer.engine import RaceTicker

    engine = make_engine(clock, rng)
    engine.start(now=0.0)
    clock.tick(1.0)
    ticker = RaceTicker(engine, interval=0.01)
    ticker.start()
    try:
        deadline = time.time() + 3.0
        while time.time() < deadline and not any(o.progress > 0 for o in engine.opponents):
            time.sleep(0.01)
    finally:
        ticker.stop()
    assert not ticker.running
    assert any(o.progress > 0 for o in engine.opponents)
