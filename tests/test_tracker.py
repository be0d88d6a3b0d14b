"""Tests for reset-aware threshold tracking."""

from usagealert.state import AlertState, UsageWindow, WindowKind, WindowState
from usagealert.tracker import DEFAULT_THRESHOLDS, evaluate, is_rollover, thresholds_from_config

T1 = 1_760_709_600_000
T2 = T1 + 5 * 60 * 60 * 1000

FIVE = WindowKind.FIVE_HOUR
WEEKLY = WindowKind.WEEKLY


def _fired(alerts):
    return [(a.window, a.threshold) for a in alerts]


def _state(alerted=(), reset_at=None, kind=FIVE):
    state = AlertState()
    state.windows[kind] = WindowState(alerted_thresholds=set(alerted), reset_at=reset_at)
    return state


def test_first_crossing_fires_once():
    state, alerts = evaluate(AlertState(), {FIVE: UsageWindow(80, T1)})
    assert _fired(alerts) == [(FIVE, 75)]
    assert state.window(FIVE).alerted_thresholds == {75}
    assert state.window(FIVE).reset_at == T1


def test_unchanged_reading_is_idempotent():
    readings = {FIVE: UsageWindow(92, T1), WEEKLY: UsageWindow(60, T2)}
    state, first = evaluate(AlertState(), readings)
    state, second = evaluate(state, readings)
    assert len(first) == 3
    assert second == []


def test_input_state_is_not_mutated():
    before = _state({75}, T1)
    evaluate(before, {FIVE: UsageWindow(96, T2)})
    assert before.window(FIVE).alerted_thresholds == {75}
    assert before.window(FIVE).reset_at == T1


def test_alerted_set_grows_with_rising_usage():
    state = AlertState()
    sizes = []
    for percent in (10, 76, 76, 91, 95, 99, 100, 130):
        state, _ = evaluate(state, {FIVE: UsageWindow(percent, T1)})
        sizes.append(len(state.window(FIVE).alerted_thresholds))
    assert sizes == sorted(sizes)
    assert sizes[-1] == 4


def test_rollover_clears_and_refires():
    state = _state({75, 90}, T1)
    state, alerts = evaluate(state, {FIVE: UsageWindow(80, T2)})
    assert state.window(FIVE).alerted_thresholds == {75}
    assert _fired(alerts) == [(FIVE, 75)]
    assert alerts[0].reset_at == T2


def test_first_observation_is_not_a_rollover():
    state, alerts = evaluate(
        AlertState(),
        {FIVE: UsageWindow(80, T1)},
        {FIVE: (75, 90), WEEKLY: ()},
    )
    assert _fired(alerts) == [(FIVE, 75)]
    assert state.window(FIVE).reset_at == T1


def test_null_reset_keeps_alerted_thresholds():
    state = _state({75}, T1)
    state, alerts = evaluate(state, {FIVE: UsageWindow(80, None)})
    assert alerts == []
    assert state.window(FIVE).alerted_thresholds == {75}
    assert state.window(FIVE).reset_at is None


def test_jump_fires_every_crossed_threshold():
    state = _state(set(), T1)
    state, _ = evaluate(state, {FIVE: UsageWindow(60, T1)})
    state, alerts = evaluate(state, {FIVE: UsageWindow(97, T1)})
    assert [a.threshold for a in alerts] == [75, 90, 95]


def test_regression_does_not_unfire():
    state, _ = evaluate(AlertState(), {FIVE: UsageWindow(91, T1)})
    before = set(state.window(FIVE).alerted_thresholds)
    state, alerts = evaluate(state, {FIVE: UsageWindow(80, T1)})
    assert alerts == []
    assert state.window(FIVE).alerted_thresholds == before == {75, 90}


def test_overage_matches_thresholds_up_to_value():
    _, alerts = evaluate(AlertState(), {FIVE: UsageWindow(105, T1)}, {FIVE: (75, 100, 110)})
    assert [a.threshold for a in alerts] == [75, 100]


def test_missing_window_is_left_alone():
    state = _state({50, 75}, T2, kind=WEEKLY)
    state, alerts = evaluate(state, {FIVE: UsageWindow(10, T1)})
    assert alerts == []
    assert state.window(WEEKLY).alerted_thresholds == {50, 75}
    assert state.window(WEEKLY).reset_at == T2


def test_emission_order_is_window_then_threshold():
    readings = {WEEKLY: UsageWindow(80, T2), FIVE: UsageWindow(91, T1)}
    _, alerts = evaluate(AlertState(), readings)
    assert _fired(alerts) == [(FIVE, 75), (FIVE, 90), (WEEKLY, 50), (WEEKLY, 75)]


def test_is_rollover():
    assert is_rollover(T1, T2)
    assert not is_rollover(T1, T1)
    assert not is_rollover(None, T1)
    assert not is_rollover(T1, None)
    assert not is_rollover(None, None)


def test_thresholds_from_config_normalises():
    thresholds = thresholds_from_config({"thresholds": {"five_hour": [90, 50, 90]}})
    assert thresholds[FIVE] == (50, 90)
    assert thresholds[WEEKLY] == DEFAULT_THRESHOLDS[WEEKLY]
    assert thresholds_from_config({}) == DEFAULT_THRESHOLDS
