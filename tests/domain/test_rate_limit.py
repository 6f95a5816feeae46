"""Tests for the pure save-rate policy."""

from __future__ import annotations

from binderctl.domain.rate_limit import (
    GateState,
    RateWindow,
    SaveRatePolicy,
    SaveRateState,
    evaluate,
)


class TestEvaluate:
    def test_fresh_state_is_idle(self) -> None:
        status = evaluate(SaveRatePolicy(), SaveRateState(), now=100.0)
        assert status.is_idle
        assert status.saves_in_last_minute == 0

    def test_cooling_counts_down(self) -> None:
        state = SaveRateState()
        state.start_cooldown(0.0, 20.0)
        policy = SaveRatePolicy(cooldown_seconds=20.0)
        assert evaluate(policy, state, 5.0).remaining_seconds == 15
        assert evaluate(policy, state, 19.2).remaining_seconds == 1
        assert evaluate(policy, state, 20.0).state is GateState.IDLE

    def test_minute_quota(self) -> None:
        policy = SaveRatePolicy(saves_per_minute=3, saves_per_hour=100)
        state = SaveRateState()
        for t in (0.0, 10.0, 20.0):
            state.record_attempt(t)
        status = evaluate(policy, state, 30.0)
        assert status.state is GateState.RATE_LIMITED
        assert status.window is RateWindow.MINUTE
        assert status.quota == 3
        assert status.remaining_seconds == 30
        assert evaluate(policy, state, 60.0).is_idle

    def test_hour_quota(self) -> None:
        policy = SaveRatePolicy(saves_per_minute=10, saves_per_hour=2)
        state = SaveRateState()
        state.record_attempt(0.0)
        state.record_attempt(120.0)
        status = evaluate(policy, state, 600.0)
        assert status.window is RateWindow.HOUR
        assert status.remaining_seconds == 3000
        assert evaluate(policy, state, 3600.0).is_idle

    def test_rate_limit_takes_precedence_over_cooldown(self) -> None:
        policy = SaveRatePolicy(saves_per_minute=1)
        state = SaveRateState()
        state.record_attempt(0.0)
        state.start_cooldown(0.0, 2.0)
        assert evaluate(policy, state, 1.0).state is GateState.RATE_LIMITED

    def test_disabled_policy_is_always_idle(self) -> None:
        policy = SaveRatePolicy(saves_per_minute=1, enforce=False)
        state = SaveRateState()
        state.record_attempt(0.0)
        state.start_cooldown(0.0, 60.0)
        assert evaluate(policy, state, 1.0).is_idle

    def test_prune_forgets_old_attempts(self) -> None:
        state = SaveRateState()
        state.record_attempt(0.0)
        state.record_attempt(4000.0)
        assert list(state.attempts) == [4000.0]
