"""Tests for the SaveGate throttle."""

from __future__ import annotations

import asyncio

from binderctl.domain.rate_limit import GateState, SaveRatePolicy, SaveRateState
from binderctl.services.result import ServiceResult
from binderctl.services.save_gate import SaveGate
from tests.conftest import assert_error


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.now += seconds


class Action:
    """Commit stand-in that counts its calls."""

    def __init__(self, ok: bool = True) -> None:
        self.ok = ok
        self.calls = 0

    async def __call__(self) -> ServiceResult:
        self.calls += 1
        return ServiceResult(ok=self.ok, op="sync_to_remote")


def _gate(clock: FakeClock, **policy: object) -> SaveGate:
    return SaveGate(SaveRatePolicy(**policy), clock=clock, sleep=clock.sleep)


class TestTryCommit:
    def test_cooldown_blocks_second_commit(self) -> None:
        clock = FakeClock()
        gate = _gate(clock, cooldown_seconds=20)
        action = Action()

        assert asyncio.run(gate.try_commit(action)).ok
        clock.now = 5.0
        detail = assert_error(asyncio.run(gate.try_commit(action)), "COOLING")
        assert detail["remaining_seconds"] == 15
        assert action.calls == 1

        clock.now = 20.0
        assert asyncio.run(gate.try_commit(action)).ok
        assert action.calls == 2

    def test_minute_quota(self) -> None:
        clock = FakeClock()
        gate = _gate(clock, saves_per_minute=2, cooldown_seconds=0)
        action = Action()
        for t in (0.0, 1.0):
            clock.now = t
            assert asyncio.run(gate.try_commit(action)).ok

        clock.now = 2.0
        detail = assert_error(asyncio.run(gate.try_commit(action)), "RATE_LIMITED")
        assert detail == {"window": "minute", "quota": 2, "remaining_seconds": 58}
        assert action.calls == 2

    def test_failed_commit_counts_without_cooldown(self) -> None:
        clock = FakeClock()
        gate = _gate(clock, cooldown_seconds=30)
        action = Action(ok=False)
        assert not asyncio.run(gate.try_commit(action)).ok
        status = gate.status()
        assert status.state is GateState.IDLE
        assert status.saves_in_last_minute == 1

    def test_empty_sync_leaves_no_trace(self) -> None:
        clock = FakeClock()
        gate = _gate(clock, cooldown_seconds=30)

        async def nothing_pending() -> ServiceResult:
            return ServiceResult(ok=True, op="sync_to_remote", data={"applied": 0, "revision": 3})

        assert asyncio.run(gate.try_commit(nothing_pending)).ok
        status = gate.status()
        assert status.state is GateState.IDLE
        assert status.saves_in_last_minute == 0

    def test_preference_only_sync_counts(self) -> None:
        clock = FakeClock()
        gate = _gate(clock, cooldown_seconds=30)

        async def prefs_only() -> ServiceResult:
            return ServiceResult(
                ok=True, op="sync_to_remote", data={"applied": 0, "preferences": ["name"]}
            )

        assert asyncio.run(gate.try_commit(prefs_only)).ok
        assert gate.status().state is GateState.COOLING

    def test_disabled_gate_never_refuses(self) -> None:
        clock = FakeClock()
        gate = _gate(clock, saves_per_minute=1, enforce=False)
        action = Action()
        for _ in range(5):
            assert asyncio.run(gate.try_commit(action)).ok
        assert action.calls == 5

    def test_shared_state(self) -> None:
        clock = FakeClock()
        state = SaveRateState()
        policy = SaveRatePolicy(cooldown_seconds=10)
        first = SaveGate(policy, state, clock=clock, sleep=clock.sleep)
        second = SaveGate(policy, state, clock=clock, sleep=clock.sleep)
        asyncio.run(first.try_commit(Action()))
        assert second.status().state is GateState.COOLING


class TestTicks:
    def test_counts_down_to_idle(self) -> None:
        clock = FakeClock()
        gate = _gate(clock, cooldown_seconds=3)
        asyncio.run(gate.try_commit(Action()))

        async def collect() -> list[tuple[GateState, int]]:
            return [(s.state, s.remaining_seconds) async for s in gate.ticks()]

        assert asyncio.run(collect()) == [
            (GateState.COOLING, 3),
            (GateState.COOLING, 2),
            (GateState.COOLING, 1),
            (GateState.IDLE, 0),
        ]

    def test_idle_yields_once(self) -> None:
        clock = FakeClock()
        gate = _gate(clock)

        async def collect() -> list[GateState]:
            return [s.state async for s in gate.ticks()]

        assert asyncio.run(collect()) == [GateState.IDLE]
