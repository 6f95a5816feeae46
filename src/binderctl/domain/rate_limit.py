"""Save-rate policy: cooldown plus rolling minute/hour quotas.

State machine::

    Idle --commit ok--> Cooling(n) --n seconds--> Idle
    Idle --quota reached--> RateLimited(window) --window drains--> Idle

The state is derived from :class:`SaveRateState` and the current clock
reading, so no background timer ever has to mutate it.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel

MINUTE_SECONDS = 60.0
HOUR_SECONDS = 3600.0


class GateState(StrEnum):
    IDLE = "idle"
    COOLING = "cooling"
    RATE_LIMITED = "rate_limited"


class RateWindow(StrEnum):
    MINUTE = "minute"
    HOUR = "hour"


class SaveRatePolicy(BaseModel):
    """Quotas and cooldown for one user type."""

    model_config = {"frozen": True}

    saves_per_minute: int = 10
    saves_per_hour: int = 60
    cooldown_seconds: float = 2.0
    enforce: bool = True


class GateStatus(BaseModel):
    """Snapshot of the gate at one instant."""

    model_config = {"frozen": True}

    state: GateState
    remaining_seconds: int = 0
    window: RateWindow | None = None
    quota: int | None = None
    saves_in_last_minute: int = 0
    saves_in_last_hour: int = 0

    @property
    def is_idle(self) -> bool:
        return self.state is GateState.IDLE


@dataclass
class SaveRateState:
    """Process-local save history for one session. Never persisted."""

    attempts: deque[float] = field(default_factory=deque)
    cooldown_until: float | None = None

    def prune(self, now: float) -> None:
        """Forget attempts older than the hour window."""
        while self.attempts and now - self.attempts[0] >= HOUR_SECONDS:
            self.attempts.popleft()

    def saves_in_last(self, seconds: float, now: float) -> int:
        return sum(1 for t in self.attempts if now - t < seconds)

    def record_attempt(self, now: float) -> None:
        self.attempts.append(now)
        self.prune(now)

    def forget_attempt(self, at: float) -> None:
        """Drop an attempt recorded at *at* that turned out to commit nothing."""
        if at in self.attempts:
            self.attempts.remove(at)

    def start_cooldown(self, now: float, seconds: float) -> None:
        self.cooldown_until = now + seconds


def evaluate(policy: SaveRatePolicy, state: SaveRateState, now: float) -> GateStatus:
    """Compute the gate status for *state* at clock reading *now*."""
    if not policy.enforce:
        return GateStatus(state=GateState.IDLE)

    state.prune(now)
    minute = state.saves_in_last(MINUTE_SECONDS, now)
    hour = state.saves_in_last(HOUR_SECONDS, now)
    counts = {"saves_in_last_minute": minute, "saves_in_last_hour": hour}

    if minute >= policy.saves_per_minute:
        return GateStatus(
            state=GateState.RATE_LIMITED,
            window=RateWindow.MINUTE,
            quota=policy.saves_per_minute,
            remaining_seconds=_window_drain(state, MINUTE_SECONDS, now),
            **counts,
        )
    if hour >= policy.saves_per_hour:
        return GateStatus(
            state=GateState.RATE_LIMITED,
            window=RateWindow.HOUR,
            quota=policy.saves_per_hour,
            remaining_seconds=_window_drain(state, HOUR_SECONDS, now),
            **counts,
        )
    if state.cooldown_until is not None and now < state.cooldown_until:
        return GateStatus(
            state=GateState.COOLING,
            remaining_seconds=math.ceil(state.cooldown_until - now),
            **counts,
        )
    return GateStatus(state=GateState.IDLE, **counts)


def _window_drain(state: SaveRateState, window: float, now: float) -> int:
    """Seconds until the oldest attempt inside *window* falls out of it."""
    inside = [t for t in state.attempts if now - t < window]
    if not inside:
        return 0
    return math.ceil(inside[0] + window - now)
