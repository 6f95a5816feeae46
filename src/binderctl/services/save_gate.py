"""SaveGate: the local throttle in front of every commit.

A commit attempted while the gate is not idle is refused locally with the
remaining cooldown or the exhausted window; the action is never awaited.
Only a successful commit starts the cooldown. A sync with nothing to send
leaves no trace in the quotas.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable

from binderctl.domain.errors import Cooling, RateLimited
from binderctl.domain.rate_limit import (
    GateState,
    GateStatus,
    SaveRatePolicy,
    SaveRateState,
    evaluate,
)
from binderctl.services._helpers import failure
from binderctl.services.result import ServiceResult

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


def _committed_nothing(result: ServiceResult) -> bool:
    """A successful sync that found no pending changes or preferences."""
    return result.ok and result.data.get("applied") == 0 and not result.data.get("preferences")


class SaveGate:
    """Cooldown and rolling-quota gate for one session.

    Args:
        policy: Quotas and cooldown for the current user type.
        state: Save history; shared by every gate of the session.
        clock: Monotonic clock in seconds.
        sleep: Awaitable used between countdown ticks.
    """

    def __init__(
        self,
        policy: SaveRatePolicy,
        state: SaveRateState | None = None,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._policy = policy
        self._state = state if state is not None else SaveRateState()
        self._clock = clock
        self._sleep = sleep

    @property
    def policy(self) -> SaveRatePolicy:
        return self._policy

    def status(self) -> GateStatus:
        return evaluate(self._policy, self._state, self._clock())

    async def try_commit(self, action: Callable[[], Awaitable[ServiceResult]]) -> ServiceResult:
        """Run *action* if the gate is idle; otherwise refuse without calling it."""
        op = "try_commit"
        status = self.status()
        if status.state is GateState.COOLING:
            return failure(op, Cooling(status.remaining_seconds))
        if status.state is GateState.RATE_LIMITED:
            assert status.window is not None and status.quota is not None
            return failure(
                op,
                RateLimited(str(status.window), status.quota),
                remaining_seconds=status.remaining_seconds,
            )

        if not self._policy.enforce:
            return await action()

        started = self._clock()
        self._state.record_attempt(started)
        result = await action()
        if _committed_nothing(result):
            self._state.forget_attempt(started)
        elif result.ok:
            self._state.start_cooldown(self._clock(), self._policy.cooldown_seconds)
        return result

    async def ticks(self) -> AsyncIterator[GateStatus]:
        """Yield the gate status once a second until it is idle again.

        The final status yielded is always idle. Only the save history is
        read; no binder data is touched.
        """
        status = self.status()
        while not status.is_idle:
            yield status
            await self._sleep(1)
            status = self.status()
        yield status
