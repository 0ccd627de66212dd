"""
Command confirmation loop.

The remote API has no synchronous acknowledgement of final state, so a
mutating command is applied and then polled until the device reports
the intended state, retrying at a fixed interval up to a bound.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from ring_bridge.bridge_logging import get_logger
from ring_bridge.core.clock import Clock
from ring_bridge.models import CommandResult

logger = logging.getLogger(__name__)
log = get_logger("RING.Command")

DEFAULT_MAX_RETRIES = 12
DEFAULT_RETRY_DELAY = 10.0
DEFAULT_SETTLE_DELAY = 1.0

# Resolves the current device handle; None when it is no longer listed.
DeviceResolver = Callable[[], Awaitable[Optional[Any]]]
Mutation = Callable[[Any], Awaitable[Any]]
StateMatcher = Callable[[Any], bool]


class CommandConfirmer:
    """
    Apply-then-poll runner.

    Attempt timing: the first mutation is sent immediately; every later
    one waits retry_delay. Each attempt checks state settle_delay after
    the mutation.
    """

    def __init__(
        self,
        clock: Clock,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
    ) -> None:
        self._clock = clock
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.settle_delay = settle_delay

    async def apply_and_confirm(
        self,
        resolve: DeviceResolver,
        action: str,
        mutations: Mapping[str, Mutation],
        matcher: StateMatcher,
        *,
        device_id: str = "",
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ) -> CommandResult:
        mutation = mutations.get(action)
        if mutation is None:
            log.warning("RING.Command.UnknownAction", extra={"fields": {"device_id": device_id, "action": action}})
            return CommandResult.UNKNOWN

        retries = self.max_retries if max_retries is None else max_retries
        delay = self.retry_delay if retry_delay is None else retry_delay

        for attempt in range(1, retries + 1):
            if attempt > 1:
                await self._clock.sleep(delay)

            if await self._attempt(resolve, mutation, matcher, action, device_id, attempt):
                log.info("RING.Command.Confirmed", extra={"fields": {
                    "device_id": device_id,
                    "action": action,
                    "attempts": attempt,
                }})
                return CommandResult.SUCCESS

            if attempt < retries:
                logger.debug(f"Device {device_id} did not reach target for {action}, retrying in {delay}s")

        log.error("RING.Command.Failed", extra={"fields": {
            "device_id": device_id,
            "action": action,
            "attempts": retries,
        }})
        return CommandResult.FAILURE

    async def _attempt(
        self,
        resolve: DeviceResolver,
        mutation: Mutation,
        matcher: StateMatcher,
        action: str,
        device_id: str,
        attempt: int,
    ) -> bool:
        # Re-resolve on every attempt: the device list may have been refreshed.
        try:
            device = await resolve()
            if device is None:
                logger.warning(f"Device {device_id} not found for {action} (attempt {attempt})")
                return False
            await mutation(device)
        except Exception as e:
            log.error("RING.Command.AttemptError", extra={"fields": {
                "device_id": device_id,
                "action": action,
                "attempt": attempt,
                "error": str(e),
            }})
            return False

        await self._clock.sleep(self.settle_delay)

        try:
            device = await resolve()
            return device is not None and bool(matcher(device))
        except Exception as e:
            log.error("RING.Command.CheckError", extra={"fields": {
                "device_id": device_id,
                "action": action,
                "attempt": attempt,
                "error": str(e),
            }})
            return False
