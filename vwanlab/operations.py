"""
Polling for provider-side long-running operations.

Deployments and resource group deletions are owned by the provider. The tool
only observes them: an OperationHandle re-reads the operation's state through
a probe until it reaches a terminal state, or returns straight after
acceptance when the caller does not need to wait.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Optional

from .errors import OperationTimeoutError

logger = logging.getLogger(__name__)


class WaitUntil(Enum):
    """How long a caller blocks on a submitted operation."""
    STARTED = "started"
    COMPLETED = "completed"


@dataclass
class OperationStatus:
    """State of an operation as last reported by the provider."""
    state: str
    outputs: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


Probe = Callable[[], Awaitable[OperationStatus]]


class OperationHandle:
    """Observer for a single long-running operation."""

    def __init__(
        self,
        name: str,
        probe: Probe,
        terminal_states: FrozenSet[str],
        initial: OperationStatus,
        poll_interval: float = 10.0,
        timeout: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.terminal_states = terminal_states
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.status = initial
        self._probe = probe
        self._sleep = sleep
        self._clock = clock

    @property
    def done(self) -> bool:
        return self.status.state in self.terminal_states

    async def wait(self, until: WaitUntil = WaitUntil.COMPLETED) -> OperationStatus:
        """
        Block until the operation is accepted or has finished.

        Args:
            until: WaitUntil.STARTED returns the accepted status without
                polling; WaitUntil.COMPLETED polls until a terminal state

        Returns:
            The last observed OperationStatus

        Raises:
            OperationTimeoutError: If the timeout elapses first
        """
        if until is WaitUntil.STARTED:
            return self.status

        deadline = self._clock() + self.timeout if self.timeout else None
        while not self.done:
            if deadline is not None and self._clock() >= deadline:
                raise OperationTimeoutError(self.name, self.timeout, self.status.state)

            await self._sleep(self.poll_interval)
            status = await self._probe()
            if status.state != self.status.state:
                logger.info(f"{self.name}: {self.status.state} -> {status.state}")
            self.status = status

        return self.status
