from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Tuple

from logit.services.validation import InvalidInput

logger = logging.getLogger(__name__)

Spawner = Callable[[Callable[[], Awaitable[None]]], Any]


def _spawn_on_running_loop(fn: Callable[[], Awaitable[None]]) -> asyncio.Task:
    return asyncio.get_running_loop().create_task(fn())


class ElapsedTicker:
    """
    Periodically reports seconds elapsed since started_at.
    spawn receives a coroutine function and returns a handle with cancel();
    the flet shell passes page.run_task, tests use the running event loop.
    """

    def __init__(
        self,
        on_tick: Callable[[float], None],
        interval: float = 1.0,
        spawn: Optional[Spawner] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.on_tick = on_tick
        self.interval = interval
        self.spawn = spawn or _spawn_on_running_loop
        self.clock = clock
        self._handle: Any = None
        self._started_at: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        self.cancel()
        self._started_at = self.clock()
        self._handle = self.spawn(self._run)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if self._started_at is None:
                return
            self.on_tick(self.clock() - self._started_at)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            logger.debug("Elapsed ticker cancelled")
        self._handle = None
        self._started_at = None


@dataclass
class StudySession:
    subject: Optional[str] = None
    started_at: Optional[datetime] = None
    now: Callable[[], datetime] = field(default=datetime.now, repr=False)

    @property
    def is_studying(self) -> bool:
        return self.started_at is not None

    def start(self, subject: Optional[str]) -> datetime:
        if not subject:
            raise InvalidInput("Select a class!")
        if self.is_studying:
            raise InvalidInput("A session is already running")
        self.subject = subject
        self.started_at = self.now()
        return self.started_at

    def stop(self) -> Tuple[str, datetime, datetime]:
        if self.started_at is None or self.subject is None:
            raise InvalidInput("No session is running")
        finished = (self.subject, self.started_at, self.now())
        self.clear()
        return finished

    def elapsed_seconds(self) -> float:
        if self.started_at is None:
            return 0.0
        return (self.now() - self.started_at).total_seconds()

    def clear(self) -> None:
        self.subject = None
        self.started_at = None
