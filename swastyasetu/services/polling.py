"""Repeat a fetch on a fixed interval until whoever started it stops it.

Chat has no push delivery: a client (or the stream endpoint on its behalf)
re-fetches on a timer. ``PollingTask`` makes that timer an explicit object
owned by the consumer, so it ends exactly when the consumer goes away.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from swastyasetu.core import config

logger = logging.getLogger(__name__)


class PollingTask:
    def __init__(
        self,
        fetch: Callable[[], Any | Awaitable[Any]],
        on_result: Callable[[Any], Any | Awaitable[Any]],
        interval: float | None = None,
    ):
        self.fetch = fetch
        self.on_result = on_result
        self.interval = config.CHAT_POLL_INTERVAL_SECONDS if interval is None else interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> 'PollingTask':
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def poll_once(self) -> None:
        result = await _maybe_await(self.fetch())
        await _maybe_await(self.on_result(result))

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                # A failed poll is retried on the next tick.
                logger.exception('Polling fetch failed')
            await asyncio.sleep(self.interval)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
