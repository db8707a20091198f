import asyncio
from typing import Callable, Optional


class PeriodicTask:
    """
    Cancellable fixed-period clock on the running event loop.
    callback() runs every period_s until stop(); no tick is delivered
    once stop() has returned, even when stop() is called from inside callback.
    """

    def __init__(self, period_s: float, callback: Callable[[], None]):
        if period_s <= 0:
            raise ValueError("period_s must be positive")
        self.period_s = period_s
        self.callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()

    async def _run(self) -> None:
        me = asyncio.current_task()
        while True:
            await asyncio.sleep(self.period_s)
            if self._task is not me:
                return
            self.callback()
