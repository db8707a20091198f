import asyncio
from typing import Any, Dict, Optional


class TrackingFeed:
    """
    Snapshot frames for a renderer. When the consumer falls behind, the oldest
    frame is dropped so it only ever catches up on recent positions.
    """

    def __init__(self, maxsize: int = 1):
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def publish(self, frame: Dict[str, Any]) -> None:
        # keep only latest frames if queue is full
        if self.queue.full():
            try:
                self.queue.get_nowait()
                self.queue.task_done()
            except asyncio.QueueEmpty:
                pass
        self.queue.put_nowait(frame)

    async def next_frame(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        frame = await asyncio.wait_for(self.queue.get(), timeout)
        self.queue.task_done()
        return frame

    def latest(self) -> Optional[Dict[str, Any]]:
        frame = None
        while True:
            try:
                frame = self.queue.get_nowait()
                self.queue.task_done()
            except asyncio.QueueEmpty:
                return frame
