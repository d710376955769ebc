import queue
from dataclasses import dataclass
from typing import List, Optional

# Progress queue slots per grid cell.
PROGRESS_BUFFER_FACTOR = 2


@dataclass
class ProgressUpdate:
    current_action: str
    total_marked: int
    grid_size: int


class ProgressChannel:
    """
    Bounded, non-blocking progress feed.

    The solver never waits on a slow consumer: when the buffer is full the
    update is dropped and counted.
    """

    def __init__(self, grid_size: int, buffer_factor: int = PROGRESS_BUFFER_FACTOR) -> None:
        self.grid_size = grid_size
        self.queue: "queue.Queue[ProgressUpdate]" = queue.Queue(maxsize=max(1, grid_size * buffer_factor))
        self.dropped = 0

    def publish(self, update: ProgressUpdate) -> bool:
        try:
            self.queue.put_nowait(update)
        except queue.Full:
            self.dropped += 1
            return False
        return True

    def get(self, timeout: Optional[float] = None) -> Optional[ProgressUpdate]:
        try:
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[ProgressUpdate]:
        updates = []
        while True:
            try:
                updates.append(self.queue.get_nowait())
            except queue.Empty:
                return updates
