from collections import deque
from typing import Deque


class FpsMeter:
    """Rolling frames-per-second over the last ``window_seconds`` of frame timestamps."""

    def __init__(self, window_seconds: float = 1.0):
        self.window_seconds = float(window_seconds)
        self._stamps: Deque[float] = deque()

    def tick(self, timestamp: float) -> float:
        self._stamps.append(float(timestamp))
        cut = timestamp - self.window_seconds
        while self._stamps and self._stamps[0] < cut:
            self._stamps.popleft()
        return self.fps

    @property
    def fps(self) -> float:
        if len(self._stamps) < 2:
            return 0.0
        span = self._stamps[-1] - self._stamps[0]
        if span <= 0:
            return 0.0
        return (len(self._stamps) - 1) / span

    def reset(self) -> None:
        self._stamps.clear()
