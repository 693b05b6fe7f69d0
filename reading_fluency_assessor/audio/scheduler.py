"""
Per-frame scheduling for cooperative audio sampling.

All sampling callbacks, timers and recognition completions run on one event
loop thread; nothing here blocks it.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class FrameScheduler(ABC):
    """Host scheduler that drives frame callbacks and one-shot timers."""

    @abstractmethod
    def now_ms(self) -> float:
        """Monotonic timestamp in milliseconds."""

    @abstractmethod
    def request_frame(self, callback: Callable[[], None]) -> Any:
        """Run callback once on the next frame and return a cancellable handle."""

    @abstractmethod
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> Any:
        """Run callback once after delay_s seconds and return a cancellable handle."""

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a frame or timer handle; a spent or missing handle is ignored."""

    def post(self, callback: Callable[..., None], *args) -> None:
        """Hand a callback to the scheduler thread from any thread."""
        callback(*args)


class AsyncioFrameScheduler(FrameScheduler):
    """
    Frame scheduler backed by an asyncio event loop.

    Frames are spaced 1/frame_rate_hz apart, which stands in for the display
    refresh a browser would use for its animation frames.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None,
                 frame_rate_hz: float = 60.0):
        """
        Initialize the scheduler.

        Args:
            loop: Event loop to schedule on; defaults to the running loop
            frame_rate_hz: Frame callbacks per second
        """
        self.loop = loop or asyncio.get_running_loop()
        self.frame_interval_s = 1.0 / frame_rate_hz

    def now_ms(self) -> float:
        return self.loop.time() * 1000.0

    def request_frame(self, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(self.frame_interval_s, callback)

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay_s, callback)

    def cancel(self, handle: Optional[asyncio.Handle]) -> None:
        if handle is not None:
            handle.cancel()

    def post(self, callback: Callable[..., None], *args) -> None:
        self.loop.call_soon_threadsafe(callback, *args)

    def run_in_executor(self, func: Callable[..., Any], *args) -> asyncio.Future:
        """Run a blocking call on the default executor."""
        return self.loop.run_in_executor(None, func, *args)
