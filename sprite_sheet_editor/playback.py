import logging
from typing import Any, Callable, Optional

from .config import DEFAULT_PLAY_SPEED_MS, MAX_PLAY_SPEED_MS, MIN_PLAY_SPEED_MS

logger = logging.getLogger(__name__)


class Playback:
    """Repeating frame timer with a single live handle.

    ``schedule(ms, callback)`` arms a one-shot timer and returns a handle,
    ``cancel(handle)`` disarms it (Tk's ``after``/``after_cancel`` fit).
    ``on_tick`` advances the displayed frame; it returns False to stop.
    """

    def __init__(
        self,
        schedule: Callable[[int, Callable[[], None]], Any],
        cancel: Callable[[Any], None],
        on_tick: Callable[[], bool],
        interval_ms: int = DEFAULT_PLAY_SPEED_MS,
    ) -> None:
        self._schedule = schedule
        self._cancel = cancel
        self._on_tick = on_tick
        self.interval_ms = self._clamp(interval_ms)
        self._handle: Optional[Any] = None
        self.is_playing = False

    @staticmethod
    def _clamp(interval_ms: int) -> int:
        return min(max(int(interval_ms), MIN_PLAY_SPEED_MS), MAX_PLAY_SPEED_MS)

    def start(self) -> None:
        if self.is_playing:
            self.stop()
        self.is_playing = True
        logger.debug("Starting playback every %d ms", self.interval_ms)
        self._arm()

    def stop(self) -> None:
        self.is_playing = False
        if self._handle is not None:
            self._cancel(self._handle)
            self._handle = None

    def set_interval(self, interval_ms: int) -> None:
        self.interval_ms = self._clamp(interval_ms)
        if self.is_playing:
            self.stop()
            self.start()

    def _arm(self) -> None:
        self._handle = self._schedule(self.interval_ms, self._tick)

    def _tick(self) -> None:
        self._handle = None
        if not self.is_playing:
            return
        if not self._on_tick():
            self.is_playing = False
            return
        # on_tick may have stopped or restarted playback itself.
        if self.is_playing and self._handle is None:
            self._arm()
