from __future__ import annotations

import typing as ty

from gi.repository import GLib

from lightdarktoggle.support import pretty

TimerCallback = ty.Callable[..., None]


class Timer:
    """One-shot timer on the GLib main loop."""

    def __init__(self) -> None:
        self._current_timer = -1
        self._current_callback: ty.Callable[[], None] | None = None

    def set(
        self,
        timeout_seconds: float,
        callback: TimerCallback,
        *arguments: ty.Any,
    ) -> None:
        """Setup timer to call @timeout_seconds in the future.
        If the timer was previously set, it is postponed
        """
        self.invalidate()
        self._current_callback = lambda: callback(*arguments)
        self._current_timer = GLib.timeout_add_seconds(
            int(timeout_seconds), self._call
        )

    def _call(self, timer: ty.Any = None) -> bool:
        assert self._current_callback

        self._current_timer = -1
        self._current_callback()
        return False

    def invalidate(self) -> None:
        if self._current_timer > 0:
            GLib.source_remove(self._current_timer)

        self._current_timer = -1


class IntervalTimer(pretty.OutputMixin):
    """Repeating timer owned by one object.

    Call `start` to call @callback every @interval_seconds until `stop`
    is called. Exceptions from callback are logged and do not stop
    the timer.
    """

    def __init__(self) -> None:
        self._source_id = -1
        self._callback: ty.Callable[[], None] | None = None

    def start(
        self,
        interval_seconds: float,
        callback: TimerCallback,
        *arguments: ty.Any,
    ) -> None:
        self.stop()
        self._callback = lambda: callback(*arguments)
        if interval_seconds >= 1:
            self._source_id = GLib.timeout_add_seconds(
                int(interval_seconds), self._tick
            )
        else:
            self._source_id = GLib.timeout_add(
                int(interval_seconds * 1000), self._tick
            )

    def _tick(self) -> bool:
        if self._callback is None:
            return False

        try:
            self._callback()
        except Exception:  # pylint: disable=broad-except
            self.output_exc()

        return True

    def stop(self) -> None:
        if self._source_id > 0:
            GLib.source_remove(self._source_id)

        self._source_id = -1
        self._callback = None
