"""Collect-then-flush debouncing.

Pasted text reaches the terminal as a burst of key events. Each event re-arms
a single timer; when the burst goes quiet the callback runs once.

The scheduler is injected: ``schedule(delay, callback)`` must return a handle
with a ``stop()`` method. Textual's ``App.set_timer`` fits as-is.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol

PASTE_DEBOUNCE_SECONDS = 0.05


class TimerHandle(Protocol):
    def stop(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


class Debouncer:
    def __init__(
        self,
        callback: Callable[[], None],
        schedule: Scheduler,
        delay: float = PASTE_DEBOUNCE_SECONDS,
    ) -> None:
        self._callback = callback
        self._schedule = schedule
        self._delay = delay
        self._timer: Optional[TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def trigger(self) -> None:
        """(Re)arm the timer; any earlier arming is superseded."""
        self.cancel()
        self._timer = self._schedule(self._delay, self._fire)

    def cancel(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.stop()

    def _fire(self) -> None:
        self._timer = None
        self._callback()
