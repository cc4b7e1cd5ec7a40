"""Delay-and-coalesce wrapper for callbacks fired by rapid input."""

from __future__ import annotations

import functools
import threading
from collections.abc import Callable
from typing import Any


class Debouncer:
    """Run ``func`` once calls have stopped arriving for ``delay`` seconds.

    Every call cancels the pending invocation and schedules a new one with the
    latest arguments, so a burst of calls results in a single invocation.

    Args:
        func: Callable to invoke.
        delay: Quiet period in seconds.
        timer_factory: Creates the timer; takes ``(delay, callback)`` and returns
            an object with ``start()`` and ``cancel()``.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        delay: float,
        timer_factory: Callable[[float, Callable[[], None]], Any] = threading.Timer,
    ) -> None:
        if delay < 0:
            raise ValueError("Debounce delay must not be negative")
        self._func = func
        self._delay = delay
        self._timer_factory = timer_factory
        self._timer: Any = None
        self._call: tuple[tuple[Any, ...], dict[str, Any]] | None = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        """Whether an invocation is scheduled and has not yet run."""
        with self._lock:
            return self._call is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._call = (args, kwargs)
            self._timer = self._timer_factory(self._delay, functools.partial(self._fire, self._generation))
            self._timer.daemon = True
            self._timer.start()

    def _fire(self, generation: int) -> None:
        # A timer superseded by a later call must not run the newer arguments
        with self._lock:
            if generation != self._generation or self._call is None:
                return
            args, kwargs = self._call
            self._call = None
            self._timer = None
        self._func(*args, **kwargs)

    def flush(self) -> None:
        """Run the pending invocation now instead of waiting for the timer."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            generation = self._generation
        self._fire(generation)

    def cancel(self) -> None:
        """Drop the pending invocation, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._call = None


def debounce(delay: float) -> Callable[[Callable[..., Any]], Debouncer]:
    """Decorator form of :class:`Debouncer`."""

    def decorator(func: Callable[..., Any]) -> Debouncer:
        return Debouncer(func=func, delay=delay)

    return decorator
