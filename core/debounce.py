from __future__ import annotations

import time
from typing import Any, Callable, Optional, Tuple


class Debouncer:
    """Coalesce bursts of calls into the last one.

    ``schedule`` replaces any pending call and restarts the quiet window.
    Nothing runs on its own: the owner calls ``fire_if_due`` (runs the
    pending call once ``wait`` seconds have passed since the last schedule)
    or ``flush`` (runs it now).
    """

    def __init__(self, wait: float, clock: Callable[[], float] = time.monotonic):
        self.wait = wait
        self._clock = clock
        self._pending: Optional[Tuple[Callable[..., Any], tuple, dict]] = None
        self._deadline = 0.0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._pending = (func, args, kwargs)
        self._deadline = self._clock() + self.wait

    def cancel(self) -> None:
        self._pending = None

    def fire_if_due(self) -> bool:
        if self._pending is None or self._clock() < self._deadline:
            return False
        return self.flush()

    def flush(self) -> bool:
        if self._pending is None:
            return False
        func, args, kwargs = self._pending
        self._pending = None
        func(*args, **kwargs)
        return True
