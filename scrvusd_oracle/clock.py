"""Time sources for the oracle's notion of "now"."""

import time


class SystemClock:
    """Wall-clock seconds."""

    def __call__(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock moved explicitly: by tests, or by a replay following block timestamps."""

    def __init__(self, now: int = 0) -> None:
        self.now = int(now)

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Cannot move a clock backwards")
        self.now += int(seconds)
        return self.now

    def set(self, now: int) -> int:
        """Jump to `now`; never moves backwards."""
        self.now = max(self.now, int(now))
        return self.now
