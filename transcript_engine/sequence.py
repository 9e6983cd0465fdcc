"""First-seen ordering for one capture session."""


class SequenceAllocator:
    """Hands out strictly increasing observation numbers, never reused.

    Create one per capture session and pass it to everything that observes
    rows, so first-seen order is shared without global state.
    """

    def __init__(self, start: int = 0):
        self._last = start

    def next(self) -> int:
        self._last += 1
        return self._last

    @property
    def last(self) -> int:
        """The most recently issued number (the start value if none yet)."""
        return self._last
