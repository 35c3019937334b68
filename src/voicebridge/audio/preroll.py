"""Fixed-capacity pre-roll ring buffer.

Keeps the most recent audio so the onset of an utterance (captured before
the VAD fires) can be recovered.
"""

from __future__ import annotations

from collections.abc import Sequence


class PreRollBuffer:
    """Ring buffer of the last ``capacity`` samples, indexed by head/tail.

    Appending never grows memory: once full, each new sample overwrites the
    oldest one.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self._capacity = capacity
        self._buf = [0.0] * capacity
        self._head = 0  # index of oldest sample
        self._size = 0

    @classmethod
    def for_duration(cls, seconds: float, sample_rate: int) -> PreRollBuffer:
        """Create a buffer holding *seconds* of audio at *sample_rate*."""
        return cls(int(seconds * sample_rate))

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._size

    def append(self, samples: Sequence[float]) -> None:
        """Append one packet's samples, evicting the oldest when full."""
        cap = self._capacity
        if cap == 0 or not samples:
            return
        if len(samples) >= cap:
            # Only the newest ``cap`` samples survive.
            self._buf[:] = samples[-cap:]
            self._head = 0
            self._size = cap
            return

        tail = (self._head + self._size) % cap
        for s in samples:
            self._buf[tail] = s
            tail = (tail + 1) % cap
            if self._size == cap:
                self._head = (self._head + 1) % cap
            else:
                self._size += 1

    def snapshot(self) -> list[float]:
        """Return buffered samples oldest-first without clearing."""
        end = self._head + self._size
        if end <= self._capacity:
            return self._buf[self._head : end]
        return self._buf[self._head :] + self._buf[: end - self._capacity]

    def drain(self) -> list[float]:
        """Return buffered samples oldest-first and clear the buffer."""
        out = self.snapshot()
        self.clear()
        return out

    def clear(self) -> None:
        self._head = 0
        self._size = 0
