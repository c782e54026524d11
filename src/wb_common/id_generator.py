"""Snowflake-style ID generator for booking and payment IDs.

IDs are fixed-width (19 digit, zero-padded) decimal strings, so string order
equals creation order and list endpoints can paginate with `id < :cursor`.
"""

import threading
import time

# 2025-01-01T00:00:00Z
_EPOCH_MS = 1_735_689_600_000
_WORKER_BITS = 10
_SEQUENCE_BITS = 12
_SEQUENCE_MASK = (1 << _SEQUENCE_BITS) - 1


class SnowflakeIdGenerator:
    """Layout (63 bits): 41 bits ms since epoch | 10 bits worker | 12 bits sequence."""

    def __init__(self, worker_id: int = 0) -> None:
        if not (0 <= worker_id < (1 << _WORKER_BITS)):
            raise ValueError(f"worker_id must be 0-{(1 << _WORKER_BITS) - 1}")
        self._worker_id = worker_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            now_ms = _millis()
            if now_ms < self._last_ms:
                # Clock stepped backwards; keep issuing from the last known tick
                now_ms = self._last_ms
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & _SEQUENCE_MASK
                if self._sequence == 0:
                    while now_ms <= self._last_ms:
                        now_ms = _millis()
            else:
                self._sequence = 0
            self._last_ms = now_ms
            value = (
                ((now_ms - _EPOCH_MS) << (_WORKER_BITS + _SEQUENCE_BITS))
                | (self._worker_id << _SEQUENCE_BITS)
                | self._sequence
            )
            return f"{value:019d}"


def _millis() -> int:
    return time.time_ns() // 1_000_000


_default_generator = SnowflakeIdGenerator()


def generate_id() -> str:
    """Next ID from the process-wide generator."""
    return _default_generator.next_id()
