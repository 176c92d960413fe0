"""Unwrapping of 32-bit RTP timestamps onto a monotonic 64-bit timeline."""

from __future__ import annotations

from dataclasses import dataclass, replace

_I32_MAX = 2**31 - 1
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


def _wrap_i32(value: int) -> int:
    """Reduces an integer to a signed 32-bit value with two's-complement wrapping."""
    value &= 0xFFFF_FFFF
    return value - (1 << 32) if value & 0x8000_0000 else value


def _fits_i64(value: int) -> bool:
    return _I64_MIN <= value <= _I64_MAX


@dataclass(frozen=True)
class Timestamp:
    """A non-wrapping timestamp in clock-rate units, relative to a stream start."""

    timestamp: int
    clock_rate: int
    start: int

    def elapsed(self) -> int:
        """Returns the time since the start of the stream, in clock-rate units."""
        return self.timestamp - self.start

    @property
    def elapsed_secs(self) -> float:
        """The time since the start of the stream, in seconds."""
        return self.elapsed() / self.clock_rate

    def try_add(self, delta: int) -> Timestamp | None:
        """Returns this timestamp advanced by `delta`, or None on 64-bit overflow."""
        total = self.timestamp + delta
        if not _fits_i64(total):
            return None
        return replace(self, timestamp=total)


class Timeline:
    """Creates Timestamps from 32-bit (wrapping) RTP timestamps."""

    def __init__(
        self,
        start: int | None,
        clock_rate: int,
        enforce_with_max_forward_jump_secs: int | None,
    ) -> None:
        if clock_rate == 0:
            raise ValueError("clock_rate=0 rejected to prevent division by zero")
        if clock_rate < 0:
            raise ValueError(f"clock_rate={clock_rate} must be positive")
        max_forward_jump = None
        if enforce_with_max_forward_jump_secs is not None:
            if enforce_with_max_forward_jump_secs <= 0:
                raise ValueError("max forward jump must be a positive number of seconds")
            max_forward_jump = enforce_with_max_forward_jump_secs * clock_rate
            if max_forward_jump > _I32_MAX:
                raise ValueError(
                    f"clock_rate={clock_rate} rejected because max forward jump of "
                    f"{enforce_with_max_forward_jump_secs} sec exceeds i32::MAX"
                )
        self._timestamp = start if start is not None else 0
        self._start = start
        self._clock_rate = clock_rate
        self._max_forward_jump = max_forward_jump
        self._max_forward_jump_secs = enforce_with_max_forward_jump_secs or 0

    def advance_to(self, rtp_timestamp: int) -> Timestamp:
        """Advances to the given RTP timestamp.

        With enforcement enabled, raises ValueError on backward or excessive
        forward jumps.
        """
        timestamp, delta = self._ts_and_delta(rtp_timestamp)
        if self._max_forward_jump is not None and not 0 <= delta < self._max_forward_jump:
            raise ValueError(
                f"Timestamp jumped {delta} ({delta / self._clock_rate:.3f} sec) from "
                f"{self._timestamp} to {timestamp.timestamp}; policy is to allow "
                f"0..{self._max_forward_jump_secs} sec only"
            )
        self._timestamp = timestamp.timestamp
        return timestamp

    def place(self, rtp_timestamp: int) -> Timestamp:
        """Places a timestamp without advancing the timeline or applying jump policy.

        Sets the stream start if it is not yet known.
        """
        return self._ts_and_delta(rtp_timestamp)[0]

    def _ts_and_delta(self, rtp_timestamp: int) -> tuple[Timestamp, int]:
        if self._start is None:
            self._start = rtp_timestamp
            self._timestamp = rtp_timestamp
        start = self._start
        delta = _wrap_i32(rtp_timestamp - self._timestamp)
        timestamp = self._timestamp + delta
        if not _fits_i64(timestamp):
            raise ValueError(f"timestamp {self._timestamp} + delta {delta} won't fit in i64!")
        if not _fits_i64(timestamp - start):
            raise ValueError(
                f"timestamp {self._timestamp} + delta {delta} - start {start} underflows i64!"
            )
        return Timestamp(timestamp=timestamp, clock_rate=self._clock_rate, start=start), delta