"""Liveness state of a single metrics group.

The timeout is not fixed: it is inferred from the interval between the two
most recent heartbeats, with 50% slack on top.
"""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GroupState:
    """Up state and timing data of a metrics group."""

    def __init__(self, timestamp: datetime | None):
        self.timestamp = timestamp
        self.timeout = timedelta(0)
        self.up = False

    def update(self, timestamp: datetime | None, now: datetime | None = None) -> bool:
        """Record a heartbeat timestamp. Returns True if the up state changed."""
        was_up = self.up
        if self.timestamp is not None and timestamp is not None and timestamp > self.timestamp:
            delta = timestamp - self.timestamp
            self.timeout = delta + delta / 2
        self.timestamp = timestamp
        self.up = self.is_up(now)
        return was_up != self.up

    def is_up(self, now: datetime | None = None) -> bool:
        """Return the up state at ``now`` (defaults to the current time)."""
        if self.timestamp is None or not self.timeout:
            return False
        if now is None:
            now = utcnow()
        return now < self.timestamp + self.timeout

    def to_dict(self, now: datetime | None = None) -> dict:
        return {
            "up": self.is_up(now),
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "timeout_seconds": self.timeout.total_seconds(),
        }
