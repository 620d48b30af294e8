"""
Trading Session

Decides whether an instant falls inside the trading session. The session is
everything outside one excluded time-of-day interval, [00:00, 07:00) UTC by default.
"""

from dataclasses import dataclass
from datetime import datetime, time, timezone


@dataclass(frozen=True)
class SessionWindow:
    """
    Excluded time-of-day interval [start, end), compared in UTC.

    When start > end the interval wraps midnight, e.g. [22:00, 06:00).
    An interval with start == end excludes nothing.
    """
    start: time = time(0, 0)
    end: time = time(7, 0)

    def excludes(self, t: datetime) -> bool:
        if t.tzinfo is not None:
            t = t.astimezone(timezone.utc)
        tod = t.time().replace(tzinfo=None)

        if self.start <= self.end:
            return self.start <= tod < self.end
        return tod >= self.start or tod < self.end


DEFAULT_SESSION = SessionWindow()


def in_session(t: datetime, window: SessionWindow = DEFAULT_SESSION) -> bool:
    """True if t lies in the trading session (outside the excluded interval)"""
    return not window.excludes(t)
