"""
Time sources for expiry decisions.

Every expiry comparison in the library goes through a clock object so tests
can pin or advance time instead of sleeping.
"""

from datetime import datetime, timedelta

from django.utils import timezone

from drf_token_authority.compat import Optional, Self


class BaseClock:
    """Returns the current time as an aware datetime."""

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(BaseClock):
    def now(self) -> datetime:
        return timezone.now()


class FrozenClock(BaseClock):
    """
    Manually driven clock.

    Starts at ``now`` (or the current wall-clock second) and only moves when
    told to via ``advance`` or ``set``.
    """

    def __init__(self, now: Optional[datetime] = None) -> None:
        self._now = now or timezone.now().replace(microsecond=0)

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> Self:
        self._now += delta
        return self

    def set(self, now: datetime) -> Self:
        self._now = now
        return self
