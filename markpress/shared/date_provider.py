"""Clock abstraction for testable UTC timestamps.

Services never call ``datetime.now`` directly; they ask a DateProvider so
tests can pin and advance time when checking ordering by creation date.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional


class DateProvider(ABC):
    """Abstract interface for clock operations."""

    @abstractmethod
    def utcnow(self) -> datetime:
        """Get the current datetime in UTC.

        Returns:
            datetime: Current UTC datetime with timezone info
        """
        pass


class UTCDateProvider(DateProvider):
    """Production implementation of DateProvider using the system clock."""

    def utcnow(self) -> datetime:
        return datetime.now(timezone.utc)


class MockDateProvider(DateProvider):
    """Test implementation of DateProvider for controlled testing.

    Time stays fixed until the test moves it with ``set_datetime`` or
    ``advance``.
    """

    def __init__(self, fixed_datetime: Optional[datetime] = None):
        """Initialize with an optional fixed datetime.

        Args:
            fixed_datetime: Datetime returned from utcnow(), defaults to 2024-01-15 00:00 UTC
        """
        self._fixed_datetime = fixed_datetime or datetime(2024, 1, 15, tzinfo=timezone.utc)

    def utcnow(self) -> datetime:
        return self._fixed_datetime

    def set_datetime(self, new_datetime: datetime) -> None:
        """Update the fixed datetime for testing.

        Args:
            new_datetime: New datetime to return from utcnow()
        """
        if new_datetime.tzinfo is None:
            new_datetime = new_datetime.replace(tzinfo=timezone.utc)
        self._fixed_datetime = new_datetime

    def advance(self, seconds: float = 1.0) -> datetime:
        """Move the clock forward and return the new time.

        Args:
            seconds: Number of seconds to advance (can be negative)
        """
        self._fixed_datetime = self._fixed_datetime + timedelta(seconds=seconds)
        return self._fixed_datetime
