"""
Date and time utility functions for the site intelligence engine.
Handles timezone normalization, day arithmetic and display formatting.
"""

from datetime import datetime, timedelta
from typing import Optional, Union
import pytz
from dateutil import parser

UTC_TZ = pytz.UTC

SECONDS_PER_DAY = 24 * 60 * 60

# June to September
MONSOON_MONTHS = (6, 7, 8, 9)


class DateUtils:
    """Date helpers shared by the engine and the record schemas."""

    @staticmethod
    def get_utc_now() -> datetime:
        """Get current UTC time."""
        return datetime.now(UTC_TZ)

    @staticmethod
    def to_utc(dt: datetime) -> datetime:
        """Convert datetime to UTC. Naive values are taken to be UTC already."""
        if dt.tzinfo is None:
            return UTC_TZ.localize(dt)
        return dt.astimezone(UTC_TZ)

    @staticmethod
    def parse_flexible_date(value: Union[str, datetime, None]) -> Optional[datetime]:
        """Parse the date formats found in site records into an aware UTC datetime."""
        if value is None:
            return None
        if isinstance(value, datetime):
            return DateUtils.to_utc(value)
        if not value.strip():
            return None

        formats = [
            '%Y-%m-%dT%H:%M:%S.%fZ',  # JSON export format
            '%Y-%m-%d %H:%M:%S',      # Standard format
            '%Y-%m-%d',               # Date only
            '%d/%m/%Y',               # DMY format
        ]

        for fmt in formats:
            try:
                return DateUtils.to_utc(datetime.strptime(value.strip(), fmt))
            except ValueError:
                continue

        # Use dateutil as fallback
        try:
            return DateUtils.to_utc(parser.parse(value.strip()))
        except (ValueError, OverflowError):
            return None

    @staticmethod
    def days_between(start: datetime, end: datetime) -> float:
        """Fractional number of days from start to end (negative if end is earlier)."""
        return (DateUtils.to_utc(end) - DateUtils.to_utc(start)).total_seconds() / SECONDS_PER_DAY

    @staticmethod
    def add_days(dt: datetime, days: float) -> datetime:
        """Shift a datetime by a fractional number of days."""
        return DateUtils.to_utc(dt) + timedelta(days=days)

    @staticmethod
    def is_monsoon_month(dt: datetime) -> bool:
        """Check if the date falls in the June-September monsoon season."""
        return dt.month in MONSOON_MONTHS

    @staticmethod
    def format_for_display(dt: Optional[datetime]) -> str:
        """Format a datetime for human readable messages."""
        if not dt:
            return ''
        return DateUtils.to_utc(dt).strftime('%d %b %Y')
