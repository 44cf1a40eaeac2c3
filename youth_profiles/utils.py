"""
Utility functions for date handling and profile display formatting.
"""

from datetime import date, datetime
from typing import Any, Optional

from youth_profiles.profile import AddressEntry, ProfileRecord


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a calendar date.

    Args:
        value: date, datetime, or string in ISO format (YYYY-MM-DD, or a full
            ISO timestamp)

    Returns:
        The date, or None if the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    str_value = value.strip()

    try:
        return datetime.strptime(str_value, '%Y-%m-%d').date()
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(str_value.replace('Z', '+00:00')).date()
    except ValueError:
        return None


def years_before(reference: date, years: int) -> date:
    """The same calendar day ``years`` years earlier (29 Feb maps to 28 Feb)."""
    try:
        return reference.replace(year=reference.year - years)
    except ValueError:
        return reference.replace(year=reference.year - years, day=28)


def next_expiration_date(activated: date, month: int = 8, day: int = 31) -> date:
    """
    Membership expiration for a membership activated on ``activated``.

    Memberships run until the next ``month``/``day`` strictly after the
    activation day.
    """
    candidate = date(activated.year, month, day)
    if candidate <= activated:
        candidate = date(activated.year + 1, month, day)
    return candidate


def format_date(date_value: Any) -> str:
    """
    Format a date for display.

    Args:
        date_value: Date string, date, or datetime

    Returns:
        Formatted date string (DD.MM.YYYY), or the input as text if it
        cannot be parsed
    """
    if date_value is None or date_value == '':
        return ''

    parsed = parse_date(date_value)
    if parsed is None:
        return str(date_value)
    return parsed.strftime('%d.%m.%Y')


def format_full_name(first_name: str, last_name: str) -> str:
    return ' '.join(part.strip() for part in (first_name, last_name) if part and part.strip())


def format_profile_name(record: ProfileRecord, person: str = 'youth') -> str:
    """Full name of the youth or of the approving guardian."""
    if person == 'approver':
        return format_full_name(record.approver_first_name, record.approver_last_name)
    return format_full_name(record.first_name, record.last_name)


def format_address(entry: Optional[AddressEntry]) -> str:
    """
    Format an address entry into a single line.

    Returns:
        'street, postal code city', omitting empty parts
    """
    if entry is None:
        return ''

    locality = ' '.join(p for p in [entry.postal_code, entry.city] if p)
    return ', '.join(p for p in [entry.address, locality] if p)


def format_school(record: ProfileRecord) -> str:
    """School name and class, e.g. 'Kallion lukio, 2B'."""
    return ', '.join(p for p in [record.school_name, record.school_class] if p)
