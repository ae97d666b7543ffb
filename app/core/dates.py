from datetime import date, datetime
from typing import Optional

from app.core.errors import InvalidInput


def parse_optional_date(value, field_name: str) -> Optional[date]:
    """Accept a date, datetime, ISO string, or blank; reject anything else."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        value_text = value.strip()
        if not value_text:
            return None
        try:
            return date.fromisoformat(value_text[:10])
        except ValueError as exc:
            raise InvalidInput("{} must be an ISO date (YYYY-MM-DD)".format(field_name)) from exc
    raise InvalidInput("{} must be an ISO date (YYYY-MM-DD)".format(field_name))
