import random
from datetime import datetime


def generate_id(prefix: str, digits: int = 4) -> str:
    """Prefix followed by a zero-padded random number, e.g. ``ap0042``."""
    return f"{prefix}{random.randrange(10 ** digits):0{digits}d}"


def format_date(value: str) -> str:
    """
    Format an ISO date (``YYYY-MM-DD``, as sent by a date input) as ``MM/DD/YY``.

    Empty input gives an empty string. Input that is not an ISO date is
    returned unchanged.
    """
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return value
    return parsed.strftime("%m/%d/%y")
