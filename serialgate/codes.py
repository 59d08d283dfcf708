import secrets
import string
from datetime import timedelta

CHARSET = string.ascii_uppercase + string.digits
CODE_LENGTH = 12

DEFAULT_EXPIRY = timedelta(days=7)

UNITS = {
    "d": timedelta(days=1),
    "h": timedelta(hours=1),
}


def generate_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(CHARSET) for _ in range(length))


def parse_expiry(value: str) -> timedelta:
    """Parse "<integer><unit>" where unit is d (days) or h (hours)."""
    if not value:
        raise ValueError("expiry string is empty")

    amount, unit = value[:-1], value[-1:].lower()
    if not (amount.isascii() and amount.isdigit()):
        raise ValueError(f"invalid expiry value: {amount}")
    if unit not in UNITS:
        raise ValueError(f"invalid expiry unit: {value[-1:]}. Use 'd' for days or 'h' for hours")

    return int(amount) * UNITS[unit]
