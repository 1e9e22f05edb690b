"""Date parsing helpers for backend payloads."""

from datetime import datetime


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse a wire timestamp into a datetime.

    The backend emits ISO 8601 strings, with or without a trailing ``Z``
    and with up to seven fractional digits. Unparseable values give None.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return value

    text = value.strip().replace("Z", "+00:00")

    # .NET serializers emit 7 fractional digits; fromisoformat wants <= 6
    if "." in text:
        head, _, tail = text.partition(".")
        digits = ""
        rest = ""
        for i, ch in enumerate(tail):
            if not ch.isdigit():
                rest = tail[i:]
                break
            digits += ch
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest}" if digits else head + rest

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass

    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    return None


def format_datetime(value: datetime | None) -> str | None:
    """Serialize a datetime back to the wire format."""
    return value.isoformat() if value else None
