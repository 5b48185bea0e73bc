from datetime import datetime, timezone

SCHEDULED_TIME_FORMAT = "%Y-%m-%dT%H:%M"
_INPUT_FORMATS = ("%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M", "%d.%m.%Y %H:%M")


def ensure_aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def parse_iso(value) -> datetime | None:
    """Read a backend timestamp; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    if not isinstance(value, str):
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    return ensure_aware(datetime.fromisoformat(raw))


def parse_scheduled_time(text: str, now: datetime | None = None) -> str | None:
    """Validate a date/time typed into the booking form.

    Returns the value normalized to ``YYYY-MM-DDTHH:MM`` or None when the
    input is empty, unreadable or not after ``now``.
    """
    clean = (text or "").strip()
    if not clean:
        return None
    for fmt in _INPUT_FORMATS:
        try:
            dt = datetime.strptime(clean, fmt)
        except ValueError:
            continue
        now = ensure_aware(now or datetime.now(timezone.utc))
        if ensure_aware(dt) <= now:
            return None
        return dt.strftime(SCHEDULED_TIME_FORMAT)
    return None


def fmt_dt(dt: datetime | None) -> str:
    if not dt:
        return "—"
    now = datetime.now(dt.tzinfo or timezone.utc)
    fmt = "%d.%m.%Y %H:%M" if dt.year != now.year else "%d.%m %H:%M"
    return dt.strftime(fmt)
