"""Live subscription status derived from stored status and the clock.

Nothing here performs I/O or raises; callers persist an observed
``expired`` transition themselves (see app.services.expiry_sweep).
"""

import logging
import math
from datetime import date, datetime, time, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

STATUS_NONE = "none"
STATUS_ACTIVE = "active"
STATUS_PAUSED = "paused"
STATUS_EXPIRED = "expired"
STATUS_TRIAL = "trial"

STORED_STATUSES = (STATUS_ACTIVE, STATUS_PAUSED, STATUS_EXPIRED, STATUS_TRIAL)


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a stored timestamp into a naive UTC datetime.

    Accepts datetimes, dates, epoch-seconds wrappers (``{"seconds": ...}``
    or objects with a ``seconds`` attribute), objects exposing ``to_datetime()``,
    ISO-8601 strings and "YYYY-MM-DD HH:MM:SS" strings. Anything else,
    including unparsable strings, yields None.
    """
    if value is None or value == "":
        return None
    try:
        if isinstance(value, datetime):
            return _to_naive_utc(value)
        if isinstance(value, date):
            return datetime.combine(value, time.min)
        if isinstance(value, dict):
            seconds = value.get("seconds", value.get("_seconds"))
            if seconds is None:
                return None
            return datetime.fromtimestamp(float(seconds), tz=timezone.utc).replace(tzinfo=None)
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return _to_naive_utc(datetime.fromisoformat(text.replace(" ", "T", 1)))
        if hasattr(value, "to_datetime"):
            return _to_naive_utc(value.to_datetime())
        seconds = getattr(value, "seconds", None)
        if seconds is not None:
            return datetime.fromtimestamp(float(seconds), tz=timezone.utc).replace(tzinfo=None)
    except (TypeError, ValueError, OverflowError, OSError):
        logger.debug("Unparsable timestamp %r treated as absent", value)
        return None
    return None


def _field(subscription: Any, name: str) -> Any:
    if isinstance(subscription, dict):
        return subscription.get(name)
    return getattr(subscription, name, None)


def derive_status(subscription: Any, now: datetime) -> str:
    """Compute the live status of a subscription at ``now``.

    Order matters: a missing subscription is "none", a paused one stays
    "paused" even past its end date, an end date at or before ``now`` is
    "expired", otherwise the stored status (default "active") is returned.
    """
    if not subscription:
        return STATUS_NONE
    try:
        status = _field(subscription, "status")
        if status == STATUS_PAUSED:
            return STATUS_PAUSED
        end = parse_timestamp(_field(subscription, "end_date"))
        if end is not None and end <= _to_naive_utc(now):
            return STATUS_EXPIRED
        return status or STATUS_ACTIVE
    except Exception as e:
        # UI gating only; never let a malformed record break the caller
        logger.warning("Could not derive subscription status: %s", e)
        return STATUS_NONE


def is_active(subscription: Any, now: datetime) -> bool:
    return derive_status(subscription, now) == STATUS_ACTIVE


def days_until_expiry(subscription: Any, now: datetime) -> Optional[int]:
    """Whole days left (rounded up); negative once the end date has passed."""
    if not subscription:
        return None
    end = parse_timestamp(_field(subscription, "end_date"))
    if end is None:
        return None
    remaining = (end - _to_naive_utc(now)).total_seconds() / 86400
    return math.ceil(remaining)
