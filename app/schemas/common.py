"""Field normalizers shared by the boundary adapters."""

from datetime import datetime
from typing import Any

from app.core.exceptions import ValidationError
from app.core.status import parse_timestamp


def normalize_plan_id(value: Any) -> int:
    """Collapse every upstream spelling of a plan reference to an int.

    None, "", whitespace and 0 all mean "no plan" and become 0. Numeric
    strings and integral floats are converted; anything else is rejected.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValidationError("planId must be numeric", field="plan_id", value=value)
    if isinstance(value, int):
        plan_id = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError("planId must be a whole number", field="plan_id", value=value)
        plan_id = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            plan_id = int(text)
        except ValueError:
            try:
                as_float = float(text)
            except ValueError:
                raise ValidationError("planId must be numeric", field="plan_id", value=value)
            if not as_float.is_integer():
                raise ValidationError("planId must be a whole number", field="plan_id", value=value)
            plan_id = int(as_float)
    else:
        raise ValidationError("planId must be numeric", field="plan_id", value=value)

    if plan_id < 0:
        raise ValidationError("planId cannot be negative", field="plan_id", value=value)
    return plan_id


def plan_id_validator(value: Any) -> int:
    """pydantic flavour of normalize_plan_id (reports through ValueError)."""
    try:
        return normalize_plan_id(value)
    except ValidationError as e:
        raise ValueError(e.message)


def timestamp_validator(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValueError(f"Unparsable timestamp: {value!r}")
    return parsed
