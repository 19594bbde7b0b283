"""Tests for the upstream payload adapters."""

from datetime import datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import ValidationError
from app.schemas.common import normalize_plan_id
from app.schemas.payment import normalize_payment
from app.schemas.plan import normalize_plan
from app.schemas.subscription import SubscriptionUpdate, normalize_subscription


@pytest.mark.parametrize("raw,expected", [
    (None, 0),
    ("", 0),
    ("   ", 0),
    (0, 0),
    ("0", 0),
    (2, 2),
    ("2", 2),
    (" 7 ", 7),
    (3.0, 3),
    ("4.0", 4),
])
def test_normalize_plan_id(raw, expected):
    assert normalize_plan_id(raw) == expected


@pytest.mark.parametrize("raw", ["basic", True, 1.5, -3, [1], {"id": 1}])
def test_normalize_plan_id_rejects_non_numeric(raw):
    with pytest.raises(ValidationError):
        normalize_plan_id(raw)


def test_subscription_camel_case_payload():
    sub = normalize_subscription({
        "restaurantId": 7,
        "planId": "2",
        "planName": "Pro",
        "status": "Active",
        "startDate": "2026-01-01T00:00:00Z",
        "endDate": {"seconds": 1769904000},
        "limits": {"maxProducts": 10},
    })
    assert sub.restaurant_id == 7
    assert sub.plan_id == 2
    assert sub.plan_name == "Pro"
    assert sub.status == "active"
    assert sub.start_date == datetime(2026, 1, 1)
    assert sub.end_date == datetime(2026, 2, 1)
    assert sub.limits == {"maxProducts": 10}


def test_subscription_snake_case_payload_matches_camel_case():
    camel = normalize_subscription({"restaurantId": 1, "planId": None, "endDate": "2026-03-01"})
    snake = normalize_subscription({"restaurant_id": 1, "plan_id": "", "end_date": "2026-03-01"})
    assert camel.model_dump() == snake.model_dump()
    assert camel.plan_id == 0


def test_null_subscription_payloads_mean_no_subscription():
    assert normalize_subscription(None) is None
    assert normalize_subscription({}) is None


def test_feature_dict_becomes_enabled_names():
    sub = normalize_subscription({"restaurantId": 1, "features": {"qr": True, "pos": False}})
    assert sub.features == ["qr"]


def test_non_numeric_plan_id_rejected_by_adapter():
    with pytest.raises(PydanticValidationError):
        normalize_subscription({"restaurantId": 1, "planId": "gold"})


def test_plan_adapter_duration_aliases():
    plan = normalize_plan({"id": 3, "name": "Yearly", "price": "1200", "durationDays": 365})
    assert plan.duration_days == 365
    assert plan.price == 1200
    assert normalize_plan({"id": 4, "duration": 0}).duration_days is None


def test_payment_adapter_aliases():
    payment = normalize_payment({
        "restaurantId": 7,
        "planId": 2,
        "adminNotes": "ok",
        "paymentMethod": "Vodafone Cash",
        "processedAt": "2026-01-15T12:00:00",
    })
    assert payment.restaurant_id == 7
    assert payment.plan_id == 2
    assert payment.admin_notes == "ok"
    assert payment.payment_method == {"name": "Vodafone Cash"}
    assert payment.processed_at == datetime(2026, 1, 15, 12, 0)


def test_update_tracks_only_sent_fields():
    update = SubscriptionUpdate.model_validate({"planId": "3"})
    assert update.model_dump(exclude_unset=True) == {"plan_id": 3}
