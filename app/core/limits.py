"""Plan limit resolution.

This module is the only place that knows the limit keys and their fallback
defaults. Numeric caps use -1 for "unlimited".
"""

from typing import Any, Dict, Mapping, Optional

UNLIMITED = -1

# Fallbacks used when neither the subscription nor its plan defines a key.
DEFAULT_LIMITS: Dict[str, Any] = {
    "maxProducts": 0,
    "maxCategories": 0,
    "maxBranches": 20,  # historical default tier
    "maxUsers": 0,
    "maxOrders": 0,
    "analyticsRetention": 0,
    "themeCustomization": False,
    "advancedAnalytics": False,
    "apiAccess": False,
    "prioritySupport": False,
    "customDomain": False,
    "whiteLabel": False,
    "multiLanguage": False,
    "exportData": False,
    "backupRestore": False,
    "supportLevel": "email",
}

LIMIT_KEYS = tuple(DEFAULT_LIMITS)

NUMERIC_LIMIT_KEYS = (
    "maxProducts",
    "maxCategories",
    "maxBranches",
    "maxUsers",
    "maxOrders",
    "analyticsRetention",
)

FEATURE_FLAG_KEYS = tuple(k for k, v in DEFAULT_LIMITS.items() if isinstance(v, bool))

# Item kinds as callers name them -> limit key
ITEM_TYPE_LIMIT_KEYS = {
    "product": "maxProducts",
    "products": "maxProducts",
    "menuitem": "maxProducts",
    "menuitems": "maxProducts",
    "category": "maxCategories",
    "categories": "maxCategories",
    "branch": "maxBranches",
    "branches": "maxBranches",
    "order": "maxOrders",
    "orders": "maxOrders",
    "user": "maxUsers",
    "users": "maxUsers",
}

# limit key -> usage snapshot field; staff users live outside this service, so
# maxUsers checks take an explicit current_count
USAGE_FIELDS = {
    "maxProducts": "products",
    "maxCategories": "categories",
    "maxBranches": "branches",
    "maxOrders": "orders",
}


def is_meaningful_override(value: Any) -> bool:
    """An override counts only if it is set, non-empty, and a bool or non-zero.

    ``False`` is meaningful (it switches a feature off) while ``0`` is not.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return True
    if isinstance(value, str) and value == "":
        return False
    return value != 0


def _has_plan_value(value: Any) -> bool:
    return value is not None and value != ""


def merge_limits(
    plan_limits: Optional[Mapping[str, Any]],
    override_limits: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """Combine plan limits with a subscription's overrides.

    For each known key: a meaningful override wins, then the plan value,
    then DEFAULT_LIMITS. Unknown keys from the plan are kept, and unknown
    override keys are passed through as given.
    """
    plan_limits = dict(plan_limits or {})
    override_limits = dict(override_limits or {})

    merged: Dict[str, Any] = {k: v for k, v in plan_limits.items() if k not in DEFAULT_LIMITS}

    for key in LIMIT_KEYS:
        value = plan_limits.get(key)
        if not _has_plan_value(value):
            value = DEFAULT_LIMITS[key]
        override = override_limits.get(key)
        if is_meaningful_override(override):
            value = override
        merged[key] = value

    for key, value in override_limits.items():
        if key not in DEFAULT_LIMITS:
            merged[key] = value

    return merged


def resolve_limit_key(item_type: str) -> str:
    """Map an item kind ("product", "branches", ...) or a limit key to its limit key."""
    raw = str(item_type or "").strip()
    if raw in DEFAULT_LIMITS:
        return raw
    key = ITEM_TYPE_LIMIT_KEYS.get(raw.lower().replace("_", "").replace("-", ""))
    if key:
        return key
    # Unknown kinds follow the maxXs naming convention.
    return f"max{raw[:1].upper()}{raw[1:]}s" if raw else raw


def is_unlimited(value: Any) -> bool:
    return not isinstance(value, bool) and value == UNLIMITED
