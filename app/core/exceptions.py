"""
Subscription service exceptions.

Every error raised by the lifecycle manager, the payment approval workflow
and the stores derives from SubscriptionServiceError so the API layer can
render them uniformly.
"""

from typing import Any


class SubscriptionServiceError(Exception):
    """
    Base error with API-facing context.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for API responses
        status_code: HTTP status code for this error type
        context: Additional context data about the error
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int = 400,
        context: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or "SUBSCRIPTION_ERROR"
        self.status_code = status_code
        self.context = context or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error_code": self.error_code,
            "detail": self.message,
            "context": self.context,
        }


class NotFoundError(SubscriptionServiceError):
    """A referenced subscription, plan, payment or restaurant does not exist."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "NOT_FOUND", status_code=404, context=context)


class NoSubscriptionError(NotFoundError):
    def __init__(self, restaurant_id: Any = None, subscription_id: Any = None):
        context = {}
        if restaurant_id is not None:
            context["restaurant_id"] = restaurant_id
        if subscription_id is not None:
            context["subscription_id"] = subscription_id
        super().__init__("No subscription found", context=context)
        self.error_code = "NO_SUBSCRIPTION"


class PlanNotFoundError(NotFoundError):
    def __init__(self, plan_id: Any):
        super().__init__(f"Subscription plan {plan_id} not found", context={"plan_id": plan_id})
        self.error_code = "PLAN_NOT_FOUND"


class PaymentNotFoundError(NotFoundError):
    def __init__(self, payment_id: Any):
        super().__init__(f"Payment request {payment_id} not found", context={"payment_id": payment_id})
        self.error_code = "PAYMENT_NOT_FOUND"


class RestaurantNotFoundError(NotFoundError):
    def __init__(self, restaurant_id: Any):
        super().__init__(
            f"Restaurant {restaurant_id} not found", context={"restaurant_id": restaurant_id}
        )
        self.error_code = "RESTAURANT_NOT_FOUND"


class InvalidTransitionError(SubscriptionServiceError):
    """A status transition the state machine does not permit."""

    def __init__(self, entity: str, current: str, target: str, context: dict[str, Any] | None = None):
        ctx = {"entity": entity, "current_status": current, "target_status": target}
        ctx.update(context or {})
        super().__init__(
            f"Cannot move {entity} from '{current}' to '{target}'",
            "INVALID_TRANSITION",
            status_code=409,
            context=ctx,
        )


class ValidationError(SubscriptionServiceError):
    """Malformed input that survives normalization."""

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        context = {}
        if field:
            context["field"] = field
            context["value"] = value if isinstance(value, (int, float, str, bool, type(None))) else repr(value)
        super().__init__(message, "VALIDATION_ERROR", status_code=422, context=context)


class UpstreamError(SubscriptionServiceError):
    """A store call failed. Always raised ``from`` the underlying cause."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(
            f"Store operation '{operation}' failed: {cause}",
            "UPSTREAM_ERROR",
            status_code=502,
            context={"operation": operation},
        )
        self.operation = operation
        self.cause = cause


class PaymentBlockedError(SubscriptionServiceError):
    """A new payment was submitted while an active subscription exists."""

    def __init__(self, restaurant_id: Any):
        super().__init__(
            "Restaurant already has an active subscription",
            "ACTIVE_SUBSCRIPTION_EXISTS",
            status_code=409,
            context={"restaurant_id": restaurant_id},
        )


class PartialSuccessError(SubscriptionServiceError):
    """
    The payment was approved but the subscription could not be activated.

    The payment write is not rolled back; ``payment`` holds the approved
    record and ``activation_error`` the failure that needs manual follow-up.
    """

    def __init__(self, payment: Any, activation_error: BaseException):
        super().__init__(
            "Payment approved but subscription activation failed; manual follow-up required",
            "PARTIAL_SUCCESS",
            status_code=207,
            context={
                "payment_id": getattr(payment, "id", None),
                "restaurant_id": getattr(payment, "restaurant_id", None),
                "activation_error": str(activation_error),
            },
        )
        self.payment = payment
        self.activation_error = activation_error
