"""
Domain exceptions shared by the cart, order, payment and loyalty services.

Every error carries a stable machine-readable ``kind`` and the HTTP status it
maps to. ``pos_exception_handler`` renders them as
``{"error": kind, "message": text}``; anything else falls through to DRF.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

GENERIC_PAYMENT_MESSAGE = "Payment could not be processed."


class POSError(Exception):
    """Base exception for all point-of-sale domain errors"""

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be completed."

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    @property
    def public_message(self):
        return self.message


class ValidationError(POSError):
    """Malformed or missing input"""

    kind = "validation_error"
    default_message = "Invalid input."


class BadRequest(ValidationError):
    """Operation is not allowed in the entity's current state"""

    kind = "bad_request"


class InvalidOwner(ValidationError):
    kind = "invalid_owner"
    default_message = "Either a user or a session id is required."


class InvalidCustomization(ValidationError):
    kind = "invalid_customization"


class MissingRequiredCustomization(ValidationError):
    kind = "missing_required_customization"


class InvalidOption(ValidationError):
    kind = "invalid_option"


class InvalidStaff(ValidationError):
    kind = "invalid_staff"
    default_message = "Invalid staff member."


class NotFound(POSError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class Unavailable(POSError):
    """Entity exists but is inactive, sold out or disabled"""

    kind = "unavailable"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Item is not available."


class UnavailableOption(Unavailable):
    kind = "unavailable_option"


class Forbidden(POSError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to perform this action."


class Conflict(POSError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicting request."


class InvalidStatusTransition(POSError):
    kind = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot transition order from '{current}' to '{requested}'.")


class InsufficientPoints(POSError):
    kind = "insufficient_points"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, available, requested):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient points. Available: {available}, Requested: {requested}"
        )


class PaymentError(POSError):
    """
    Payment processor call failed or returned an unexpected state.

    The processor's text stays in ``message`` for logs; clients only ever
    see the generic message.
    """

    kind = "payment_error"
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_message = GENERIC_PAYMENT_MESSAGE

    @property
    def public_message(self):
        return GENERIC_PAYMENT_MESSAGE


def pos_exception_handler(exc, context):
    """
    DRF exception handler that renders POSError subclasses.
    Other exceptions use DRF's default handling.
    """
    if not isinstance(exc, POSError):
        return exception_handler(exc, context)

    request = context.get("request")
    path = request.path if request is not None else ""

    if isinstance(exc, PaymentError):
        logger.error(f"Payment error on {path}: {exc.message}")
    else:
        logger.info(f"{exc.__class__.__name__} on {path}: {exc.message}")

    data = {"error": exc.kind, "message": exc.public_message}
    if exc.details and not isinstance(exc, PaymentError):
        data["details"] = exc.details
    return Response(data, status=exc.status_code)
