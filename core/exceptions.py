from typing import Any, Optional
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status


class RentalsError(Exception):
    """Base class for domain errors raised by the payment and config services."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = 'RENTALS_ERROR'
    retryable = False

    def __init__(self, message: str = '', **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details


class PaymentValidationError(RentalsError):
    """Inbound gateway payload is malformed or fails schema checks."""
    error_code = 'INVALID_PAYLOAD'


class RoutingError(RentalsError):
    """No landlord owns the business short code of a callback."""
    status_code = status.HTTP_404_NOT_FOUND
    error_code = 'UNKNOWN_SHORT_CODE'


class DuplicatePaymentError(RentalsError):
    """A payment with the same provider receipt is already recorded."""
    status_code = status.HTTP_409_CONFLICT
    error_code = 'DUPLICATE_RECEIPT'


class PersistenceError(RentalsError):
    """Database failure while committing a payment."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = 'PERSISTENCE_FAILURE'
    retryable = True


class GatewayError(RentalsError):
    """Non-success response from the mobile-money gateway."""
    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = 'GATEWAY_ERROR'

    def __init__(self, message: str = '', status: Optional[int] = None, body: str = '', **details: Any):
        super().__init__(message, **details)
        self.status = status
        self.body = body


class GatewayTimeoutError(GatewayError):
    """Gateway call timed out or the connection failed."""
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    error_code = 'GATEWAY_TIMEOUT'
    retryable = True


class CredentialIntegrityError(RentalsError):
    """Stored credential failed authentication on decrypt."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = 'CREDENTIAL_INTEGRITY'


class PaymentNotFoundError(RentalsError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = 'PAYMENT_NOT_FOUND'


class TenantNotFoundError(RentalsError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = 'TENANT_NOT_FOUND'


class PaymentAlreadyAssignedError(RentalsError):
    status_code = status.HTTP_409_CONFLICT
    error_code = 'PAYMENT_ALREADY_ASSIGNED'


class ConfigNotFoundError(RentalsError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = 'CONFIG_NOT_FOUND'


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Optional[Response]:
    if isinstance(exc, RentalsError):
        detail: dict[str, Any] = {'code': exc.error_code, 'message': exc.message}
        if exc.details:
            detail['details'] = exc.details
        if isinstance(exc, GatewayError) and exc.body:
            detail['provider_response'] = exc.body
        return Response(
            {
                "success": False,
                "error": {
                    "type": exc.__class__.__name__,
                    "detail": detail,
                },
            },
            status=exc.status_code,
        )

    response = exception_handler(exc, context)

    if response is None:
        return Response(
            {
                "success": False,
                "error": {
                    "type": exc.__class__.__name__,
                    "detail": str(exc),
                },
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    data = {
        "success": False,
        "error": {
            "type": exc.__class__.__name__,
            "detail": response.data,
        },
    }
    response.data = data
    return response
