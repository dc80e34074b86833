"""
Standardized API Response Wrapper

Provides consistent response formatting for the landlord-facing endpoints with:
- Success/error status
- Correlation IDs for request tracking
- Timestamps
"""

import uuid
from typing import Any, Dict, Optional, List
from rest_framework import status
from rest_framework.response import Response
from django.utils import timezone
import logging

logger = logging.getLogger(__name__)


class APIResponse:
    """
    Standardized API response wrapper for consistent response formatting.
    """

    @staticmethod
    def success(
        data: Any = None,
        message: str = "Success",
        status_code: int = status.HTTP_200_OK,
        correlation_id: Optional[str] = None,
        **kwargs
    ) -> Response:
        """
        Generate a success response.

        Args:
            data: Response data (can be dict, list, or any serializable object)
            message: Success message
            status_code: HTTP status code (default: 200)
            correlation_id: Optional request correlation ID for tracking
            **kwargs: Additional fields to include in response

        Example:
            return APIResponse.success(
                data={'id': 1, 'amount': '2000.00'},
                message='Payment recorded successfully'
            )
        """
        correlation_id = correlation_id or str(uuid.uuid4())

        response_data = {
            'success': True,
            'message': message,
            'data': data,
            'timestamp': timezone.now().isoformat(),
            'correlation_id': correlation_id,
        }
        response_data.update(kwargs)

        return Response(response_data, status=status_code)

    @staticmethod
    def error(
        error_code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[Dict[str, Any]] = None,
        errors: Optional[List[Dict[str, str]]] = None,
        correlation_id: Optional[str] = None,
        **kwargs
    ) -> Response:
        """
        Generate an error response.

        Args:
            error_code: Unique error code (e.g., 'INVALID_INPUT', 'GATEWAY_ERROR')
            message: Human-readable error message
            status_code: HTTP status code (default: 400)
            details: Additional error details
            errors: List of validation errors with field-level details
            correlation_id: Optional request correlation ID for tracking
        """
        correlation_id = correlation_id or str(uuid.uuid4())

        response_data = {
            'success': False,
            'error': {
                'code': error_code,
                'message': message,
            },
            'timestamp': timezone.now().isoformat(),
            'correlation_id': correlation_id,
        }

        if details:
            response_data['error']['details'] = details

        if errors:
            response_data['errors'] = errors

        response_data.update(kwargs)

        return Response(response_data, status=status_code)

    @staticmethod
    def created(
        data: Dict[str, Any],
        message: str = "Resource created successfully",
        correlation_id: Optional[str] = None
    ) -> Response:
        """Generate a 201 Created response."""
        return APIResponse.success(
            data=data,
            message=message,
            status_code=status.HTTP_201_CREATED,
            correlation_id=correlation_id
        )

    @staticmethod
    def validation_error(
        message: str = "Validation failed",
        errors: Optional[Dict[str, Any]] = None,
        correlation_id: Optional[str] = None
    ) -> Response:
        """
        Generate a validation error response (400).

        Example:
            return APIResponse.validation_error(
                message='Input validation failed',
                errors={'amount': 'Must be greater than zero'}
            )
        """
        errors_list = [
            {'field': field, 'message': str(error)}
            for field, error in (errors or {}).items()
        ]

        return APIResponse.error(
            error_code='VALIDATION_ERROR',
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            errors=errors_list,
            correlation_id=correlation_id
        )

    @staticmethod
    def from_exception(exc, correlation_id: Optional[str] = None) -> Response:
        """Render a RentalsError using its own status code and error code."""
        details = dict(getattr(exc, 'details', {}) or {})
        body = getattr(exc, 'body', None)
        if body:
            details['provider_response'] = body
        return APIResponse.error(
            error_code=exc.error_code,
            message=exc.message or str(exc),
            status_code=exc.status_code,
            details=details or None,
            correlation_id=correlation_id
        )

    @staticmethod
    def server_error(
        message: str = "Internal server error",
        error_id: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> Response:
        """
        Generate a 500 Internal Server Error response.

        Args:
            message: Error message
            error_id: Optional unique error ID for tracking
            correlation_id: Optional request correlation ID
        """
        error_id = error_id or str(uuid.uuid4())

        return APIResponse.error(
            error_code='INTERNAL_SERVER_ERROR',
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={'error_id': error_id},
            correlation_id=correlation_id
        )


def get_correlation_id(request) -> str:
    """
    Extract or generate a correlation ID for request tracking.

    Prefers the id assigned by CorrelationIdMiddleware, then the
    X-Correlation-ID header, then a fresh UUID.
    """
    correlation_id = getattr(request, 'correlation_id', None)
    if correlation_id:
        return correlation_id

    correlation_id = request.META.get('HTTP_X_CORRELATION_ID')
    if correlation_id:
        return correlation_id

    return str(uuid.uuid4())
