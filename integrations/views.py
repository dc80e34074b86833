"""
Landlord-facing M-Pesa configuration endpoints.
"""
import logging

from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from core.audit import AuditTrail
from core.exceptions import CredentialIntegrityError, RentalsError
from core.response import APIResponse, get_correlation_id
from .serializers import LandlordPaymentConfigSerializer, MpesaConfigInputSerializer
from .services.config_service import LandlordConfigService

logger = logging.getLogger(__name__)

CREDENTIAL_ERROR_MESSAGE = 'Stored M-Pesa credentials could not be read; please save them again'


def _error_response(exc, correlation_id):
    if isinstance(exc, CredentialIntegrityError):
        logger.error(f"Credential integrity failure: {exc.message}")
        return APIResponse.error(
            error_code=exc.error_code,
            message=CREDENTIAL_ERROR_MESSAGE,
            status_code=exc.status_code,
            correlation_id=correlation_id
        )
    return APIResponse.from_exception(exc, correlation_id=correlation_id)


class MpesaConfigView(APIView):
    """
    GET returns the landlord's config with masked credentials.
    POST upserts it and registers the C2B callback URLs.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, format=None):
        correlation_id = get_correlation_id(request)
        try:
            config = LandlordConfigService.get_config(request.user)
            data = LandlordPaymentConfigSerializer(config).data
        except RentalsError as e:
            return _error_response(e, correlation_id)
        except Exception as e:
            logger.error(f"Error reading M-Pesa config: {str(e)}", exc_info=True)
            return APIResponse.server_error(
                message='Error reading M-Pesa configuration',
                error_id=str(e),
                correlation_id=correlation_id
            )
        return APIResponse.success(
            data=data,
            message='M-Pesa configuration retrieved successfully',
            correlation_id=correlation_id
        )

    def post(self, request, format=None):
        correlation_id = get_correlation_id(request)
        serializer = MpesaConfigInputSerializer(data=request.data)
        if not serializer.is_valid():
            return APIResponse.validation_error(
                message='M-Pesa configuration validation failed',
                errors=serializer.errors,
                correlation_id=correlation_id
            )

        data = serializer.validated_data
        try:
            config, registration = LandlordConfigService.save_config(
                request.user,
                short_code=data['short_code'],
                short_code_type=data['short_code_type'],
                consumer_key=data['consumer_key'],
                consumer_secret=data['consumer_secret'],
                environment=data['environment'],
                validation_enabled=data['validation_enabled'],
                callback_base_url=LandlordConfigService.resolve_callback_base(request),
            )
        except RentalsError as e:
            AuditTrail.log(
                operation=AuditTrail.CONFIG,
                module='integrations',
                entity_type='LandlordPaymentConfig',
                entity_id=None,
                reason=f'URL registration failed: {e.message}',
                request=request,
                level=logging.WARNING,
                short_code=data['short_code'],
            )
            return _error_response(e, correlation_id)
        except Exception as e:
            logger.error(f"Error saving M-Pesa config: {str(e)}", exc_info=True)
            return APIResponse.server_error(
                message='Error saving M-Pesa configuration',
                error_id=str(e),
                correlation_id=correlation_id
            )

        AuditTrail.log(
            operation=AuditTrail.CONFIG,
            module='integrations',
            entity_type='LandlordPaymentConfig',
            entity_id=config.id,
            changes={
                'short_code': {'new': config.short_code},
                'environment': {'new': config.environment},
            },
            reason='M-Pesa configuration saved',
            request=request
        )
        return APIResponse.success(
            data={
                'config': LandlordPaymentConfigSerializer(config).data,
                'registration': registration,
            },
            message='M-Pesa configuration saved and URLs registered',
            correlation_id=correlation_id
        )


class MpesaRegisterUrlsView(APIView):
    """Re-run C2B URL registration for the saved config."""
    permission_classes = [IsAuthenticated]

    def post(self, request, format=None):
        correlation_id = get_correlation_id(request)
        try:
            registration = LandlordConfigService.register_urls(
                request.user,
                callback_base_url=LandlordConfigService.resolve_callback_base(request),
            )
        except RentalsError as e:
            return _error_response(e, correlation_id)
        except Exception as e:
            logger.error(f"Error registering M-Pesa URLs: {str(e)}", exc_info=True)
            return APIResponse.server_error(
                message='Error registering M-Pesa URLs',
                error_id=str(e),
                correlation_id=correlation_id
            )
        return APIResponse.success(
            data=registration,
            message='M-Pesa URLs registered',
            correlation_id=correlation_id
        )
