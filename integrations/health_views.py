"""
Integration Health Check Views

Tests connectivity of the authenticated landlord's M-Pesa credentials.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status as http_status
from django.utils import timezone
import logging

from core.exceptions import CredentialIntegrityError
from .models import LandlordPaymentConfig
from .services.config_service import LandlordConfigService

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def mpesa_health_check(request):
    """
    Test M-Pesa API connectivity.
    Attempts to get an access token to verify credentials.
    """
    try:
        success, message = LandlordConfigService.test_connection(request.user)

        return Response({
            'success': success,
            'message': message,
            'configured': LandlordPaymentConfig.objects.filter(landlord=request.user).exists(),
            'tested_at': timezone.now().isoformat(),
        }, status=http_status.HTTP_200_OK if success else http_status.HTTP_503_SERVICE_UNAVAILABLE)

    except CredentialIntegrityError as e:
        logger.error(f"Credential integrity failure during M-Pesa health check: {e.message}")
        return Response({
            'success': False,
            'error': 'Stored M-Pesa credentials could not be read; please save them again',
        }, status=http_status.HTTP_500_INTERNAL_SERVER_ERROR)

    except Exception as e:
        logger.error(f"Error testing M-Pesa connection: {str(e)}", exc_info=True)
        return Response({
            'success': False,
            'error': str(e),
        }, status=http_status.HTTP_500_INTERNAL_SERVER_ERROR)
