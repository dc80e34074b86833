from django.db import connection
from django.db.utils import DatabaseError
from django.utils import timezone
from rest_framework.views import APIView
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger(__name__)


class HealthCheckView(APIView):
    """API endpoint for system health monitoring used by deployment pipeline"""
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, format=None):
        # Test database connection
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
            db_status = "ok"
        except DatabaseError as e:
            logger.error(f"Health check database error: {str(e)}")
            db_status = str(e)

        healthy = db_status == "ok"
        health_data = {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "database": db_status,
            "version": "1.0.0"
        }

        return Response(
            health_data,
            status=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        )
