"""
API endpoints for rent payments: the M-Pesa C2B callbacks and the
landlord-facing ledger operations.
"""
import logging

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.audit import AuditTrail, log_payment_operation
from core.exceptions import PaymentValidationError, RentalsError
from core.response import APIResponse, get_correlation_id
from .models import Payment
from .normalizers import normalize_confirmation
from .serializers import AssignPaymentSerializer, CashPaymentSerializer, PaymentSerializer
from .services import PaymentReconciliationService

logger = logging.getLogger(__name__)


def _ack(result_desc):
    return Response({"ResultCode": 0, "ResultDesc": result_desc}, status=status.HTTP_200_OK)


class C2BValidationView(APIView):
    """
    Daraja validation callback. Every payment is accepted; routing and
    matching happen on confirmation.
    """
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request, format=None):
        logger.debug(f"C2B validation received: {request.body[:512]!r}")
        return _ack("Accepted")


class C2BConfirmationView(APIView):
    """
    Daraja confirmation callback. Always answers HTTP 200 / ResultCode 0 so
    the gateway never retries because of a fault on our side; failures are
    logged and audited instead.
    """
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request, format=None):
        try:
            event = normalize_confirmation(request.body)
        except PaymentValidationError as exc:
            logger.warning(f"Rejected C2B confirmation: {exc.message} {exc.details}")
            return _ack("Received")

        try:
            result = PaymentReconciliationService().reconcile(event, request=request)
        except Exception as e:
            logger.error(f"Error reconciling payment {event.receipt}: {str(e)}", exc_info=True)
            return _ack("Received")

        return _ack(result.result_desc)


class PaymentListView(APIView):
    """Landlord ledger, newest first. ?status=PENDING lists the unassigned queue."""
    permission_classes = [IsAuthenticated]

    def get(self, request, format=None):
        correlation_id = get_correlation_id(request)
        status_filter = (request.query_params.get('status') or '').strip().upper()
        valid_statuses = [choice for choice, _ in Payment.STATUS_CHOICES]
        if status_filter and status_filter not in valid_statuses:
            return APIResponse.validation_error(
                message='Invalid status filter',
                errors={'status': f"Must be one of {', '.join(valid_statuses)}"},
                correlation_id=correlation_id
            )

        try:
            payments = PaymentReconciliationService().list_payments(request.user, status=status_filter or None)
            data = PaymentSerializer(payments, many=True).data
            return APIResponse.success(
                data=data,
                message='Payments retrieved successfully',
                correlation_id=correlation_id,
                count=len(data)
            )
        except Exception as e:
            logger.error(f"Error listing payments: {str(e)}", exc_info=True)
            return APIResponse.server_error(
                message='Error retrieving payments',
                error_id=str(e),
                correlation_id=correlation_id
            )


class CashPaymentView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, format=None):
        correlation_id = get_correlation_id(request)
        serializer = CashPaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return APIResponse.validation_error(
                message='Cash payment validation failed',
                errors=serializer.errors,
                correlation_id=correlation_id
            )

        data = serializer.validated_data
        try:
            payment = PaymentReconciliationService().record_cash_payment(
                request.user,
                tenant_id=data['tenant_id'],
                amount=data['amount'],
                receipt=data.get('receipt'),
            )
        except RentalsError as e:
            return APIResponse.from_exception(e, correlation_id=correlation_id)
        except Exception as e:
            logger.error(f"Error recording cash payment: {str(e)}", exc_info=True)
            return APIResponse.server_error(
                message='Error recording cash payment',
                error_id=str(e),
                correlation_id=correlation_id
            )

        log_payment_operation(
            AuditTrail.PAYMENT,
            payment,
            user=request.user,
            changes={'amount': {'new': str(payment.amount)}},
            reason='Cash payment recorded',
            request=request
        )
        return APIResponse.created(
            data=PaymentSerializer(payment).data,
            message='Cash payment recorded successfully',
            correlation_id=correlation_id
        )


class AssignPaymentView(APIView):
    """Manually attach an unmatched (PENDING) payment to a tenant."""
    permission_classes = [IsAuthenticated]

    def patch(self, request, pk, format=None):
        correlation_id = get_correlation_id(request)
        serializer = AssignPaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return APIResponse.validation_error(
                message='Assignment validation failed',
                errors=serializer.errors,
                correlation_id=correlation_id
            )

        tenant_id = serializer.validated_data['tenant_id']
        try:
            payment = PaymentReconciliationService().assign_payment(request.user, pk, tenant_id)
        except RentalsError as e:
            return APIResponse.from_exception(e, correlation_id=correlation_id)
        except Exception as e:
            logger.error(f"Error assigning payment {pk}: {str(e)}", exc_info=True)
            return APIResponse.server_error(
                message='Error assigning payment',
                error_id=str(e),
                correlation_id=correlation_id
            )

        log_payment_operation(
            AuditTrail.ASSIGN,
            payment,
            user=request.user,
            changes={
                'status': {'old': Payment.PENDING, 'new': payment.status},
                'tenant_id': {'old': None, 'new': payment.tenant_id},
            },
            reason='Manual assignment',
            request=request
        )
        return APIResponse.success(
            data=PaymentSerializer(payment).data,
            message='Payment assigned successfully',
            correlation_id=correlation_id
        )


class TenantPaymentHistoryView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, tenant_id, format=None):
        correlation_id = get_correlation_id(request)
        try:
            tenant, payments = PaymentReconciliationService().tenant_history(request.user, tenant_id)
            data = PaymentSerializer(payments, many=True).data
        except RentalsError as e:
            return APIResponse.from_exception(e, correlation_id=correlation_id)
        except Exception as e:
            logger.error(f"Error retrieving history for tenant {tenant_id}: {str(e)}", exc_info=True)
            return APIResponse.server_error(
                message='Error retrieving tenant history',
                error_id=str(e),
                correlation_id=correlation_id
            )

        return APIResponse.success(
            data={
                'tenant_id': tenant.id,
                'tenant_name': tenant.tenant_name,
                'balance': str(tenant.balance),
                'payments': data,
            },
            message='Tenant payment history retrieved successfully',
            correlation_id=correlation_id
        )
