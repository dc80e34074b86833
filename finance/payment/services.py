"""
Payment reconciliation service.

Turns a NormalizedPayment from the gateway into persisted state exactly once:
routing to a landlord, receipt deduplication, tenant matching, then a single
transaction that inserts the Payment and debits the tenant balance. Manual
assignment and cash payments go through the same ledger rules.
"""
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import DatabaseError, IntegrityError, connection, transaction
from django.db.models import F, Q
from django.utils import timezone

from core.audit import log_reconciliation_decision
from core.exceptions import (
    DuplicatePaymentError,
    PaymentAlreadyAssignedError,
    PaymentNotFoundError,
    PersistenceError,
    RoutingError,
    TenantNotFoundError,
)
from integrations.models import LandlordPaymentConfig, Paybill, Till
from rentals.models import Tenant
from .models import Payment
from .normalizers import NormalizedPayment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationResult:
    COMPLETED = 'COMPLETED'
    PENDING = 'PENDING'
    DUPLICATE = 'DUPLICATE'
    UNROUTED = 'UNROUTED'
    FAILED = 'FAILED'

    outcome: str
    receipt: str
    landlord_id: Optional[int] = None
    payment_id: Optional[int] = None
    tenant_id: Optional[int] = None
    reason: str = ''

    @property
    def result_desc(self) -> str:
        """ResultDesc sent back to the gateway; ResultCode is always 0."""
        if self.outcome in (self.COMPLETED, self.PENDING, self.DUPLICATE):
            return 'Success'
        return 'Received'


def _landlord_pk(landlord):
    return getattr(landlord, 'pk', landlord)


class PaymentReconciliationService:
    def __init__(self, deadline_ms: Optional[int] = None):
        if deadline_ms is None:
            deadline_ms = getattr(settings, 'RECONCILIATION_DEADLINE_MS', 5000)
        self.deadline_ms = deadline_ms

    # Gateway callbacks

    def reconcile(self, event: NormalizedPayment, request=None) -> ReconciliationResult:
        """
        Apply one confirmation. Never raises for routing, duplicate or
        database failures; the outcome says what happened and every
        decision is written to the audit log.
        """
        try:
            landlord_id = self.resolve_landlord(event)
        except RoutingError as exc:
            logger.warning(f"Unroutable payment {event.receipt}: {exc.message}")
            return self._decide(ReconciliationResult.UNROUTED, event, reason=exc.message, request=request)
        except DatabaseError as exc:
            logger.error(f"Routing lookup failed for payment {event.receipt}: {exc}", exc_info=True)
            return self._decide(ReconciliationResult.FAILED, event, reason=str(exc), request=request)

        try:
            payment = self._commit(event, landlord_id)
        except DuplicatePaymentError as exc:
            logger.info(f"Duplicate payment {event.receipt} ignored")
            return self._decide(
                ReconciliationResult.DUPLICATE, event, landlord_id=landlord_id,
                payment_id=exc.details.get('payment_id'), reason=exc.message, request=request,
            )
        except PersistenceError as exc:
            logger.error(f"Failed to persist payment {event.receipt}: {exc.message}", exc_info=True)
            return self._decide(
                ReconciliationResult.FAILED, event, landlord_id=landlord_id,
                reason=exc.message, request=request,
            )

        outcome = ReconciliationResult.COMPLETED if payment.tenant_id else ReconciliationResult.PENDING
        if outcome == ReconciliationResult.PENDING:
            logger.info(f"Unmatched payment {event.receipt} from {event.phone} for landlord {landlord_id}")
        return self._decide(
            outcome, event, landlord_id=landlord_id, payment_id=payment.id,
            tenant_id=payment.tenant_id, request=request,
        )

    def resolve_landlord(self, event: NormalizedPayment) -> int:
        """
        Find the landlord owning the business short code. Routing records
        win; otherwise a LandlordPaymentConfig with that short code is used
        when exactly one landlord claims it.
        """
        if event.is_paybill:
            landlord_id = (
                Paybill.objects.filter(
                    paybill=event.business_id,
                    account_number__iexact=event.account_ref,
                    active=True,
                )
                .values_list('landlord_id', flat=True)
                .first()
            )
        else:
            landlord_id = (
                Till.objects.filter(till_number=event.business_id, active=True)
                .values_list('landlord_id', flat=True)
                .first()
            )
        if landlord_id is not None:
            return landlord_id

        claims = list(
            LandlordPaymentConfig.objects.filter(short_code=event.business_id)
            .values_list('landlord_id', flat=True)[:2]
        )
        if len(claims) == 1:
            return claims[0]
        if claims:
            raise RoutingError(f"Short code {event.business_id} is claimed by more than one landlord",
                               short_code=event.business_id)
        raise RoutingError(f"Unknown short code {event.business_id}", short_code=event.business_id)

    def match_tenant(self, landlord_id, phone: str) -> Optional[Tenant]:
        """Lowest tenant id wins when both numbers of several tenants match."""
        if not phone:
            return None
        return (
            Tenant.objects.filter(landlord_id=landlord_id)
            .filter(Q(payment_no1=phone) | Q(payment_no2=phone))
            .order_by('id')
            .first()
        )

    def _commit(self, event: NormalizedPayment, landlord_id) -> Payment:
        existing = self._lookup_existing(event)
        if existing is not None:
            raise DuplicatePaymentError(f"Receipt {event.receipt} already recorded", payment_id=existing)

        try:
            with transaction.atomic():
                self._apply_deadline()
                tenant = self.match_tenant(landlord_id, event.phone)
                payment = Payment.objects.create(
                    landlord_id=landlord_id,
                    tenant=tenant,
                    amount=event.amount,
                    status=Payment.COMPLETED if tenant else Payment.PENDING,
                    method=event.method,
                    provider=event.provider,
                    receipt=event.receipt,
                    phone=event.phone,
                    business_short_code=event.business_id,
                    account_ref=event.account_ref or '',
                    payer_name=event.payer_name,
                )
                if tenant is not None:
                    Tenant.objects.filter(pk=tenant.pk).update(balance=F('balance') - event.amount)
        except IntegrityError as exc:
            # A concurrent delivery of the same receipt committed first
            existing = self._lookup_existing(event)
            if existing is not None:
                raise DuplicatePaymentError(
                    f"Receipt {event.receipt} already recorded", payment_id=existing
                ) from exc
            raise PersistenceError(str(exc), receipt=event.receipt) from exc
        except DatabaseError as exc:
            raise PersistenceError(str(exc), receipt=event.receipt) from exc

        return payment

    def _apply_deadline(self):
        if connection.vendor != 'postgresql' or not self.deadline_ms:
            return
        with connection.cursor() as cursor:
            cursor.execute("SET LOCAL statement_timeout = %s", [int(self.deadline_ms)])

    def _lookup_existing(self, event: NormalizedPayment) -> Optional[int]:
        try:
            return self._existing_payment_id(event.provider, event.receipt)
        except DatabaseError as exc:
            raise PersistenceError(str(exc), receipt=event.receipt) from exc

    @staticmethod
    def _existing_payment_id(provider: str, receipt: str) -> Optional[int]:
        return (
            Payment.objects.filter(provider=provider, receipt=receipt)
            .values_list('id', flat=True)
            .first()
        )

    @staticmethod
    def _decide(outcome, event, landlord_id=None, payment_id=None, tenant_id=None,
                reason='', request=None) -> ReconciliationResult:
        log_reconciliation_decision(
            receipt=event.receipt,
            landlord_id=landlord_id,
            outcome=outcome,
            payment_id=payment_id,
            tenant_id=tenant_id,
            reason=reason or None,
            request=request,
        )
        return ReconciliationResult(
            outcome=outcome,
            receipt=event.receipt,
            landlord_id=landlord_id,
            payment_id=payment_id,
            tenant_id=tenant_id,
            reason=reason,
        )

    # Landlord operations

    def get_tenant(self, landlord, tenant_id) -> Tenant:
        try:
            return Tenant.objects.get(pk=tenant_id, landlord_id=_landlord_pk(landlord))
        except Tenant.DoesNotExist:
            raise TenantNotFoundError(f"Tenant {tenant_id} not found", tenant_id=tenant_id)

    def assign_payment(self, landlord, payment_id, tenant_id) -> Payment:
        """
        Attach a PENDING payment to a tenant and debit their balance. The
        payment row is locked so concurrent assignments serialize and only
        the first one debits.
        """
        landlord_id = _landlord_pk(landlord)
        with transaction.atomic():
            tenant = self.get_tenant(landlord_id, tenant_id)
            try:
                payment = Payment.objects.select_for_update().get(pk=payment_id, landlord_id=landlord_id)
            except Payment.DoesNotExist:
                raise PaymentNotFoundError(f"Payment {payment_id} not found", payment_id=payment_id)

            if payment.tenant_id is not None or payment.status != Payment.PENDING:
                raise PaymentAlreadyAssignedError(
                    f"Payment {payment_id} is already {payment.status.lower()}",
                    payment_id=payment_id,
                    tenant_id=payment.tenant_id,
                    status=payment.status,
                )

            payment.tenant = tenant
            payment.status = Payment.COMPLETED
            payment.save(update_fields=['tenant', 'status', 'updated_at'])
            Tenant.objects.filter(pk=tenant.pk).update(balance=F('balance') - payment.amount)

        logger.info(f"Payment {payment.receipt} assigned to tenant {tenant.pk} by landlord {landlord_id}")
        return payment

    def record_cash_payment(self, landlord, tenant_id, amount: Decimal, receipt: Optional[str] = None) -> Payment:
        landlord_id = _landlord_pk(landlord)
        receipt = (receipt or '').strip() or self.generate_cash_receipt()
        tenant = self.get_tenant(landlord_id, tenant_id)

        if self._existing_payment_id(Payment.PROVIDER_CASH, receipt) is not None:
            raise DuplicatePaymentError(f"Receipt {receipt} already recorded", receipt=receipt)

        try:
            with transaction.atomic():
                payment = Payment.objects.create(
                    landlord_id=landlord_id,
                    tenant=tenant,
                    amount=amount,
                    status=Payment.COMPLETED,
                    method=Payment.CASH,
                    provider=Payment.PROVIDER_CASH,
                    receipt=receipt,
                )
                Tenant.objects.filter(pk=tenant.pk).update(balance=F('balance') - amount)
        except IntegrityError as exc:
            raise DuplicatePaymentError(f"Receipt {receipt} already recorded", receipt=receipt) from exc

        logger.info(f"Cash payment {receipt} of {amount} recorded for tenant {tenant.pk}")
        return payment

    @staticmethod
    def generate_cash_receipt() -> str:
        return f"CASH-{timezone.now():%Y%m%d%H%M%S}-{uuid.uuid4().hex[:6].upper()}"

    def list_payments(self, landlord, status: Optional[str] = None):
        queryset = Payment.objects.filter(landlord_id=_landlord_pk(landlord)).select_related('tenant')
        if status:
            queryset = queryset.filter(status=status.upper())
        return queryset.order_by('-created_at', '-id')

    def tenant_history(self, landlord, tenant_id):
        tenant = self.get_tenant(landlord, tenant_id)
        return tenant, tenant.payments.select_related('tenant').order_by('-created_at', '-id')
