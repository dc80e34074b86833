"""
Centralized Audit Logging

Records an audit trail for ledger-affecting operations:
- Who performed the action (landlord user, or 'gateway' for callbacks)
- Timestamp of the action
- The entity affected and the outcome
- Request metadata (IP address, user agent, correlation id) when available

Every reconciliation decision is logged with receipt, landlord_id and outcome.
"""

import logging
from typing import Any, Dict, Optional
from django.utils import timezone

logger = logging.getLogger(__name__)


class AuditTrail:
    """
    Audit trail tracking system for recording payment operations.
    """

    # Operation types
    CREATE = 'CREATE'
    UPDATE = 'UPDATE'
    PAYMENT = 'PAYMENT'
    ASSIGN = 'ASSIGN'
    RECONCILE = 'RECONCILE'
    CONFIG = 'CONFIG'

    OPERATION_TYPES = [CREATE, UPDATE, PAYMENT, ASSIGN, RECONCILE, CONFIG]

    @staticmethod
    def log(
        operation: str,
        module: str,
        entity_type: str,
        entity_id: Any,
        user=None,
        changes: Optional[Dict[str, Any]] = None,
        reason: Optional[str] = None,
        request=None,
        level: int = logging.INFO,
        **fields: Any,
    ) -> Dict[str, Any]:
        """
        Log an audit trail entry.

        Args:
            operation: Type of operation (PAYMENT, ASSIGN, RECONCILE, ...)
            module: Module name (e.g., 'finance.payment', 'integrations')
            entity_type: Type of entity (e.g., 'Payment', 'LandlordPaymentConfig')
            entity_id: ID of the entity being operated on
            user: User performing the operation
            changes: Dictionary of changes {field: {old: value, new: value}}
            reason: Reason/notes for the operation
            request: Django request object (extracts IP, user agent, correlation id)
            level: Logging level for the record
            **fields: Additional structured fields stored on the record

        Example:
            AuditTrail.log(
                operation=AuditTrail.ASSIGN,
                module='finance.payment',
                entity_type='Payment',
                entity_id=payment.id,
                user=request.user,
                changes={'status': {'old': 'PENDING', 'new': 'COMPLETED'}},
                request=request
            )
        """
        ip_address = None
        user_agent = None
        correlation_id = None
        if request is not None:
            if user is None and getattr(request, 'user', None) is not None and request.user.is_authenticated:
                user = request.user
            ip_address = AuditTrail._get_client_ip(request)
            user_agent = request.META.get('HTTP_USER_AGENT', '')
            correlation_id = getattr(request, 'correlation_id', None)

        username = getattr(user, 'username', None) or 'system'
        audit_record = {
            'timestamp': timezone.now().isoformat(),
            'operation': operation,
            'module': module,
            'entity_type': entity_type,
            'entity_id': str(entity_id) if entity_id is not None else None,
            'user_id': getattr(user, 'id', None),
            'username': username,
            'changes': changes or {},
            'reason': reason,
            'ip_address': ip_address,
            'user_agent': user_agent,
            'correlation_id': correlation_id,
        }
        audit_record.update(fields)

        logger.log(
            level,
            f"AUDIT: {operation} {entity_type}#{entity_id} by {username}"
            + (f" ({reason})" if reason else ''),
            extra={'audit': audit_record},
        )
        return audit_record

    @staticmethod
    def _get_client_ip(request) -> Optional[str]:
        """Extract client IP address from request."""
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')


def log_reconciliation_decision(
    receipt: str,
    landlord_id: Optional[int],
    outcome: str,
    payment_id: Optional[int] = None,
    tenant_id: Optional[int] = None,
    reason: Optional[str] = None,
    request=None,
) -> Dict[str, Any]:
    """Convenience wrapper for gateway callback outcomes."""
    level = logging.ERROR if outcome == 'FAILED' else logging.INFO
    return AuditTrail.log(
        operation=AuditTrail.RECONCILE,
        module='finance.payment',
        entity_type='Payment',
        entity_id=payment_id,
        reason=reason,
        request=request,
        level=level,
        receipt=receipt,
        landlord_id=landlord_id,
        tenant_id=tenant_id,
        outcome=outcome,
    )


def log_payment_operation(
    operation: str,
    payment,
    user=None,
    changes: Optional[Dict[str, Any]] = None,
    reason: Optional[str] = None,
    request=None,
) -> Dict[str, Any]:
    """Convenience wrapper for landlord-initiated payment operations."""
    return AuditTrail.log(
        operation=operation,
        module='finance.payment',
        entity_type='Payment',
        entity_id=payment.id,
        user=user,
        changes=changes,
        reason=reason,
        request=request,
        receipt=payment.receipt,
        landlord_id=payment.landlord_id,
        tenant_id=payment.tenant_id,
        outcome=payment.status,
    )
