"""
Canonical form of an inbound M-Pesa C2B confirmation.

Two payload shapes reach the confirmation endpoint: the legacy one carries
TransAmount as a JSON number, the current one as a string and adds the payer
name and bookkeeping fields. Both are parsed by C2BConfirmationSerializer and
reduced here to a NormalizedPayment, so nothing loosely typed gets past this
module.
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from django.utils import timezone

from core.exceptions import PaymentValidationError
from core.utils import normalize_phone

logger = logging.getLogger(__name__)

PROVIDER_MPESA = 'MPESA'

CHANNEL_TILL = 'TILL'
CHANNEL_PAYBILL = 'PAYBILL'

TRANS_TIME_FORMAT = '%Y%m%d%H%M%S'

# Width of Payment.payer_name; the name is informational only
PAYER_NAME_MAX_LENGTH = 255


@dataclass(frozen=True)
class NormalizedPayment:
    provider: str
    channel: str
    business_id: str
    phone: str
    amount: Decimal
    receipt: str
    account_ref: Optional[str] = None
    payer_name: str = ''
    transaction_time: Optional[datetime] = None

    @property
    def is_paybill(self) -> bool:
        return self.channel == CHANNEL_PAYBILL

    @property
    def method(self) -> str:
        return 'MPESA_PAYBILL' if self.is_paybill else 'MPESA_TILL'


def classify_channel(bill_ref) -> str:
    """A non-blank bill reference means the payer used a paybill account."""
    if bill_ref is not None and str(bill_ref).strip():
        return CHANNEL_PAYBILL
    return CHANNEL_TILL


def parse_trans_time(value) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.strptime(str(value).strip(), TRANS_TIME_FORMAT)
    except ValueError:
        logger.warning(f"Unparseable TransTime {value!r}, ignoring")
        return None
    return timezone.make_aware(parsed) if timezone.is_naive(parsed) else parsed


def _payer_name(data: Mapping[str, Any]) -> str:
    parts = (data.get('FirstName'), data.get('MiddleName'), data.get('LastName'))
    name = ' '.join(p.strip() for p in parts if p and p.strip())
    return name[:PAYER_NAME_MAX_LENGTH]


def normalize_confirmation(payload) -> NormalizedPayment:
    """
    Parse a confirmation body (raw bytes, str or an already decoded dict)
    into a NormalizedPayment.

    Raises PaymentValidationError for malformed JSON or a payload that fails
    field validation.
    """
    # Deferred: the serializers module pulls in the Payment model
    from .serializers import C2BConfirmationSerializer

    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode('utf-8')
        except UnicodeDecodeError as exc:
            raise PaymentValidationError('Confirmation body is not valid UTF-8', error=str(exc)) from exc
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise PaymentValidationError('Malformed JSON body', error=str(exc)) from exc

    if not isinstance(payload, Mapping):
        raise PaymentValidationError('Confirmation body must be a JSON object')

    serializer = C2BConfirmationSerializer(data=payload)
    if not serializer.is_valid():
        raise PaymentValidationError('Invalid confirmation payload', errors=serializer.errors)

    data = serializer.validated_data
    bill_ref = data.get('BillRefNumber') or ''
    channel = classify_channel(bill_ref)

    return NormalizedPayment(
        provider=PROVIDER_MPESA,
        channel=channel,
        business_id=data['BusinessShortCode'].strip(),
        account_ref=bill_ref.strip() if channel == CHANNEL_PAYBILL else None,
        phone=normalize_phone(data.get('MSISDN')),
        amount=data['TransAmount'],
        receipt=data['TransID'].strip(),
        payer_name=_payer_name(data),
        transaction_time=parse_trans_time(data.get('TransTime')),
    )
