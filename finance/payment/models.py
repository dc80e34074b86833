from django.db import models
from django.conf import settings
from core.models import BaseModel


class Payment(BaseModel):
    """
    One row per provider receipt. The (provider, receipt) pair is the
    idempotency key for gateway deliveries; a row is never deleted.
    """
    PENDING = 'PENDING'
    COMPLETED = 'COMPLETED'
    FAILED = 'FAILED'

    STATUS_CHOICES = (
        (PENDING, 'Pending'),
        (COMPLETED, 'Completed'),
        (FAILED, 'Failed'),
    )

    CASH = 'CASH'
    MPESA_TILL = 'MPESA_TILL'
    MPESA_PAYBILL = 'MPESA_PAYBILL'

    METHOD_CHOICES = (
        (CASH, 'Cash'),
        (MPESA_TILL, 'M-Pesa Till'),
        (MPESA_PAYBILL, 'M-Pesa Paybill'),
    )

    PROVIDER_MPESA = 'MPESA'
    PROVIDER_CASH = 'CASH'

    PROVIDER_CHOICES = (
        (PROVIDER_MPESA, 'M-Pesa'),
        (PROVIDER_CASH, 'Cash'),
    )

    landlord = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='rent_payments')
    tenant = models.ForeignKey('rentals.Tenant', on_delete=models.PROTECT, null=True, blank=True, related_name='payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    provider = models.CharField(max_length=20, choices=PROVIDER_CHOICES, default=PROVIDER_MPESA)
    receipt = models.CharField(max_length=100)

    # Payer details as reported by the gateway
    phone = models.CharField(max_length=64, blank=True, default='')
    business_short_code = models.CharField(max_length=20, blank=True, default='')
    account_ref = models.CharField(max_length=100, blank=True, default='')
    payer_name = models.CharField(max_length=255, blank=True, default='')

    class Meta(BaseModel.Meta):
        ordering = ['-created_at', '-id']
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        constraints = [
            models.UniqueConstraint(fields=['provider', 'receipt'], name='uq_payment_provider_receipt'),
        ]
        indexes = [
            models.Index(fields=['landlord', 'status'], name='idx_payment_landlord_status'),
            models.Index(fields=['tenant'], name='idx_payment_tenant'),
        ]

    def __str__(self):
        return f"{self.method} {self.receipt} - {self.amount}"

    @property
    def is_assigned(self):
        return self.tenant_id is not None
