from django.db import models
from django.conf import settings
from core.models import BaseModel


class LandlordPaymentConfig(BaseModel):
    """
    Daraja credentials and short code for one landlord. consumer_key and
    consumer_secret hold vault tokens, never plaintext; use
    LandlordConfigService to read or write them.
    """
    PAYBILL = 'paybill'
    TILL = 'till'

    SHORT_CODE_TYPE_CHOICES = (
        (PAYBILL, 'Paybill'),
        (TILL, 'Till'),
    )

    SANDBOX = 'sandbox'
    PRODUCTION = 'production'

    ENVIRONMENT_CHOICES = (
        (SANDBOX, 'Sandbox'),
        (PRODUCTION, 'Production'),
    )

    landlord = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='payment_config')
    short_code = models.CharField(max_length=20, db_index=True)
    short_code_type = models.CharField(max_length=10, choices=SHORT_CODE_TYPE_CHOICES, default=PAYBILL)
    consumer_key = models.TextField()
    consumer_secret = models.TextField()
    environment = models.CharField(max_length=20, choices=ENVIRONMENT_CHOICES, default=SANDBOX)
    validation_enabled = models.BooleanField(default=False)
    urls_registered_at = models.DateTimeField(null=True, blank=True)

    class Meta(BaseModel.Meta):
        verbose_name = "Landlord Payment Config"
        verbose_name_plural = "Landlord Payment Configs"

    def __str__(self):
        return f"{self.get_short_code_type_display()} {self.short_code} ({self.environment})"


class Till(BaseModel):
    """Routes C2B payments to a till number to its landlord."""
    till_number = models.CharField(max_length=20, unique=True)
    landlord = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='tills')
    active = models.BooleanField(default=True)

    class Meta(BaseModel.Meta):
        verbose_name = "Till"
        verbose_name_plural = "Tills"

    def __str__(self):
        return f"Till {self.till_number}"


class Paybill(BaseModel):
    """Routes C2B payments for a paybill + account number to its landlord."""
    paybill = models.CharField(max_length=20)
    account_number = models.CharField(max_length=100)
    landlord = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='paybills')
    active = models.BooleanField(default=True)

    class Meta(BaseModel.Meta):
        verbose_name = "Paybill"
        verbose_name_plural = "Paybills"
        constraints = [
            models.UniqueConstraint(fields=['paybill', 'account_number'], name='uq_paybill_account'),
        ]

    def __str__(self):
        return f"Paybill {self.paybill} / {self.account_number}"
