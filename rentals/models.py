from decimal import Decimal
from django.db import models
from django.conf import settings
from core.models import BaseModel
from core.utils import normalize_phone


class Property(BaseModel):
    landlord = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='properties')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=255, blank=True)
    property_type = models.CharField(max_length=50, blank=True)
    vacancy = models.BooleanField(default=True)
    total_rent = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    class Meta(BaseModel.Meta):
        verbose_name_plural = 'Properties'
        ordering = ['title']

    def __str__(self):
        return self.title


class Unit(BaseModel):
    property = models.ForeignKey(Property, on_delete=models.CASCADE, related_name='units')
    unit_name = models.CharField(max_length=100)
    unit_type = models.CharField(max_length=50, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    vacancy = models.BooleanField(default=True)

    class Meta(BaseModel.Meta):
        ordering = ['unit_name']

    def __str__(self):
        return f"{self.property} - {self.unit_name}"


class Tenant(BaseModel):
    """
    A tenant occupying a unit. payment_no1/payment_no2 are the phone numbers
    the tenant pays from; they are stored normalized (254XXXXXXXXX) so that
    gateway callbacks can be matched by equality.
    """
    landlord = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='tenants')
    unit = models.ForeignKey(Unit, on_delete=models.SET_NULL, null=True, blank=True, related_name='tenants')
    tenant_name = models.CharField(max_length=255)
    payment_no1 = models.CharField(max_length=20, blank=True, default='')
    payment_no2 = models.CharField(max_length=20, blank=True, default='')
    rent = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    class Meta(BaseModel.Meta):
        ordering = ['id']
        indexes = [
            models.Index(fields=['landlord', 'payment_no1'], name='idx_tenant_landlord_no1'),
            models.Index(fields=['landlord', 'payment_no2'], name='idx_tenant_landlord_no2'),
        ]

    def __str__(self):
        return self.tenant_name

    def save(self, *args, **kwargs):
        self.payment_no1 = normalize_phone(self.payment_no1)
        self.payment_no2 = normalize_phone(self.payment_no2)
        super().save(*args, **kwargs)
