from rest_framework import serializers

from core.validators import validate_positive_amount
from .models import Payment


class FlexibleAmountField(serializers.Field):
    """
    Currency amount sent either as a JSON number or a numeric string.
    Produces a Decimal with two places; floats never reach the ledger.
    """
    default_error_messages = {
        'invalid': 'A valid amount is required.',
    }

    def to_internal_value(self, data):
        try:
            return validate_positive_amount(data, field_name=self.field_name or 'amount')
        except serializers.ValidationError as exc:
            detail = exc.detail
            if isinstance(detail, dict):
                detail = next(iter(detail.values()))
            raise serializers.ValidationError(detail)

    def to_representation(self, value):
        return str(value)


class C2BConfirmationSerializer(serializers.Serializer):
    """Fields of a Daraja C2B confirmation, in both the legacy and current shape."""
    TransactionType = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    TransID = serializers.CharField(max_length=100)
    TransTime = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    TransAmount = FlexibleAmountField()
    BusinessShortCode = serializers.CharField(max_length=20)
    BillRefNumber = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    InvoiceNumber = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    OrgAccountBalance = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    ThirdPartyTransID = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    MSISDN = serializers.CharField(max_length=50)
    FirstName = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    MiddleName = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    LastName = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_TransID(self, value):
        if not value.strip():
            raise serializers.ValidationError("TransID cannot be blank")
        return value

    def validate_BusinessShortCode(self, value):
        if not value.strip():
            raise serializers.ValidationError("BusinessShortCode cannot be blank")
        return value


class PaymentSerializer(serializers.ModelSerializer):
    tenant_name = serializers.CharField(source='tenant.tenant_name', read_only=True, default=None)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    method_display = serializers.CharField(source='get_method_display', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'landlord', 'tenant', 'tenant_name', 'amount', 'status', 'status_display',
            'method', 'method_display', 'provider', 'receipt', 'phone', 'business_short_code',
            'account_ref', 'payer_name', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class CashPaymentSerializer(serializers.Serializer):
    tenant_id = serializers.IntegerField(min_value=1)
    amount = FlexibleAmountField()
    receipt = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)


class AssignPaymentSerializer(serializers.Serializer):
    tenant_id = serializers.IntegerField(min_value=1)
