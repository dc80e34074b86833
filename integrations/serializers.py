from rest_framework import serializers

from .models import LandlordPaymentConfig
from .utils import decrypt_secret


def _last4(v):
    v = v or ''
    return '••••' + (v[-4:] if len(v) >= 4 else '')


class MpesaConfigInputSerializer(serializers.Serializer):
    short_code = serializers.RegexField(r'^\d{5,10}$', error_messages={'invalid': 'Short code must be 5 to 10 digits'})
    short_code_type = serializers.ChoiceField(choices=LandlordPaymentConfig.SHORT_CODE_TYPE_CHOICES)
    consumer_key = serializers.CharField(max_length=255, trim_whitespace=True)
    consumer_secret = serializers.CharField(max_length=255, trim_whitespace=True)
    environment = serializers.ChoiceField(
        choices=LandlordPaymentConfig.ENVIRONMENT_CHOICES,
        default=LandlordPaymentConfig.SANDBOX
    )
    validation_enabled = serializers.BooleanField(default=False)

    def validate_short_code_type(self, value):
        return value.lower()


class LandlordPaymentConfigSerializer(serializers.ModelSerializer):
    """
    Read-only view of a config. Credentials are shown only as a masked
    preview; a tampered credential raises CredentialIntegrityError.
    """
    consumer_key_preview = serializers.SerializerMethodField(read_only=True)
    consumer_secret_preview = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = LandlordPaymentConfig
        fields = [
            'id', 'short_code', 'short_code_type', 'environment', 'validation_enabled',
            'urls_registered_at', 'consumer_key_preview', 'consumer_secret_preview',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_consumer_key_preview(self, obj):
        return _last4(decrypt_secret(obj.consumer_key))

    def get_consumer_secret_preview(self, obj):
        return _last4(decrypt_secret(obj.consumer_secret))
