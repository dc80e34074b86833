"""
Landlord M-Pesa configuration service.

Handles:
- Encrypting credentials before they are stored
- Upserting the one config a landlord owns
- Registering C2B callback URLs with Daraja
- Connectivity checks via a token round-trip
"""
from typing import Any, Dict, Optional, Tuple
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from core.exceptions import ConfigNotFoundError, CredentialIntegrityError, GatewayError
from integrations.models import LandlordPaymentConfig
from integrations.payments.mpesa_payment import MpesaGatewayClient
from integrations.utils import decrypt_secret, encrypt_secret

logger = logging.getLogger(__name__)

CONFIRMATION_PATH = '/api/v1/payments/c2b/confirmation'
VALIDATION_PATH = '/api/v1/payments/c2b/validation'


def _landlord_pk(landlord):
    return getattr(landlord, 'pk', landlord)


class LandlordConfigService:
    """
    Reads and writes LandlordPaymentConfig. Credentials only leave this
    service decrypted when a gateway client needs them.
    """

    @classmethod
    def get_config(cls, landlord) -> LandlordPaymentConfig:
        try:
            return LandlordPaymentConfig.objects.get(landlord_id=_landlord_pk(landlord))
        except LandlordPaymentConfig.DoesNotExist:
            raise ConfigNotFoundError('M-Pesa settings not configured')

    @classmethod
    def get_decrypted_config(cls, landlord) -> Dict[str, Any]:
        """Raises CredentialIntegrityError if a stored credential was tampered with."""
        config = cls.get_config(landlord)
        return {
            'short_code': config.short_code,
            'short_code_type': config.short_code_type,
            'environment': config.environment,
            'validation_enabled': config.validation_enabled,
            'consumer_key': decrypt_secret(config.consumer_key),
            'consumer_secret': decrypt_secret(config.consumer_secret),
            'urls_registered_at': config.urls_registered_at,
        }

    @classmethod
    def get_client(cls, config: LandlordPaymentConfig) -> MpesaGatewayClient:
        return MpesaGatewayClient(
            environment=config.environment,
            consumer_key=decrypt_secret(config.consumer_key),
            consumer_secret=decrypt_secret(config.consumer_secret),
        )

    @classmethod
    def resolve_callback_base(cls, request=None) -> str:
        base = getattr(settings, 'MPESA_CALLBACK_BASE_URL', '') or ''
        if not base and request is not None:
            base = f"https://{request.get_host()}"
        if not base:
            raise GatewayError('No callback base URL available for URL registration')
        return base.rstrip('/')

    @classmethod
    def build_callback_urls(cls, base_url: str) -> Tuple[str, str]:
        base_url = base_url.rstrip('/')
        return f"{base_url}{CONFIRMATION_PATH}", f"{base_url}{VALIDATION_PATH}"

    @classmethod
    def save_config(cls, landlord, short_code: str, short_code_type: str, consumer_key: str,
                    consumer_secret: str, environment: str = LandlordPaymentConfig.SANDBOX,
                    validation_enabled: bool = False,
                    callback_base_url: Optional[str] = None) -> Tuple[LandlordPaymentConfig, Dict[str, Any]]:
        """
        Encrypt and upsert the landlord's config, then register callback URLs.

        The config is kept even if registration fails; the GatewayError is
        raised to the caller and registration can be retried later.
        """
        landlord_id = _landlord_pk(landlord)
        previous = LandlordPaymentConfig.objects.filter(landlord_id=landlord_id).first()

        with transaction.atomic():
            config, created = LandlordPaymentConfig.objects.update_or_create(
                landlord_id=landlord_id,
                defaults={
                    'short_code': short_code.strip(),
                    'short_code_type': short_code_type,
                    'consumer_key': encrypt_secret(consumer_key),
                    'consumer_secret': encrypt_secret(consumer_secret),
                    'environment': environment,
                    'validation_enabled': validation_enabled,
                    'urls_registered_at': None,
                },
            )

        if previous is not None:
            cls._clear_cached_token(previous)

        logger.info(f"{'Created' if created else 'Updated'} M-Pesa config for landlord {landlord_id} "
                    f"({config.short_code_type} {config.short_code}, {config.environment})")

        registration = cls.register_urls(config, callback_base_url)
        return config, registration

    @classmethod
    def register_urls(cls, config_or_landlord, callback_base_url: Optional[str] = None) -> Dict[str, Any]:
        if isinstance(config_or_landlord, LandlordPaymentConfig):
            config = config_or_landlord
        else:
            config = cls.get_config(config_or_landlord)

        base_url = callback_base_url or cls.resolve_callback_base()
        confirmation_url, validation_url = cls.build_callback_urls(base_url)

        client = cls.get_client(config)
        result = client.register_urls(config.short_code, confirmation_url, validation_url)

        config.urls_registered_at = timezone.now()
        config.save(update_fields=['urls_registered_at', 'updated_at'])

        return {
            'short_code': config.short_code,
            'confirmation_url': confirmation_url,
            'validation_url': validation_url,
            'already_registered': result.get('already_registered', False),
            'registered_at': config.urls_registered_at.isoformat(),
        }

    @classmethod
    def test_connection(cls, landlord) -> Tuple[bool, str]:
        """
        Test M-Pesa API connectivity by fetching a fresh access token.
        Returns (success, message)
        """
        try:
            config = cls.get_config(landlord)
        except ConfigNotFoundError as e:
            return False, e.message

        client = cls.get_client(config)
        try:
            client.get_access_token(force_refresh=True)
        except GatewayError as e:
            logger.warning(f"M-Pesa connectivity check failed for landlord {config.landlord_id}: {e.message}")
            return False, f"M-Pesa authentication failed: {e.body or e.message}"
        return True, "M-Pesa connection successful"

    @classmethod
    def _clear_cached_token(cls, config: LandlordPaymentConfig):
        try:
            cls.get_client(config).clear_token()
        except CredentialIntegrityError as e:
            # Old credentials may not decrypt after a key rotation
            logger.warning(f"Could not clear cached M-Pesa token for landlord {config.landlord_id}: {str(e)}")
