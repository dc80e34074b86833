"""
Credential vault for per-landlord gateway secrets.

Values are sealed with Fernet (AES-CBC with HMAC-SHA256 and a random IV per
token). The Fernet key is derived with HKDF-SHA256 from the CYPHER_KEY
setting, so any secret of at least MIN_SECRET_LENGTH characters is accepted
whole and never truncated.
"""
import base64
from functools import lru_cache
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from core.exceptions import CredentialIntegrityError

MIN_SECRET_LENGTH = 32
HKDF_INFO = b'smartrentals:landlord-credentials:v1'


def validate_cypher_key(secret: Optional[str] = None) -> str:
    """Return the system secret, raising ImproperlyConfigured if it is unusable."""
    if secret is None:
        secret = getattr(settings, 'CYPHER_KEY', '')
    if not isinstance(secret, str) or len(secret) < MIN_SECRET_LENGTH:
        raise ImproperlyConfigured(
            f"CYPHER_KEY must be at least {MIN_SECRET_LENGTH} characters long"
        )
    return secret


@lru_cache(maxsize=8)
def derive_key(secret: str) -> bytes:
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=None, info=HKDF_INFO)
    return base64.urlsafe_b64encode(hkdf.derive(secret.encode('utf-8')))


class Crypto:
    def __init__(self, text: str, command: str, secret: Optional[str] = None):
        self.command = command
        self.text = text if text is not None else ''
        self.key = derive_key(validate_cypher_key(secret))

    def encrypt(self) -> str:
        cipher = Fernet(self.key)
        return cipher.encrypt(self.text.encode('utf-8')).decode('ascii')

    def decrypt(self) -> str:
        # No plaintext fallback: anything that fails authentication is rejected
        cipher = Fernet(self.key)
        token = self.text.encode('utf-8') if isinstance(self.text, str) else self.text
        try:
            return cipher.decrypt(token).decode('utf-8')
        except (InvalidToken, TypeError, ValueError) as exc:
            raise CredentialIntegrityError('Stored credential failed integrity check') from exc

    def run(self) -> str:
        if self.command == 'encrypt':
            return self.encrypt()
        if self.command == 'decrypt':
            return self.decrypt()
        raise ValueError(f"Unknown crypto command: {self.command}")


def encrypt_secret(plaintext: str, secret: Optional[str] = None) -> str:
    return Crypto(plaintext, 'encrypt', secret=secret).encrypt()


def decrypt_secret(token: str, secret: Optional[str] = None) -> str:
    return Crypto(token, 'decrypt', secret=secret).decrypt()
