import base64

from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase, override_settings

from core.exceptions import CredentialIntegrityError
from integrations.utils import Crypto, decrypt_secret, encrypt_secret, validate_cypher_key

SECRET = 'a-test-vault-secret-that-is-long-enough-0001'
OTHER_SECRET = 'a-different-vault-secret-that-is-long-enough'


@override_settings(CYPHER_KEY=SECRET)
class CredentialVaultTests(SimpleTestCase):
    def test_round_trip(self):
        for plaintext in ('consumer-key-123', '', 'ñandú secret ✓', 'x' * 500):
            with self.subTest(plaintext=plaintext):
                self.assertEqual(decrypt_secret(encrypt_secret(plaintext)), plaintext)

    def test_ciphertext_is_not_plaintext_and_is_randomised(self):
        first = encrypt_secret('consumer-key-123')
        second = encrypt_secret('consumer-key-123')
        self.assertNotIn('consumer-key-123', first)
        self.assertNotEqual(first, second)

    def test_tampered_ciphertext_fails_closed(self):
        token = encrypt_secret('consumer-key-123')
        raw = bytearray(base64.urlsafe_b64decode(token))
        raw[-1] ^= 0x01
        tampered = base64.urlsafe_b64encode(bytes(raw)).decode()

        with self.assertRaises(CredentialIntegrityError):
            decrypt_secret(tampered)

    def test_truncated_ciphertext_fails_closed(self):
        token = encrypt_secret('consumer-key-123')
        with self.assertRaises(CredentialIntegrityError):
            decrypt_secret(token[:20])

    def test_plaintext_is_never_returned_as_is(self):
        with self.assertRaises(CredentialIntegrityError):
            decrypt_secret('legacy-plaintext-consumer-key')

    def test_wrong_key_fails(self):
        token = encrypt_secret('consumer-key-123')
        with self.assertRaises(CredentialIntegrityError):
            decrypt_secret(token, secret=OTHER_SECRET)

    def test_whole_secret_is_used(self):
        # Secrets sharing a 32 character prefix must not be interchangeable
        token = encrypt_secret('value', secret=SECRET + 'A')
        with self.assertRaises(CredentialIntegrityError):
            decrypt_secret(token, secret=SECRET + 'B')

    def test_crypto_command_api(self):
        token = Crypto('value', 'encrypt').run()
        self.assertEqual(Crypto(token, 'decrypt').run(), 'value')
        with self.assertRaises(ValueError):
            Crypto('value', 'rot13').run()


class CypherKeyValidationTests(SimpleTestCase):
    def test_short_secret_rejected(self):
        with self.assertRaises(ImproperlyConfigured):
            validate_cypher_key('too-short')

    @override_settings(CYPHER_KEY='')
    def test_missing_secret_rejected(self):
        with self.assertRaises(ImproperlyConfigured):
            validate_cypher_key()

    def test_long_secret_accepted(self):
        self.assertEqual(validate_cypher_key(SECRET), SECRET)
