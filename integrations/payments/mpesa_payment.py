"""
Daraja (M-Pesa) client used for landlord configuration: OAuth tokens and
C2B callback URL registration. Payments themselves arrive as callbacks and
never go through this client.
"""
import hashlib
import logging
from typing import Any, Dict, Optional

import requests
from django.conf import settings
from django.core.cache import cache

from core.exceptions import GatewayError, GatewayTimeoutError

logger = logging.getLogger(__name__)

SANDBOX_BASE_URL = 'https://sandbox.safaricom.co.ke'
PRODUCTION_BASE_URL = 'https://api.safaricom.co.ke'

TOKEN_PATH = '/oauth/v1/generate?grant_type=client_credentials'
REGISTER_URL_PATH = '/mpesa/c2b/v2/registerurl'

# Daraja error code for a short code whose URLs are already registered
ALREADY_REGISTERED_CODE = '500.003.1001'

MAX_TIMEOUT = 15
DEFAULT_TOKEN_TTL = 3599
TOKEN_TTL_MARGIN = 60


class MpesaGatewayClient:
    """
    Client bound to one landlord's credentials and environment. The base URL
    is fixed at construction so a landlord's calls never mix sandbox and
    production.
    """

    def __init__(self, environment: str, consumer_key: str, consumer_secret: str,
                 token_timeout: Optional[float] = None, register_timeout: Optional[float] = None):
        self.environment = environment
        self.base_url = PRODUCTION_BASE_URL if environment == 'production' else SANDBOX_BASE_URL
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.token_timeout = self._bounded(
            token_timeout if token_timeout is not None else getattr(settings, 'MPESA_TOKEN_TIMEOUT', 10)
        )
        self.register_timeout = self._bounded(
            register_timeout if register_timeout is not None else getattr(settings, 'MPESA_REGISTER_TIMEOUT', 15)
        )

    @staticmethod
    def _bounded(timeout) -> float:
        return min(float(timeout), MAX_TIMEOUT)

    @property
    def token_cache_key(self) -> str:
        digest = hashlib.sha256(f"{self.consumer_key}:{self.consumer_secret}".encode('utf-8')).hexdigest()
        return f"mpesa_token:{self.environment}:{digest[:32]}"

    def clear_token(self):
        cache.delete(self.token_cache_key)

    def _send(self, method: str, path: str, timeout: float, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            if method == 'GET':
                return requests.get(url, timeout=timeout, **kwargs)
            return requests.post(url, timeout=timeout, **kwargs)
        except (requests.Timeout, requests.ConnectionError) as exc:
            logger.warning(f"M-Pesa {method} {path} failed: {str(exc)}")
            raise GatewayTimeoutError(f"M-Pesa request timed out or could not connect: {str(exc)}") from exc
        except requests.RequestException as exc:
            raise GatewayError(f"M-Pesa request failed: {str(exc)}") from exc

    def get_access_token(self, timeout: Optional[float] = None, force_refresh: bool = False) -> str:
        """
        Fetch a bearer token with HTTP basic auth. Tokens are cached until
        shortly before they expire.
        """
        if not force_refresh:
            cached = cache.get(self.token_cache_key)
            if cached:
                return cached

        timeout = self._bounded(timeout) if timeout is not None else self.token_timeout
        resp = self._send(
            'GET', TOKEN_PATH, timeout,
            auth=(self.consumer_key, self.consumer_secret),
        )
        if not resp.ok:
            raise GatewayError(
                f"M-Pesa authentication failed ({resp.status_code})",
                status=resp.status_code,
                body=resp.text,
            )

        try:
            data = resp.json()
        except ValueError:
            data = {}
        access_token = data.get('access_token')
        if not access_token:
            raise GatewayError('M-Pesa token response had no access_token', status=resp.status_code, body=resp.text)

        try:
            expires_in = int(data.get('expires_in') or DEFAULT_TOKEN_TTL)
        except (TypeError, ValueError):
            expires_in = DEFAULT_TOKEN_TTL
        ttl = expires_in - TOKEN_TTL_MARGIN
        if ttl > 0:
            cache.set(self.token_cache_key, access_token, timeout=ttl)
        return access_token

    def register_urls(self, short_code: str, confirmation_url: str, validation_url: str,
                      timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Register the C2B confirmation and validation URLs for a short code.
        "Already registered" counts as success. A 401 drops the cached token
        and retries once with a fresh one.
        """
        timeout = self._bounded(timeout) if timeout is not None else self.register_timeout
        payload = {
            'ShortCode': short_code,
            'ResponseType': 'Completed',
            'ConfirmationURL': confirmation_url,
            'ValidationURL': validation_url,
        }

        for attempt in (1, 2):
            token = self.get_access_token(force_refresh=attempt > 1)
            resp = self._send(
                'POST', REGISTER_URL_PATH, timeout,
                json=payload,
                headers={'Authorization': f"Bearer {token}"},
            )
            if resp.status_code == 401 and attempt == 1:
                logger.info(f"M-Pesa rejected cached token for {short_code}, retrying")
                self.clear_token()
                continue
            break

        body = resp.text or ''
        if resp.ok:
            try:
                data = resp.json()
            except ValueError:
                data = {'raw': body}
            logger.info(f"Registered C2B URLs for short code {short_code} ({self.environment})")
            return {'already_registered': False, 'response': data}

        if ALREADY_REGISTERED_CODE in body or 'already registered' in body.lower():
            logger.info(f"C2B URLs already registered for short code {short_code}")
            return {'already_registered': True, 'response': body}

        raise GatewayError(
            f"M-Pesa URL registration failed ({resp.status_code})",
            status=resp.status_code,
            body=body,
        )
