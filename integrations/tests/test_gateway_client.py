from unittest.mock import MagicMock, patch

import requests
from django.core.cache import cache
from django.test import SimpleTestCase

from core.exceptions import GatewayError, GatewayTimeoutError
from integrations.payments.mpesa_payment import (
    PRODUCTION_BASE_URL,
    SANDBOX_BASE_URL,
    MpesaGatewayClient,
)


def mock_response(status_code=200, json_data=None, text=''):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.text = text
    if json_data is None:
        resp.json.side_effect = ValueError('no json')
    else:
        resp.json.return_value = json_data
    return resp


TOKEN_RESPONSE = {'access_token': 'tok-1', 'expires_in': '3599'}


class MpesaGatewayClientTests(SimpleTestCase):
    def setUp(self):
        cache.clear()
        self.client = MpesaGatewayClient('sandbox', 'key', 'secret')

    def test_environment_selects_base_url(self):
        self.assertEqual(self.client.base_url, SANDBOX_BASE_URL)
        self.assertEqual(MpesaGatewayClient('production', 'k', 's').base_url, PRODUCTION_BASE_URL)

    def test_timeouts_never_exceed_fifteen_seconds(self):
        client = MpesaGatewayClient('sandbox', 'k', 's', token_timeout=60, register_timeout=90)
        self.assertEqual(client.token_timeout, 15)
        self.assertEqual(client.register_timeout, 15)

    @patch('integrations.payments.mpesa_payment.requests.get')
    def test_get_access_token_uses_basic_auth(self, mock_get):
        mock_get.return_value = mock_response(json_data=TOKEN_RESPONSE)

        self.assertEqual(self.client.get_access_token(), 'tok-1')
        args, kwargs = mock_get.call_args
        self.assertEqual(args[0], f'{SANDBOX_BASE_URL}/oauth/v1/generate?grant_type=client_credentials')
        self.assertEqual(kwargs['auth'], ('key', 'secret'))
        self.assertEqual(kwargs['timeout'], 10)

    @patch('integrations.payments.mpesa_payment.requests.get')
    def test_token_is_cached(self, mock_get):
        mock_get.return_value = mock_response(json_data=TOKEN_RESPONSE)
        self.client.get_access_token()
        self.client.get_access_token()
        self.assertEqual(mock_get.call_count, 1)

        self.client.get_access_token(force_refresh=True)
        self.assertEqual(mock_get.call_count, 2)

    @patch('integrations.payments.mpesa_payment.requests.get')
    def test_token_failure_carries_status_and_body(self, mock_get):
        mock_get.return_value = mock_response(400, text='{"errorMessage": "Invalid Authentication"}')
        with self.assertRaises(GatewayError) as ctx:
            self.client.get_access_token()
        self.assertEqual(ctx.exception.status, 400)
        self.assertIn('Invalid Authentication', ctx.exception.body)

    @patch('integrations.payments.mpesa_payment.requests.get', side_effect=requests.Timeout('slow'))
    def test_timeout_is_retryable(self, mock_get):
        with self.assertRaises(GatewayTimeoutError) as ctx:
            self.client.get_access_token()
        self.assertTrue(ctx.exception.retryable)

    @patch('integrations.payments.mpesa_payment.requests.post')
    @patch('integrations.payments.mpesa_payment.requests.get')
    def test_register_urls(self, mock_get, mock_post):
        mock_get.return_value = mock_response(json_data=TOKEN_RESPONSE)
        mock_post.return_value = mock_response(json_data={'ResponseDescription': 'Success'})

        result = self.client.register_urls('600638', 'https://x/confirm', 'https://x/validate')

        self.assertFalse(result['already_registered'])
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], f'{SANDBOX_BASE_URL}/mpesa/c2b/v2/registerurl')
        self.assertEqual(kwargs['json'], {
            'ShortCode': '600638',
            'ResponseType': 'Completed',
            'ConfirmationURL': 'https://x/confirm',
            'ValidationURL': 'https://x/validate',
        })
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer tok-1')
        self.assertEqual(kwargs['timeout'], 15)

    @patch('integrations.payments.mpesa_payment.requests.post')
    @patch('integrations.payments.mpesa_payment.requests.get')
    def test_already_registered_is_success(self, mock_get, mock_post):
        mock_get.return_value = mock_response(json_data=TOKEN_RESPONSE)
        mock_post.return_value = mock_response(
            500, text='{"errorCode": "500.003.1001", "errorMessage": "Urls are already registered"}'
        )
        result = self.client.register_urls('600638', 'https://x/c', 'https://x/v')
        self.assertTrue(result['already_registered'])

    @patch('integrations.payments.mpesa_payment.requests.post')
    @patch('integrations.payments.mpesa_payment.requests.get')
    def test_other_errors_surface_raw_body(self, mock_get, mock_post):
        mock_get.return_value = mock_response(json_data=TOKEN_RESPONSE)
        mock_post.return_value = mock_response(400, text='{"errorCode": "400.003.02", "errorMessage": "Bad Request"}')
        with self.assertRaises(GatewayError) as ctx:
            self.client.register_urls('600638', 'https://x/c', 'https://x/v')
        self.assertEqual(ctx.exception.status, 400)
        self.assertIn('400.003.02', ctx.exception.body)

    @patch('integrations.payments.mpesa_payment.requests.post')
    @patch('integrations.payments.mpesa_payment.requests.get')
    def test_unauthorized_retries_once_with_fresh_token(self, mock_get, mock_post):
        mock_get.side_effect = [
            mock_response(json_data=TOKEN_RESPONSE),
            mock_response(json_data={'access_token': 'tok-2', 'expires_in': '3599'}),
        ]
        mock_post.side_effect = [
            mock_response(401, text='Invalid Access Token'),
            mock_response(json_data={'ResponseDescription': 'Success'}),
        ]

        self.client.register_urls('600638', 'https://x/c', 'https://x/v')

        self.assertEqual(mock_post.call_count, 2)
        self.assertEqual(mock_post.call_args[1]['headers']['Authorization'], 'Bearer tok-2')

    @patch('integrations.payments.mpesa_payment.requests.post', side_effect=requests.ConnectionError('refused'))
    @patch('integrations.payments.mpesa_payment.requests.get')
    def test_register_connection_error(self, mock_get, mock_post):
        mock_get.return_value = mock_response(json_data=TOKEN_RESPONSE)
        with self.assertRaises(GatewayTimeoutError):
            self.client.register_urls('600638', 'https://x/c', 'https://x/v')
