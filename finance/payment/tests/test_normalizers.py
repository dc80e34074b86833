import json
from decimal import Decimal

from django.test import SimpleTestCase

from core.exceptions import PaymentValidationError
from finance.payment.models import Payment
from finance.payment.normalizers import (
    CHANNEL_PAYBILL,
    CHANNEL_TILL,
    classify_channel,
    normalize_confirmation,
)


def c2b_payload(**overrides):
    payload = {
        'TransactionType': 'Pay Bill',
        'TransID': 'RKTQDM7W6S',
        'TransTime': '20240115123045',
        'TransAmount': '2000.00',
        'BusinessShortCode': '600638',
        'BillRefNumber': 'HSE12',
        'InvoiceNumber': '',
        'OrgAccountBalance': '49197.00',
        'ThirdPartyTransID': '',
        'MSISDN': '0712345678',
        'FirstName': 'Jane',
        'MiddleName': '',
        'LastName': 'Wanjiku',
    }
    payload.update(overrides)
    return payload


class NormalizeConfirmationTests(SimpleTestCase):
    def test_current_shape_with_string_amount(self):
        event = normalize_confirmation(json.dumps(c2b_payload()).encode())

        self.assertEqual(event.provider, 'MPESA')
        self.assertEqual(event.channel, CHANNEL_PAYBILL)
        self.assertEqual(event.business_id, '600638')
        self.assertEqual(event.account_ref, 'HSE12')
        self.assertEqual(event.phone, '254712345678')
        self.assertEqual(event.amount, Decimal('2000.00'))
        self.assertEqual(event.receipt, 'RKTQDM7W6S')
        self.assertEqual(event.payer_name, 'Jane Wanjiku')
        self.assertEqual(event.method, 'MPESA_PAYBILL')
        self.assertEqual(event.transaction_time.year, 2024)

    def test_legacy_shape_with_numeric_amount(self):
        payload = {
            'BusinessShortCode': 111111,
            'BillRefNumber': '',
            'MSISDN': '+254712345678',
            'TransAmount': 2000,
            'TransID': 'R1',
            'TransTime': '20240115123045',
        }
        event = normalize_confirmation(payload)

        self.assertEqual(event.channel, CHANNEL_TILL)
        self.assertIsNone(event.account_ref)
        self.assertEqual(event.business_id, '111111')
        self.assertEqual(event.phone, '254712345678')
        self.assertEqual(event.amount, Decimal('2000.00'))
        self.assertIsInstance(event.amount, Decimal)
        self.assertEqual(event.method, 'MPESA_TILL')

    def test_float_amount_keeps_cents(self):
        event = normalize_confirmation(c2b_payload(TransAmount=1500.75))
        self.assertEqual(event.amount, Decimal('1500.75'))

    def test_blank_bill_reference_is_till(self):
        event = normalize_confirmation(c2b_payload(BillRefNumber='   '))
        self.assertEqual(event.channel, CHANNEL_TILL)
        self.assertIsNone(event.account_ref)

    def test_missing_bill_reference_is_till(self):
        payload = c2b_payload()
        del payload['BillRefNumber']
        self.assertEqual(normalize_confirmation(payload).channel, CHANNEL_TILL)

    def test_bill_reference_is_stripped(self):
        event = normalize_confirmation(c2b_payload(BillRefNumber='  hse12 '))
        self.assertEqual(event.account_ref, 'hse12')

    def test_bad_trans_time_is_ignored(self):
        event = normalize_confirmation(c2b_payload(TransTime='yesterday'))
        self.assertIsNone(event.transaction_time)

    def test_malformed_json_raises(self):
        with self.assertRaises(PaymentValidationError):
            normalize_confirmation(b'{"TransID": ')

    def test_undecodable_body_raises(self):
        body = b'{"TransID": "R\xff1", "BusinessShortCode": "111111", "MSISDN": "0712345678", "TransAmount": 10}'
        with self.assertRaises(PaymentValidationError):
            normalize_confirmation(body)

    def test_longest_accepted_msisdn_fits_the_ledger(self):
        phone_length = Payment._meta.get_field('phone').max_length
        event = normalize_confirmation(c2b_payload(MSISDN='07' + '1' * 48))

        self.assertEqual(event.phone, '2547' + '1' * 48)
        self.assertLessEqual(len(event.phone), phone_length)

    def test_long_passthrough_msisdn_is_kept(self):
        event = normalize_confirmation(c2b_payload(MSISDN='2547' + '1' * 30))
        self.assertEqual(event.phone, '2547' + '1' * 30)

    def test_payer_name_is_capped_at_column_width(self):
        event = normalize_confirmation(c2b_payload(FirstName='A' * 200, MiddleName='B' * 200, LastName='C'))
        self.assertEqual(len(event.payer_name), Payment._meta.get_field('payer_name').max_length)
        self.assertTrue(event.payer_name.startswith('A' * 200 + ' B'))

    def test_non_object_body_raises(self):
        with self.assertRaises(PaymentValidationError):
            normalize_confirmation(b'[1, 2, 3]')

    def test_missing_receipt_raises(self):
        payload = c2b_payload()
        del payload['TransID']
        with self.assertRaises(PaymentValidationError):
            normalize_confirmation(payload)

    def test_blank_short_code_raises(self):
        with self.assertRaises(PaymentValidationError):
            normalize_confirmation(c2b_payload(BusinessShortCode='  '))

    def test_invalid_amounts_raise(self):
        for amount in ('abc', '0', '-10', 'NaN', None, '10.001'):
            with self.subTest(amount=amount):
                with self.assertRaises(PaymentValidationError):
                    normalize_confirmation(c2b_payload(TransAmount=amount))


class ClassifyChannelTests(SimpleTestCase):
    def test_classification(self):
        self.assertEqual(classify_channel('ACC-1'), CHANNEL_PAYBILL)
        self.assertEqual(classify_channel(''), CHANNEL_TILL)
        self.assertEqual(classify_channel(None), CHANNEL_TILL)
        self.assertEqual(classify_channel(' '), CHANNEL_TILL)
