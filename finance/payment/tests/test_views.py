import json
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from finance.payment.models import Payment
from integrations.models import Till
from rentals.models import Tenant

CONFIRMATION_URL = '/api/v1/payments/c2b/confirmation'
VALIDATION_URL = '/api/v1/payments/c2b/validation'


class C2BCallbackTests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        User = get_user_model()
        self.landlord = User.objects.create_user(username='landlord', password='testpass')
        Till.objects.create(till_number='111111', landlord=self.landlord)
        self.tenant = Tenant.objects.create(
            landlord=self.landlord,
            tenant_name='Tenant T',
            payment_no1='254712345678',
            balance=Decimal('5000.00'),
        )
        self.payload = {
            'TransactionType': 'Buy Goods',
            'TransID': 'R1',
            'TransTime': '20240115123045',
            'TransAmount': '2000.00',
            'BusinessShortCode': '111111',
            'BillRefNumber': '',
            'MSISDN': '0712345678',
            'FirstName': 'Jane',
        }

    def post_raw(self, body):
        return self.client.post(CONFIRMATION_URL, data=body, content_type='application/json')

    def test_validation_always_accepts(self):
        response = self.client.post(VALIDATION_URL, self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'ResultCode': 0, 'ResultDesc': 'Accepted'})

    def test_confirmation_records_payment_once(self):
        first = self.post_raw(json.dumps(self.payload))
        second = self.post_raw(json.dumps(self.payload))

        for response in (first, second):
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data, {'ResultCode': 0, 'ResultDesc': 'Success'})

        payment = Payment.objects.get(receipt='R1')
        self.assertEqual(payment.tenant, self.tenant)
        self.assertEqual(payment.status, Payment.COMPLETED)
        self.assertEqual(payment.payer_name, 'Jane')
        self.tenant.refresh_from_db()
        self.assertEqual(self.tenant.balance, Decimal('3000.00'))

    def test_legacy_numeric_amount(self):
        self.payload['TransAmount'] = 2000
        response = self.post_raw(json.dumps(self.payload))
        self.assertEqual(response.data['ResultDesc'], 'Success')
        self.assertEqual(Payment.objects.get(receipt='R1').amount, Decimal('2000.00'))

    def test_trailing_slash_is_accepted(self):
        response = self.client.post(CONFIRMATION_URL + '/', data=json.dumps(self.payload),
                                    content_type='application/json')
        self.assertEqual(response.data['ResultCode'], 0)
        self.assertTrue(Payment.objects.filter(receipt='R1').exists())

    def test_malformed_json_is_acknowledged(self):
        response = self.post_raw('{"TransID": "R1", ')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'ResultCode': 0, 'ResultDesc': 'Received'})
        self.assertFalse(Payment.objects.exists())

    def test_undecodable_body_is_acknowledged_without_recording(self):
        body = json.dumps(self.payload).encode().replace(b'"R1"', b'"R\xff1"')
        response = self.post_raw(body)
        self.assertEqual(response.data, {'ResultCode': 0, 'ResultDesc': 'Received'})
        self.assertFalse(Payment.objects.exists())

    def test_invalid_amount_is_acknowledged(self):
        self.payload['TransAmount'] = 'lots'
        response = self.post_raw(json.dumps(self.payload))
        self.assertEqual(response.data, {'ResultCode': 0, 'ResultDesc': 'Received'})
        self.assertFalse(Payment.objects.exists())

    def test_unknown_short_code_is_acknowledged(self):
        self.payload['BusinessShortCode'] = '999999'
        response = self.post_raw(json.dumps(self.payload))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['ResultCode'], 0)
        self.assertFalse(Payment.objects.exists())

    def test_unexpected_failure_is_acknowledged(self):
        with patch('finance.payment.views.PaymentReconciliationService.reconcile', side_effect=RuntimeError('boom')):
            response = self.post_raw(json.dumps(self.payload))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'ResultCode': 0, 'ResultDesc': 'Received'})

    def test_callbacks_ignore_authorization_header(self):
        response = self.client.post(CONFIRMATION_URL, data=json.dumps(self.payload),
                                    content_type='application/json', HTTP_AUTHORIZATION='Bearer garbage')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['ResultDesc'], 'Success')


class LandlordPaymentApiTests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        User = get_user_model()
        self.landlord = User.objects.create_user(username='landlord', password='testpass')
        self.other_landlord = User.objects.create_user(username='other', password='testpass')
        self.client.force_authenticate(user=self.landlord)
        self.tenant = Tenant.objects.create(
            landlord=self.landlord, tenant_name='Tenant T', balance=Decimal('5000.00'),
        )
        self.pending = Payment.objects.create(
            landlord=self.landlord, amount=Decimal('1200.00'), method=Payment.MPESA_TILL, receipt='U1',
        )

    def test_requires_authentication(self):
        client = APIClient()
        response = client.get('/api/v1/payments/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_payments(self):
        Payment.objects.create(
            landlord=self.other_landlord, amount=Decimal('10.00'), method=Payment.MPESA_TILL, receipt='X1',
        )
        response = self.client.get('/api/v1/payments/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual([p['receipt'] for p in response.data['data']], ['U1'])

    def test_list_filters_by_status(self):
        response = self.client.get('/api/v1/payments/', {'status': 'completed'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'], [])

    def test_list_rejects_unknown_status(self):
        response = self.client.get('/api/v1/payments/', {'status': 'lost'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')

    def test_record_cash_payment(self):
        response = self.client.post('/api/v1/payments/cash/', {
            'tenant_id': self.tenant.id,
            'amount': '750.50',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['method'], Payment.CASH)
        self.assertEqual(response.data['data']['amount'], '750.50')
        self.tenant.refresh_from_db()
        self.assertEqual(self.tenant.balance, Decimal('4249.50'))

    def test_duplicate_cash_receipt_conflicts(self):
        body = {'tenant_id': self.tenant.id, 'amount': 100, 'receipt': 'BOOK-7'}
        self.client.post('/api/v1/payments/cash/', body, format='json')
        response = self.client.post('/api/v1/payments/cash/', body, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'DUPLICATE_RECEIPT')

    def test_cash_payment_validation(self):
        response = self.client.post('/api/v1/payments/cash/', {
            'tenant_id': self.tenant.id,
            'amount': '-5',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_assign_payment(self):
        url = f'/api/v1/payments/{self.pending.id}/assign/'
        response = self.client.patch(url, {'tenant_id': self.tenant.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], Payment.COMPLETED)
        self.tenant.refresh_from_db()
        self.assertEqual(self.tenant.balance, Decimal('3800.00'))

        again = self.client.patch(url, {'tenant_id': self.tenant.id}, format='json')
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)
        self.tenant.refresh_from_db()
        self.assertEqual(self.tenant.balance, Decimal('3800.00'))

    def test_assign_unknown_payment(self):
        response = self.client.patch('/api/v1/payments/999999/assign/', {'tenant_id': self.tenant.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'PAYMENT_NOT_FOUND')

    def test_tenant_history(self):
        self.client.patch(f'/api/v1/payments/{self.pending.id}/assign/', {'tenant_id': self.tenant.id}, format='json')
        response = self.client.get(f'/api/v1/tenants/{self.tenant.id}/history/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['balance'], '3800.00')
        self.assertEqual(len(response.data['data']['payments']), 1)

    def test_tenant_history_of_foreign_tenant(self):
        self.client.force_authenticate(user=self.other_landlord)
        response = self.client.get(f'/api/v1/tenants/{self.tenant.id}/history/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
