import base64
import re
from decimal import Decimal
from unittest import mock

from django.test import SimpleTestCase
from rest_framework import status

from customers.tests.base import CustomAPITestCase
from fin_app.family_bank import FamilyBankClient, FamilyBankError, generate_trans_id
from fin_app.models import Invoice, InvoiceStatus, Payment, PaymentStatus, PaymentMethod


def _resp(ok=True, data=None, status_code=200):
    return mock.Mock(ok=ok, status_code=status_code, text=str(data), json=mock.Mock(return_value=data or {}))


class FamilyBankClientTestCase(SimpleTestCase):
    def setUp(self):
        self.client = FamilyBankClient(
            token_url='https://fb.test/connect/token',
            stk_url='https://fb.test/api/v1/mpesa/stkpush/',
            client_id='cid',
            client_secret='secret',
            scope='ESB_REST_API',
            merchant_code='222111',
            callback_url='https://isp.test/cb/'
        )

    def test_trans_id(self):
        self.assertRegex(generate_trans_id(), r'^FB_\d+_[a-z0-9]{9}$')

    def test_query_url(self):
        self.assertEqual(self.client.query_url, 'https://fb.test/api/v1/mpesa/stkpushquery/')

    @mock.patch('fin_app.family_bank.requests.post')
    def test_stk_push(self, post_mock):
        post_mock.side_effect = [
            _resp(data={'access_token': 'tok'}),
            _resp(data={'ResponseCode': '0', 'ResponseDescription': 'Accepted'}),
        ]
        res = self.client.stk_push('0712345678', '99.6', account_reference='INV-1')
        token_call, stk_call = post_mock.call_args_list
        self.assertEqual(token_call[0][0], 'https://fb.test/connect/token')
        self.assertEqual(token_call[1]['data'], {'grant_type': 'client_credentials', 'scope': 'ESB_REST_API'})
        self.assertEqual(token_call[1]['auth'], ('cid', 'secret'))

        self.assertEqual(stk_call[0][0], 'https://fb.test/api/v1/mpesa/stkpush/')
        self.assertEqual(stk_call[1]['headers'], {'Authorization': 'Bearer tok'})
        payload = stk_call[1]['json']
        self.assertEqual(payload['Amount'], '100')
        self.assertEqual(payload['PhoneNumber'], '254712345678')
        self.assertEqual(payload['PartyB'], '222111')
        self.assertEqual(payload['TransactionDesc'], 'Payment for invoice INV-1')
        self.assertEqual(
            base64.b64decode(payload['Password']).decode(),
            '222111cid%s' % payload['Timestamp']
        )
        self.assertTrue(re.match(r'^FB_\d+_', payload['ThirdPartyTransID']))
        self.assertEqual(res['ThirdPartyTransID'], payload['ThirdPartyTransID'])
        self.assertEqual(res['ResponseDescription'], 'Accepted')

    @mock.patch('fin_app.family_bank.requests.post')
    def test_stk_push_rejected(self, post_mock):
        post_mock.side_effect = [
            _resp(data={'access_token': 'tok'}),
            _resp(data={'ResponseCode': '1', 'ResponseDescription': 'Invalid phone'}),
        ]
        with self.assertRaises(FamilyBankError) as cm:
            self.client.stk_push('0712345678', 10, account_reference='WALLET_TOPUP')
        self.assertEqual(str(cm.exception), 'Invalid phone')
        self.assertEqual(cm.exception.response['ResponseCode'], '1')

    @mock.patch('fin_app.family_bank.requests.post')
    def test_token_failure(self, post_mock):
        post_mock.return_value = _resp(ok=False, status_code=401)
        with self.assertRaisesMessage(FamilyBankError, '401'):
            self.client.query_status('FB_1_abc')

    def test_not_configured(self):
        client = FamilyBankClient(client_id='x', client_secret='y')
        client.merchant_code = ''
        self.assertFalse(client.is_configured())
        with self.assertRaises(FamilyBankError):
            client.get_access_token()


class FamilyBankStkPushTestCase(CustomAPITestCase):
    @mock.patch('fin_app.views.FamilyBankClient')
    def test_wallet_topup(self, client_mock):
        client_mock.return_value.stk_push.return_value = {
            'ResponseCode': '0',
            'ResponseDescription': 'Success',
            'ThirdPartyTransID': 'FB_1_abc',
        }
        r = self.post('/api/fin/payments/family-bank/stk-push/', {
            'phone': '0712345678',
            'amount': '500',
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['third_party_trans_id'], 'FB_1_abc')
        payment = Payment.objects.get(pk=r.data['payment_id'])
        self.assertEqual(payment.payment_method, PaymentMethod.FAMILY_BANK)
        self.assertEqual(payment.status, PaymentStatus.PENDING)
        self.assertEqual(payment.reference_number, 'FB_1_abc')
        self.assertEqual(payment.customer, self.customer)
        kwargs = client_mock.return_value.stk_push.call_args[1]
        self.assertEqual(kwargs['account_reference'], 'WALLET_TOPUP')

    @mock.patch('fin_app.views.FamilyBankClient')
    def test_invoice(self, client_mock):
        invoice = Invoice.create_for(self.customer, amount=1000, vat_rate=Decimal('0.16'))
        client_mock.return_value.stk_push.return_value = {
            'ResponseCode': '0',
            'ThirdPartyTransID': 'FB_2_abc',
        }
        r = self.post('/api/fin/payments/family-bank/stk-push/', {
            'phone': '0712345678',
            'invoice_id': invoice.pk,
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        payment = Payment.objects.get(pk=r.data['payment_id'])
        self.assertEqual(payment.invoice, invoice)
        self.assertEqual(payment.amount, Decimal('1160.00'))
        kwargs = client_mock.return_value.stk_push.call_args[1]
        self.assertEqual(kwargs['account_reference'], invoice.invoice_number)
        self.assertEqual(kwargs['amount'], Decimal('1160.00'))

    def test_amount_or_invoice_required(self):
        r = self.post('/api/fin/payments/family-bank/stk-push/', {'phone': '0712345678'})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch('fin_app.views.FamilyBankClient')
    def test_unknown_phone(self, client_mock):
        r = self.post('/api/fin/payments/family-bank/stk-push/', {
            'phone': '0799999999',
            'amount': '500',
        })
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
        client_mock.return_value.stk_push.assert_not_called()

    @mock.patch('fin_app.views.FamilyBankClient')
    def test_rejected(self, client_mock):
        client_mock.return_value.stk_push.side_effect = FamilyBankError(
            'Invalid phone', response={'ResponseCode': '1'}
        )
        r = self.post('/api/fin/payments/family-bank/stk-push/', {
            'phone': '0712345678',
            'amount': '500',
        })
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data['status'], 'failed')
        self.assertEqual(r.data['error_code'], '1')
        self.assertFalse(Payment.objects.exists())


class FamilyBankCallbackTestCase(CustomAPITestCase):
    def setUp(self):
        super().setUp()
        self.client.logout()
        self.invoice = Invoice.create_for(self.customer, amount=1000, vat_rate=Decimal('0.16'))
        self.payment = Payment.objects.create(
            site=self.site,
            customer=self.customer,
            invoice=self.invoice,
            amount=Decimal('1160.00'),
            payment_method=PaymentMethod.FAMILY_BANK,
            reference_number='FB_1_abc'
        )

    def _callback(self, code='0', trans_id='FB_1_abc'):
        return self.post('/api/fin/family-bank/callback/stk/', {
            'ThirdPartyTransID': trans_id,
            'ResponseCode': code,
            'ResponseDescription': 'Success' if code == '0' else 'Cancelled by user',
            'TransID': 'SBL12345',
        })

    def test_success(self):
        r = self._callback()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertTrue(r.data['success'])
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, PaymentStatus.COMPLETED)
        self.assertEqual(self.payment.mpesa_receipt_number, 'SBL12345')
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal('1160.00'))
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, InvoiceStatus.PAID)

    def test_duplicate(self):
        self._callback()
        r = self._callback()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal('1160.00'))

    def test_failed(self):
        r = self._callback(code='1032')
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, PaymentStatus.FAILED)
        self.assertEqual(self.payment.notes, 'Cancelled by user')
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal(0))

    def test_unknown_transaction(self):
        r = self._callback(trans_id='FB_9_zzz')
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(r.data['transaction_id'], 'FB_9_zzz')

    def test_mpesa_payment_not_matched(self):
        Payment.objects.filter(pk=self.payment.pk).update(payment_method=PaymentMethod.MPESA)
        r = self._callback()
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)


class FamilyBankC2BTestCase(CustomAPITestCase):
    def setUp(self):
        super().setUp()
        self.client.logout()

    def _c2b(self, msisdn='254712345678', result_code='0'):
        return self.post('/api/fin/family-bank/callback/c2b/', {
            'ResultCode': result_code,
            'TransID': 'FBC2B001',
            'TransAmount': '250.00',
            'MSISDN': msisdn,
            'BillRefNumber': '12345678',
            'CheckoutRequestID': 'conv-1',
            'InvoiceNumber': 'orig-1',
        })

    def test_processed(self):
        r = self._c2b()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data, {
            'ResultCode': '0',
            'ResultDesc': 'Success. Transaction received and processed',
            'TransactionID': 'FBC2B001',
            'ConversationID': 'conv-1',
            'OriginatorConversationID': 'orig-1',
        })
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal('250.00'))
        payment = Payment.objects.get()
        self.assertEqual(payment.payment_method, PaymentMethod.FAMILY_BANK)
        self.assertEqual(payment.mpesa_receipt_number, 'FBC2B001')

    def test_not_successful(self):
        r = self._c2b(result_code='1')
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertFalse(Payment.objects.exists())
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal(0))

    def test_unmatched(self):
        r = self._c2b(msisdn='254799000000')
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)


class FamilyBankQueryStatusTestCase(CustomAPITestCase):
    def setUp(self):
        super().setUp()
        self.payment = Payment.objects.create(
            site=self.site,
            customer=self.customer,
            amount=Decimal('300.00'),
            payment_method=PaymentMethod.FAMILY_BANK,
            reference_number='FB_1_abc'
        )

    def _query(self, trans_id='FB_1_abc'):
        return self.post('/api/fin/payments/family-bank/query-status/', {
            'third_party_trans_id': trans_id
        })

    def test_trans_id_required(self):
        r = self.post('/api/fin/payments/family-bank/query-status/', {})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown(self):
        r = self._query('FB_0_none')
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)

    @mock.patch('fin_app.billing.FamilyBankClient')
    def test_already_completed(self, client_mock):
        Payment.objects.filter(pk=self.payment.pk).update(status=PaymentStatus.COMPLETED)
        r = self._query()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['status'], 'completed')
        client_mock.return_value.query_status.assert_not_called()

    @mock.patch('fin_app.billing.FamilyBankClient')
    def test_completed(self, client_mock):
        client_mock.return_value.query_status.return_value = {
            'ResponseCode': '0',
            'ResultCode': '0',
            'ResultDesc': 'The service request is processed successfully.',
        }
        r = self._query()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['status'], 'completed')
        self.assertEqual(r.data['new_balance'], Decimal('300.00'))
        client_mock.return_value.query_status.assert_called_once_with('FB_1_abc')
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, PaymentStatus.COMPLETED)

    @mock.patch('fin_app.billing.FamilyBankClient')
    def test_failed(self, client_mock):
        client_mock.return_value.query_status.return_value = {
            'ResponseCode': '0',
            'ResultCode': '1032',
            'ResultDesc': 'Request cancelled by user',
        }
        r = self._query()
        self.assertEqual(r.data['status'], 'failed')
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, PaymentStatus.FAILED)
        r = self._query()
        self.assertEqual(r.data['status'], 'failed')
        self.assertEqual(r.data['message'], 'Request cancelled by user')

    @mock.patch('fin_app.billing.FamilyBankClient')
    def test_query_unavailable(self, client_mock):
        client_mock.return_value.query_status.side_effect = FamilyBankError('timed out')
        r = self._query()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['status'], 'pending')
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, PaymentStatus.PENDING)
