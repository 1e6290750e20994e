from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.utils import timezone
from rest_framework import status

from customers.models import Customer, CustomerStatus, WalletTransaction
from customers.tests.base import CustomAPITestCase
from fin_app.models import Invoice, InvoiceType, InvoiceStatus, Payment, PaymentStatus, PaymentMethod
from fin_app.mpesa import MpesaError
from fin_app.tasks import poll_pending_stk_payments, mark_overdue_invoices
from messenger.models import SmsTemplate, SmsMessage


def stk_callback(checkout_id, result_code=0, amount=1160, receipt='QWE123RTY'):
    cb = {
        'MerchantRequestID': 'm-1',
        'CheckoutRequestID': checkout_id,
        'ResultCode': result_code,
        'ResultDesc': 'The service request is processed successfully.' if result_code == 0
        else 'Request cancelled by user',
    }
    if result_code == 0:
        cb['CallbackMetadata'] = {'Item': [
            {'Name': 'Amount', 'Value': amount},
            {'Name': 'MpesaReceiptNumber', 'Value': receipt},
            {'Name': 'PhoneNumber', 'Value': 254712345678},
        ]}
    return {'Body': {'stkCallback': cb}}


class StkPushTestCase(CustomAPITestCase):
    @mock.patch('fin_app.views.MpesaClient')
    def test_stk_push(self, client_mock):
        client_mock.return_value.stk_push.return_value = {
            'CheckoutRequestID': 'ws_CO_1',
            'MerchantRequestID': 'm-1',
            'CustomerMessage': 'Success',
        }
        r = self.post('/api/fin/payments/stk_push/', {
            'phone': '+254712345678',
            'amount': '500',
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['checkout_request_id'], 'ws_CO_1')
        payment = Payment.objects.get(pk=r.data['payment_id'])
        self.assertEqual(payment.customer, self.customer)
        self.assertEqual(payment.status, PaymentStatus.PENDING)
        self.assertEqual(payment.reference_number, 'ws_CO_1')

    @mock.patch('fin_app.views.MpesaClient')
    def test_stk_push_unknown_phone(self, client_mock):
        client_mock.return_value.stk_push.return_value = {'CheckoutRequestID': 'ws_CO_2'}
        r = self.post('/api/fin/payments/stk_push/', {
            'phone': '0799999999',
            'amount': '500',
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertIsNone(r.data['payment_id'])
        self.assertFalse(Payment.objects.exists())

    def test_stk_push_bad_params(self):
        r = self.post('/api/fin/payments/stk_push/', {'phone': '12', 'amount': '500'})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        r = self.post('/api/fin/payments/stk_push/', {'phone': '0712345678', 'amount': '0'})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch('fin_app.views.MpesaClient')
    def test_stk_push_failure(self, client_mock):
        client_mock.return_value.stk_push.side_effect = MpesaError('Invalid Access Token')
        r = self.post('/api/fin/payments/stk_push/', {'phone': '0712345678', 'amount': '10'})
        self.assertEqual(r.status_code, status.HTTP_502_BAD_GATEWAY)


class StkCallbackTestCase(CustomAPITestCase):
    def setUp(self):
        super().setUp()
        self.client.logout()
        self.invoice = Invoice.create_for(
            customer=self.customer,
            amount=Decimal('1000'),
            invoice_type=InvoiceType.SUBSCRIPTION,
            vat_rate=Decimal('0.16')
        )
        self.payment = Payment.objects.create(
            site=self.site,
            customer=self.customer,
            invoice=self.invoice,
            amount=self.invoice.total_amount,
            reference_number='ws_CO_10',
        )

    def test_success(self):
        r = self.post('/api/fin/mpesa/callback/stk/', stk_callback('ws_CO_10'))
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['ResultCode'], 0)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, PaymentStatus.COMPLETED)
        self.assertEqual(self.payment.mpesa_receipt_number, 'QWE123RTY')
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, InvoiceStatus.PAID)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal('1160'))
        trans = self.customer.wallet_transactions.get()
        self.assertEqual(trans.mpesa_receipt_number, 'QWE123RTY')

    def test_duplicate(self):
        self.post('/api/fin/mpesa/callback/stk/', stk_callback('ws_CO_10'))
        r = self.post('/api/fin/mpesa/callback/stk/', stk_callback('ws_CO_10'))
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal('1160'))
        self.assertEqual(self.customer.wallet_transactions.count(), 1)

    def test_cancelled(self):
        r = self.post('/api/fin/mpesa/callback/stk/', stk_callback('ws_CO_10', result_code=1032))
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, PaymentStatus.FAILED)
        self.assertEqual(self.payment.notes, 'Request cancelled by user')
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal(0))

    def test_unknown_checkout(self):
        r = self.post('/api/fin/mpesa/callback/stk/', stk_callback('ws_CO_unknown'))
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)

    def test_bad_body(self):
        r = self.post('/api/fin/mpesa/callback/stk/', {'foo': 'bar'})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_renewal_invoice_renews(self):
        Customer.objects.filter(pk=self.customer.pk).update(status=CustomerStatus.SUSPENDED)
        self.invoice.invoice_type = InvoiceType.RENEWAL
        self.invoice.save(update_fields=['invoice_type'])
        self.post('/api/fin/mpesa/callback/stk/', stk_callback('ws_CO_10'))
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.status, CustomerStatus.ACTIVE)
        self.assertEqual(self.customer.wallet_balance, Decimal('160'))
        self.assertTrue(self.customer.is_subscription_active())


class C2BTestCase(CustomAPITestCase):
    def setUp(self):
        super().setUp()
        self.client.logout()

    def _c2b(self, trans_id='RKTQDM7W6S', msisdn='254712345678', amount='300.00'):
        return self.post('/api/fin/mpesa/callback/c2b/', {
            'TransactionType': 'Pay Bill',
            'TransID': trans_id,
            'TransAmount': amount,
            'BusinessShortCode': '600638',
            'BillRefNumber': 'acc1',
            'MSISDN': msisdn,
            'FirstName': 'John',
        })

    def test_matched_by_phone(self):
        r = self._c2b()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal('300'))
        self.assertEqual(self.customer.mpesa_number, '254712345678')
        payment = Payment.objects.get()
        self.assertEqual(payment.payment_method, PaymentMethod.MPESA)
        self.assertEqual(payment.mpesa_receipt_number, 'RKTQDM7W6S')

    def test_matched_by_mpesa_number(self):
        Customer.objects.filter(pk=self.customer.pk).update(mpesa_number='0700111222')
        r = self._c2b(msisdn='254700111222')
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal('300'))

    def test_duplicate(self):
        self._c2b()
        r = self._c2b()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal('300'))

    def test_unmatched(self):
        r = self._c2b(msisdn='254799000000')
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
        trans = WalletTransaction.objects.get()
        self.assertIsNone(trans.customer)
        self.assertEqual(trans.mpesa_receipt_number, 'RKTQDM7W6S')
        self.assertEqual(trans.amount, Decimal('300'))


class CheckStatusTestCase(CustomAPITestCase):
    def setUp(self):
        super().setUp()
        self.invoice = Invoice.create_for(
            customer=self.customer,
            amount=Decimal('1000'),
            invoice_type=InvoiceType.RENEWAL,
            vat_rate=Decimal('0.16')
        )

    def _check(self, invoice_id=None, checkout_id='ws_CO_20'):
        return self.post('/api/fin/payments/check_status/', {
            'invoice_id': invoice_id or self.invoice.pk,
            'checkout_request_id': checkout_id,
        })

    def test_missing_fields(self):
        r = self.post('/api/fin/payments/check_status/', {})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_invoice(self):
        r = self._check(invoice_id=999999)
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data['status'], 'unknown')

    def test_already_paid(self):
        self.invoice.mark_paid()
        r = self._check()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['status'], 'completed')

    @mock.patch('fin_app.billing.MpesaClient')
    def test_completed(self, client_mock):
        client_mock.return_value.query_status.return_value = {
            'ResultCode': '0',
            'ResultDesc': 'The service request is processed successfully.',
        }
        r = self._check()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['status'], 'completed')
        self.invoice.refresh_from_db()
        self.assertTrue(self.invoice.is_paid)
        payment = Payment.objects.get(reference_number='ws_CO_20')
        self.assertEqual(payment.status, PaymentStatus.COMPLETED)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.status, CustomerStatus.ACTIVE)
        self.assertEqual(self.customer.wallet_balance, Decimal('160'))

        # second check does not credit again
        r = self._check()
        self.assertEqual(r.data['status'], 'completed')
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal('160'))

    @mock.patch('fin_app.billing.MpesaClient')
    @mock.patch('fin_app.views.MpesaClient')
    def test_completed_after_callback(self, views_client_mock, client_mock):
        views_client_mock.return_value.stk_push.return_value = {'CheckoutRequestID': 'ws_CO_20'}
        r = self.post('/api/fin/payments/stk_push/', {'phone': '0712345678', 'amount': '1160'})
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        r = self.post('/api/fin/mpesa/callback/stk/', stk_callback('ws_CO_20'))
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal('1160'))

        client_mock.return_value.query_status.return_value = {
            'ResultCode': '0',
            'ResultDesc': 'The service request is processed successfully.',
        }
        r = self._check()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['status'], 'completed')
        self.assertEqual(r.data['new_balance'], Decimal('1160'))
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal('1160'))
        self.assertEqual(self.customer.wallet_transactions.count(), 1)
        payment = Payment.objects.get(status=PaymentStatus.COMPLETED)
        self.assertEqual(payment.invoice, self.invoice)
        self.invoice.refresh_from_db()
        self.assertTrue(self.invoice.is_paid)

    @mock.patch('fin_app.billing.MpesaClient')
    def test_completed_after_failed_poll(self, client_mock):
        Payment.objects.create(
            site=self.site, customer=self.customer, amount=Decimal('1160'),
            reference_number='ws_CO_20', status=PaymentStatus.FAILED
        )
        client_mock.return_value.query_status.return_value = {'ResultCode': '0', 'ResultDesc': 'ok'}
        r = self._check()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        payment = Payment.objects.get()
        self.assertEqual(payment.status, PaymentStatus.COMPLETED)
        self.assertEqual(payment.invoice, self.invoice)

    @mock.patch('fin_app.billing.MpesaClient')
    def test_failed(self, client_mock):
        client_mock.return_value.query_status.return_value = {
            'ResultCode': '1032',
            'ResultDesc': 'Request cancelled by user',
        }
        r = self._check()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['status'], 'failed')
        self.assertEqual(r.data['message'], 'Request cancelled by user')

    @mock.patch('fin_app.billing.MpesaClient')
    def test_pending(self, client_mock):
        client_mock.return_value.query_status.side_effect = MpesaError(
            'The transaction is being processed',
            response={'errorCode': '500.001.1001'}
        )
        r = self._check()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data['status'], 'pending')

    @mock.patch('fin_app.billing.MpesaClient')
    def test_daraja_error(self, client_mock):
        client_mock.return_value.query_status.side_effect = MpesaError('Invalid Access Token')
        r = self._check()
        self.assertEqual(r.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


class FinTasksTestCase(CustomAPITestCase):
    @mock.patch('fin_app.billing.MpesaClient')
    def test_poll_pending(self, client_mock):
        client_mock.return_value.query_status.return_value = {'ResultCode': '0'}
        payment = Payment.objects.create(
            site=self.site, customer=self.customer, amount=Decimal('200'),
            reference_number='ws_CO_30'
        )
        Payment.objects.filter(pk=payment.pk).update(payment_date=timezone.now() - timedelta(minutes=5))
        fresh = Payment.objects.create(
            site=self.site, customer=self.customer, amount=Decimal('100'),
            reference_number='ws_CO_31'
        )
        res = poll_pending_stk_payments()
        self.assertEqual(res, {'completed': 1, 'failed': 0, 'pending': 0})
        payment.refresh_from_db()
        self.assertEqual(payment.status, PaymentStatus.COMPLETED)
        fresh.refresh_from_db()
        self.assertEqual(fresh.status, PaymentStatus.PENDING)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal('200'))

    def test_overdue(self):
        inv = Invoice.create_for(
            customer=self.customer, amount=100,
            due_date=timezone.now() - timedelta(hours=1)
        )
        Invoice.create_for(customer=self.customer, amount=100)
        self.assertEqual(mark_overdue_invoices(), 1)
        inv.refresh_from_db()
        self.assertEqual(inv.status, InvoiceStatus.OVERDUE)

    def test_overdue_reminder(self):
        SmsTemplate.objects.create(
            site=self.site,
            template_key='payment_reminder',
            name='Reminder',
            content='Invoice {{invoice_number}} of KES {{amount}} is overdue'
        )
        inv = Invoice.create_for(
            customer=self.customer, amount=100,
            due_date=timezone.now() - timedelta(hours=1)
        )
        self.assertEqual(mark_overdue_invoices(), 1)
        msg = SmsMessage.objects.get()
        self.assertEqual(msg.text, 'Invoice %s of KES 100.00 is overdue' % inv.invoice_number)
        self.assertEqual(msg.recipient, '254712345678')
        # already overdue, no second reminder
        self.assertEqual(mark_overdue_invoices(), 0)
        self.assertEqual(SmsMessage.objects.count(), 1)

    def test_report(self):
        Payment.objects.create(
            site=self.site, customer=self.customer, amount=Decimal('200'),
            status=PaymentStatus.COMPLETED
        )
        r = self.get('/api/fin/payments/report/', {
            'from_time': (timezone.now() - timedelta(days=1)).isoformat(),
            'group_by': 4,
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(len(r.data), 1)
        self.assertEqual(r.data[0]['summ'], Decimal('200'))

    def test_report_bad_group(self):
        r = self.get('/api/fin/payments/report/', {
            'from_time': timezone.now().isoformat(),
            'group_by': 9,
        })
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invoice_create(self):
        r = self.post('/api/fin/invoices/', {
            'customer': self.customer.pk,
            'amount': '1000',
            'due_date': (timezone.now() + timedelta(days=3)).isoformat(),
        })
        self.assertEqual(r.status_code, status.HTTP_201_CREATED, msg=r.data)
        inv = Invoice.objects.get(pk=r.data['id'])
        self.assertEqual(inv.vat_amount, Decimal('160'))
        self.assertEqual(inv.total_amount, Decimal('1160'))
        self.assertEqual(inv.site, self.site)


class ReceiptTestCase(CustomAPITestCase):
    def setUp(self):
        super().setUp()
        now = timezone.now()
        self.invoice = Invoice.create_for(
            customer=self.customer,
            amount=Decimal('1000'),
            invoice_type=InvoiceType.RENEWAL,
            vat_rate=Decimal('0.16'),
            service_period_start=now,
            service_period_end=now + timedelta(days=30)
        )
        self.payment = Payment.objects.create(
            site=self.site,
            customer=self.customer,
            invoice=self.invoice,
            amount=self.invoice.total_amount,
            status=PaymentStatus.COMPLETED,
            reference_number='ws_CO_30',
            mpesa_receipt_number='QWE777'
        )

    def test_payment_receipt(self):
        r = self.get('/api/fin/payments/%d/receipt/' % self.payment.pk)
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        receipt = r.data['receipt']
        self.assertEqual(receipt['receipt_number'], 'RCP-P%06d' % self.payment.pk)
        self.assertEqual(receipt['client_name'], 'John Doe')
        self.assertEqual(receipt['amount'], Decimal('1160.00'))
        self.assertEqual(receipt['mpesa_receipt'], 'QWE777')
        self.assertEqual(receipt['invoice_number'], self.invoice.invoice_number)
        self.assertIn(receipt['receipt_number'], r.data['receipt_html'])
        self.assertIn('QWE777', r.data['receipt_html'])

    def test_pending_payment_receipt(self):
        Payment.objects.filter(pk=self.payment.pk).update(status=PaymentStatus.PENDING)
        r = self.get('/api/fin/payments/%d/receipt/' % self.payment.pk)
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invoice_receipt(self):
        r = self.get('/api/fin/invoices/%d/receipt/' % self.invoice.pk)
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.invoice.mark_paid()
        r = self.get('/api/fin/invoices/%d/receipt/' % self.invoice.pk)
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        receipt = r.data['receipt']
        self.assertEqual(receipt['receipt_number'], 'RCP-I%06d' % self.invoice.pk)
        self.assertTrue(receipt['service_period'])
        self.assertIn(self.invoice.invoice_number, r.data['receipt_html'])
