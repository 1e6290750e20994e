from datetime import timedelta
from decimal import Decimal
from unittest import mock

from rest_framework import status

from customers.tests.base import CustomAPITestCase
from fin_app.models import Invoice, InvoiceType, InvoiceStatus, Payment, PaymentStatus, PaymentMethod
from fin_app.mpesa import MpesaError
from fin_app.tasks import mark_overdue_invoices


class PortalRenewTestCase(CustomAPITestCase):
    def setUp(self):
        super().setUp()
        self.client.logout()

    @mock.patch("customers.views.MpesaClient")
    def test_renew(self, client_mock):
        client_mock.return_value.stk_push.return_value = {
            "CheckoutRequestID": "ws_CO_1",
            "MerchantRequestID": "m1",
            "CustomerMessage": "Success. Request accepted for processing",
        }
        r = self.post("/api/customers/portal/renew/", {
            "email": "JOHN@example.com",
            "id_number": "12345678",
        })
        self.assertEqual(r.status_code, status.HTTP_201_CREATED, msg=r.data)
        self.assertEqual(r.data["checkout_request_id"], "ws_CO_1")
        invoice = Invoice.objects.get(pk=r.data["invoice_id"])
        self.assertEqual(invoice.invoice_type, InvoiceType.RENEWAL)
        self.assertEqual(invoice.total_amount, Decimal("1160.00"))
        payment = Payment.objects.get(reference_number="ws_CO_1")
        self.assertEqual(payment.status, PaymentStatus.PENDING)
        self.assertEqual(payment.invoice, invoice)
        kwargs = client_mock.return_value.stk_push.call_args[1]
        self.assertEqual(kwargs["phone"], "0712345678")
        self.assertEqual(kwargs["account_reference"], invoice.invoice_number)

    def test_unknown_customer(self):
        r = self.post("/api/customers/portal/renew/", {
            "email": "john@example.com",
            "id_number": "000",
        })
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)

    @mock.patch("customers.views.MpesaClient")
    def test_mpesa_failure(self, client_mock):
        client_mock.return_value.stk_push.side_effect = MpesaError("Bad request")
        r = self.post("/api/customers/portal/renew/", {
            "email": "john@example.com",
            "id_number": "12345678",
        })
        self.assertEqual(r.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertFalse(Payment.objects.exists())
        invoice = Invoice.objects.get()
        self.assertEqual(invoice.status, InvoiceStatus.CANCELLED)
        self.assertEqual(mark_overdue_invoices(now=invoice.due_date + timedelta(days=1)), 0)


class PortalReadTestCase(CustomAPITestCase):
    def setUp(self):
        super().setUp()
        self.client.logout()
        self.auth = {"email": "john@example.com", "id_number": "12345678"}
        self.customer.add_balance(Decimal(500), description="Top up")
        self.invoice = Invoice.create_for(self.customer, amount=1000)
        for i in range(3):
            Payment.objects.create(
                site=self.site,
                customer=self.customer,
                amount=Decimal(100 + i),
                payment_method=PaymentMethod.MPESA,
                status=PaymentStatus.COMPLETED,
                reference_number="ref-%d" % i
            )

    def test_dashboard(self):
        r = self.get("/api/customers/portal/dashboard/", self.auth)
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data["client"]["name"], "John Doe")
        self.assertEqual(r.data["client"]["wallet_balance"], Decimal("500.00"))
        self.assertEqual(r.data["client"]["monthly_rate"], Decimal("1000.00"))
        self.assertEqual(r.data["client"]["service"]["title"], "Home 10")
        self.assertEqual(r.data["client"]["payment_settings"]["account_number"], "12345678")
        self.assertEqual(len(r.data["payments"]), 3)
        self.assertEqual(len(r.data["wallet_transactions"]), 1)
        self.assertEqual(len(r.data["pending_invoices"]), 1)
        self.assertEqual(r.data["pending_invoices"][0]["invoice_number"], self.invoice.invoice_number)
        self.assertEqual(r.data["summary"]["total_payments"], 3)
        self.assertEqual(r.data["summary"]["pending_invoices_count"], 1)

    def test_dashboard_post(self):
        r = self.post("/api/customers/portal/dashboard/", self.auth)
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data["client"]["id"], self.customer.pk)

    def test_dashboard_wrong_id_number(self):
        r = self.get("/api/customers/portal/dashboard/", {
            "email": "john@example.com", "id_number": "999"
        })
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)

    def test_dashboard_email_required(self):
        r = self.get("/api/customers/portal/dashboard/", {"id_number": "12345678"})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", r.data)

    def test_wallet_transactions(self):
        r = self.post("/api/customers/portal/wallet-transactions/", self.auth)
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data["client"]["email"], "john@example.com")
        self.assertEqual(len(r.data["transactions"]), 1)
        self.assertEqual(r.data["transactions"][0]["description"], "Top up")

    def test_payment_history_pages(self):
        r = self.get("/api/customers/portal/payments/", dict(self.auth, page=2, limit=2))
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(len(r.data["payments"]), 1)
        self.assertEqual(r.data["pagination"], {
            "page": 2,
            "limit": 2,
            "total": 3,
            "total_pages": 2,
            "has_next": False,
            "has_prev": True,
        })

    def test_payment_history_other_customer(self):
        r = self.get("/api/customers/portal/payments/", {
            "email": "mary@example.com", "id_number": "12345678"
        })
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
