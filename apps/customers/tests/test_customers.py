from decimal import Decimal
from datetime import timedelta

from django.utils import timezone
from rest_framework import status

from customers.models import Customer, CustomerStatus, WorkflowStage, WalletTransactionType
from customers.tests.base import CustomAPITestCase
from fin_app.models import Payment, PaymentStatus
from profiles.models import UserProfileLog, UserProfileLogActionType


class CustomerApiTestCase(CustomAPITestCase):
    def test_register(self):
        r = self.post("/api/customers/", {
            "name": "Jane",
            "email": "jane@example.com",
            "phone": "0722000111",
            "id_number": "87654321",
            "county": "Nairobi",
            "service": self.service.pk,
        })
        self.assertEqual(r.status_code, status.HTTP_201_CREATED, msg=r.data)
        self.assertEqual(r.data["status"], CustomerStatus.PENDING)
        customer = Customer.objects.get(pk=r.data["id"])
        self.assertEqual(customer.site, self.site)
        self.assertEqual(customer.workflow.current_stage, WorkflowStage.PENDING_APPROVAL)
        self.assertTrue(UserProfileLog.objects.filter(
            do_type=UserProfileLogActionType.CREATE_CUSTOMER
        ).exists())

    def test_status_is_read_only(self):
        r = self.patch("/api/customers/%d/" % self.customer.pk, {"status": "active"})
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.status, CustomerStatus.PENDING)

    def test_bad_phone(self):
        r = self.post("/api/customers/", {
            "name": "Bad",
            "phone": "not a phone",
        })
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_rate(self):
        r = self.get("/api/customers/%d/" % self.customer.pk)
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(r.data["rate"]), Decimal("1000"))
        self.customer.monthly_rate = Decimal("1500")
        self.customer.save(update_fields=["monthly_rate"])
        self.assertEqual(self.customer.get_rate(), Decimal("1500"))

    def test_reject(self):
        r = self.post("/api/customers/%d/reject/" % self.customer.pk, {
            "reason": "No coverage in the area"
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.status, CustomerStatus.REJECTED)
        self.assertEqual(self.customer.rejection_reason, "No coverage in the area")
        self.assertEqual(self.customer.rejected_by, self.admin)
        wf = self.customer.workflow
        wf.refresh_from_db()
        self.assertEqual(wf.current_stage, WorkflowStage.REJECTED)
        self.assertEqual(wf.stage_data, {"rejection_reason": "No coverage in the area"})

    def test_reject_without_reason(self):
        r = self.post("/api/customers/%d/reject/" % self.customer.pk, {})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_credit_wallet(self):
        r = self.post("/api/customers/%d/credit_wallet/" % self.customer.pk, {
            "amount": "500.00",
            "payment_method": "cash",
            "reference_number": "R-1",
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(Decimal(r.data["new_balance"]), Decimal("500"))
        self.assertFalse(r.data["auto_renewed"])
        trans = self.customer.wallet_transactions.get()
        self.assertEqual(trans.transaction_type, WalletTransactionType.CREDIT)
        self.assertEqual(trans.balance_after, Decimal("500"))
        payment = Payment.objects.get(customer=self.customer)
        self.assertEqual(payment.status, PaymentStatus.COMPLETED)
        self.assertEqual(payment.amount, Decimal("500"))

    def test_credit_wallet_auto_renew(self):
        self.customer.status = CustomerStatus.APPROVED
        self.customer.save(update_fields=["status"])
        r = self.post("/api/customers/%d/credit_wallet/" % self.customer.pk, {
            "amount": "1200",
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertTrue(r.data["auto_renewed"])
        self.assertEqual(Decimal(r.data["new_balance"]), Decimal("200"))
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.status, CustomerStatus.ACTIVE)
        self.assertTrue(self.customer.is_subscription_active())

    def test_credit_wallet_negative(self):
        r = self.post("/api/customers/%d/credit_wallet/" % self.customer.pk, {
            "amount": "-10",
        })
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal(0))

    def test_renew_without_money(self):
        r = self.post("/api/customers/%d/renew/" % self.customer.pk)
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_renew_extends_from_end(self):
        end = timezone.now() + timedelta(days=5)
        Customer.objects.filter(pk=self.customer.pk).update(
            wallet_balance=Decimal("1000"),
            subscription_end=end,
            status=CustomerStatus.ACTIVE
        )
        r = self.post("/api/customers/%d/renew/" % self.customer.pk)
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.wallet_balance, Decimal(0))
        self.assertEqual(self.customer.subscription_end, end + timedelta(days=30))

    def test_suspend_activate(self):
        r = self.post("/api/customers/%d/suspend/" % self.customer.pk)
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data["status"], CustomerStatus.SUSPENDED)
        r = self.post("/api/customers/%d/activate/" % self.customer.pk)
        self.assertEqual(r.data["status"], CustomerStatus.ACTIVE)

    def test_wallet_transactions(self):
        self.customer.add_balance(Decimal(100), "test")
        r = self.get("/api/customers/%d/wallet_transactions/" % self.customer.pk)
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(len(r.data), 1)

    def test_workflow_list(self):
        r = self.get("/api/customers/workflow/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(len(r.data), 1)
        self.assertEqual(r.data[0]["current_stage"], WorkflowStage.PENDING_APPROVAL)
