from decimal import Decimal
from unittest import mock

from rest_framework import status

from customers.models import CustomerStatus, WorkflowStage
from customers.tests.base import CustomAPITestCase
from fin_app.models import Invoice, InvoiceType, InvoiceStatus
from inventory.models import InventoryItem, ItemStatus, ItemType
from messenger.models import SmsTemplate, SmsMessage, SmsMessageStatus
from messenger.sms_backends import SmsSendResult


class CustomerApproveTestCase(CustomAPITestCase):
    def setUp(self):
        super().setUp()
        self.item = InventoryItem.objects.create(
            site=self.site,
            name="Tenda router",
            item_type=ItemType.CPE,
            model="AC10",
            serial_number="SN-0001",
            mac_address="AA:BB:CC:DD:EE:FF",
        )

    def _approve(self, **extra):
        return self.post("/api/customers/%d/approve/" % self.customer.pk, {
            "equipment_id": self.item.pk,
            "notes": "Install on friday",
            **extra
        })

    def test_approve(self):
        r = self._approve()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data["status"], CustomerStatus.APPROVED)
        self.assertEqual(r.data["amount"], Decimal("5000.00"))
        self.assertEqual(r.data["vat_amount"], Decimal("800.00"))
        self.assertEqual(r.data["total_amount"], Decimal("5800.00"))

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.status, CustomerStatus.APPROVED)
        self.assertEqual(self.customer.approved_by, self.admin)
        self.assertIsNotNone(self.customer.approved_at)

        wf = self.customer.workflow
        wf.refresh_from_db()
        self.assertEqual(wf.current_stage, WorkflowStage.APPROVED)
        self.assertEqual(wf.stage_data, {"equipment_id": self.item.pk})

        self.item.refresh_from_db()
        self.assertEqual(self.item.status, ItemStatus.ASSIGNED)
        self.assertEqual(self.item.current_assignment().customer, self.customer)

        invoice = Invoice.objects.get(customer=self.customer)
        self.assertEqual(invoice.invoice_type, InvoiceType.INSTALLATION)
        self.assertEqual(invoice.status, InvoiceStatus.PENDING)
        self.assertEqual(invoice.equipment_details["serial_number"], "SN-0001")
        self.assertTrue(invoice.invoice_number.startswith("INV-"))

    def test_approve_twice(self):
        r = self._approve()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        r = self._approve()
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Invoice.objects.count(), 1)

    def test_approve_rejected(self):
        self.customer.status = CustomerStatus.REJECTED
        self.customer.save(update_fields=["status"])
        r = self._approve()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)

    def test_approve_item_not_in_stock(self):
        self.item.status = ItemStatus.FAULTY
        self.item.save(update_fields=["status"])
        r = self._approve()
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        # nothing was changed
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.status, CustomerStatus.PENDING)
        self.assertFalse(Invoice.objects.exists())

    def test_approve_unknown_item(self):
        r = self.post("/api/customers/%d/approve/" % self.customer.pk, {
            "equipment_id": 999999,
        })
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch("messenger.models.get_sms_backend")
    def test_approve_notification(self, get_backend_mock):
        backend = mock.Mock()
        backend.send.return_value = [SmsSendResult(recipient="254712345678", success=True, message_id="m1")]
        get_backend_mock.return_value = backend
        SmsTemplate.objects.create(
            site=self.site,
            template_key="account_approved",
            name="Approved",
            content="Hi {{customer_name}}, pay {{amount}} for invoice {{invoice_number}}",
        )
        with self.captureOnCommitCallbacks(execute=True):
            r = self._approve()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        msg = SmsMessage.objects.get()
        self.assertEqual(msg.recipient, "254712345678")
        self.assertEqual(msg.status, SmsMessageStatus.SENT)
        self.assertIn("Hi John Doe, pay 5800.00", msg.text)

    def test_approve_without_template(self):
        r = self._approve()
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertFalse(SmsMessage.objects.exists())
