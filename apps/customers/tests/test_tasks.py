from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from customers.models import Customer, CustomerStatus
from customers.tasks import process_expired_subscriptions, send_expiry_reminders
from customers.tests.base import CustomAPITestCase
from messenger.models import SmsTemplate, SmsMessage


class SubscriptionTasksTestCase(CustomAPITestCase):
    def setUp(self):
        super().setUp()
        self.now = timezone.now()
        Customer.objects.filter(pk=self.customer.pk).update(
            status=CustomerStatus.ACTIVE,
            subscription_start=self.now - timedelta(days=31),
            subscription_end=self.now - timedelta(hours=1),
        )

    def test_expired_renewed(self):
        Customer.objects.filter(pk=self.customer.pk).update(wallet_balance=Decimal("1500"))
        res = process_expired_subscriptions(now=self.now)
        self.assertEqual(res, {"renewed": 1, "suspended": 0})
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.status, CustomerStatus.ACTIVE)
        self.assertEqual(self.customer.wallet_balance, Decimal("500"))
        self.assertEqual(self.customer.subscription_end, self.now + timedelta(days=30))

    def test_expired_suspended(self):
        res = process_expired_subscriptions(now=self.now)
        self.assertEqual(res, {"renewed": 0, "suspended": 1})
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.status, CustomerStatus.SUSPENDED)

    def test_reminder(self):
        SmsTemplate.objects.create(
            site=self.site,
            template_key="service_expiry",
            name="Expiry",
            content="Your internet expires in {{days_left}} days",
        )
        Customer.objects.filter(pk=self.customer.pk).update(
            subscription_end=self.now + timedelta(days=2, hours=1)
        )
        self.assertEqual(send_expiry_reminders(now=self.now), 1)
        self.assertEqual(SmsMessage.objects.get().text, "Your internet expires in 2 days")
        # only once a day
        self.assertEqual(send_expiry_reminders(now=self.now + timedelta(hours=2)), 0)

    def test_no_reminder_far_from_end(self):
        Customer.objects.filter(pk=self.customer.pk).update(
            subscription_end=self.now + timedelta(days=10)
        )
        self.assertEqual(send_expiry_reminders(now=self.now), 0)
