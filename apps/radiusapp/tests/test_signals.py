from decimal import Decimal
from unittest import mock

from customers.models import ConnectionType
from gateways.models import SyncStatus
from radiusapp.models import RadiusUser
from radiusapp.tests.base import RadiusTestCase
from services.models import Service


class CustomerStatusSignalTestCase(RadiusTestCase):
    def test_activation_makes_credentials(self):
        self.customer.activate()
        ruser = RadiusUser.objects.get(customer=self.customer)
        self.assertTrue(ruser.is_active)
        self.assertEqual(ruser.username, "john")

    def test_static_customer_has_no_credentials(self):
        self.customer.connection_type = ConnectionType.STATIC
        self.customer.save(update_fields=["connection_type"])
        self.customer.activate()
        self.assertFalse(RadiusUser.objects.exists())

    @mock.patch("radiusapp.signals.disconnect_user_task")
    @mock.patch("radiusapp.signals.push_user_state_task")
    def test_suspend(self, push_mock, disconnect_mock):
        ruser = self.make_radius_user(sync_status=SyncStatus.SYNCED)
        self.customer.activate()
        push_mock.delay.assert_not_called()
        with self.captureOnCommitCallbacks(execute=True):
            self.customer.suspend()
        ruser.refresh_from_db()
        self.assertFalse(ruser.is_active)
        self.assertEqual(ruser.sync_status, SyncStatus.PENDING)
        push_mock.delay.assert_called_once_with(ruser.pk)
        disconnect_mock.delay.assert_called_once_with(ruser.pk)

    @mock.patch("radiusapp.signals.disconnect_user_task")
    @mock.patch("radiusapp.signals.push_user_state_task")
    def test_reactivate(self, push_mock, disconnect_mock):
        ruser = self.make_radius_user(is_active=False)
        with self.captureOnCommitCallbacks(execute=True):
            self.customer.activate()
        ruser.refresh_from_db()
        self.assertTrue(ruser.is_active)
        push_mock.delay.assert_called_once_with(ruser.pk)
        disconnect_mock.delay.assert_not_called()


class CustomerServiceSignalTestCase(RadiusTestCase):
    @mock.patch("radiusapp.signals.change_rate_limit_task")
    @mock.patch("radiusapp.signals.push_user_state_task")
    def test_service_change(self, push_mock, rate_limit_mock):
        ruser = self.make_radius_user(sync_status=SyncStatus.SYNCED)
        faster = Service.objects.create(
            title="Home 20", speed_in=20, speed_out=10, cost=Decimal("2000.00")
        )
        self.customer.service = faster
        with self.captureOnCommitCallbacks(execute=True):
            self.customer.save()
        ruser.refresh_from_db()
        self.assertEqual(ruser.rate_limit(), "10M/20M")
        self.assertEqual(ruser.group.service, faster)
        self.assertEqual(ruser.sync_status, SyncStatus.PENDING)
        push_mock.delay.assert_called_once_with(ruser.pk)
        rate_limit_mock.delay.assert_called_once_with(ruser.pk)

    @mock.patch("radiusapp.signals.change_rate_limit_task")
    def test_same_service(self, rate_limit_mock):
        self.make_radius_user()
        self.customer.name = "John Smith"
        with self.captureOnCommitCallbacks(execute=True):
            self.customer.save()
        rate_limit_mock.delay.assert_not_called()
