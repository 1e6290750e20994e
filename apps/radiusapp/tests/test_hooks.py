from rest_framework import status

from customers.models import CustomerStatus
from gateways.models import MikrotikRouter, ConnectionStatus, SyncStatus
from radiusapp.models import RadiusUser, RadiusSession, RadiusSessionStatus, RadiusEvent
from radiusapp.tests.base import RadiusTestCase


class CoaHookTestCase(RadiusTestCase):
    url = "/api/radius/hook/coa/"

    def setUp(self):
        super().setUp()
        self.client.logout()
        self.ruser = self.make_radius_user(is_online=True)
        RadiusSession.objects.create(
            user=self.ruser, customer=self.customer, session_id="s1", username="john"
        )

    def test_disconnect_success(self):
        r = self.signed_post(self.url, {
            "username": "john",
            "action": "disconnect",
            "success": True,
            "timestamp": "2024-05-01T10:00:00+03:00",
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertTrue(r.data["success"])
        self.assertEqual(r.data["data"]["client_id"], self.customer.pk)
        self.ruser.refresh_from_db()
        self.assertFalse(self.ruser.is_active)
        self.assertFalse(self.ruser.is_online)
        self.assertEqual(self.ruser.sync_status, SyncStatus.SYNCED)
        self.assertEqual(RadiusSession.objects.get().status, RadiusSessionStatus.ENDED)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.status, CustomerStatus.SUSPENDED)
        self.assertTrue(RadiusEvent.objects.get(action="coa_disconnect").success)

    def test_failed_event(self):
        r = self.signed_post(self.url, {
            "username": "john",
            "action": "disconnect",
            "success": False,
            "error": "NAS timeout",
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.ruser.refresh_from_db()
        self.assertTrue(self.ruser.is_active)
        ev = RadiusEvent.objects.get()
        self.assertFalse(ev.success)
        self.assertEqual(ev.error, "NAS timeout")

    def test_string_flag_false(self):
        r = self.signed_post(self.url, {
            "username": "john",
            "action": "disconnect",
            "success": "false",
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertFalse(r.data["data"]["success"])
        self.ruser.refresh_from_db()
        self.assertTrue(self.ruser.is_active)
        self.customer.refresh_from_db()
        self.assertNotEqual(self.customer.status, CustomerStatus.SUSPENDED)
        self.assertFalse(RadiusEvent.objects.get().success)

    def test_string_flag_true(self):
        r = self.signed_post(self.url, {"username": "john", "action": "disconnect", "success": "true"})
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.status, CustomerStatus.SUSPENDED)

    def test_unknown_user(self):
        r = self.signed_post(self.url, {"username": "nobody", "action": "disconnect"})
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(r.data["success"])

    def test_missing_action(self):
        r = self.signed_post(self.url, {"username": "john"})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_bad_sign(self):
        r = self.signed_post(self.url, {"username": "john", "action": "disconnect"}, sign="bad")
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(RadiusEvent.objects.exists())

    def test_without_sign(self):
        r = self.client.post(self.url, {"username": "john"}, format="json", SERVER_NAME="example.com")
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)

    def test_foreign_subnet(self):
        data = {"username": "john", "action": "disconnect"}
        r = self.client.post(
            self.url, data, format="json", SERVER_NAME="example.com",
            REMOTE_ADDR="203.0.113.7", HTTP_API_AUTH_SIGN="any"
        )
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)


class SyncHookTestCase(RadiusTestCase):
    url = "/api/radius/hook/sync/"

    def setUp(self):
        super().setUp()
        self.client.logout()
        self.router = MikrotikRouter.objects.create(
            site=self.site, name="Core", ip_address="10.0.0.1"
        )

    def test_router_synced(self):
        r = self.signed_post(self.url, {"router_id": self.router.pk, "sync_status": "synced"})
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data["data"]["connection_status"], ConnectionStatus.CONNECTED)
        self.router.refresh_from_db()
        self.assertEqual(self.router.sync_status, SyncStatus.SYNCED)
        self.assertIsNotNone(self.router.last_sync_at)

    def test_router_failed(self):
        r = self.signed_post(self.url, {
            "router_id": self.router.pk,
            "sync_status": "failed",
            "error_message": "api timeout",
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.router.refresh_from_db()
        self.assertEqual(self.router.connection_status, ConnectionStatus.CONFIGURATION_FAILED)
        self.assertEqual(self.router.last_error, "api timeout")

    def test_client_connect(self):
        ruser = self.make_radius_user(is_active=False)
        r = self.signed_post(self.url, {
            "client_id": self.customer.pk,
            "action": "connect",
            "sync_status": "synced",
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.status, CustomerStatus.ACTIVE)
        ruser.refresh_from_db()
        self.assertTrue(ruser.is_active)
        self.assertEqual(ruser.sync_status, SyncStatus.SYNCED)
        # signal receiver has nothing to push back
        self.assertFalse(RadiusEvent.objects.exists())

    def test_client_failed(self):
        self.make_radius_user()
        r = self.signed_post(self.url, {
            "client_id": self.customer.pk,
            "action": "disconnect",
            "sync_status": "failed",
            "error_message": "unknown user",
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        ruser = RadiusUser.objects.get()
        self.assertEqual(ruser.sync_status, SyncStatus.FAILED)
        self.assertEqual(ruser.last_error, "unknown user")
        ev = RadiusEvent.objects.get()
        self.assertFalse(ev.success)
        self.assertEqual(ev.customer, self.customer)

    def test_invalid_ids_skipped(self):
        r = self.signed_post(self.url, {"client_id": "abc", "router_id": 99999})
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertIsNone(r.data["data"]["client_id"])
        self.assertIsNone(r.data["data"]["router_id"])


class AccountingHookTestCase(RadiusTestCase):
    url = "/api/radius/hook/accounting/"

    def setUp(self):
        super().setUp()
        self.client.logout()
        self.router = MikrotikRouter.objects.create(
            site=self.site, name="Core", ip_address="10.0.0.1"
        )
        self.ruser = self.make_radius_user()

    def test_start_and_stop(self):
        r = self.signed_post(self.url, {
            "username": "john",
            "session_id": "81a00001",
            "nas_ip_address": "10.0.0.1",
            "framed_ip_address": "10.10.0.5",
            "session_time": 0,
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertTrue(r.data["data"]["created"])
        self.assertEqual(r.data["data"]["status"], RadiusSessionStatus.ACTIVE)
        sess = RadiusSession.objects.get(session_id="81a00001")
        self.assertEqual(sess.router, self.router)
        self.assertEqual(sess.customer, self.customer)
        self.assertEqual(sess.framed_ip, "10.10.0.5")
        self.ruser.refresh_from_db()
        self.assertTrue(self.ruser.is_online)

        r = self.signed_post(self.url, {
            "username": "john",
            "session_id": "81a00001",
            "nas_ip_address": "10.0.0.1",
            "session_time": 3600,
            "input_octets": 1024,
            "output_octets": 4096,
            "terminate_cause": "User-Request",
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertFalse(r.data["data"]["created"])
        self.assertEqual(r.data["data"]["status"], RadiusSessionStatus.ENDED)
        sess.refresh_from_db()
        self.assertEqual(sess.session_time, 3600)
        self.assertEqual(sess.output_octets, 4096)
        self.assertIsNotNone(sess.end_time)
        self.assertEqual(RadiusSession.objects.count(), 1)
        self.ruser.refresh_from_db()
        self.assertFalse(self.ruser.is_online)

    def test_required_fields(self):
        r = self.signed_post(self.url, {"username": "john"})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_user(self):
        r = self.signed_post(self.url, {"username": "nobody", "session_id": "1"})
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
