from unittest import mock

import requests
from django.test import override_settings
from rest_framework import status

from customers.models import Customer, CustomerStatus
from gateways.gw_facade import GatewayNetworkError
from gateways.models import MikrotikRouter, ConnectionStatus, SyncStatus
from ispdesk.lib import ProcessLocked
from radiusapp.models import RadiusUser, RadiusSession, RadiusSessionStatus
from radiusapp.tasks import push_user_state, reconcile_site, reconcile_all
from radiusapp.tests.base import RadiusTestCase


BACKEND_URL = "http://radius.local/api/clients/sync"


class PushUserStateTestCase(RadiusTestCase):
    def setUp(self):
        super().setUp()
        self.ruser = self.make_radius_user()

    @override_settings(RADIUS_BACKEND_URL="")
    @mock.patch("radiusapp.tasks.requests.post")
    def test_not_configured(self, post_mock):
        self.assertFalse(push_user_state(self.ruser))
        post_mock.assert_not_called()

    @override_settings(RADIUS_BACKEND_URL=BACKEND_URL)
    @mock.patch("radiusapp.tasks.requests.post")
    def test_push(self, post_mock):
        self.assertTrue(push_user_state(self.ruser))
        post_mock.assert_called_once_with(BACKEND_URL, json={
            "client_id": self.customer.pk,
            "username": "john",
            "status": "active",
            "action": "connect",
        }, timeout=10)
        self.ruser.refresh_from_db()
        self.assertEqual(self.ruser.sync_status, SyncStatus.SYNCED)
        self.assertIsNotNone(self.ruser.last_synced_at)

    @override_settings(RADIUS_BACKEND_URL=BACKEND_URL)
    @mock.patch("radiusapp.tasks.requests.post", side_effect=requests.ConnectionError("refused"))
    def test_push_failed(self, post_mock):
        with self.assertRaises(requests.RequestException):
            push_user_state(self.ruser)
        self.ruser.refresh_from_db()
        self.assertEqual(self.ruser.sync_status, SyncStatus.FAILED)
        self.assertEqual(self.ruser.last_error, "refused")


class ReconcileTestCase(RadiusTestCase):
    def setUp(self):
        super().setUp()
        self.router = MikrotikRouter.objects.create(
            site=self.site, name="Core router", ip_address="10.0.0.1"
        )
        # customer is pending, so radius user is disabled
        self.john = self.make_radius_user(is_active=False, sync_status=SyncStatus.SYNCED)
        mary = Customer.objects.create(
            site=self.site, name="Mary", phone="0700000010", status=CustomerStatus.ACTIVE
        )
        self.mary = self.make_radius_user(customer=mary, username="mary", sync_status=SyncStatus.SYNCED)
        bob = Customer.objects.create(
            site=self.site, name="Bob", phone="0700000011", status=CustomerStatus.ACTIVE
        )
        self.bob = self.make_radius_user(
            customer=bob, username="bob", is_online=True, sync_status=SyncStatus.SYNCED
        )
        RadiusSession.objects.create(user=self.bob, customer=bob, session_id="b1", username="bob")
        self.gw = mock.Mock()
        self.gw.get_active_pppoe_sessions.return_value = [
            {"session_id": "*1", "username": "john"},
            {"session_id": "*2", "username": "mary"},
        ]
        patcher = mock.patch("gateways.models.MikrotikRouter.get_gw_manager", return_value=self.gw)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_reconcile(self):
        res = reconcile_site(self.site)
        self.assertEqual(res["routers_checked"], 1)
        self.assertEqual(res["routers_offline"], 0)
        self.assertEqual(res["kicked"], ["john"])
        self.assertEqual(res["online_users"], 1)
        self.assertEqual(res["pending_sync"], 0)
        self.assertEqual(res["nas"]["created"], ["core-router"])
        self.gw.kick_pppoe_session.assert_called_once_with("john")
        self.gw.close.assert_called_once()

        self.mary.refresh_from_db()
        self.assertTrue(self.mary.is_online)
        self.assertIsNotNone(self.mary.last_seen_at)
        self.bob.refresh_from_db()
        self.assertFalse(self.bob.is_online)
        sess = RadiusSession.objects.get(session_id="b1")
        self.assertEqual(sess.status, RadiusSessionStatus.ENDED)
        self.assertEqual(sess.terminate_cause, "Lost-Service")
        self.router.refresh_from_db()
        self.assertEqual(self.router.connection_status, ConnectionStatus.ONLINE)

    def test_router_offline(self):
        self.gw.get_active_pppoe_sessions.side_effect = GatewayNetworkError("timed out")
        res = reconcile_site(self.site)
        self.assertEqual(res["routers_offline"], 1)
        self.assertEqual(len(res["errors"]), 1)
        self.router.refresh_from_db()
        self.assertEqual(self.router.connection_status, ConnectionStatus.OFFLINE)
        # without any answer online flags are kept
        self.bob.refresh_from_db()
        self.assertTrue(self.bob.is_online)

    def test_sessions_on_unreachable_router_kept(self):
        edge = MikrotikRouter.objects.create(site=self.site, name="Edge router", ip_address="10.0.0.2")
        RadiusSession.objects.filter(session_id="b1").update(router=edge)
        carla = Customer.objects.create(
            site=self.site, name="Carla", phone="0700000012", status=CustomerStatus.ACTIVE
        )
        carla_user = self.make_radius_user(
            customer=carla, username="carla", is_online=True, sync_status=SyncStatus.SYNCED
        )
        RadiusSession.objects.create(
            user=carla_user, customer=carla, session_id="c1", username="carla", nas_ip="10.0.0.2"
        )
        self.gw.get_active_pppoe_sessions.return_value = []
        edge_gw = mock.Mock()
        edge_gw.get_active_pppoe_sessions.side_effect = GatewayNetworkError("timeout")
        gws = {self.router.pk: self.gw, edge.pk: edge_gw}
        with mock.patch(
            "gateways.models.MikrotikRouter.get_gw_manager", autospec=True,
            side_effect=lambda router: gws[router.pk]
        ):
            res = reconcile_site(self.site)
        self.assertEqual(res["routers_checked"], 2)
        self.assertEqual(res["routers_offline"], 1)
        self.bob.refresh_from_db()
        self.assertTrue(self.bob.is_online)
        self.assertEqual(RadiusSession.objects.get(session_id="b1").status, RadiusSessionStatus.ACTIVE)
        carla_user.refresh_from_db()
        self.assertTrue(carla_user.is_online)
        self.assertEqual(RadiusSession.objects.get(session_id="c1").status, RadiusSessionStatus.ACTIVE)
        edge.refresh_from_db()
        self.assertEqual(edge.connection_status, ConnectionStatus.OFFLINE)

    @mock.patch("radiusapp.tasks.push_user_state_task")
    def test_desired_state_pushed(self, push_mock):
        Customer.objects.filter(pk=self.customer.pk).update(status=CustomerStatus.ACTIVE)
        RadiusUser.objects.filter(pk=self.mary.pk).update(sync_status=SyncStatus.FAILED)
        res = reconcile_site(self.site)
        self.assertEqual(res["pending_sync"], 2)
        self.john.refresh_from_db()
        self.assertTrue(self.john.is_active)
        self.assertEqual(self.john.sync_status, SyncStatus.PENDING)
        push_mock.delay.assert_any_call(self.john.pk)
        push_mock.delay.assert_any_call(self.mary.pk)
        # john is active now and stays connected
        self.gw.kick_pppoe_session.assert_not_called()

    def test_api(self):
        r = self.post("/api/radius/reconcile/")
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data["kicked"], ["john"])

    @mock.patch("radiusapp.views.reconcile_site")
    @mock.patch("radiusapp.views.process_lock_cm", side_effect=ProcessLocked)
    def test_api_locked(self, lock_mock, reconcile_mock):
        r = self.post("/api/radius/reconcile/")
        self.assertEqual(r.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(r.data["detail"], "Reconciliation is already running")
        lock_mock.assert_called_once_with(lock_name="radius_reconcile")
        reconcile_mock.assert_not_called()

    @mock.patch("radiusapp.tasks.reconcile_site", return_value={"routers_checked": 0})
    def test_reconcile_all(self, reconcile_mock):
        self.assertEqual(reconcile_all(), {"example.com": {"routers_checked": 0}})
        reconcile_mock.assert_called_once_with(self.site)

    @mock.patch("radiusapp.tasks.reconcile_site")
    @mock.patch("radiusapp.tasks.process_lock_cm", side_effect=ProcessLocked)
    def test_reconcile_all_locked(self, lock_mock, reconcile_mock):
        self.assertIsNone(reconcile_all())
        reconcile_mock.assert_not_called()
