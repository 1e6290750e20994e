from unittest import mock

from rest_framework import status

from customers.tests.base import CustomAPITestCase
from devices.snmp_util import SnmpError
from gateways.gw_facade import GatewayNetworkError
from gateways.models import MikrotikRouter, ConnectionStatus, RouterStatus
from gateways.nas import register_nas, reconcile_nas_clients, make_shortname, PROMOTED_NOTE
from inventory.models import InventoryItem, ItemStatus, ItemType
from ispdesk.lib import LogicError
from profiles.models import UserProfileLog, UserProfileLogActionType
from radiusapp.models import NasClient, NasType, RadiusServer, RadiusUser, RadiusSession


def _gw_mock(**kwargs):
    gw = mock.Mock()
    gw.ping.return_value = 'MikroTik'
    gw.get_active_pppoe_sessions.return_value = []
    gw.kick_pppoe_session.return_value = True
    for k, v in kwargs.items():
        setattr(gw, k, v)
    return gw


class GatewayTestCaseMixin:
    def setUp(self):
        super().setUp()
        self.router = MikrotikRouter.objects.create(
            site=self.site,
            name="Core router",
            ip_address="10.0.0.1",
            password="secret",
        )


class MikrotikRouterTestConnectionTestCase(GatewayTestCaseMixin, CustomAPITestCase):
    @mock.patch("gateways.models.MikrotikRouter.get_gw_manager")
    @mock.patch("devices.snmp_util.SnmpWorker.get_item", return_value="core")
    @mock.patch("gateways.models.ping", return_value=True)
    def test_all_passed(self, ping_mock, snmp_mock, gw_mngr_mock):
        gw_mngr_mock.return_value = _gw_mock()
        r = self.post("/api/gateways/routers/%d/test_connection/" % self.router.pk)
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data["connection_status"], ConnectionStatus.ONLINE)
        self.assertEqual(r.data["status"], RouterStatus.ACTIVE)
        self.assertTrue(r.data["results"]["ping"])
        self.assertTrue(r.data["results"]["snmp"])
        self.assertTrue(r.data["results"]["api"])
        self.assertEqual(r.data["results"]["errors"], [])
        ping_mock.assert_called_once_with("10.0.0.1", count=2)
        self.router.refresh_from_db()
        self.assertEqual(self.router.last_error, "")

    @mock.patch("gateways.models.MikrotikRouter.get_gw_manager")
    @mock.patch("devices.snmp_util.SnmpWorker.get_item", side_effect=SnmpError("timeout"))
    @mock.patch("gateways.models.ping", return_value=True)
    def test_snmp_failed(self, ping_mock, snmp_mock, gw_mngr_mock):
        gw = _gw_mock()
        gw_mngr_mock.return_value = gw
        res = self.router.test_connection()
        self.assertFalse(res["snmp"])
        self.assertTrue(res["api"])
        self.router.refresh_from_db()
        self.assertEqual(self.router.connection_status, ConnectionStatus.OFFLINE)
        self.assertEqual(self.router.status, RouterStatus.ERROR)
        self.assertIn("snmp: timeout", self.router.last_error)
        gw.close.assert_called_once()

    @mock.patch("gateways.models.MikrotikRouter.get_gw_manager")
    @mock.patch("devices.snmp_util.SnmpWorker.get_item", return_value="core")
    @mock.patch("gateways.models.ping", return_value=False)
    def test_api_unreachable(self, ping_mock, snmp_mock, gw_mngr_mock):
        gw = _gw_mock()
        gw.ping.side_effect = GatewayNetworkError("Connection refused")
        gw_mngr_mock.return_value = gw
        res = self.router.test_connection()
        self.assertFalse(res["api"])
        self.assertFalse(res["ping"])
        self.assertEqual(len(res["errors"]), 2)
        gw.close.assert_called_once()

    @mock.patch("gateways.models.MikrotikRouter.get_gw_manager")
    def test_refresh_connection_status(self, gw_mngr_mock):
        gw = _gw_mock()
        gw.ping.side_effect = GatewayNetworkError("No route to host")
        gw_mngr_mock.return_value = gw
        self.assertFalse(self.router.refresh_connection_status())
        self.router.refresh_from_db()
        self.assertEqual(self.router.connection_status, ConnectionStatus.OFFLINE)
        self.assertEqual(self.router.last_error, "No route to host")


class MikrotikRouterApiTestCase(GatewayTestCaseMixin, CustomAPITestCase):
    def test_create(self):
        r = self.post("/api/gateways/routers/", {
            "name": "Edge",
            "ip_address": "10.0.0.2",
            "password": "pass",
        })
        self.assertEqual(r.status_code, status.HTTP_201_CREATED, msg=r.data)
        self.assertNotIn("password", r.data)
        router = MikrotikRouter.objects.get(pk=r.data["id"])
        self.assertEqual(router.site, self.site)
        self.assertEqual(router.password, "pass")
        self.assertTrue(UserProfileLog.objects.filter(
            do_type=UserProfileLogActionType.CREATE_ROUTER
        ).exists())

    def test_create_duplicate_ip(self):
        r = self.post("/api/gateways/routers/", {
            "name": "Dup",
            "ip_address": "10.0.0.1",
        })
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST, msg=r.data)

    @mock.patch("gateways.models.MikrotikRouter.get_gw_manager")
    def test_active_sessions(self, gw_mngr_mock):
        gw_mngr_mock.return_value = _gw_mock(get_active_pppoe_sessions=mock.Mock(return_value=[
            {"session_id": "*1", "username": "john", "address": "10.0.0.10"}
        ]))
        r = self.get("/api/gateways/routers/%d/active_sessions/" % self.router.pk)
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data[0]["username"], "john")

    @mock.patch("gateways.models.MikrotikRouter.get_gw_manager")
    def test_active_sessions_router_down(self, gw_mngr_mock):
        gw = _gw_mock()
        gw.get_active_pppoe_sessions.side_effect = GatewayNetworkError("Connection refused")
        gw_mngr_mock.return_value = gw
        r = self.get("/api/gateways/routers/%d/active_sessions/" % self.router.pk)
        self.assertEqual(r.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertFalse(r.data["success"])
        gw.close.assert_called_once()

    @mock.patch("gateways.models.MikrotikRouter.get_gw_manager")
    def test_disconnect_session(self, gw_mngr_mock):
        gw = _gw_mock()
        gw_mngr_mock.return_value = gw
        ruser = RadiusUser.objects.create(
            site=self.site, customer=self.customer, username="john",
            password="pw", is_active=True, is_online=True
        )
        RadiusSession.objects.create(user=ruser, customer=self.customer, session_id="s1", username="john")
        r = self.post("/api/gateways/routers/%d/disconnect_session/" % self.router.pk, {
            "username": "john"
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertTrue(r.data["disconnected"])
        gw.kick_pppoe_session.assert_called_once_with("john")
        ruser.refresh_from_db()
        self.assertFalse(ruser.is_online)
        self.assertEqual(RadiusSession.objects.get(session_id="s1").status, "ended")
        self.assertTrue(UserProfileLog.objects.filter(
            do_type=UserProfileLogActionType.DISCONNECT_SESSION
        ).exists())

    def test_delete_deactivates_nas(self):
        nas = NasClient.objects.create(
            site=self.site, name="core", shortname="core", nas_ip="10.0.0.1",
            secret="s", router=self.router
        )
        r = self.delete("/api/gateways/routers/%d/" % self.router.pk)
        self.assertEqual(r.status_code, status.HTTP_204_NO_CONTENT)
        nas.refresh_from_db()
        self.assertFalse(nas.is_active)
        self.assertIsNone(nas.router)


class RegisterNasTestCase(CustomAPITestCase):
    def setUp(self):
        super().setUp()
        self.item = InventoryItem.objects.create(
            site=self.site,
            name="hAP ac2",
            item_type=ItemType.ROUTER,
            serial_number="SN-001",
            notes="box 4",
        )
        self.radius_server = RadiusServer.objects.create(
            site=self.site, name="main", server_address="10.0.0.100",
            secret="radsecret", is_primary=True
        )

    def test_shortname(self):
        self.assertEqual(make_shortname("Core Router #1"), "core-router-1")
        self.assertEqual(make_shortname("***"), "nas")

    def test_register(self):
        router = register_nas(self.item, {
            "ip_address": "10.0.0.5",
            "name": "Tower A",
            "radius_secret": "nassecret",
        }, author=self.admin)
        self.assertEqual(router.name, "Tower A")
        self.assertEqual(router.inventory_item, self.item)
        self.assertEqual(router.site, self.site)
        self.assertEqual(router.status, RouterStatus.PENDING)
        nas = router.nas_client
        self.assertEqual(nas.secret, "nassecret")
        self.assertEqual(nas.shortname, "tower-a")
        self.assertEqual(nas.nas_type, NasType.MIKROTIK)
        self.assertTrue(nas.is_active)
        self.assertIn(router, self.radius_server.routers.all())
        self.item.refresh_from_db()
        self.assertEqual(self.item.status, ItemStatus.DEPLOYED)
        self.assertEqual(self.item.notes, "box 4 - %s" % PROMOTED_NOTE)
        self.assertTrue(UserProfileLog.objects.filter(
            do_type=UserProfileLogActionType.REGISTER_NAS
        ).exists())

    def test_register_generates_secret(self):
        router = register_nas(self.item, {"ip_address": "10.0.0.5"})
        self.assertEqual(router.name, "hAP ac2")
        self.assertEqual(len(router.nas_client.secret), 16)

    def test_register_deployed(self):
        self.item.mark_deployed()
        with self.assertRaises(LogicError):
            register_nas(self.item, {"ip_address": "10.0.0.5"})
        self.assertFalse(MikrotikRouter.objects.exists())

    def test_register_without_ip(self):
        with self.assertRaises(LogicError):
            register_nas(self.item, {"name": "x"})

    def test_register_api(self):
        r = self.post("/api/gateways/routers/register_from_inventory/", {
            "inventory_item_id": self.item.pk,
            "ip_address": "10.0.0.6",
        })
        self.assertEqual(r.status_code, status.HTTP_201_CREATED, msg=r.data)
        self.assertEqual(r.data["ip_address"], "10.0.0.6")
        self.assertIsNotNone(r.data["nas_client_id"])

    def test_register_api_again(self):
        register_nas(self.item, {"ip_address": "10.0.0.6"})
        r = self.post("/api/gateways/routers/register_from_inventory/", {
            "inventory_item_id": self.item.pk,
            "ip_address": "10.0.0.7",
        })
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST, msg=r.data)

    def test_register_api_unknown_item(self):
        r = self.post("/api/gateways/routers/register_from_inventory/", {
            "inventory_item_id": 99999,
            "ip_address": "10.0.0.6",
        })
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST, msg=r.data)


class ReconcileNasClientsTestCase(GatewayTestCaseMixin, CustomAPITestCase):
    def test_creates_missing(self):
        res = reconcile_nas_clients(self.site)
        self.assertEqual(res["created"], ["core-router"])
        nas = NasClient.objects.get(router=self.router)
        self.assertEqual(str(nas.nas_ip), "10.0.0.1")
        self.assertTrue(nas.is_active)

    def test_updates_changed_ip(self):
        nas = NasClient.objects.create(
            site=self.site, name="core", shortname="core", nas_ip="10.0.0.1",
            secret="keep", router=self.router
        )
        self.router.ip_address = "10.0.0.9"
        self.router.save(update_fields=["ip_address"])
        res = reconcile_nas_clients(self.site)
        self.assertEqual(res["updated"], ["core-router"])
        nas = NasClient.objects.get(router=self.router)
        self.assertEqual(str(nas.nas_ip), "10.0.0.9")
        self.assertEqual(nas.secret, "keep")

    def test_deactivates_orphans(self):
        NasClient.objects.create(
            site=self.site, name="old", shortname="old", nas_ip="10.0.0.50", secret="s"
        )
        NasClient.objects.create(
            site=self.site, name="cisco", shortname="cisco", nas_ip="10.0.0.51",
            secret="s", nas_type=NasType.CISCO
        )
        self.router.is_enabled = False
        self.router.save(update_fields=["is_enabled"])
        res = reconcile_nas_clients(self.site)
        self.assertEqual(res["created"], [])
        self.assertEqual(res["deactivated"], ["old"])
        self.assertTrue(NasClient.objects.get(shortname="cisco").is_active)

    def test_nothing_to_do(self):
        reconcile_nas_clients(self.site)
        res = reconcile_nas_clients(self.site)
        self.assertEqual(res, {"created": [], "updated": [], "deactivated": []})

    def test_api(self):
        r = self.post("/api/gateways/routers/reconcile_nas/")
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data["created"], ["core-router"])
