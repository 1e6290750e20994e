from unittest import mock

from rest_framework import status

from customers.tests.base import CustomAPITestCase
from devices.models import NetworkDevice, DeviceStatus, DeviceType
from devices.snmp_util import SnmpError, SnmpWorker, SYS_NAME_OID, SYS_UPTIME_OID
from devices.tasks import poll_devices


def _snmp_answers(oid):
    return {
        SYS_NAME_OID: "sw-1",
        SYS_UPTIME_OID: "123456",
    }.get(oid, "1")


class NetworkDeviceTestCase(CustomAPITestCase):
    def setUp(self):
        super().setUp()
        self.device = NetworkDevice.objects.create(
            site=self.site,
            name="Access switch",
            ip_address="10.0.1.2",
            device_type=DeviceType.SWITCH,
        )

    def test_snmp_worker_without_ip(self):
        with self.assertRaises(SnmpError):
            SnmpWorker(ip=None)

    @mock.patch("devices.snmp_util.SnmpWorker.get_item", side_effect=_snmp_answers)
    def test_poll_up(self, get_item_mock):
        self.assertTrue(self.device.poll())
        self.device.refresh_from_db()
        self.assertEqual(self.device.status, DeviceStatus.UP)
        self.assertEqual(self.device.metrics["sys_name"], "sw-1")
        self.assertEqual(self.device.metrics["sys_uptime"], 123456)
        self.assertIsNotNone(self.device.last_polled)
        self.assertEqual(self.device.last_error, "")

    @mock.patch("devices.snmp_util.SnmpWorker.get_item", side_effect=SnmpError("Timeout"))
    def test_poll_down(self, get_item_mock):
        self.assertFalse(self.device.poll())
        self.device.refresh_from_db()
        self.assertEqual(self.device.status, DeviceStatus.DOWN)
        self.assertEqual(self.device.last_error, "Timeout")

    @mock.patch("devices.snmp_util.SnmpWorker.get_item")
    def test_poll_devices(self, get_item_mock):
        NetworkDevice.objects.create(
            site=self.site, name="Not monitored", ip_address="10.0.1.3", is_monitored=False
        )
        NetworkDevice.objects.create(site=self.site, name="Olt", ip_address="10.0.1.4")

        def _answer(oid):
            if get_item_mock.call_count > 4:
                raise SnmpError("Timeout")
            return _snmp_answers(oid)

        get_item_mock.side_effect = _answer
        res = poll_devices(self.site)
        self.assertEqual(res, {"up": 1, "down": 1})
        self.assertEqual(
            NetworkDevice.objects.get(name="Not monitored").status, DeviceStatus.UNKNOWN
        )

    @mock.patch("devices.snmp_util.SnmpWorker.get_item", side_effect=_snmp_answers)
    def test_poll_api(self, get_item_mock):
        r = self.post("/api/devices/%d/poll/" % self.device.pk)
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data["status"], DeviceStatus.UP)
        self.assertEqual(r.data["metrics"]["sys_name"], "sw-1")

    def test_create(self):
        r = self.post("/api/devices/", {
            "name": "Sector AP",
            "ip_address": "10.0.1.10",
            "device_type": DeviceType.ACCESS_POINT,
            "status": DeviceStatus.UP,
        })
        self.assertEqual(r.status_code, status.HTTP_201_CREATED, msg=r.data)
        self.assertEqual(r.data["status"], DeviceStatus.UNKNOWN)
        self.assertEqual(NetworkDevice.objects.get(pk=r.data["id"]).site, self.site)

    def test_summary(self):
        NetworkDevice.objects.create(
            site=self.site, name="Down one", ip_address="10.0.1.5", status=DeviceStatus.DOWN
        )
        r = self.get("/api/devices/summary/")
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.assertEqual(r.data, {
            "unknown": 1,
            "up": 0,
            "down": 1,
            "total": 2,
        })
