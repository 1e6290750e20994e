from decimal import Decimal
from unittest import mock

from django.test import SimpleTestCase, override_settings

from ispdesk import ping
from ispdesk.lib import (
    safe_int, safe_decimal, safe_bool, local_phone, normalize_msisdn,
    phone_variants, generate_password, PASSWORD_CHARS,
    calc_hash, check_sign, check_subnet
)


class PhoneTestCase(SimpleTestCase):
    def test_normalize_msisdn(self):
        self.assertEqual(normalize_msisdn("0712345678"), "254712345678")
        self.assertEqual(normalize_msisdn("+254 712-345-678"), "254712345678")
        self.assertEqual(normalize_msisdn("712345678"), "254712345678")
        self.assertEqual(normalize_msisdn(""), "")
        self.assertEqual(normalize_msisdn(None), "")

    def test_local_phone(self):
        self.assertEqual(local_phone("254712345678"), "0712345678")
        self.assertEqual(local_phone("+254712345678"), "0712345678")
        self.assertEqual(local_phone("0712345678"), "0712345678")
        self.assertEqual(local_phone("712345678"), "0712345678")
        self.assertEqual(local_phone(""), "")

    def test_variants(self):
        self.assertEqual(
            set(phone_variants("0712345678")),
            {"0712345678", "254712345678", "+254712345678"}
        )


class SafeValuesTestCase(SimpleTestCase):
    def test_safe_int(self):
        self.assertEqual(safe_int("12"), 12)
        self.assertEqual(safe_int("abc"), 0)
        self.assertEqual(safe_int(None, default=5), 5)

    def test_safe_decimal(self):
        self.assertEqual(safe_decimal("10.50"), Decimal("10.50"))
        self.assertEqual(safe_decimal(3), Decimal(3))
        self.assertIsNone(safe_decimal("abc"))
        self.assertIsNone(safe_decimal(""))

    def test_safe_bool(self):
        for val in (True, 1, "1", "true", "True", " yes "):
            self.assertTrue(safe_bool(val), msg=repr(val))
        for val in (False, 0, None, "", "false", "0", "no", 2, [1]):
            self.assertFalse(safe_bool(val), msg=repr(val))

    def test_generate_password(self):
        passw = generate_password()
        self.assertEqual(len(passw), 12)
        self.assertTrue(all(c in PASSWORD_CHARS for c in passw))


@override_settings(API_AUTH_SECRET="secret", API_AUTH_SUBNET=["127.0.0.0/8", "10.0.0.0/8"])
class HashAuthTestCase(SimpleTestCase):
    def test_order_independent(self):
        self.assertEqual(
            calc_hash({"a": "1", "b": "2"}),
            calc_hash({"b": "2", "a": "1"})
        )

    def test_empty_values_ignored(self):
        self.assertEqual(
            calc_hash({"a": "1", "b": None, "c": ""}),
            calc_hash({"a": "1"})
        )

    def test_check_sign(self):
        data = {"username": "john", "action": "disconnect"}
        self.assertTrue(check_sign(data, calc_hash(data)))
        self.assertFalse(check_sign(data, "bad"))

    def test_check_subnet(self):
        check_subnet({"REMOTE_ADDR": "10.1.2.3"})
        with self.assertRaises(ValueError):
            check_subnet({"REMOTE_ADDR": "203.0.113.7"})
        with self.assertRaises(ValueError):
            check_subnet({})


class PingTestCase(SimpleTestCase):
    def test_hostname_rejected(self):
        with self.assertRaisesMessage(ValueError, "is not valid ip address"):
            ping("router.local")

    @mock.patch("ispdesk.os.system", return_value=0)
    def test_ping(self, system_mock):
        self.assertTrue(ping("10.0.0.1", count=2))
        cmd = system_mock.call_args[0][0]
        self.assertIn("-4", cmd)
        self.assertIn("-c2", cmd)

    @mock.patch("ispdesk.os.system", return_value=256)
    def test_ping_v6_failed(self, system_mock):
        self.assertFalse(ping("fd00::1"))
        self.assertIn("-6", system_mock.call_args[0][0])
