from rest_framework import status
from rest_framework.test import APITestCase

from profiles.models import UserProfile, UserProfileLog, UserProfileLogActionType
from services.models import Service


class ServiceApiTestCase(APITestCase):
    def get(self, *args, **kwargs):
        return self.client.get(SERVER_NAME="example.com", *args, **kwargs)

    def post(self, *args, **kwargs):
        return self.client.post(SERVER_NAME="example.com", *args, **kwargs)

    def setUp(self):
        self.admin = UserProfile.objects.create_superuser(
            username="admin", password="admin", telephone="+797812345678"
        )
        self.client.login(username="admin", password="admin")

    def test_create(self):
        r = self.post("/api/services/", {
            "title": "Home 10",
            "speed_in": 10,
            "speed_out": 5,
            "cost": "2500.00",
        })
        self.assertEqual(r.status_code, status.HTTP_201_CREATED, msg=r.data)
        srv = Service.objects.get(pk=r.data["id"])
        self.assertEqual(srv.duration_days, 30)
        self.assertEqual(srv.session_timeout, 86400)
        self.assertEqual(srv.idle_timeout, 1800)
        self.assertEqual(srv.sites.count(), 1)
        self.assertTrue(UserProfileLog.objects.filter(
            do_type=UserProfileLogActionType.CREATE_SERVICE
        ).exists())

    def test_rate_limit(self):
        srv = Service.objects.create(title="t", speed_in=10, speed_out=5, cost=1000)
        self.assertEqual(srv.rate_limit(), "5M/10M")
        self.assertEqual(srv.download_kbps, 10240)
        self.assertEqual(srv.upload_kbps, 5120)

    def test_list(self):
        Service.objects.create(title="t", speed_in=10, speed_out=5, cost=1000)
        r = self.get("/api/services/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(len(r.data), 1)
        self.assertEqual(r.data[0]["usercount"], 0)
        self.assertEqual(r.data[0]["rate_limit"], "5M/10M")
