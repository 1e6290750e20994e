from rest_framework import status
from rest_framework.test import APITestCase

from profiles.models import UserProfile, UserProfileLog, UserProfileLogActionType


class ProfileApiTestCase(APITestCase):
    def get(self, *args, **kwargs):
        return self.client.get(SERVER_NAME="example.com", *args, **kwargs)

    def post(self, *args, **kwargs):
        return self.client.post(SERVER_NAME="example.com", *args, **kwargs)

    def setUp(self):
        self.admin = UserProfile.objects.create_superuser(
            username="admin", password="admin", telephone="+797812345678"
        )
        self.client.login(username="admin", password="admin")

    def test_create_superuser(self):
        r = self.post(
            "/api/profiles/",
            {
                "username": "test",
                "fio": "test fio",
                "is_active": True,
                "telephone": "+254712345678",
                "email": "test@mail.ex",
                "password": "secret-passw",
            },
        )
        self.assertEqual(r.status_code, status.HTTP_201_CREATED, msg=r.data)
        profile = r.data
        self.assertEqual(profile["username"], "test")
        self.assertEqual(profile["fio"], "test fio")
        self.assertEqual(profile["telephone"], "+254712345678")
        self.assertEqual(profile["email"], "test@mail.ex")
        self.assertTrue(profile["is_active"])
        self.assertTrue(profile["is_admin"])
        self.assertTrue(profile["is_superuser"])
        self.assertNotIn("password", profile)
        created = UserProfile.objects.get(username="test")
        self.assertTrue(created.check_password("secret-passw"))
        self.assertEqual(created.sites.count(), 1)

    def test_current_profile(self):
        r = self.get("/api/profiles/current/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data["username"], "admin")

    def test_log(self):
        self.admin.log(
            do_type=UserProfileLogActionType.CREATE_NAS,
            additional_text="test nas"
        )
        self.assertEqual(UserProfileLog.objects.count(), 1)
        r = self.get("/api/profiles/log/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(len(r.data), 1)
        self.assertEqual(r.data[0]["additional_text"], "test nas")
        self.assertEqual(r.data[0]["do_type"], UserProfileLogActionType.CREATE_NAS)

    def test_unauthorized(self):
        self.client.logout()
        r = self.get("/api/profiles/")
        self.assertIn(r.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    def test_token_created(self):
        self.assertTrue(hasattr(self.admin, "auth_token"))
