from decimal import Decimal

from django.contrib.sites.models import Site
from rest_framework.test import APITestCase

from customers.models import Customer, CustomerStatus
from profiles.models import UserProfile
from services.models import Service


class CustomAPITestCase(APITestCase):
    def get(self, *args, **kwargs):
        return self.client.get(SERVER_NAME="example.com", *args, **kwargs)

    def post(self, *args, **kwargs):
        return self.client.post(SERVER_NAME="example.com", *args, **kwargs)

    def patch(self, *args, **kwargs):
        return self.client.patch(SERVER_NAME="example.com", *args, **kwargs)

    def delete(self, *args, **kwargs):
        return self.client.delete(SERVER_NAME="example.com", *args, **kwargs)

    def setUp(self):
        self.admin = UserProfile.objects.create_superuser(
            username="admin", password="admin", telephone="+797812345678"
        )
        self.client.login(username="admin", password="admin")
        self.site = Site.objects.get(domain="example.com")
        self.service = Service.objects.create(
            title="Home 10",
            speed_in=10,
            speed_out=5,
            cost=Decimal("1000.00"),
        )
        self.service.sites.add(self.site)
        self.customer = Customer.objects.create(
            site=self.site,
            name="John Doe",
            email="john@example.com",
            phone="0712345678",
            id_number="12345678",
            service=self.service,
            status=CustomerStatus.PENDING,
        )
