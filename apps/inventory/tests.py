from django.contrib.sites.models import Site
from rest_framework import status
from rest_framework.test import APITestCase

from customers.models import Customer
from inventory.models import InventoryItem, ItemStatus, EquipmentAssignment
from profiles.models import UserProfile


class InventoryApiTestCase(APITestCase):
    def get(self, *args, **kwargs):
        return self.client.get(SERVER_NAME="example.com", *args, **kwargs)

    def post(self, *args, **kwargs):
        return self.client.post(SERVER_NAME="example.com", *args, **kwargs)

    def setUp(self):
        self.admin = UserProfile.objects.create_superuser(
            username="admin", password="admin", telephone="+797812345678"
        )
        self.client.login(username="admin", password="admin")
        self.site = Site.objects.get(domain="example.com")
        self.customer = Customer.objects.create(
            site=self.site, name="John", phone="0712345678"
        )
        self.item = InventoryItem.objects.create(
            site=self.site, name="hAP ac2", item_type="router", serial_number="SN1"
        )

    def test_create_normalizes_mac(self):
        r = self.post("/api/inventory/items/", {
            "name": "CPE",
            "item_type": "cpe",
            "serial_number": "SN2",
            "mac_address": "AA-BB-CC-DD-EE-0F",
        })
        self.assertEqual(r.status_code, status.HTTP_201_CREATED, msg=r.data)
        self.assertEqual(r.data["status"], ItemStatus.IN_STOCK)
        item = InventoryItem.objects.get(pk=r.data["id"])
        self.assertEqual(item.mac_address, "aa:bb:cc:dd:ee:0f")
        self.assertEqual(item.site, self.site)

    def test_serial_unique(self):
        r = self.post("/api/inventory/items/", {
            "name": "dup",
            "serial_number": "SN1",
        })
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_assign_release(self):
        r = self.post("/api/inventory/items/%d/assign/" % self.item.pk, {
            "customer_id": self.customer.pk,
            "notes": "roof",
        })
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.item.refresh_from_db()
        self.assertEqual(self.item.status, ItemStatus.ASSIGNED)
        assignment = EquipmentAssignment.objects.get()
        self.assertEqual(assignment.assigned_by, self.admin)
        self.assertEqual(assignment.installation_notes, "roof")

        # already assigned
        r = self.post("/api/inventory/items/%d/assign/" % self.item.pk, {
            "customer_id": self.customer.pk,
        })
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

        r = self.post("/api/inventory/items/%d/release/" % self.item.pk)
        self.assertEqual(r.status_code, status.HTTP_200_OK, msg=r.data)
        self.item.refresh_from_db()
        self.assertEqual(self.item.status, ItemStatus.IN_STOCK)
        assignment.refresh_from_db()
        self.assertIsNotNone(assignment.returned_at)
        self.assertIsNone(self.item.current_assignment())

    def test_release_in_stock(self):
        r = self.post("/api/inventory/items/%d/release/" % self.item.pk)
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_mark_deployed(self):
        self.item.notes = "new"
        self.item.mark_deployed("Promoted to MikroTik Router")
        self.item.refresh_from_db()
        self.assertEqual(self.item.status, ItemStatus.DEPLOYED)
        self.assertEqual(self.item.notes, "new - Promoted to MikroTik Router")

    def test_assignments_list(self):
        self.item.assign_to(self.customer, author=self.admin)
        r = self.get("/api/inventory/assignments/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(len(r.data), 1)
        self.assertEqual(r.data[0]["customer_name"], "John")
