import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("sites", "0002_alter_domain_unique"),
        ("customers", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="InventoryItem",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=128, verbose_name="Name")),
                ("category", models.CharField(blank=True, default="", max_length=64, verbose_name="Category")),
                (
                    "item_type",
                    models.CharField(
                        choices=[
                            ("router", "Router"),
                            ("cpe", "CPE"),
                            ("switch", "Switch"),
                            ("cable", "Cable"),
                            ("other", "Other"),
                        ],
                        default="other", max_length=16, verbose_name="Type",
                    ),
                ),
                ("model", models.CharField(blank=True, default="", max_length=128, verbose_name="Model")),
                (
                    "serial_number",
                    models.CharField(blank=True, default=None, max_length=128, null=True, unique=True,
                                     verbose_name="Serial number"),
                ),
                (
                    "mac_address",
                    models.CharField(
                        blank=True, default=None, max_length=17, null=True,
                        validators=[django.core.validators.RegexValidator(
                            r"^([0-9a-fA-F]{2}[:.-]){5}[0-9a-fA-F]{2}|([0-9a-fA-F]{4}[:.-]){2}[0-9a-fA-F]{4}$"
                        )],
                        verbose_name="Mac address",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("in_stock", "In stock"),
                            ("assigned", "Assigned"),
                            ("deployed", "Deployed"),
                            ("faulty", "Faulty"),
                        ],
                        default="in_stock", max_length=16, verbose_name="Status",
                    ),
                ),
                ("notes", models.TextField(blank=True, default="", verbose_name="Notes")),
                ("create_time", models.DateTimeField(auto_now_add=True)),
                (
                    "site",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.CASCADE, to="sites.site",
                    ),
                ),
            ],
            options={
                "verbose_name": "Inventory item",
                "verbose_name_plural": "Inventory items",
                "db_table": "inventory_items",
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="EquipmentAssignment",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("installation_notes", models.TextField(blank=True, default="")),
                ("assigned_at", models.DateTimeField(auto_now_add=True)),
                ("returned_at", models.DateTimeField(blank=True, default=None, null=True)),
                (
                    "assigned_by",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="equipment", to="customers.customer",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="assignments", to="inventory.inventoryitem",
                    ),
                ),
            ],
            options={
                "db_table": "equipment_assignments",
                "ordering": ("-assigned_at",),
            },
        ),
    ]
