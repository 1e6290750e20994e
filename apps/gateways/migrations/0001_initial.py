import django.db.models.deletion
import encrypted_model_fields.fields
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("sites", "0002_alter_domain_unique"),
        ("inventory", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="MikrotikRouter",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=127, verbose_name="Name")),
                ("ip_address", models.GenericIPAddressField(unique=True, verbose_name="Ip address")),
                ("api_port", models.PositiveIntegerField(default=8728, verbose_name="API port")),
                ("username", models.CharField(default="admin", max_length=64, verbose_name="Admin username")),
                (
                    "password",
                    encrypted_model_fields.fields.EncryptedCharField(
                        blank=True, default="", max_length=127, verbose_name="Admin password"
                    ),
                ),
                ("snmp_community", models.CharField(default="public", max_length=64, verbose_name="SNMP community")),
                (
                    "snmp_version",
                    models.PositiveSmallIntegerField(
                        choices=[(1, "v1"), (2, "v2c")], default=2, verbose_name="SNMP version"
                    ),
                ),
                (
                    "pppoe_interface",
                    models.CharField(default="pppoe-server1", max_length=64, verbose_name="PPPoE interface"),
                ),
                ("dns_servers", models.CharField(default="8.8.8.8,8.8.4.4", max_length=128, verbose_name="DNS servers")),
                ("client_network", models.CharField(default="10.0.0.0/24", max_length=43, verbose_name="Client network")),
                (
                    "gateway",
                    models.GenericIPAddressField(blank=True, default=None, null=True, verbose_name="Gateway"),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("active", "Active"),
                            ("inactive", "Inactive"),
                            ("error", "Error"),
                        ],
                        default="pending",
                        max_length=16,
                        verbose_name="Status",
                    ),
                ),
                (
                    "connection_status",
                    models.CharField(
                        choices=[
                            ("online", "Online"),
                            ("offline", "Offline"),
                            ("testing", "Testing"),
                            ("connected", "Connected"),
                            ("configuration_failed", "Configuration failed"),
                        ],
                        default="offline",
                        max_length=32,
                        verbose_name="Connection status",
                    ),
                ),
                ("is_enabled", models.BooleanField(default=True, verbose_name="Enabled")),
                (
                    "sync_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("synced", "Synced"), ("failed", "Failed")],
                        default="pending",
                        max_length=16,
                        verbose_name="Sync status",
                    ),
                ),
                (
                    "last_test_results",
                    models.JSONField(blank=True, default=None, null=True, verbose_name="Last test results"),
                ),
                ("last_sync_at", models.DateTimeField(blank=True, default=None, null=True, verbose_name="Last sync")),
                ("last_error", models.TextField(blank=True, default="", verbose_name="Last error")),
                ("create_time", models.DateTimeField(auto_now_add=True, verbose_name="Create time")),
                (
                    "inventory_item",
                    models.ForeignKey(
                        blank=True,
                        default=None,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="routers",
                        to="inventory.inventoryitem",
                    ),
                ),
                (
                    "site",
                    models.ForeignKey(
                        blank=True,
                        default=None,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        to="sites.site",
                    ),
                ),
            ],
            options={
                "verbose_name": "MikroTik router",
                "verbose_name_plural": "MikroTik routers",
                "db_table": "mikrotik_routers",
                "ordering": ("name",),
            },
        ),
    ]
