import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("sites", "0002_alter_domain_unique"),
        ("gateways", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="NetworkDevice",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=127, verbose_name="Name")),
                ("ip_address", models.GenericIPAddressField(verbose_name="Ip address")),
                (
                    "device_type",
                    models.CharField(
                        choices=[
                            ("router", "Router"),
                            ("switch", "Switch"),
                            ("access_point", "Access point"),
                            ("olt", "OLT"),
                            ("other", "Other"),
                        ],
                        default="other",
                        max_length=16,
                        verbose_name="Device type",
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
                    "status",
                    models.CharField(
                        choices=[("unknown", "Unknown"), ("up", "Up"), ("down", "Down")],
                        default="unknown",
                        max_length=8,
                        verbose_name="Status",
                    ),
                ),
                ("last_polled", models.DateTimeField(blank=True, default=None, null=True, verbose_name="Last polled")),
                ("metrics", models.JSONField(blank=True, default=dict, verbose_name="Metrics")),
                ("last_error", models.TextField(blank=True, default="", verbose_name="Last error")),
                ("is_monitored", models.BooleanField(default=True, verbose_name="Is monitored")),
                ("create_time", models.DateTimeField(auto_now_add=True)),
                (
                    "router",
                    models.ForeignKey(
                        blank=True,
                        default=None,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="devices",
                        to="gateways.mikrotikrouter",
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
                "verbose_name": "Network device",
                "verbose_name_plural": "Network devices",
                "db_table": "network_devices",
                "ordering": ("name",),
                "unique_together": {("site", "ip_address")},
            },
        ),
    ]
