import django.core.validators
import django.db.models.deletion
import encrypted_model_fields.fields
from django.db import migrations, models


def _site_fk():
    return models.ForeignKey(
        blank=True, default=None, null=True,
        on_delete=django.db.models.deletion.CASCADE, to="sites.site",
    )


SYNC_CHOICES = [("pending", "Pending"), ("synced", "Synced"), ("failed", "Failed")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("sites", "0002_alter_domain_unique"),
        ("services", "0001_initial"),
        ("customers", "0001_initial"),
        ("gateways", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="RadiusGroup",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=64, verbose_name="Name")),
                ("description", models.CharField(blank=True, default="", max_length=256, verbose_name="Description")),
                ("upload_limit", models.PositiveIntegerField(default=1, verbose_name="Upload limit, Mbit/s")),
                ("download_limit", models.PositiveIntegerField(default=5, verbose_name="Download limit, Mbit/s")),
                ("session_timeout", models.PositiveIntegerField(default=86400, verbose_name="Session timeout, sec")),
                ("idle_timeout", models.PositiveIntegerField(default=1800, verbose_name="Idle timeout, sec")),
                ("is_active", models.BooleanField(default=True, verbose_name="Is active")),
                (
                    "service",
                    models.OneToOneField(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="radius_group", to="services.service",
                    ),
                ),
                ("site", _site_fk()),
            ],
            options={
                "verbose_name": "Radius group",
                "verbose_name_plural": "Radius groups",
                "db_table": "radius_groups",
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="RadiusServer",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=64, verbose_name="Name")),
                ("server_address", models.CharField(max_length=128, verbose_name="Server address")),
                ("auth_port", models.PositiveIntegerField(default=1812, verbose_name="Auth port")),
                ("acct_port", models.PositiveIntegerField(default=1813, verbose_name="Accounting port")),
                ("secret", encrypted_model_fields.fields.EncryptedCharField(max_length=128, verbose_name="Shared secret")),
                ("timeout", models.PositiveSmallIntegerField(default=5, verbose_name="Timeout, sec")),
                ("is_enabled", models.BooleanField(default=True, verbose_name="Enabled")),
                ("is_primary", models.BooleanField(default=False, verbose_name="Is primary")),
                ("last_synced_at", models.DateTimeField(blank=True, default=None, null=True)),
                (
                    "routers",
                    models.ManyToManyField(blank=True, related_name="radius_servers", to="gateways.mikrotikrouter"),
                ),
                ("site", _site_fk()),
            ],
            options={
                "verbose_name": "Radius server",
                "verbose_name_plural": "Radius servers",
                "db_table": "radius_servers",
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="NasClient",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=127, verbose_name="Name")),
                (
                    "shortname",
                    models.CharField(
                        max_length=32, verbose_name="Short name",
                        validators=[django.core.validators.RegexValidator("^[a-zA-Z0-9_-]{1,32}$")],
                    ),
                ),
                (
                    "nas_type",
                    models.CharField(
                        choices=[("mikrotik", "MikroTik"), ("cisco", "Cisco"), ("other", "Other")],
                        default="mikrotik", max_length=16, verbose_name="Type",
                    ),
                ),
                ("nas_ip", models.GenericIPAddressField(verbose_name="NAS ip address")),
                ("secret", encrypted_model_fields.fields.EncryptedCharField(max_length=128, verbose_name="Shared secret")),
                ("auth_port", models.PositiveIntegerField(default=1812, verbose_name="Auth port")),
                ("acct_port", models.PositiveIntegerField(default=1813, verbose_name="Accounting port")),
                ("coa_port", models.PositiveIntegerField(default=3799, verbose_name="CoA port")),
                (
                    "snmp_community",
                    models.CharField(blank=True, default="public", max_length=64, verbose_name="SNMP community"),
                ),
                ("description", models.CharField(blank=True, default="", max_length=256, verbose_name="Description")),
                ("is_active", models.BooleanField(default=True, verbose_name="Is active")),
                ("create_time", models.DateTimeField(auto_now_add=True)),
                (
                    "router",
                    models.OneToOneField(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="nas_client", to="gateways.mikrotikrouter",
                    ),
                ),
                ("site", _site_fk()),
            ],
            options={
                "verbose_name": "NAS client",
                "verbose_name_plural": "NAS clients",
                "db_table": "radius_nas_clients",
                "ordering": ("name",),
                "unique_together": {("site", "nas_ip")},
            },
        ),
        migrations.CreateModel(
            name="RadiusUser",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("username", models.CharField(max_length=64, unique=True, verbose_name="Username")),
                ("password", encrypted_model_fields.fields.EncryptedCharField(max_length=64, verbose_name="Password")),
                ("max_upload", models.CharField(default="1M", max_length=16, verbose_name="Max upload")),
                ("max_download", models.CharField(default="5M", max_length=16, verbose_name="Max download")),
                ("expiration", models.DateTimeField(blank=True, default=None, null=True, verbose_name="Expiration")),
                ("is_active", models.BooleanField(default=False, verbose_name="Is active")),
                ("sync_status", models.CharField(choices=SYNC_CHOICES, default="pending", max_length=16)),
                ("last_synced_at", models.DateTimeField(blank=True, default=None, null=True)),
                ("last_error", models.TextField(blank=True, default="")),
                ("is_online", models.BooleanField(default=False, verbose_name="Is online")),
                ("last_seen_at", models.DateTimeField(blank=True, default=None, null=True)),
                ("create_time", models.DateTimeField(auto_now_add=True)),
                (
                    "customer",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="radius_user", to="customers.customer",
                    ),
                ),
                (
                    "group",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="users", to="radiusapp.radiusgroup",
                    ),
                ),
                ("site", _site_fk()),
            ],
            options={
                "verbose_name": "Radius user",
                "verbose_name_plural": "Radius users",
                "db_table": "radius_users",
                "ordering": ("username",),
            },
        ),
        migrations.CreateModel(
            name="RadiusSession",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("session_id", models.CharField(max_length=128, unique=True, verbose_name="Session id")),
                ("username", models.CharField(max_length=64, verbose_name="Username")),
                ("nas_ip", models.GenericIPAddressField(blank=True, default=None, null=True, verbose_name="NAS ip")),
                (
                    "framed_ip",
                    models.GenericIPAddressField(blank=True, default=None, null=True, verbose_name="Framed ip"),
                ),
                ("start_time", models.DateTimeField(blank=True, default=None, null=True, verbose_name="Start time")),
                ("end_time", models.DateTimeField(blank=True, default=None, null=True, verbose_name="End time")),
                ("session_time", models.PositiveIntegerField(default=0, verbose_name="Session time, sec")),
                ("input_octets", models.BigIntegerField(default=0)),
                ("output_octets", models.BigIntegerField(default=0)),
                ("terminate_cause", models.CharField(blank=True, default="", max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("ended", "Ended")], default="active", max_length=8
                    ),
                ),
                ("update_time", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="radius_sessions", to="customers.customer",
                    ),
                ),
                (
                    "router",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="radius_sessions", to="gateways.mikrotikrouter",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sessions", to="radiusapp.radiususer",
                    ),
                ),
            ],
            options={
                "db_table": "radius_sessions",
                "ordering": ("-start_time",),
            },
        ),
        migrations.CreateModel(
            name="RadiusEvent",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("username", models.CharField(blank=True, default="", max_length=64)),
                ("action", models.CharField(max_length=32)),
                ("success", models.BooleanField(default=True)),
                ("error", models.TextField(blank=True, default="")),
                ("details", models.JSONField(blank=True, default=dict)),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="radius_events", to="customers.customer",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="events", to="radiusapp.radiususer",
                    ),
                ),
                ("site", _site_fk()),
            ],
            options={
                "db_table": "radius_events",
                "ordering": ("-timestamp",),
            },
        ),
        migrations.CreateModel(
            name="SystemTestResult",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "category",
                    models.CharField(
                        choices=[("radius", "RADIUS"), ("pppoe", "PPPoE"), ("network", "Network")], max_length=16
                    ),
                ),
                ("test_name", models.CharField(max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("passed", "Passed"),
                            ("failed", "Failed"),
                            ("pending", "Pending"),
                            ("not_run", "Not run"),
                        ],
                        default="not_run",
                        max_length=16,
                    ),
                ),
                ("message", models.TextField(blank=True, default="")),
                ("details", models.JSONField(blank=True, default=dict)),
                ("last_run", models.DateTimeField(blank=True, default=None, null=True)),
                ("site", _site_fk()),
            ],
            options={
                "db_table": "radius_system_tests",
                "ordering": ("category", "test_name"),
                "unique_together": {("site", "test_name")},
            },
        ),
    ]
