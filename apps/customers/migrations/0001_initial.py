from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("sites", "0002_alter_domain_unique"),
        ("services", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=256, verbose_name="Name")),
                ("email", models.EmailField(blank=True, default="", max_length=254, verbose_name="Email")),
                (
                    "phone",
                    models.CharField(
                        max_length=16,
                        validators=[django.core.validators.RegexValidator(r"^(\+?\d{9,15})?$")],
                        verbose_name="Telephone",
                    ),
                ),
                ("mpesa_number", models.CharField(blank=True, default="", max_length=16, verbose_name="M-Pesa number")),
                ("id_number", models.CharField(blank=True, default="", max_length=32, verbose_name="National ID number")),
                ("address", models.CharField(blank=True, default="", max_length=256, verbose_name="Address")),
                ("county", models.CharField(blank=True, default="", max_length=64, verbose_name="County")),
                ("sub_county", models.CharField(blank=True, default="", max_length=64, verbose_name="Sub county")),
                (
                    "connection_type",
                    models.CharField(
                        choices=[("pppoe", "PPPoE"), ("static", "Static IP"), ("hotspot", "Hotspot")],
                        default="pppoe", max_length=16, verbose_name="Connection type",
                    ),
                ),
                (
                    "monthly_rate",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0"), max_digits=10,
                        help_text="When zero, the service cost is used", verbose_name="Monthly rate",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending approval"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("active", "Active"),
                            ("suspended", "Suspended"),
                        ],
                        default="pending", max_length=16, verbose_name="Status",
                    ),
                ),
                (
                    "wallet_balance",
                    models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12,
                                        verbose_name="Wallet balance"),
                ),
                ("subscription_start", models.DateTimeField(blank=True, default=None, null=True,
                                                            verbose_name="Subscription start")),
                ("subscription_end", models.DateTimeField(blank=True, default=None, null=True,
                                                          verbose_name="Subscription end")),
                ("disconnection_scheduled_at", models.DateTimeField(blank=True, default=None, null=True,
                                                                    verbose_name="Disconnection scheduled at")),
                ("last_reminder_at", models.DateTimeField(blank=True, default=None, null=True)),
                ("approved_at", models.DateTimeField(blank=True, default=None, null=True)),
                ("rejected_at", models.DateTimeField(blank=True, default=None, null=True)),
                ("rejection_reason", models.TextField(blank=True, default="", verbose_name="Rejection reason")),
                ("create_date", models.DateTimeField(auto_now_add=True, verbose_name="Create date")),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="approved_customers", to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "rejected_by",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="rejected_customers", to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "service",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        to="services.service", verbose_name="Service",
                    ),
                ),
                (
                    "site",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.CASCADE, to="sites.site",
                    ),
                ),
            ],
            options={
                "verbose_name": "Customer",
                "verbose_name_plural": "Customers",
                "db_table": "customers",
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="WalletTransaction",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "transaction_type",
                    models.CharField(choices=[("credit", "Credit"), ("debit", "Debit")], max_length=8),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12, verbose_name="Amount")),
                ("description", models.CharField(blank=True, default="", max_length=256, verbose_name="Description")),
                ("reference_number", models.CharField(blank=True, default=None, max_length=64, null=True)),
                ("mpesa_receipt_number", models.CharField(blank=True, default=None, max_length=32, null=True)),
                ("balance_after", models.DecimalField(blank=True, decimal_places=2, default=None, max_digits=12,
                                                      null=True)),
                ("create_time", models.DateTimeField(auto_now_add=True)),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="wallet_transactions", to="customers.customer",
                    ),
                ),
                (
                    "site",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.CASCADE, to="sites.site",
                    ),
                ),
            ],
            options={
                "db_table": "wallet_transactions",
                "ordering": ("-create_time",),
            },
        ),
        migrations.CreateModel(
            name="ClientWorkflowStatus",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "current_stage",
                    models.CharField(
                        choices=[
                            ("pending_approval", "Pending approval"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("installation", "Installation"),
                            ("active", "Active"),
                        ],
                        default="pending_approval", max_length=32,
                    ),
                ),
                ("stage_data", models.JSONField(blank=True, default=dict)),
                ("notes", models.TextField(blank=True, default="")),
                ("completed_at", models.DateTimeField(blank=True, default=None, null=True)),
                ("update_time", models.DateTimeField(auto_now=True)),
                (
                    "assigned_to",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="workflow", to="customers.customer",
                    ),
                ),
            ],
            options={
                "db_table": "client_workflow_status",
            },
        ),
    ]
