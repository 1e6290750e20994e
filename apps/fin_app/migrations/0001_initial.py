from decimal import Decimal

import django.db.models.deletion
import fin_app.models
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("sites", "0002_alter_domain_unique"),
        ("customers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "invoice_number",
                    models.CharField(default=fin_app.models.generate_invoice_number, max_length=64, unique=True,
                                     verbose_name="Invoice number"),
                ),
                (
                    "invoice_type",
                    models.CharField(
                        choices=[
                            ("subscription", "Subscription"),
                            ("installation", "Installation"),
                            ("renewal", "Renewal"),
                        ],
                        default="subscription", max_length=16,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12, verbose_name="Amount")),
                ("vat_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12,
                                                   verbose_name="VAT")),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=12, verbose_name="Total")),
                ("due_date", models.DateTimeField(verbose_name="Due date")),
                ("service_period_start", models.DateTimeField(blank=True, default=None, null=True)),
                ("service_period_end", models.DateTimeField(blank=True, default=None, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("overdue", "Overdue"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending", max_length=16,
                    ),
                ),
                ("equipment_details", models.JSONField(blank=True, default=None, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("paid_at", models.DateTimeField(blank=True, default=None, null=True)),
                ("create_time", models.DateTimeField(auto_now_add=True)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="invoices", to="customers.customer",
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
                "verbose_name": "Invoice",
                "verbose_name_plural": "Invoices",
                "db_table": "invoices",
                "ordering": ("-create_time",),
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12, verbose_name="Amount")),
                (
                    "payment_method",
                    models.CharField(
                        choices=[("mpesa", "M-Pesa"), ("bank", "Bank"), ("cash", "Cash")],
                        default="mpesa", max_length=16,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("completed", "Completed"), ("failed", "Failed")],
                        default="pending", max_length=16,
                    ),
                ),
                ("reference_number", models.CharField(blank=True, db_index=True, default=None, max_length=128,
                                                      null=True)),
                ("mpesa_receipt_number", models.CharField(blank=True, default=None, max_length=32, null=True,
                                                          unique=True)),
                ("phone", models.CharField(blank=True, default="", max_length=16)),
                ("notes", models.TextField(blank=True, default="")),
                ("payment_date", models.DateTimeField(auto_now_add=True)),
                ("update_time", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payments", to="customers.customer",
                    ),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payments", to="fin_app.invoice",
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
                "verbose_name": "Payment",
                "verbose_name_plural": "Payments",
                "db_table": "payments",
                "ordering": ("-payment_date",),
            },
        ),
    ]
