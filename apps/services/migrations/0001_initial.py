import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("sites", "0002_alter_domain_unique"),
    ]

    operations = [
        migrations.CreateModel(
            name="Service",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=128, verbose_name="Service title")),
                ("descr", models.TextField(blank=True, default=None, null=True, verbose_name="Service description")),
                (
                    "speed_in",
                    models.FloatField(
                        validators=[django.core.validators.MinValueValidator(limit_value=0.1)],
                        verbose_name="Download speed, Mbit/s",
                    ),
                ),
                (
                    "speed_out",
                    models.FloatField(
                        validators=[django.core.validators.MinValueValidator(limit_value=0.1)],
                        verbose_name="Upload speed, Mbit/s",
                    ),
                ),
                (
                    "cost",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(limit_value=0.0)],
                        verbose_name="Monthly rate",
                    ),
                ),
                ("duration_days", models.PositiveSmallIntegerField(default=30, verbose_name="Duration days")),
                ("session_timeout", models.PositiveIntegerField(default=86400, verbose_name="Session timeout, sec")),
                ("idle_timeout", models.PositiveIntegerField(default=1800, verbose_name="Idle timeout, sec")),
                ("is_active", models.BooleanField(default=True, verbose_name="Is active")),
                ("create_time", models.DateTimeField(auto_now_add=True, verbose_name="Create time")),
                ("sites", models.ManyToManyField(blank=True, to="sites.site")),
            ],
            options={
                "verbose_name": "Service",
                "verbose_name_plural": "Services",
                "db_table": "services",
                "ordering": ("title",),
            },
        ),
    ]
