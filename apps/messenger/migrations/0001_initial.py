import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("sites", "0002_alter_domain_unique"),
    ]

    operations = [
        migrations.CreateModel(
            name="SmsTemplate",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("template_key", models.SlugField(max_length=64, verbose_name="Template key")),
                ("name", models.CharField(max_length=128, verbose_name="Name")),
                ("content", models.TextField(help_text="Use {{variable}} placeholders", verbose_name="Content")),
                ("variables", models.JSONField(blank=True, default=list, verbose_name="Variables")),
                ("is_active", models.BooleanField(default=True, verbose_name="Is active")),
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
                "verbose_name": "Sms template",
                "verbose_name_plural": "Sms templates",
                "db_table": "sms_templates",
                "ordering": ("template_key",),
                "unique_together": {("site", "template_key")},
            },
        ),
        migrations.CreateModel(
            name="SmsMessage",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("recipient", models.CharField(max_length=16, verbose_name="Recipient")),
                ("text", models.TextField(verbose_name="Text")),
                ("template_key", models.CharField(blank=True, default="", max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=[("queued", "Queued"), ("sent", "Sent"), ("failed", "Failed")],
                        default="queued", max_length=8,
                    ),
                ),
                ("provider", models.CharField(blank=True, default="", max_length=32)),
                ("provider_message_id", models.CharField(blank=True, default=None, max_length=128, null=True)),
                ("error", models.CharField(blank=True, default=None, max_length=255, null=True)),
                ("create_time", models.DateTimeField(auto_now_add=True)),
                ("sent_time", models.DateTimeField(blank=True, default=None, null=True)),
                (
                    "site",
                    models.ForeignKey(
                        blank=True, default=None, null=True,
                        on_delete=django.db.models.deletion.CASCADE, to="sites.site",
                    ),
                ),
            ],
            options={
                "db_table": "sms_messages",
                "ordering": ("-create_time",),
            },
        ),
    ]
