import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
        ("sites", "0002_alter_domain_unique"),
    ]

    operations = [
        migrations.CreateModel(
            name="UserProfile",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, verbose_name="superuser status")),
                (
                    "username",
                    models.CharField(
                        max_length=127,
                        unique=True,
                        validators=[django.core.validators.RegexValidator(r"^[\w.@+-]{1,127}$")],
                        verbose_name="profile username",
                    ),
                ),
                ("fio", models.CharField(blank=True, default="", max_length=256, verbose_name="fio")),
                ("create_date", models.DateField(auto_now_add=True, verbose_name="Create date")),
                ("is_active", models.BooleanField(default=True, verbose_name="Is active")),
                ("is_admin", models.BooleanField(default=False)),
                (
                    "telephone",
                    models.CharField(
                        blank=True,
                        default=None,
                        max_length=16,
                        null=True,
                        validators=[django.core.validators.RegexValidator(r"^(\+?\d{9,15})?$")],
                        verbose_name="Telephone",
                    ),
                ),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("groups", models.ManyToManyField(blank=True, related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("sites", models.ManyToManyField(blank=True, to="sites.site")),
                ("user_permissions", models.ManyToManyField(blank=True, related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
            ],
            options={
                "verbose_name": "Staff account profile",
                "verbose_name_plural": "Staff account profiles",
                "ordering": ("username",),
                "db_table": "profiles_userprofile",
            },
        ),
        migrations.CreateModel(
            name="UserProfileLog",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "do_type",
                    models.PositiveSmallIntegerField(
                        choices=[
                            (0, "Undefined"), (1, "Create customer"), (2, "Delete customer"),
                            (3, "Approve customer"), (4, "Reject customer"), (5, "Create NAS"),
                            (6, "Delete NAS"), (7, "Create router"), (8, "Delete router"),
                            (9, "Register NAS from inventory"), (10, "Generate radius credentials"),
                            (11, "Disconnect session"), (12, "Credit wallet"), (13, "Create service"),
                            (14, "Delete service"),
                        ],
                        default=0,
                        verbose_name="Action type",
                    ),
                ),
                ("additional_text", models.CharField(blank=True, max_length=512, null=True, verbose_name="Additional info")),
                ("action_date", models.DateTimeField(auto_now_add=True, verbose_name="Action date")),
                (
                    "account",
                    models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to=settings.AUTH_USER_MODEL, verbose_name="Author"),
                ),
            ],
            options={
                "verbose_name": "User profile log",
                "verbose_name_plural": "User profile logs",
                "ordering": ("-action_date",),
                "db_table": "profiles_userprofilelog",
            },
        ),
    ]
