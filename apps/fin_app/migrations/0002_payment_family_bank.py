from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("fin_app", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="payment",
            name="payment_method",
            field=models.CharField(
                choices=[
                    ("mpesa", "M-Pesa"), ("bank", "Bank"),
                    ("family_bank", "Family Bank"), ("cash", "Cash"),
                ],
                default="mpesa", max_length=16,
            ),
        ),
    ]
