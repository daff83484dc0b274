# Store webhook bodies as bytes so signatures can be re-verified exactly

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("payments", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="paymentwebhook",
            name="raw_payload",
            field=models.BinaryField(help_text="Exact request body bytes as received"),
        ),
    ]
