from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("properties", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="property",
            name="currency",
            field=models.CharField(
                choices=[
                    ("USD", "USD"),
                    ("EUR", "EUR"),
                    ("MAD", "MAD"),
                    ("KZT", "KZT"),
                    ("RUB", "RUB"),
                ],
                default="USD",
                max_length=3,
            ),
        ),
        migrations.AddConstraint(
            model_name="property",
            constraint=models.CheckConstraint(
                condition=models.Q(("currency__in", ("USD", "EUR", "MAD", "KZT", "RUB"))),
                name="chk_property_currency_supported",
            ),
        ),
    ]
