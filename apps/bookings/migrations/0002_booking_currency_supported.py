from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("bookings", "0001_initial"),
        ("properties", "0002_property_currency_supported"),
    ]

    operations = [
        migrations.AlterField(
            model_name="booking",
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
            model_name="booking",
            constraint=models.CheckConstraint(
                condition=models.Q(("currency__in", ("USD", "EUR", "MAD", "KZT", "RUB"))),
                name="chk_booking_currency_supported",
            ),
        ),
    ]
