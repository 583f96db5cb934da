import uuid
from decimal import Decimal

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Property",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("host_id", models.UUIDField(db_index=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField()),
                ("location", models.CharField(max_length=500)),
                ("price_per_night", models.DecimalField(decimal_places=2, max_digits=10)),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "verbose_name": "Property",
                "verbose_name_plural": "Properties",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["host_id", "created_at"], name="idx_property_host_created"),
                    models.Index(fields=["location"], name="idx_property_location"),
                    models.Index(fields=["price_per_night"], name="idx_property_price"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("price_per_night__gt", Decimal("0"))),
                        name="chk_property_price_positive",
                    ),
                ],
            },
        ),
    ]
