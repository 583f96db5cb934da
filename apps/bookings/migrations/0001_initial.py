import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("properties", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
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
                ("user_id", models.UUIDField()),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                (
                    "nightly_rate",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Nightly rate fixed at booking time.",
                        max_digits=10,
                    ),
                ),
                ("total_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("currency", models.CharField(default="USD", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("canceled", "Canceled"),
                        ],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("payment_reference", models.CharField(blank=True, max_length=255)),
                ("cancellation_reason", models.CharField(blank=True, max_length=255)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("canceled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
                (
                    "property",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings",
                        to="properties.property",
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["property", "start_date", "end_date"],
                        name="idx_booking_property_dates",
                    ),
                    models.Index(fields=["user_id", "status"], name="idx_booking_user_status"),
                    models.Index(fields=["status", "created_at"], name="idx_booking_status_created"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_date__gt", models.F("start_date"))),
                        name="chk_booking_dates_valid",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total_price__gt", Decimal("0"))),
                        name="chk_booking_total_price_positive",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("status", "canceled"), _negated=True),
                        fields=("property", "start_date", "end_date"),
                        name="uk_booking_property_dates_active",
                    ),
                ],
            },
        ),
    ]
