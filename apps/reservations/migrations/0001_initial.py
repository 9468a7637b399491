import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Reservation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "service",
                    models.CharField(
                        choices=[
                            ("Daycare", "Daycare"),
                            ("Boarding Small", "Boarding (small dogs)"),
                            ("Boarding Large", "Boarding (large dogs)"),
                            ("Trial Day", "Trial day"),
                        ],
                        max_length=32,
                    ),
                ),
                ("date", models.DateField()),
                ("slot", models.CharField(default="ALL_DAY", max_length=32)),
                ("user_email", models.EmailField(max_length=254)),
                ("dog_id", models.CharField(blank=True, default="", max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("committed", "Committed"),
                            ("released", "Released"),
                            ("expired", "Expired"),
                        ],
                        default="active",
                        max_length=16,
                    ),
                ),
                ("expires_at", models.DateTimeField()),
                ("idempotency_key", models.CharField(max_length=128)),
                ("pending_payment_intent_id", models.CharField(blank=True, default="", max_length=255)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Reservation",
                "verbose_name_plural": "Reservations",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "expires_at"], name="reservation_status_expiry_idx"),
                    models.Index(fields=["service", "date"], name="reservation_service_date_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "active")),
                        fields=("idempotency_key",),
                        name="reservation_active_idempotency_key",
                    ),
                ],
            },
        ),
    ]
