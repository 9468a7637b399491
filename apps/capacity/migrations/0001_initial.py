from django.db import migrations, models


SERVICE_CHOICES = [
    ("Daycare", "Daycare"),
    ("Boarding Small", "Boarding (small dogs)"),
    ("Boarding Large", "Boarding (large dogs)"),
    ("Trial Day", "Trial day"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CapacityDefault",
            fields=[
                (
                    "service",
                    models.CharField(choices=SERVICE_CHOICES, max_length=32, primary_key=True, serialize=False),
                ),
                ("capacity", models.PositiveIntegerField()),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Capacity default",
                "verbose_name_plural": "Capacity defaults",
                "ordering": ["service"],
            },
        ),
        migrations.CreateModel(
            name="CapacityOverride",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("service", models.CharField(choices=SERVICE_CHOICES, max_length=32)),
                ("date_start", models.DateField()),
                ("date_end", models.DateField()),
                ("slot", models.CharField(default="ALL_DAY", max_length=32)),
                ("capacity", models.PositiveIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Capacity override",
                "verbose_name_plural": "Capacity overrides",
                "ordering": ["service", "date_start", "slot"],
                "indexes": [
                    models.Index(fields=["service", "date_start", "date_end"], name="capacity_override_range_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("service", "date_start", "date_end", "slot"),
                        name="capacity_override_unique_range",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("date_end__gte", models.F("date_start"))),
                        name="capacity_override_valid_range",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AvailabilityRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("service", models.CharField(choices=SERVICE_CHOICES, max_length=32)),
                ("date", models.DateField()),
                ("slot", models.CharField(default="ALL_DAY", max_length=32)),
                ("capacity", models.PositiveIntegerField()),
                ("reserved", models.PositiveIntegerField(default=0, help_text="Active holds that are not paid yet.")),
                ("confirmed", models.PositiveIntegerField(default=0, help_text="Paid allocations.")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Availability record",
                "verbose_name_plural": "Availability records",
                "ordering": ["date", "service", "slot"],
                "indexes": [
                    models.Index(fields=["service", "date"], name="availability_service_date_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("service", "date", "slot"),
                        name="availability_unique_slot",
                    ),
                ],
            },
        ),
    ]
