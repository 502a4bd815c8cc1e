import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("universities", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="IssuedCredential",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("student_name", models.CharField(max_length=255)),
                ("university_name", models.CharField(max_length=255)),
                ("degree_type", models.CharField(max_length=255)),
                ("major", models.CharField(max_length=255)),
                ("gpa", models.CharField(max_length=32)),
                ("graduation_date", models.CharField(max_length=64)),
                ("credential_hash", models.CharField(db_index=True, max_length=64, unique=True)),
                ("wallet_address", models.CharField(db_index=True, max_length=42)),
                ("transaction_id", models.CharField(max_length=128)),
                ("raw_json", models.TextField()),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "issued_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="issued_credentials",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "university",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="issued_credentials",
                        to="universities.university",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="VerificationEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("credential_hash", models.CharField(db_index=True, max_length=64)),
                (
                    "outcome",
                    models.CharField(
                        choices=[("NOT_FOUND", "Not found"), ("VALID", "Valid"), ("TAMPERED", "Tampered")],
                        db_index=True,
                        max_length=12,
                    ),
                ),
                ("ip_address", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                ("user_agent", models.CharField(blank=True, default="", max_length=255)),
                ("path", models.CharField(blank=True, default="", max_length=255)),
                ("method", models.CharField(blank=True, default="", max_length=10)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
