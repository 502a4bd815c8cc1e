from __future__ import annotations

from typing import Any

from django.conf import settings
from django.db import models

from .canonical import canonicalize, hash_canonical


class IssuedCredential(models.Model):
    # Fields that make up the hashed credential payload, in wire order.
    DATA_FIELDS = (
        "student_name",
        "university_name",
        "degree_type",
        "major",
        "gpa",
        "graduation_date",
    )

    student_name = models.CharField(max_length=255)
    university_name = models.CharField(max_length=255)
    degree_type = models.CharField(max_length=255)
    major = models.CharField(max_length=255)
    gpa = models.CharField(max_length=32)
    graduation_date = models.CharField(max_length=64)

    credential_hash = models.CharField(max_length=64, unique=True, db_index=True)
    wallet_address = models.CharField(max_length=42, db_index=True)
    transaction_id = models.CharField(max_length=128)

    # Exact canonical text that was hashed at issuance.
    raw_json = models.TextField()

    university = models.ForeignKey(
        "universities.University",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="issued_credentials",
    )
    issued_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="issued_credentials",
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return f"{self.student_name} - {self.degree_type} ({self.credential_hash[:12]})"

    def credential_data(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.DATA_FIELDS}

    def recompute_hash(self) -> str:
        return hash_canonical(canonicalize(self.credential_data()))

    def raw_json_hash(self) -> str:
        return hash_canonical(self.raw_json or "")

    def is_intact(self) -> bool:
        """Stored fields and stored raw_json both still hash to credential_hash."""
        return self.recompute_hash() == self.credential_hash and self.raw_json_hash() == self.credential_hash


class VerificationEvent(models.Model):
    class Outcome(models.TextChoices):
        NOT_FOUND = "NOT_FOUND", "Not found"
        VALID = "VALID", "Valid"
        TAMPERED = "TAMPERED", "Tampered"

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    credential_hash = models.CharField(max_length=64, db_index=True)
    outcome = models.CharField(max_length=12, choices=Outcome.choices, db_index=True)

    ip_address = models.CharField(max_length=64, blank=True, default="", db_index=True)
    user_agent = models.CharField(max_length=255, blank=True, default="")
    path = models.CharField(max_length=255, blank=True, default="")
    method = models.CharField(max_length=10, blank=True, default="")

    class Meta:
        ordering = ["-created_at", "-id"]
