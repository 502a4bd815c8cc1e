from __future__ import annotations

from django.conf import settings
from django.db import models

from .validation import INDIAN_STATES_AND_UTS


class University(models.Model):
    class Type(models.TextChoices):
        CENTRAL = "CENTRAL", "Central university"
        STATE = "STATE", "State university"
        PRIVATE = "PRIVATE", "Private university"
        DEEMED = "DEEMED", "Deemed university"

    class VerificationStatus(models.TextChoices):
        PENDING = "PENDING", "Pending review"
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"

    STATE_CHOICES = [(name, name) for name in INDIAN_STATES_AND_UTS]

    legal_name = models.CharField(max_length=255)
    type = models.CharField(max_length=16, choices=Type.choices)
    state = models.CharField(max_length=64, choices=STATE_CHOICES)
    ugc_reference = models.CharField(max_length=255, null=True, blank=True)
    aishe_code = models.CharField(max_length=16, null=True, blank=True)

    # Stored lowercased; uniqueness backs up the duplicate check done before insert.
    website_domain = models.CharField(max_length=255, unique=True)
    registrar_official_email = models.CharField(max_length=255, unique=True)
    wallet_address = models.CharField(max_length=42, db_index=True)

    verification_status = models.CharField(
        max_length=10,
        choices=VerificationStatus.choices,
        default=VerificationStatus.PENDING,
        db_index=True,
    )
    rejection_reason = models.TextField(blank=True, default="")
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviewed_universities",
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name_plural = "universities"

    def __str__(self) -> str:
        return f"{self.legal_name} ({self.website_domain}) [{self.verification_status}]"

    @property
    def is_approved(self) -> bool:
        return self.verification_status == self.VerificationStatus.APPROVED
