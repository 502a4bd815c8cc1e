from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Staff account of the registry. Universities themselves never log in."""

    ROLE_SUPERADMIN = "SUPERADMIN"
    ROLE_ADMIN = "ADMIN"
    ROLE_REVIEWER = "REVIEWER"

    ROLES = (
        (ROLE_SUPERADMIN, "Super administrator"),
        (ROLE_ADMIN, "Administrator"),
        (ROLE_REVIEWER, "Reviewer"),
    )

    # Roles allowed to approve/reject registrations and issue credentials.
    DECIDING_ROLES = (ROLE_SUPERADMIN, ROLE_ADMIN)
    # Roles allowed to read the registration queue and issued credentials.
    REVIEWING_ROLES = (ROLE_SUPERADMIN, ROLE_ADMIN, ROLE_REVIEWER)

    role = models.CharField(max_length=20, choices=ROLES, default=ROLE_REVIEWER)
    email = models.EmailField(unique=True, blank=True, null=True, verbose_name="Email address")

    REQUIRED_FIELDS = ["email", "role"]

    def save(self, *args, **kwargs):
        # Blank emails are stored as NULL so the unique constraint ignores them.
        if not self.email:
            self.email = None
        super().save(*args, **kwargs)

    @property
    def can_decide(self) -> bool:
        return self.role in self.DECIDING_ROLES

    @property
    def can_review(self) -> bool:
        return self.role in self.REVIEWING_ROLES

    def __str__(self) -> str:
        return f"{self.username} ({self.get_role_display()})"
