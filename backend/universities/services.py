from __future__ import annotations

import logging
from typing import Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework import serializers

from audit.models import AuditLog
from audit.services import log_event

from .exceptions import DuplicateRegistration, UpstreamFailure
from .models import University
from .validation import NormalizedCandidate

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    University.VerificationStatus.PENDING: {
        University.VerificationStatus.APPROVED,
        University.VerificationStatus.REJECTED,
    },
    University.VerificationStatus.APPROVED: set(),
    University.VerificationStatus.REJECTED: set(),
}

_TRANSITION_EVENTS: dict[str, str] = {
    University.VerificationStatus.APPROVED: AuditLog.EventType.UNIVERSITY_APPROVED,
    University.VerificationStatus.REJECTED: AuditLog.EventType.UNIVERSITY_REJECTED,
}


def check_duplicate(normalized_domain: str, normalized_email: str) -> Optional[str]:
    """Returns the status of a record sharing the domain OR the email, if any."""

    try:
        return (
            University.objects.filter(
                Q(website_domain=normalized_domain) | Q(registrar_official_email=normalized_email)
            )
            .order_by("id")
            .values_list("verification_status", flat=True)
            .first()
        )
    except DatabaseError as exc:
        logger.exception("university.duplicate_check_failed")
        raise UpstreamFailure() from exc


def register_university(candidate: NormalizedCandidate) -> University:
    existing = check_duplicate(candidate.website_domain, candidate.registrar_official_email)
    if existing is not None:
        logger.info(
            "university.duplicate",
            extra={"website_domain": candidate.website_domain, "existing_status": existing},
        )
        raise DuplicateRegistration(existing)

    try:
        with transaction.atomic():
            university = University.objects.create(
                **candidate.as_record(),
                verification_status=University.VerificationStatus.PENDING,
            )
    except IntegrityError:
        # Lost the check-then-insert race; the unique columns caught it.
        existing = check_duplicate(candidate.website_domain, candidate.registrar_official_email)
        raise DuplicateRegistration(existing or University.VerificationStatus.PENDING)
    except DatabaseError as exc:
        logger.exception("university.insert_failed", extra={"website_domain": candidate.website_domain})
        raise UpstreamFailure() from exc

    logger.info(
        "university.registered",
        extra={"university_id": university.pk, "website_domain": university.website_domain},
    )
    return university


def transition_university(*, university: University, to_status: str, request, reason: str = "") -> University:
    from_status = university.verification_status
    allowed = ALLOWED_TRANSITIONS.get(from_status, set())
    if to_status not in allowed:
        raise serializers.ValidationError({"detail": f"Transition not allowed: {from_status} -> {to_status}"})

    actor = getattr(request, "user", None)
    if not (actor and getattr(actor, "is_authenticated", False)):
        actor = None

    with transaction.atomic():
        locked = University.objects.select_for_update().get(pk=university.pk)
        if locked.verification_status != from_status:
            raise serializers.ValidationError(
                {"detail": f"Transition not allowed: {locked.verification_status} -> {to_status}"}
            )

        locked.verification_status = to_status
        locked.reviewed_at = timezone.now()
        locked.reviewed_by = actor
        if to_status == University.VerificationStatus.REJECTED:
            locked.rejection_reason = reason
        locked.save(
            update_fields=["verification_status", "reviewed_at", "reviewed_by", "rejection_reason", "updated_at"]
        )

        log_event(
            request,
            event_type=_TRANSITION_EVENTS[to_status],
            object_type="University",
            object_id=locked.pk,
            status_code=200,
            metadata={"from": from_status, "to": to_status, "reason": reason},
        )

    logger.info(
        "university.transition",
        extra={"university_id": locked.pk, "from_status": from_status, "to_status": to_status},
    )
    return locked


def status_counts() -> dict[str, int]:
    counts = {choice: 0 for choice in University.VerificationStatus.values}
    rows = University.objects.order_by().values("verification_status").annotate(total=Count("id"))
    for row in rows:
        counts[row["verification_status"]] = row["total"]
    counts["TOTAL"] = sum(counts.values())
    return counts
