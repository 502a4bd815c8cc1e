from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction

from audit.models import AuditLog
from audit.services import get_client_ip, log_event
from universities.exceptions import UpstreamFailure
from universities.models import University

from .canonical import canonicalize, hash_canonical
from .models import IssuedCredential, VerificationEvent

logger = logging.getLogger(__name__)


class IssuerNotApproved(Exception):
    def __init__(self, wallet_address: str):
        super().__init__(f"Wallet {wallet_address} does not belong to an approved university")
        self.wallet_address = wallet_address


class DuplicateCredential(Exception):
    def __init__(self, credential_hash: str):
        super().__init__(f"Credential {credential_hash} was already issued")
        self.credential_hash = credential_hash


@dataclass(frozen=True)
class VerificationResult:
    credential_hash: str
    credential: Optional[IssuedCredential]
    outcome: str

    @property
    def valid(self) -> bool:
        return self.outcome == VerificationEvent.Outcome.VALID


def credential_payload(data: Mapping[str, Any]) -> dict[str, str]:
    """The exact mapping that gets canonicalized and hashed."""
    return {name: str(data.get(name, "") or "") for name in IssuedCredential.DATA_FIELDS}


def simulate_transaction(credential_hash: str) -> str:
    """Stand-in for an on-chain anchoring transaction; returns an opaque tx id."""

    tx_id = "0x" + secrets.token_hex(32)
    logger.info("credential.transaction_simulated", extra={"credential_hash": credential_hash, "transaction_id": tx_id})
    return tx_id


def find_approved_issuer(wallet_address: str) -> Optional[University]:
    try:
        return (
            University.objects.filter(
                wallet_address=wallet_address.lower(),
                verification_status=University.VerificationStatus.APPROVED,
            )
            .order_by("id")
            .first()
        )
    except DatabaseError as exc:
        logger.exception("credential.issuer_lookup_failed")
        raise UpstreamFailure() from exc


def issue_credential(
    *,
    data: Mapping[str, Any],
    wallet_address: str,
    transaction_id: str = "",
    request=None,
) -> IssuedCredential:
    wallet = wallet_address.lower()
    university = find_approved_issuer(wallet)
    if university is None and getattr(settings, "CREDENTIALS_REQUIRE_APPROVED_ISSUER", True):
        raise IssuerNotApproved(wallet)

    payload = credential_payload(data)
    raw_json = canonicalize(payload)
    credential_hash = hash_canonical(raw_json)

    if IssuedCredential.objects.filter(credential_hash=credential_hash).exists():
        raise DuplicateCredential(credential_hash)

    tx_id = (transaction_id or "").strip() or simulate_transaction(credential_hash)

    actor = getattr(request, "user", None)
    if not (actor and getattr(actor, "is_authenticated", False)):
        actor = None

    try:
        with transaction.atomic():
            credential = IssuedCredential.objects.create(
                **payload,
                credential_hash=credential_hash,
                wallet_address=wallet,
                transaction_id=tx_id,
                raw_json=raw_json,
                university=university,
                issued_by=actor,
            )
            if request is not None:
                log_event(
                    request,
                    event_type=AuditLog.EventType.CREDENTIAL_ISSUED,
                    object_type="IssuedCredential",
                    object_id=credential.pk,
                    status_code=201,
                    metadata={"credential_hash": credential_hash, "transaction_id": tx_id},
                )
    except IntegrityError as exc:
        raise DuplicateCredential(credential_hash) from exc
    except DatabaseError as exc:
        logger.exception("credential.insert_failed", extra={"credential_hash": credential_hash})
        raise UpstreamFailure() from exc

    logger.info(
        "credential.issued",
        extra={"credential_id": credential.pk, "credential_hash": credential_hash, "university_id": credential.university_id},
    )
    return credential


def verify_credential_hash(credential_hash: str) -> VerificationResult:
    credential = IssuedCredential.objects.filter(credential_hash=credential_hash).first()
    if credential is None:
        return VerificationResult(credential_hash, None, VerificationEvent.Outcome.NOT_FOUND)

    if not credential.is_intact():
        logger.warning("credential.tampered", extra={"credential_id": credential.pk, "credential_hash": credential_hash})
        return VerificationResult(credential_hash, credential, VerificationEvent.Outcome.TAMPERED)
    return VerificationResult(credential_hash, credential, VerificationEvent.Outcome.VALID)


def verify_credential_data(data: Mapping[str, Any]) -> VerificationResult:
    return verify_credential_hash(hash_canonical(canonicalize(credential_payload(data))))


def log_verification_event(*, request, result: VerificationResult) -> Optional[VerificationEvent]:
    """Best-effort audit of a public lookup; a failure here never fails the lookup."""

    try:
        with transaction.atomic():
            return VerificationEvent.objects.create(
                credential_hash=result.credential_hash[:64],
                outcome=result.outcome,
                ip_address=get_client_ip(request)[:64],
                user_agent=str(request.META.get("HTTP_USER_AGENT") or "")[:255],
                path=str(getattr(request, "path", "") or "")[:255],
                method=str(getattr(request, "method", "") or "")[:10],
            )
    except DatabaseError:
        # Missing table (deploy before migrate) or a value the column rejects.
        logger.warning("credential.verification_event_not_logged", exc_info=True)
        return None
