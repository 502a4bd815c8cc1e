"""Registration rules for universities.

Both the pre-flight endpoint (advisory, used by the registration form while the
user types) and the registration endpoint (authoritative) call `validate`, so a
rule change here applies to both at once.

`validate` never raises for bad input: every problem is reported as a message
attached to one of the known `RegistrationField`s.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Callable, Mapping, Optional


INDIAN_STATES_AND_UTS: tuple[str, ...] = (
    "Andaman and Nicobar Islands",
    "Andhra Pradesh",
    "Arunachal Pradesh",
    "Assam",
    "Bihar",
    "Chandigarh",
    "Chhattisgarh",
    "Dadra and Nagar Haveli and Daman and Diu",
    "Delhi",
    "Goa",
    "Gujarat",
    "Haryana",
    "Himachal Pradesh",
    "Jammu and Kashmir",
    "Jharkhand",
    "Karnataka",
    "Kerala",
    "Ladakh",
    "Lakshadweep",
    "Madhya Pradesh",
    "Maharashtra",
    "Manipur",
    "Meghalaya",
    "Mizoram",
    "Nagaland",
    "Odisha",
    "Puducherry",
    "Punjab",
    "Rajasthan",
    "Sikkim",
    "Tamil Nadu",
    "Telangana",
    "Tripura",
    "Uttar Pradesh",
    "Uttarakhand",
    "West Bengal",
)

UNIVERSITY_TYPES: tuple[str, ...] = ("CENTRAL", "STATE", "PRIVATE", "DEEMED")

# Registrar emails on these academic suffixes are accepted even when they do not
# match the website domain.
ACADEMIC_EMAIL_SUFFIXES: tuple[str, ...] = (".edu.in", ".ac.in")

LEGAL_NAME_MIN_LENGTH = 3
LEGAL_NAME_MAX_LENGTH = 255
UGC_REFERENCE_MAX_LENGTH = 255
DOMAIN_MIN_LENGTH = 3
DOMAIN_MAX_LENGTH = 253
EMAIL_MAX_LENGTH = 254

# re.ASCII keeps IGNORECASE from folding non-ASCII letters (e.g. U+212A) into [a-z].
AISHE_CODE_RE = re.compile(r"[A-Z]-[0-9]{3,6}")
DOMAIN_RE = re.compile(
    r"(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)*[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?",
    re.IGNORECASE | re.ASCII,
)
EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
WALLET_ADDRESS_RE = re.compile(r"0x[a-fA-F0-9]{40}")


class RegistrationField(str, Enum):
    """Fields of a registration submission, valued by their wire (JSON) name."""

    LEGAL_NAME = "legalName"
    TYPE = "type"
    STATE = "state"
    UGC_REFERENCE = "ugcReference"
    AISHE_CODE = "aisheCode"
    WEBSITE_DOMAIN = "websiteDomain"
    REGISTRAR_OFFICIAL_EMAIL = "registrarOfficialEmail"
    WALLET_ADDRESS = "walletAddress"

    @property
    def attname(self) -> str:
        # Matches both the dataclass attributes below and the model columns.
        return re.sub(r"(?<!^)(?=[A-Z])", "_", self.value).lower()


@dataclass
class FieldErrors:
    """At most one message per known field; the first violated rule wins."""

    legal_name: Optional[str] = None
    type: Optional[str] = None
    state: Optional[str] = None
    ugc_reference: Optional[str] = None
    aishe_code: Optional[str] = None
    website_domain: Optional[str] = None
    registrar_official_email: Optional[str] = None
    wallet_address: Optional[str] = None

    def add(self, field: RegistrationField, message: str) -> None:
        if getattr(self, field.attname) is None:
            setattr(self, field.attname, message)

    def get(self, field: RegistrationField) -> Optional[str]:
        return getattr(self, field.attname)

    def invalid_fields(self) -> list[RegistrationField]:
        return [f for f in RegistrationField if self.get(f) is not None]

    def __bool__(self) -> bool:
        return bool(self.invalid_fields())

    def __len__(self) -> int:
        return len(self.invalid_fields())

    def as_dict(self) -> dict[str, str]:
        return {f.value: self.get(f) for f in self.invalid_fields()}


@dataclass(frozen=True)
class RegistrationCandidate:
    """A registration submission as received: untrusted, unnormalized text."""

    legal_name: str = ""
    type: str = ""
    state: str = ""
    ugc_reference: str = ""
    aishe_code: str = ""
    website_domain: str = ""
    registrar_official_email: str = ""
    wallet_address: str = ""
    # Fields whose submitted value was neither text nor null; their text is "".
    non_text: frozenset = frozenset()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "RegistrationCandidate":
        if not isinstance(data, Mapping):
            data = {}
        values = {}
        non_text = set()
        for f in RegistrationField:
            value = data.get(f.value)
            if value is None:
                value = ""
            elif not isinstance(value, str):
                non_text.add(f)
                value = ""
            values[f.attname] = value
        return cls(**values, non_text=frozenset(non_text))


@dataclass(frozen=True)
class NormalizedCandidate:
    legal_name: str
    type: str
    state: str
    ugc_reference: Optional[str]
    aishe_code: Optional[str]
    website_domain: str
    registrar_official_email: str
    wallet_address: str

    def as_record(self) -> dict[str, Any]:
        """Column values for a new `University` row."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def as_wire(self) -> dict[str, Any]:
        return {f.value: getattr(self, f.attname) for f in RegistrationField}


@dataclass(frozen=True)
class ValidationResult:
    candidate: Optional[NormalizedCandidate]
    errors: FieldErrors

    @property
    def is_valid(self) -> bool:
        return self.candidate is not None


def _is_blank(value: str) -> bool:
    return not value.strip()


def email_domain(email: str) -> str:
    _, _, domain = email.partition("@")
    return domain.lower()


def _check_legal_name(c: RegistrationCandidate) -> Optional[str]:
    if len(c.legal_name) < LEGAL_NAME_MIN_LENGTH:
        return "University legal name must be at least 3 characters"
    if len(c.legal_name) > LEGAL_NAME_MAX_LENGTH:
        return "University legal name must not exceed 255 characters"
    return None


def _check_type(c: RegistrationCandidate) -> Optional[str]:
    if c.type not in UNIVERSITY_TYPES:
        return "Please select a valid university type"
    return None


def _check_state(c: RegistrationCandidate) -> Optional[str]:
    if c.state not in INDIAN_STATES_AND_UTS:
        return "Please select a valid Indian state or union territory"
    return None


def _check_ugc_reference(c: RegistrationCandidate) -> Optional[str]:
    if _is_blank(c.ugc_reference):
        return None
    if len(c.ugc_reference) > UGC_REFERENCE_MAX_LENGTH:
        return "UGC reference must not exceed 255 characters"
    return None


def _check_aishe_code(c: RegistrationCandidate) -> Optional[str]:
    if _is_blank(c.aishe_code):
        return None
    if not AISHE_CODE_RE.fullmatch(c.aishe_code):
        return "AISHE code must follow pattern: A-123456"
    return None


def _check_website_domain(c: RegistrationCandidate) -> Optional[str]:
    if len(c.website_domain) < DOMAIN_MIN_LENGTH:
        return "Website domain is required"
    if len(c.website_domain) > DOMAIN_MAX_LENGTH or not DOMAIN_RE.fullmatch(c.website_domain):
        return "Please enter a valid domain (e.g., example.edu.in)"
    return None


def _check_registrar_email(c: RegistrationCandidate) -> Optional[str]:
    if _is_blank(c.registrar_official_email):
        return "Registrar email is required"
    if len(c.registrar_official_email) > EMAIL_MAX_LENGTH or not EMAIL_RE.fullmatch(c.registrar_official_email):
        return "Please enter a valid email address"
    return None


def _check_wallet_address(c: RegistrationCandidate) -> Optional[str]:
    if _is_blank(c.wallet_address):
        return "Wallet address is required"
    if not WALLET_ADDRESS_RE.fullmatch(c.wallet_address):
        return "Invalid wallet address. Must be a valid Ethereum address (0x...)"
    return None


FIELD_RULES: dict[RegistrationField, Callable[[RegistrationCandidate], Optional[str]]] = {
    RegistrationField.LEGAL_NAME: _check_legal_name,
    RegistrationField.TYPE: _check_type,
    RegistrationField.STATE: _check_state,
    RegistrationField.UGC_REFERENCE: _check_ugc_reference,
    RegistrationField.AISHE_CODE: _check_aishe_code,
    RegistrationField.WEBSITE_DOMAIN: _check_website_domain,
    RegistrationField.REGISTRAR_OFFICIAL_EMAIL: _check_registrar_email,
    RegistrationField.WALLET_ADDRESS: _check_wallet_address,
}


def email_matches_domain(email: str, website_domain: str) -> bool:
    """Registrar email must live on the university domain or an academic suffix."""

    domain = email_domain(email)
    if domain == website_domain.lower():
        return True
    return domain.endswith(ACADEMIC_EMAIL_SUFFIXES)


def normalize(c: RegistrationCandidate) -> NormalizedCandidate:
    return NormalizedCandidate(
        legal_name=c.legal_name,
        type=c.type,
        state=c.state,
        ugc_reference=None if _is_blank(c.ugc_reference) else c.ugc_reference,
        aishe_code=None if _is_blank(c.aishe_code) else c.aishe_code,
        website_domain=c.website_domain.lower(),
        registrar_official_email=c.registrar_official_email.lower(),
        wallet_address=c.wallet_address.lower(),
    )


def validate(candidate: RegistrationCandidate | Mapping[str, Any] | None) -> ValidationResult:
    if not isinstance(candidate, RegistrationCandidate):
        candidate = RegistrationCandidate.from_mapping(candidate)

    errors = FieldErrors()
    for field in candidate.non_text:
        errors.add(field, f"{field.value} must be a string")
    for field, rule in FIELD_RULES.items():
        message = rule(candidate)
        if message:
            errors.add(field, message)

    # Cross-field failures belong to the email field, never to the domain field.
    if (
        errors.get(RegistrationField.WEBSITE_DOMAIN) is None
        and errors.get(RegistrationField.REGISTRAR_OFFICIAL_EMAIL) is None
        and not email_matches_domain(candidate.registrar_official_email, candidate.website_domain)
    ):
        errors.add(
            RegistrationField.REGISTRAR_OFFICIAL_EMAIL,
            "Registrar email must match university domain, end with .edu.in, or .ac.in",
        )

    if errors:
        return ValidationResult(candidate=None, errors=errors)
    return ValidationResult(candidate=normalize(candidate), errors=errors)
