from __future__ import annotations

from rest_framework import serializers

from universities.validation import WALLET_ADDRESS_RE

from .models import IssuedCredential, VerificationEvent


def _required_text(max_length: int) -> serializers.CharField:
    return serializers.CharField(
        required=True,
        allow_blank=False,
        trim_whitespace=True,
        max_length=max_length,
        error_messages={
            "required": "This credential field is required",
            "blank": "This credential field is required",
        },
    )


class CredentialDataSerializer(serializers.Serializer):
    student_name = _required_text(255)
    university_name = _required_text(255)
    degree_type = _required_text(255)
    major = _required_text(255)
    gpa = _required_text(32)
    graduation_date = _required_text(64)


class CredentialIssueInputSerializer(CredentialDataSerializer):
    wallet_address = serializers.CharField(required=True, allow_blank=False)
    transaction_id = serializers.CharField(required=False, allow_blank=True, max_length=128, default="")

    def validate_wallet_address(self, value: str) -> str:
        if not WALLET_ADDRESS_RE.fullmatch(value):
            raise serializers.ValidationError("Invalid wallet address. Must be a valid Ethereum address (0x...)")
        return value.lower()


class IssuedCredentialSerializer(serializers.ModelSerializer):
    university_legal_name = serializers.CharField(source="university.legal_name", read_only=True, default=None)

    class Meta:
        model = IssuedCredential
        fields = [
            "id",
            "student_name",
            "university_name",
            "degree_type",
            "major",
            "gpa",
            "graduation_date",
            "credential_hash",
            "wallet_address",
            "transaction_id",
            "raw_json",
            "university",
            "university_legal_name",
            "issued_by",
            "created_at",
        ]
        read_only_fields = fields


class PublicCredentialSerializer(serializers.ModelSerializer):
    version = serializers.IntegerField(default=1)
    valid = serializers.SerializerMethodField()
    outcome = serializers.SerializerMethodField()
    issuer = serializers.SerializerMethodField()

    class Meta:
        model = IssuedCredential
        fields = [
            "version",
            "valid",
            "outcome",
            "credential_hash",
            "student_name",
            "university_name",
            "degree_type",
            "major",
            "gpa",
            "graduation_date",
            "wallet_address",
            "transaction_id",
            "raw_json",
            "issuer",
            "created_at",
        ]

    def get_valid(self, obj: IssuedCredential) -> bool:
        return obj.is_intact()

    def get_outcome(self, obj: IssuedCredential) -> str:
        if obj.is_intact():
            return VerificationEvent.Outcome.VALID
        return VerificationEvent.Outcome.TAMPERED

    def get_issuer(self, obj: IssuedCredential) -> dict | None:
        university = obj.university
        if university is None:
            return None
        return {
            "legal_name": university.legal_name,
            "website_domain": university.website_domain,
            "verification_status": university.verification_status,
            "approved": university.is_approved,
        }
