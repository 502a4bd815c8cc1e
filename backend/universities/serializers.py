from __future__ import annotations

from rest_framework import serializers

from .models import University


class UniversitySerializer(serializers.ModelSerializer):
    type_label = serializers.CharField(source="get_type_display", read_only=True)
    verification_status_label = serializers.CharField(source="get_verification_status_display", read_only=True)
    reviewed_by_username = serializers.CharField(source="reviewed_by.username", read_only=True, default=None)

    class Meta:
        model = University
        fields = [
            "id",
            "legal_name",
            "type",
            "type_label",
            "state",
            "ugc_reference",
            "aishe_code",
            "website_domain",
            "registrar_official_email",
            "wallet_address",
            "verification_status",
            "verification_status_label",
            "rejection_reason",
            "reviewed_at",
            "reviewed_by",
            "reviewed_by_username",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class RejectInputSerializer(serializers.Serializer):
    reason = serializers.CharField(
        required=True,
        allow_blank=False,
        trim_whitespace=True,
        error_messages={
            "required": "Please provide a reason for rejection",
            "blank": "Please provide a reason for rejection",
        },
    )
