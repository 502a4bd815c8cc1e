from django.contrib import admin

from .models import IssuedCredential, VerificationEvent


@admin.register(IssuedCredential)
class IssuedCredentialAdmin(admin.ModelAdmin):
    list_display = ("student_name", "degree_type", "university", "credential_hash", "intact", "created_at")
    search_fields = ("student_name", "university_name", "credential_hash", "wallet_address", "transaction_id")
    list_filter = ("degree_type",)
    list_select_related = ("university",)
    readonly_fields = ("credential_hash", "raw_json", "transaction_id", "wallet_address", "issued_by", "created_at")
    ordering = ("-created_at",)

    @admin.display(boolean=True, description="Intact")
    def intact(self, obj):
        return obj.is_intact()


@admin.register(VerificationEvent)
class VerificationEventAdmin(admin.ModelAdmin):
    list_display = ("created_at", "outcome", "credential_hash", "ip_address", "method")
    search_fields = ("credential_hash", "ip_address", "user_agent")
    list_filter = ("outcome",)
    ordering = ("-created_at",)
