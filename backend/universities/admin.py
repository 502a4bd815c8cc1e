from django.contrib import admin

from .models import University


@admin.register(University)
class UniversityAdmin(admin.ModelAdmin):
    list_display = ("legal_name", "type", "state", "website_domain", "verification_status", "created_at")
    search_fields = ("legal_name", "website_domain", "registrar_official_email", "aishe_code", "wallet_address")
    list_filter = ("verification_status", "type", "state")
    readonly_fields = ("verification_status", "reviewed_at", "reviewed_by", "created_at", "updated_at")
    ordering = ("-created_at",)
