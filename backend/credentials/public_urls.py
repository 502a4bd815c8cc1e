from django.urls import path

from .views_public import PublicCredentialLookupAPIView, PublicCredentialVerifyAPIView


urlpatterns = [
    path("credentials/verify/", PublicCredentialLookupAPIView.as_view(), name="public-credential-lookup"),
    path(
        "credentials/verify/<str:credential_hash>/",
        PublicCredentialVerifyAPIView.as_view(),
        name="public-credential-verify",
    ),
]
