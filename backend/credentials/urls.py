from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import IssueCredentialAPIView, IssuedCredentialViewSet


router = DefaultRouter()
router.register(r"credentials", IssuedCredentialViewSet, basename="issuedcredential")

urlpatterns = [
    path("credentials/issue/", IssueCredentialAPIView.as_view(), name="credential-issue"),
    path("", include(router.urls)),
]
