"""
Routes of the university registry API.

- `api/token/`: JWT login for registry staff
- `api/universities/`, `api/credentials/`, `api/audit-logs/`: staff and registration endpoints
- `api/public/`: unauthenticated credential verification
"""

from django.contrib import admin
from django.urls import path, include
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
)

admin.site.site_header = "University registry"

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/", include("universities.urls")),
    path("api/", include("credentials.urls")),
    path("api/", include("audit.urls")),
    path("api/public/", include("credentials.public_urls")),
]
