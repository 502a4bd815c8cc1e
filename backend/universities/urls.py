from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import UniversityPreflightAPIView, UniversityRegistrationAPIView, UniversityViewSet


router = DefaultRouter()
router.register(r"universities", UniversityViewSet, basename="university")

urlpatterns = [
    path("universities/register/", UniversityRegistrationAPIView.as_view(), name="university-register"),
    path("universities/validate/", UniversityPreflightAPIView.as_view(), name="university-validate"),
    path("", include(router.urls)),
]
