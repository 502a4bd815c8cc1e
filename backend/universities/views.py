from __future__ import annotations

import logging

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from univerify_backend.throttles import UniversityPreflightRateThrottle, UniversityRegisterRateThrottle
from users.permissions import IsAdmin, IsReviewer

from .exceptions import DuplicateRegistration
from .models import University
from .serializers import RejectInputSerializer, UniversitySerializer
from .services import register_university, status_counts, transition_university
from .validation import validate

logger = logging.getLogger(__name__)


def _validation_failed(result) -> Response:
    return Response(
        {"error": "Validation failed", "details": result.errors.as_dict()},
        status=status.HTTP_400_BAD_REQUEST,
    )


class UniversityPreflightAPIView(APIView):
    """Advisory check for the registration form; never writes anything."""

    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [UniversityPreflightRateThrottle]

    def post(self, request, format=None):
        result = validate(request.data)
        if not result.is_valid:
            return _validation_failed(result)
        return Response({"valid": True, "data": result.candidate.as_wire()})


class UniversityRegistrationAPIView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [UniversityRegisterRateThrottle]

    def post(self, request, format=None):
        result = validate(request.data)
        if not result.is_valid:
            logger.info("university.validation_failed", extra={"invalid_fields": sorted(result.errors.as_dict())})
            return _validation_failed(result)

        try:
            university = register_university(result.candidate)
        except DuplicateRegistration as exc:
            return Response(
                {
                    "error": "University with this domain or email already exists",
                    "details": {"existing": exc.existing_status},
                },
                status=status.HTTP_409_CONFLICT,
            )

        return Response(
            {
                "success": True,
                "message": "University registered successfully",
                "data": UniversitySerializer(university).data,
            },
            status=status.HTTP_200_OK,
        )


class UniversityViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = University.objects.select_related("reviewed_by").all().order_by("-created_at", "-id")
    serializer_class = UniversitySerializer
    permission_classes = [IsReviewer]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["verification_status", "type", "state"]

    def get_permissions(self):
        # Deciding on a registration is reserved to administrators.
        if getattr(self, "action", None) in {"approve", "reject"}:
            return [IsAdmin()]
        return super().get_permissions()

    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        return Response(status_counts())

    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None):
        university: University = self.get_object()
        university = transition_university(
            university=university,
            to_status=University.VerificationStatus.APPROVED,
            request=request,
        )
        return Response(self.get_serializer(university).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="reject")
    def reject(self, request, pk=None):
        university: University = self.get_object()
        data = RejectInputSerializer(data=request.data or {})
        data.is_valid(raise_exception=True)

        university = transition_university(
            university=university,
            to_status=University.VerificationStatus.REJECTED,
            request=request,
            reason=data.validated_data["reason"],
        )
        return Response(self.get_serializer(university).data, status=status.HTTP_200_OK)
