from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from users.permissions import IsAdmin, IsReviewer

from .models import IssuedCredential
from .serializers import CredentialIssueInputSerializer, IssuedCredentialSerializer
from .services import DuplicateCredential, IssuerNotApproved, issue_credential


class IssueCredentialAPIView(APIView):
    permission_classes = [IsAdmin]

    def post(self, request, format=None):
        data = CredentialIssueInputSerializer(data=request.data or {})
        data.is_valid(raise_exception=True)
        validated = dict(data.validated_data)

        try:
            credential = issue_credential(
                data=validated,
                wallet_address=validated["wallet_address"],
                transaction_id=validated.get("transaction_id", ""),
                request=request,
            )
        except IssuerNotApproved:
            return Response(
                {"detail": "Issuer wallet does not belong to an approved university"},
                status=status.HTTP_403_FORBIDDEN,
            )
        except DuplicateCredential as exc:
            return Response(
                {"detail": "Credential already issued", "credential_hash": exc.credential_hash},
                status=status.HTTP_409_CONFLICT,
            )

        return Response(
            {
                "credential_hash": credential.credential_hash,
                "data": IssuedCredentialSerializer(credential).data,
            },
            status=status.HTTP_201_CREATED,
        )


class IssuedCredentialViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = IssuedCredential.objects.select_related("university").all().order_by("-created_at", "-id")
    serializer_class = IssuedCredentialSerializer
    permission_classes = [IsReviewer]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["wallet_address", "university", "credential_hash"]
