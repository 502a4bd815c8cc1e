from __future__ import annotations

from django.http import HttpResponsePermanentRedirect
from django.urls import reverse
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from univerify_backend.throttles import PublicVerifyRateThrottle

from .serializers import CredentialDataSerializer, PublicCredentialSerializer
from .services import VerificationResult, log_verification_event, verify_credential_data, verify_credential_hash


def _verification_response(result: VerificationResult) -> Response:
    if result.credential is None:
        return Response(
            {"valid": False, "outcome": result.outcome, "credential_hash": result.credential_hash, "detail": "Credential not found"},
            status=404,
        )
    return Response(PublicCredentialSerializer(result.credential).data)


class PublicCredentialVerifyAPIView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [PublicVerifyRateThrottle]

    def get(self, request, credential_hash: str, format=None):
        hash_clean = str(credential_hash or "").strip().lower()
        if hash_clean and hash_clean != credential_hash:
            # QR scanners and copy/paste add newlines, spaces or uppercase hex.
            location = reverse("public-credential-verify", kwargs={"credential_hash": hash_clean})
            return HttpResponsePermanentRedirect(location)

        result = verify_credential_hash(hash_clean or credential_hash)
        log_verification_event(request=request, result=result)
        return _verification_response(result)


class PublicCredentialLookupAPIView(APIView):
    """Recomputes the hash from submitted credential fields and looks it up."""

    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [PublicVerifyRateThrottle]

    def post(self, request, format=None):
        data = CredentialDataSerializer(data=request.data or {})
        data.is_valid(raise_exception=True)

        result = verify_credential_data(data.validated_data)
        log_verification_event(request=request, result=result)
        return _verification_response(result)
