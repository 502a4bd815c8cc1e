from __future__ import annotations

import re
from urllib.parse import unquote

from django.http import HttpResponsePermanentRedirect


PUBLIC_VERIFY_PREFIX = "/api/public/credentials/verify/"

# Matches the public verification prefix with whitespace glued around any of its segments.
_SPACED_PREFIX_RE = re.compile(r"^/\s*api/\s*public/\s*credentials/\s*verify/\s*")


def normalize_verification_path(path: str) -> str:
    """Strip stray whitespace from the prefix of a decoded verification path."""

    return _SPACED_PREFIX_RE.sub(PUBLIC_VERIFY_PREFIX, path, count=1)


class NormalizeVerificationPathMiddleware:
    """Redirect verification links that picked up whitespace to their canonical path.

    Links copied out of PDFs and chat apps may gain spaces or line breaks that
    browsers then percent-encode (`/api/%20%20public/credentials/verify/<hash>/`).
    Whitespace inside the hash segment itself is handled by the verify view.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        raw_uri = (
            str(request.META.get("RAW_URI") or "")
            or str(request.META.get("REQUEST_URI") or "")
            or request.get_full_path()
        )
        path_part, sep, query = raw_uri.partition("?")
        decoded_path = unquote(path_part)

        normalized_path = normalize_verification_path(decoded_path)
        if normalized_path != decoded_path:
            return HttpResponsePermanentRedirect(normalized_path + (sep + query if query else ""))

        return self.get_response(request)
