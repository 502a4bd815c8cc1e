from __future__ import annotations

from django.conf import settings
from rest_framework.throttling import SimpleRateThrottle


class ClientIPRateThrottle(SimpleRateThrottle):
    """Per-client-IP throttle whose rate a setting can override.

    Subclasses set `scope` (key in DEFAULT_THROTTLE_RATES) and `rate_setting`
    (name of the Django setting holding an explicit rate such as "5/min").
    """

    rate_setting = ""

    def get_cache_key(self, request, view):
        ident = self.get_ident(request)
        if not ident:
            return None
        return self.cache_format % {"scope": self.scope, "ident": ident}

    def get_rate(self):
        explicit = str(getattr(settings, self.rate_setting, "") or "").strip() if self.rate_setting else ""
        if explicit:
            return explicit
        return super().get_rate()


class UniversityRegisterRateThrottle(ClientIPRateThrottle):
    scope = "university_register"
    rate_setting = "REGISTRATION_THROTTLE_RATE"


class UniversityPreflightRateThrottle(ClientIPRateThrottle):
    scope = "university_preflight"
    rate_setting = "REGISTRATION_PREFLIGHT_THROTTLE_RATE"


class PublicVerifyRateThrottle(ClientIPRateThrottle):
    scope = "public_verify"
    rate_setting = "PUBLIC_VERIFY_THROTTLE_RATE"
