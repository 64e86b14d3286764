"""Throttle for public catalog browsing.

Browsing is mostly anonymous, so shoppers behind one NAT share an IP. The
scope is keyed by user id when authenticated and by session otherwise,
falling back to the client IP for clients without a session cookie. The
rate is read from settings per request so tests can tighten it.
"""

from django.conf import settings
from rest_framework.throttling import ScopedRateThrottle


class CatalogScopedRateThrottle(ScopedRateThrottle):
    def get_rate(self):
        rates = settings.REST_FRAMEWORK.get("DEFAULT_THROTTLE_RATES", {})
        return rates.get(self.scope)

    def get_cache_key(self, request, view):
        if request.user and request.user.is_authenticated:
            ident = f"user-{request.user.pk}"
        else:
            session_key = getattr(getattr(request, "session", None), "session_key", None)
            ident = f"session-{session_key}" if session_key else self.get_ident(request)
        return self.cache_format % {"scope": self.scope, "ident": ident}
