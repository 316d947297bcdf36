"""
Request throttles for login and statement import.

Built on DRF's SimpleRateThrottle; each limit comes from a BUDGET_* setting
holding ``max_requests`` and ``window_seconds``.
"""
import logging

from django.conf import settings
from rest_framework.throttling import SimpleRateThrottle

logger = logging.getLogger(__name__)


def client_identifier(request) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.META.get("REMOTE_ADDR") or "unknown"


class ConfiguredRateThrottle(SimpleRateThrottle):
    setting_name = None
    # used in the 429 message: "Too many <label>"
    label = "requests"

    def get_rate(self):
        return getattr(settings, self.setting_name)

    def parse_rate(self, rate):
        if rate is None:
            return None, None
        return rate["max_requests"], rate["window_seconds"]

    def get_cache_key(self, request, view):
        return self.cache_format % {"scope": self.scope, "ident": client_identifier(request)}

    def throttle_failure(self):
        logger.warning("Rate limit exceeded for %s", self.key)
        return False


class ImportThrottle(ConfiguredRateThrottle):
    scope = "import"
    setting_name = "BUDGET_IMPORT_RATE_LIMIT"
    label = "import requests"


class LoginThrottle(ConfiguredRateThrottle):
    scope = "login"
    setting_name = "BUDGET_LOGIN_RATE_LIMIT"
    label = "login attempts"


class LoginEmailThrottle(ConfiguredRateThrottle):
    """Counts attempts per submitted email; bodies without one are not counted."""
    scope = "login-email"
    setting_name = "BUDGET_LOGIN_EMAIL_RATE_LIMIT"
    label = "login attempts"

    @classmethod
    def key_for(cls, email):
        return cls.cache_format % {"scope": cls.scope, "ident": email.strip().lower()}

    @classmethod
    def reset(cls, email):
        cls.cache.delete(cls.key_for(email))

    def get_cache_key(self, request, view):
        email = request.data.get("email")
        if not isinstance(email, str) or not email.strip():
            return None
        return self.key_for(email)
