"""
Cookie session resolution shared by the REST API and the WebSocket handshake.

``resolve_session`` turns a raw ``Cookie`` header into an ``AuthResult``
without needing a live request/response pair, so the WebSocket consumer can
authenticate against the same session store the HTTP views use.
"""

import logging
from dataclasses import dataclass
from importlib import import_module
from types import SimpleNamespace
from typing import Optional

from django.conf import settings
from django.contrib.auth import get_user, get_user_model
from django.http.cookie import parse_cookie
from rest_framework.authentication import SessionAuthentication

logger = logging.getLogger(__name__)

NO_SESSION = "No session found - login required for personalized updates"
NOT_AUTHENTICATED = "Authentication required for personalized updates"
AUTH_ERROR = "Authentication error"


@dataclass(frozen=True)
class AuthResult:
    authenticated: bool
    user_id: Optional[str] = None
    reason: Optional[str] = None


def resolve_session(cookie_header) -> AuthResult:
    """
    Resolve a ``Cookie`` header to the logged-in user id.

    Never raises: a missing, malformed or expired session yields an
    unauthenticated result carrying a human readable reason.

    Args:
        cookie_header: Raw header value (str or latin-1 bytes), may be None

    Returns:
        AuthResult
    """
    if not cookie_header:
        return AuthResult(authenticated=False, reason=NO_SESSION)

    try:
        if isinstance(cookie_header, bytes):
            cookie_header = cookie_header.decode("latin1")
        session_key = parse_cookie(cookie_header).get(settings.SESSION_COOKIE_NAME)
        if not session_key:
            return AuthResult(authenticated=False, reason=NO_SESSION)

        engine = import_module(settings.SESSION_ENGINE)
        # get_user() only reads request.session
        request = SimpleNamespace(session=engine.SessionStore(session_key))
        user = get_user(request)
    except Exception as e:
        logger.warning("Failed to resolve session from cookie: %s", e)
        return AuthResult(authenticated=False, reason=AUTH_ERROR)

    if not user.is_authenticated:
        return AuthResult(authenticated=False, reason=NOT_AUTHENTICATED)

    return AuthResult(authenticated=True, user_id=str(user.pk))


class CookieSessionAuthentication(SessionAuthentication):
    """
    DRF authentication backed by ``resolve_session``.

    Unsafe methods still go through DRF's CSRF check, exactly like
    ``SessionAuthentication``.
    """

    def authenticate(self, request):
        result = resolve_session(request.META.get("HTTP_COOKIE"))
        if not result.authenticated:
            return None

        User = get_user_model()
        user = User.objects.filter(pk=result.user_id, is_active=True).first()
        if user is None:
            return None

        self.enforce_csrf(request)
        return (user, None)

    def authenticate_header(self, request):
        return 'Session realm="api"'
