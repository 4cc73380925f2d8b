"""
Concrete authentication classes for the token authority.

This module provides ready-to-use implementations for common transport
layers, utilizing configurable header types and cookie names.
"""

from rest_framework.request import Request
from rest_framework.authentication import get_authorization_header

from drf_token_authority.compat import Optional, Union
from drf_token_authority.base.auth import (
    BaseCookieAuthentication,
    BaseHeaderAuthentication,
)


def parse_authorization_header(
    value: Union[bytes, str, None], header_types
) -> Optional[str]:
    """
    Extracts the credential from an ``Authorization`` header value.

    Returns None unless the value is exactly ``<type> <token>`` with a type
    from ``header_types`` (compared case-insensitively).
    """
    if not value:
        return None
    if isinstance(value, bytes):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError:
            return None

    parts = value.split()
    if len(parts) != 2:
        return None

    prefix, token = parts
    allowed_prefixes = [t.lower() for t in header_types]
    if prefix.lower() not in allowed_prefixes:
        return None

    return token


class BearerAuthentication(BaseHeaderAuthentication):
    """
    Concrete implementation for header-based sessions.

    Checks the 'Authorization' header against a list of allowed prefixes
    defined in AUTH_HEADER_TYPES.
    """

    def extract_token(self, request: Request) -> Optional[str]:
        header_types = self.get_authority().settings.AUTH_HEADER_TYPES
        return parse_authorization_header(
            get_authorization_header(request), header_types
        )


class CookieAuthentication(BaseCookieAuthentication):
    """
    Concrete implementation for HTTP-only cookie-based sessions.

    Checks multiple possible cookie names defined in AUTH_COOKIE_NAMES.
    """

    def extract_token(self, request: Request) -> Optional[str]:
        # Iterate through allowed names; return the first one found
        cookie_names = self.get_authority().settings.AUTH_COOKIE_NAMES

        for name in cookie_names:
            token = request.COOKIES.get(name)
            if token:
                return token

        return None
