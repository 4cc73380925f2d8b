"""
Error taxonomy for the token authority.

Codec errors (``InvalidToken`` and its subclasses) and ``TokenExpired`` mean
"reject the credential". Session state errors describe the refresh store
record. ``StoreUnavailable`` is the odd one out: it means validity could not
be determined at all, and callers decide whether to retry or fail closed.
"""

from django.utils.translation import gettext_lazy as _


class TokenAuthorityError(Exception):
    """Base class for every error raised by the token authority."""

    default_detail = _("Token authority error.")

    def __init__(self, detail=None):
        self.detail = detail if detail is not None else self.default_detail
        super().__init__(str(self.detail))


class InvalidToken(TokenAuthorityError):
    default_detail = _("Token is invalid.")


class MalformedToken(InvalidToken):
    default_detail = _("Token is malformed.")


class BadSignature(InvalidToken):
    default_detail = _("Token signature could not be verified.")


class UnsupportedTokenType(InvalidToken):
    default_detail = _("Token type is not supported.")


class TokenExpired(TokenAuthorityError):
    default_detail = _("Token has expired.")


class SessionStateError(TokenAuthorityError):
    """Raised when a refresh session record forbids the requested operation."""

    default_detail = _("Refresh session is not usable.")


class SessionRevoked(SessionStateError):
    default_detail = _("Refresh session has been revoked.")


class SessionNotFound(SessionStateError):
    default_detail = _("Refresh session does not exist.")


class AlreadyRotated(SessionStateError):
    default_detail = _("Refresh session has already been rotated.")


class DuplicateSession(SessionStateError):
    default_detail = _("Refresh session already exists.")


class StoreUnavailable(TokenAuthorityError):
    default_detail = _("Refresh store is unavailable.")
