"""
Abstract base authentication classes for the token authority.

Integrates stateless access-token verification into the DRF request
lifecycle. Subclasses only decide where the credential comes from
(headers, cookies); verification is delegated to ``SessionAuthority``.
"""

import logging

from rest_framework.request import Request
from django.utils.translation import gettext_lazy as _
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.authentication import BaseAuthentication

from drf_token_authority.types import TokenClaims, TokenPrincipal
from drf_token_authority.exceptions import InvalidToken, TokenExpired
from drf_token_authority.compat import Any, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from drf_token_authority.services import SessionAuthority


logger = logging.getLogger(__name__)

# One message for every failure: clients must not learn which check failed.
INVALID_TOKEN_DETAIL = _("Invalid or expired access token.")
INVALID_TOKEN_CODE = "token_not_valid"


class BaseTokenAuthentication(BaseAuthentication):
    """
    Core template for access-token authentication.
    """

    authority: Optional["SessionAuthority"] = None

    def get_authority(self) -> "SessionAuthority":
        if self.authority is not None:
            return self.authority

        from drf_token_authority.services import get_session_authority

        return get_session_authority()

    def authenticate(self, request: Request) -> Optional[Tuple[Any, TokenClaims]]:
        token_str = self.extract_token(request)
        if not token_str:
            return None

        try:
            claims = self.get_authority().verify_access_claims(token_str)
        except (InvalidToken, TokenExpired) as exc:
            logger.debug("Rejected access token: %s", exc)
            raise AuthenticationFailed(INVALID_TOKEN_DETAIL, code=INVALID_TOKEN_CODE)

        return self.authenticate_credentials(request, claims)

    def authenticate_credentials(
        self, request: Request, claims: TokenClaims
    ) -> Tuple[Any, TokenClaims]:
        """
        Turns verified claims into the ``(user, auth)`` pair DRF expects.
        """
        settings = self.get_authority().settings
        resolver = settings.PRINCIPAL_RESOLVER

        if resolver:
            user = resolver(claims.principal_id)
            if user is None:
                logger.debug("No user for principal %s", claims.principal_id)
                raise AuthenticationFailed(
                    INVALID_TOKEN_DETAIL, code=INVALID_TOKEN_CODE
                )
        else:
            user = TokenPrincipal(claims.principal_id, claims)

        return self.run_post_auth_hook(user, claims, request)

    def run_post_auth_hook(
        self, user: Any, claims: TokenClaims, request: Request
    ) -> Tuple[Any, TokenClaims]:
        hook = self.get_authority().settings.POST_AUTHENTICATED_HOOK
        if hook:
            result = hook(user=user, claims=claims, request=request)
            if result:
                return result
        return user, claims

    def extract_token(self, request: Request) -> Optional[str]:
        raise NotImplementedError


class BaseHeaderAuthentication(BaseTokenAuthentication):
    """Base class for Authorization Header schemes (e.g., Bearer)."""

    def authenticate_header(self, request: Request) -> str:
        return 'Bearer realm="api"'


class BaseCookieAuthentication(BaseTokenAuthentication):
    """Base class for HTTP-only Cookie schemes."""

    def authenticate_header(self, request: Request) -> str:
        # Informs the client that a session cookie is expected
        return 'Session realm="api"'
