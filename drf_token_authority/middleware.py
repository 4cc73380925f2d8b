"""
Django middleware for projects (or views) that do not go through DRF.

Attaches ``request.principal_id`` and ``request.token_claims`` when the
request carries a valid bearer access token. Requests without a credential
pass through with both attributes set to None; a credential that fails
verification is answered with a 401 before the view runs.
"""

import logging

from django.http import JsonResponse

from drf_token_authority.auth import parse_authorization_header
from drf_token_authority.exceptions import InvalidToken, TokenExpired
from drf_token_authority.base.auth import INVALID_TOKEN_CODE, INVALID_TOKEN_DETAIL

logger = logging.getLogger(__name__)


class AccessTokenMiddleware:
    authority = None

    def __init__(self, get_response):
        self.get_response = get_response

    def get_authority(self):
        if self.authority is not None:
            return self.authority

        from drf_token_authority.services import get_session_authority

        return get_session_authority()

    def __call__(self, request):
        request.principal_id = None
        request.token_claims = None

        authority = self.get_authority()
        token = parse_authorization_header(
            request.headers.get("Authorization"),
            authority.settings.AUTH_HEADER_TYPES,
        )

        if token:
            try:
                claims = authority.verify_access_claims(token)
            except (InvalidToken, TokenExpired) as exc:
                logger.debug("Rejected access token: %s", exc)
                return self.unauthorized_response()

            request.principal_id = claims.principal_id
            request.token_claims = claims

        return self.get_response(request)

    def unauthorized_response(self) -> JsonResponse:
        response = JsonResponse(
            {"detail": str(INVALID_TOKEN_DETAIL), "code": INVALID_TOKEN_CODE},
            status=401,
        )
        response["WWW-Authenticate"] = 'Bearer realm="api"'
        return response
