"""
Signed token serialization.

``TokenCodec`` turns ``TokenClaims`` into compact JWTs and back. It checks
structure, signature and token type, and nothing else: expiry is decided by
the authority against its injected clock, so the codec deliberately switches
off PyJWT's own time checks.

Key rotation is supported by listing retired verification keys in
``JWT_PREVIOUS_VERIFYING_KEYS``. Tokens are always signed with the current
key, but any listed key still verifies until it is removed from settings.
"""

from datetime import datetime, timezone

import jwt

from drf_token_authority.types import TokenClaims
from drf_token_authority.choices import TOKEN_TYPE
from drf_token_authority.compat import Any, Dict, List, Optional, TYPE_CHECKING
from drf_token_authority.exceptions import (
    BadSignature,
    InvalidToken,
    MalformedToken,
    UnsupportedTokenType,
)

if TYPE_CHECKING:
    from drf_token_authority.settings import TokenAuthoritySettings


def _to_timestamp(value: datetime) -> int:
    return int(value.timestamp())


def _from_timestamp(value: Any) -> datetime:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedToken()
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedToken() from exc


class TokenCodec:
    """
    Encodes and verifies JWTs using one settings object.
    """

    def __init__(self, settings: Optional["TokenAuthoritySettings"] = None) -> None:
        if settings is None:
            from drf_token_authority.settings import authority_settings

            settings = authority_settings
        self.settings = settings

    @property
    def reserved_claims(self) -> tuple:
        s = self.settings
        return (
            "iat",
            "exp",
            "iss",
            "aud",
            s.PRINCIPAL_ID_CLAIM,
            s.SESSION_ID_CLAIM,
            s.TOKEN_TYPE_CLAIM,
            s.JTI_CLAIM,
        )

    def get_verifying_keys(self) -> List:
        """
        Keys tried in order during verification.

        HMAC uses the signing key itself; RSA/EC/PS use the verifying (public)
        key. Previous keys follow the current one.
        """
        s = self.settings
        current = s.JWT_SIGNING_KEY if s.is_symmetric else s.JWT_VERIFYING_KEY
        return [current, *s.JWT_PREVIOUS_VERIFYING_KEYS]

    def encode(self, claims: TokenClaims) -> str:
        s = self.settings

        # Extra claims go in first so they can never shadow the reserved ones.
        payload: Dict[str, Any] = dict(claims.extra)
        payload.update(
            {
                "iat": _to_timestamp(claims.issued_at),
                "exp": _to_timestamp(claims.expires_at),
                s.PRINCIPAL_ID_CLAIM: str(claims.principal_id),
                s.TOKEN_TYPE_CLAIM: claims.token_type,
                s.JTI_CLAIM: claims.token_id,
            }
        )
        if claims.session_id is not None:
            payload[s.SESSION_ID_CLAIM] = str(claims.session_id)
        if s.JWT_ISSUER:
            payload["iss"] = s.JWT_ISSUER
        if s.JWT_AUDIENCE:
            payload["aud"] = s.JWT_AUDIENCE

        headers = s.JWT_HEADERS.copy()
        if s.JWT_KEY_ID:
            headers["kid"] = s.JWT_KEY_ID

        return jwt.encode(
            payload,
            s.JWT_SIGNING_KEY,
            algorithm=s.JWT_ALGORITHM,
            headers=headers,
            json_encoder=s.JWT_JSON_ENCODER,
        )

    def decode(self, token: str) -> TokenClaims:
        if not isinstance(token, str) or not token.strip():
            raise MalformedToken()

        payload = self._verify(token.strip())
        return self._build_claims(payload)

    def _verify(self, token: str) -> Dict[str, Any]:
        s = self.settings
        options = {
            "verify_exp": False,
            "verify_iat": False,
            "verify_nbf": False,
            "require": ["iat", "exp", s.PRINCIPAL_ID_CLAIM, s.TOKEN_TYPE_CLAIM],
        }

        for key in self.get_verifying_keys():
            try:
                return jwt.decode(
                    token,
                    key,
                    algorithms=[s.JWT_ALGORITHM],
                    issuer=s.JWT_ISSUER,
                    audience=s.JWT_AUDIENCE,
                    options=options,
                )
            except jwt.InvalidSignatureError:
                continue
            except jwt.InvalidAlgorithmError as exc:
                raise BadSignature() from exc
            except jwt.MissingRequiredClaimError as exc:
                raise MalformedToken() from exc
            except jwt.DecodeError as exc:
                raise MalformedToken() from exc
            except jwt.InvalidTokenError as exc:
                raise InvalidToken() from exc

        raise BadSignature()

    def _build_claims(self, payload: Dict[str, Any]) -> TokenClaims:
        s = self.settings

        token_type = payload[s.TOKEN_TYPE_CLAIM]
        if token_type not in TOKEN_TYPE.values:
            raise UnsupportedTokenType()

        session_id = payload.get(s.SESSION_ID_CLAIM)
        extra = {
            name: value
            for name, value in payload.items()
            if name not in self.reserved_claims
        }

        return TokenClaims(
            principal_id=str(payload[s.PRINCIPAL_ID_CLAIM]),
            token_type=token_type,
            issued_at=_from_timestamp(payload["iat"]),
            expires_at=_from_timestamp(payload["exp"]),
            token_id=str(payload.get(s.JTI_CLAIM, "")),
            session_id=str(session_id) if session_id is not None else None,
            extra=extra,
        )
