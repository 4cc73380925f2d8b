"""
Data structures passed between the codec, the stores and the authority.

``TokenClaims`` is what the codec signs and verifies, ``RefreshRecord`` is the
store's view of one refresh session, and ``SessionPair`` is what callers get
back on issuance and on every successful refresh.
"""

import dataclasses
from datetime import datetime

from drf_token_authority.choices import SESSION_STATE
from drf_token_authority.compat import Any, Dict, Optional, Self, NamedTuple


@dataclasses.dataclass(frozen=True)
class TokenClaims:
    """
    Decoded (or to-be-encoded) contents of a token.

    Timestamps are whole seconds, as carried by the JWT NumericDate claims.
    ``extra`` holds any claim the library does not own, such as those added
    by ``JWT_PAYLOAD_EXTENDER``.
    """

    principal_id: str
    token_type: str
    issued_at: datetime
    expires_at: datetime
    token_id: str
    session_id: Optional[str] = None
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class RefreshRecord:
    """
    Server-side state of a single refresh token.

    Records are immutable snapshots; stores produce a new record for every
    state change.
    """

    session_id: str
    principal_id: str
    issued_at: datetime
    expires_at: datetime
    revoked_at: Optional[datetime] = None
    replaced_by: Optional[str] = None
    absolute_expiry: Optional[datetime] = None

    @property
    def revoked(self) -> bool:
        return self.revoked_at is not None

    @property
    def state(self) -> str:
        if self.replaced_by is not None:
            return SESSION_STATE.ROTATED
        if self.revoked:
            return SESSION_STATE.REVOKED
        return SESSION_STATE.ACTIVE

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def is_live(self, now: datetime) -> bool:
        return not self.revoked and not self.is_expired(now)

    def rotated_to(self, new_session_id: str, at: datetime) -> Self:
        return dataclasses.replace(self, revoked_at=at, replaced_by=new_session_id)

    def revoked_on(self, at: datetime) -> Self:
        return dataclasses.replace(self, revoked_at=at)


class SessionPair(NamedTuple):
    """
    Credentials handed to the client after issuance or rotation.

    ``session_id`` identifies the refresh record behind ``refresh_token`` so
    the caller can correlate devices without decoding the token.
    """

    access_token: str
    refresh_token: str
    session_id: str


class TokenPrincipal:
    """
    Minimal user-like object for authenticated requests.

    Used by the authentication classes when no ``PRINCIPAL_RESOLVER`` is
    configured, so views can rely on ``request.user.is_authenticated``
    without a user table.
    """

    is_active = True
    is_staff = False
    is_superuser = False
    is_anonymous = False
    is_authenticated = True

    def __init__(self, principal_id: str, claims: Optional[TokenClaims] = None):
        self.id = self.pk = principal_id
        self.claims = claims

    def __str__(self) -> str:
        return f"TokenPrincipal {self.id}"

    def __eq__(self, other) -> bool:
        return isinstance(other, TokenPrincipal) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def get_username(self) -> str:
        return self.id
