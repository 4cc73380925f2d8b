"""
Orchestration layer for session and token lifecycles.

``SessionAuthority`` is the only place that makes decisions: it mints
session pairs, verifies access tokens without touching the store, rotates
refresh tokens exactly once, and escalates replayed refresh tokens into
revocation. Everything it depends on (store, codec, clock, settings) is
injected, with defaults built from ``DRF_TOKEN_AUTHORITY``.
"""

import logging
from datetime import datetime, timedelta
from functools import lru_cache

from django.test.signals import setting_changed
from django.utils.translation import gettext_lazy as _

from drf_token_authority.codec import TokenCodec
from drf_token_authority.choices import TOKEN_TYPE
from drf_token_authority.base.stores import BaseRefreshStore
from drf_token_authority.clock import BaseClock
from drf_token_authority.compat import Any, Dict, List, Optional, TYPE_CHECKING
from drf_token_authority.types import RefreshRecord, SessionPair, TokenClaims
from drf_token_authority.utils.generators import generate_session_id, generate_token_id
from drf_token_authority.signals import (
    session_issued,
    session_rotated,
    sessions_revoked,
    refresh_token_reused,
)
from drf_token_authority.exceptions import (
    InvalidToken,
    TokenExpired,
    AlreadyRotated,
    MalformedToken,
    SessionRevoked,
    SessionNotFound,
)

if TYPE_CHECKING:
    from drf_token_authority.settings import TokenAuthoritySettings


logger = logging.getLogger(__name__)


class SessionAuthority:
    """
    Issues, verifies, rotates and revokes session tokens.

    Access tokens are verified statelessly: a revoked session's access token
    stays valid until its own short TTL runs out. Refresh tokens always go
    through the store, which is where revocation lives.
    """

    def __init__(
        self,
        store: Optional[BaseRefreshStore] = None,
        codec: Optional[TokenCodec] = None,
        clock: Optional[BaseClock] = None,
        settings: Optional["TokenAuthoritySettings"] = None,
    ) -> None:
        if settings is None:
            from drf_token_authority.settings import authority_settings

            settings = authority_settings

        self.settings = settings
        self.clock = clock or settings.CLOCK()
        self.store = store or settings.REFRESH_STORE(clock=self.clock)
        self.codec = codec or TokenCodec(settings)

    def issue_session(
        self,
        principal_id,
        access_ttl: Optional[timedelta] = None,
        refresh_ttl: Optional[timedelta] = None,
    ) -> SessionPair:
        """
        Starts a new rotation chain for ``principal_id``.

        The refresh record is written before any token exists, so a token
        is never handed out for a session the store does not know about.
        """
        principal_id = str(principal_id)
        now = self._now()

        max_lifetime = self.settings.ROTATION_MAX_LIFETIME
        absolute_expiry = now + max_lifetime if max_lifetime else None
        record = self._new_record(
            principal_id,
            now,
            refresh_ttl or self.settings.REFRESH_TOKEN_TTL,
            absolute_expiry,
        )

        # Limit check and insert form one unit so concurrent logins cannot
        # both see room for one more session.
        with self.store.atomic():
            self._enforce_session_limits(principal_id)
            self.store.put(record)

        pair = self._mint_pair(record, now, access_ttl=access_ttl)

        logger.info(
            "Issued session %s for principal %s", record.session_id, principal_id
        )
        session_issued.send(
            sender=self.__class__,
            principal_id=principal_id,
            session_id=record.session_id,
        )
        return pair

    def verify_access(self, token: str) -> str:
        """
        Returns the principal id carried by a valid access token.

        Principal ids travel as the JWT ``sub`` claim and always come back as
        text: a session issued for ``42`` verifies to ``"42"``.
        """
        return self.verify_access_claims(token).principal_id

    def verify_access_claims(self, token: str) -> TokenClaims:
        claims = self._decode(token, TOKEN_TYPE.ACCESS)
        self._check_expiry(claims)
        return claims

    def refresh(self, token: str) -> SessionPair:
        """
        Exchanges a refresh token for a new session pair.

        A refresh token that was already rotated away is a replay: either it
        leaked, or a client retried after losing the response. Both end the
        same way, with the principal's sessions revoked and a forced login.
        """
        claims = self._decode(token, TOKEN_TYPE.REFRESH)
        self._check_expiry(claims)

        if not claims.session_id:
            raise MalformedToken()

        record = self.store.get(claims.session_id)
        if record.principal_id != claims.principal_id:
            raise InvalidToken(_("Token does not match its session."))

        if record.revoked:
            if record.replaced_by is not None:
                self._handle_reuse(record)
            raise SessionRevoked()

        now = self._now()
        successor = self._new_record(
            record.principal_id,
            now,
            self.settings.REFRESH_TOKEN_TTL,
            record.absolute_expiry,
        )
        if successor.is_expired(now):
            raise TokenExpired()

        try:
            with self.store.atomic():
                self.store.mark_rotated(record.session_id, successor.session_id)
                self.store.put(successor)
        except AlreadyRotated as exc:
            # Lost the race to a concurrent refresh of the same token. Re-read
            # so the chain walk starts from the rotated record.
            self._handle_reuse(self.store.get(record.session_id))
            raise SessionRevoked() from exc

        pair = self._mint_pair(successor, now)

        logger.info(
            "Rotated session %s to %s for principal %s",
            record.session_id,
            successor.session_id,
            record.principal_id,
        )
        session_rotated.send(
            sender=self.__class__,
            principal_id=record.principal_id,
            session_id=record.session_id,
            new_session_id=successor.session_id,
        )
        return pair

    def revoke(self, token: str) -> None:
        """
        Logs out the session behind a refresh token.

        Never raises for bad input: unreadable tokens, access tokens and
        unknown or already revoked sessions are all no-ops. Expired refresh
        tokens are still honoured.
        """
        try:
            claims = self.codec.decode(token)
        except InvalidToken as exc:
            logger.debug("Ignoring revocation of unreadable token: %s", exc)
            return

        if claims.token_type != TOKEN_TYPE.REFRESH or not claims.session_id:
            logger.debug("Ignoring revocation of a non-refresh token")
            return

        if not self.store.revoke(claims.session_id):
            return

        logger.info(
            "Revoked session %s for principal %s",
            claims.session_id,
            claims.principal_id,
        )
        sessions_revoked.send(
            sender=self.__class__,
            principal_id=claims.principal_id,
            session_id=claims.session_id,
            revoked_count=1,
        )

    def revoke_all(self, principal_id) -> int:
        """Signs a principal out everywhere. Returns the number of sessions closed."""
        principal_id = str(principal_id)
        count = self.store.revoke_all_for_principal(principal_id)

        logger.info("Revoked %d session(s) for principal %s", count, principal_id)
        sessions_revoked.send(
            sender=self.__class__,
            principal_id=principal_id,
            session_id=None,
            revoked_count=count,
        )
        return count

    def active_sessions(self, principal_id) -> List[RefreshRecord]:
        return self.store.list_active(str(principal_id))

    def purge_expired_sessions(self) -> int:
        count = self.store.purge_expired()
        logger.info("Purged %d expired session record(s)", count)
        return count

    def _now(self) -> datetime:
        # JWT timestamps are whole seconds; keep records aligned with them.
        return self.clock.now().replace(microsecond=0)

    def _decode(self, token: str, expected_type: str) -> TokenClaims:
        claims = self.codec.decode(token)
        if claims.token_type != expected_type:
            raise InvalidToken(_("Token has wrong type."))
        return claims

    def _check_expiry(self, claims: TokenClaims) -> None:
        deadline = claims.expires_at + self.settings.LEEWAY
        if self.clock.now().timestamp() >= deadline.timestamp():
            raise TokenExpired()

    def _new_record(
        self,
        principal_id: str,
        now: datetime,
        ttl: timedelta,
        absolute_expiry: Optional[datetime],
    ) -> RefreshRecord:
        expires_at = now + ttl
        if absolute_expiry is not None:
            expires_at = min(expires_at, absolute_expiry)

        return RefreshRecord(
            session_id=str(generate_session_id()),
            principal_id=principal_id,
            issued_at=now,
            expires_at=expires_at,
            absolute_expiry=absolute_expiry,
        )

    def _mint_pair(
        self,
        record: RefreshRecord,
        now: datetime,
        access_ttl: Optional[timedelta] = None,
    ) -> SessionPair:
        access_claims = TokenClaims(
            principal_id=record.principal_id,
            token_type=TOKEN_TYPE.ACCESS,
            issued_at=now,
            expires_at=now + (access_ttl or self.settings.ACCESS_TOKEN_TTL),
            token_id=generate_token_id(),
            session_id=record.session_id,
            extra=self._extra_claims(record),
        )
        refresh_claims = TokenClaims(
            principal_id=record.principal_id,
            token_type=TOKEN_TYPE.REFRESH,
            issued_at=now,
            expires_at=record.expires_at,
            token_id=generate_token_id(),
            session_id=record.session_id,
        )
        return SessionPair(
            self.codec.encode(access_claims),
            self.codec.encode(refresh_claims),
            record.session_id,
        )

    def _extra_claims(self, record: RefreshRecord) -> Dict[str, Any]:
        extender = self.settings.JWT_PAYLOAD_EXTENDER
        if not extender:
            return {}
        return dict(extender(record))

    def _enforce_session_limits(self, principal_id: str) -> None:
        """
        Handles ENFORCE_SINGLE_SESSION and MAX_SESSIONS_PER_PRINCIPAL logic.
        """
        if self.settings.ENFORCE_SINGLE_SESSION:
            self.store.revoke_all_for_principal(principal_id)
            return

        max_sessions = self.settings.MAX_SESSIONS_PER_PRINCIPAL
        if max_sessions is None:
            return

        # Oldest first, so this evicts FIFO to make room for the new chain.
        active = self.store.list_active(principal_id)
        excess = len(active) - max_sessions + 1
        for record in active[: max(excess, 0)]:
            self.store.revoke(record.session_id)

    def _handle_reuse(self, record: RefreshRecord) -> None:
        logger.warning(
            "Refresh token reuse detected for principal %s (session %s)",
            record.principal_id,
            record.session_id,
        )

        if self.settings.REVOKE_ALL_ON_REUSE:
            count = self.store.revoke_all_for_principal(record.principal_id)
        else:
            count = self._revoke_chain(record)

        refresh_token_reused.send(
            sender=self.__class__,
            principal_id=record.principal_id,
            session_id=record.session_id,
            revoked_count=count,
        )

    def _revoke_chain(self, record: RefreshRecord) -> int:
        """Walks ``replaced_by`` links to the chain head and revokes it."""
        head = record
        while head.replaced_by is not None:
            try:
                head = self.store.get(head.replaced_by)
            except SessionNotFound:
                return 0
        return int(self.store.revoke(head.session_id))


@lru_cache(maxsize=None)
def get_session_authority() -> SessionAuthority:
    """
    Process-wide authority built from ``DRF_TOKEN_AUTHORITY``.

    Cached so that stateful stores (such as the in-memory one) are shared
    by every caller; the cache is dropped whenever the setting changes.
    """
    return SessionAuthority()


def reset_session_authority(*args, **kwargs):
    if kwargs.get("setting") == "DRF_TOKEN_AUTHORITY":
        get_session_authority.cache_clear()


setting_changed.connect(reset_session_authority)
