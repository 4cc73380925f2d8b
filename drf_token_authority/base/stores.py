"""
Abstract refresh store interface.

A refresh store is the only shared mutable state behind the authority. It
keeps one ``RefreshRecord`` per issued refresh token and must make
``mark_rotated`` an atomic compare-and-set, so two concurrent refreshes of
the same token can never both succeed.
"""

from contextlib import nullcontext
from datetime import datetime

from drf_token_authority.types import RefreshRecord
from drf_token_authority.clock import BaseClock, SystemClock
from drf_token_authority.compat import List, Optional, ContextManager
from drf_token_authority.exceptions import AlreadyRotated, SessionRevoked


class BaseRefreshStore:
    """
    Contract shared by every refresh store backend.

    Stores receive a clock for revocation timestamps and expiry filtering so
    their notion of "now" matches the authority's.
    """

    def __init__(self, clock: Optional[BaseClock] = None) -> None:
        self.clock = clock or SystemClock()

    def now(self) -> datetime:
        return self.clock.now()

    def atomic(self) -> ContextManager:
        """Groups several writes into one unit of work, when the backend can."""
        return nullcontext()

    def put(self, record: RefreshRecord) -> None:
        """Insert ``record``; raises ``DuplicateSession`` if its id exists."""
        raise NotImplementedError

    def get(self, session_id: str) -> RefreshRecord:
        """Fetch a record; raises ``SessionNotFound`` if absent."""
        raise NotImplementedError

    def mark_rotated(self, session_id: str, new_session_id: str) -> None:
        """
        Atomically close ``session_id`` in favour of ``new_session_id``.

        Raises ``SessionNotFound``, ``AlreadyRotated`` (it already has a
        successor) or ``SessionRevoked`` (it was revoked without one).
        """
        raise NotImplementedError

    def revoke(self, session_id: str) -> bool:
        """Revoke one record. Returns False when nothing changed."""
        raise NotImplementedError

    def revoke_all_for_principal(self, principal_id: str) -> int:
        """Revoke every open record of a principal. Returns the count."""
        raise NotImplementedError

    def list_active(self, principal_id: str) -> List[RefreshRecord]:
        """Live records for a principal, oldest first."""
        raise NotImplementedError

    def purge_expired(self) -> int:
        """Delete expired records. Returns the count."""
        raise NotImplementedError

    @staticmethod
    def raise_for_closed(record: RefreshRecord) -> None:
        if record.replaced_by is not None:
            raise AlreadyRotated()
        raise SessionRevoked()
