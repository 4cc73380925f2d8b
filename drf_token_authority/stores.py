"""
Refresh store backends.

``InMemoryRefreshStore`` keeps records in process memory behind a lock; it
suits tests and single-process deployments. ``DatabaseRefreshStore`` persists
records through the swappable ``RefreshSession`` model and relies on a
conditional UPDATE for atomic rotation.
"""

import logging
import threading
from contextlib import contextmanager

from django.db import DatabaseError, IntegrityError, transaction

from drf_token_authority.types import RefreshRecord
from drf_token_authority.base.stores import BaseRefreshStore
from drf_token_authority.compat import Dict, Iterator, List, ContextManager
from drf_token_authority.exceptions import (
    DuplicateSession,
    SessionNotFound,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)


class InMemoryRefreshStore(BaseRefreshStore):
    """
    Dict-backed store with a secondary index by principal.

    A single reentrant lock guards both maps. ``atomic`` holds it for the
    whole block, so a rotation and the insert of its successor are seen by
    other threads as one step.
    """

    def __init__(self, clock=None) -> None:
        super().__init__(clock)
        self._records: Dict[str, RefreshRecord] = {}
        self._by_principal: Dict[str, set] = {}
        self._lock = threading.RLock()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            yield

    def put(self, record: RefreshRecord) -> None:
        with self._lock:
            if record.session_id in self._records:
                raise DuplicateSession()
            self._records[record.session_id] = record
            self._by_principal.setdefault(record.principal_id, set()).add(
                record.session_id
            )

    def get(self, session_id: str) -> RefreshRecord:
        with self._lock:
            record = self._records.get(session_id)
        if record is None:
            raise SessionNotFound()
        return record

    def mark_rotated(self, session_id: str, new_session_id: str) -> None:
        with self._lock:
            record = self._records.get(session_id)
            if record is None:
                raise SessionNotFound()
            if record.revoked:
                self.raise_for_closed(record)
            self._records[session_id] = record.rotated_to(new_session_id, self.now())

    def revoke(self, session_id: str) -> bool:
        with self._lock:
            record = self._records.get(session_id)
            if record is None or record.revoked:
                return False
            self._records[session_id] = record.revoked_on(self.now())
            return True

    def revoke_all_for_principal(self, principal_id: str) -> int:
        now = self.now()
        count = 0
        with self._lock:
            for session_id in self._by_principal.get(str(principal_id), ()):
                record = self._records[session_id]
                if not record.revoked:
                    self._records[session_id] = record.revoked_on(now)
                    count += 1
        return count

    def list_active(self, principal_id: str) -> List[RefreshRecord]:
        now = self.now()
        with self._lock:
            records = [
                self._records[session_id]
                for session_id in self._by_principal.get(str(principal_id), ())
            ]
        live = [record for record in records if record.is_live(now)]
        return sorted(live, key=lambda record: (record.issued_at, record.session_id))

    def purge_expired(self) -> int:
        now = self.now()
        with self._lock:
            expired = [
                record for record in self._records.values() if record.is_expired(now)
            ]
            for record in expired:
                del self._records[record.session_id]
                index = self._by_principal.get(record.principal_id)
                if index is not None:
                    index.discard(record.session_id)
                    if not index:
                        del self._by_principal[record.principal_id]
        return len(expired)


@contextmanager
def database_errors() -> Iterator[None]:
    """Translates backend failures into ``StoreUnavailable``."""
    try:
        yield
    except DatabaseError as exc:
        logger.error("Refresh store query failed: %s", exc)
        raise StoreUnavailable() from exc


class DatabaseRefreshStore(BaseRefreshStore):
    """
    Store backed by the active ``RefreshSession`` model.
    """

    @property
    def model(self):
        from drf_token_authority.models import get_refresh_session_model

        return get_refresh_session_model()

    def atomic(self) -> ContextManager:
        return transaction.atomic()

    def put(self, record: RefreshRecord) -> None:
        with database_errors():
            try:
                # Savepoint, so a duplicate does not poison an outer transaction.
                with transaction.atomic():
                    self.model.from_record(record).save(force_insert=True)
            except IntegrityError as exc:
                raise DuplicateSession() from exc

    def get(self, session_id: str) -> RefreshRecord:
        with database_errors():
            instance = self.model.objects.filter(session_id=session_id).first()
        if instance is None:
            raise SessionNotFound()
        return instance.to_record()

    def mark_rotated(self, session_id: str, new_session_id: str) -> None:
        with database_errors():
            updated = self.model.objects.mark_rotated(
                session_id, new_session_id, self.now()
            )
            if updated:
                return
            instance = self.model.objects.filter(session_id=session_id).first()

        if instance is None:
            raise SessionNotFound()
        self.raise_for_closed(instance.to_record())

    def revoke(self, session_id: str) -> bool:
        with database_errors():
            updated = self.model.objects.filter(session_id=session_id).revoke(
                self.now()
            )
        return bool(updated)

    def revoke_all_for_principal(self, principal_id: str) -> int:
        with database_errors():
            return self.model.objects.for_principal(principal_id).revoke(self.now())

    def list_active(self, principal_id: str) -> List[RefreshRecord]:
        with database_errors():
            queryset = (
                self.model.objects.for_principal(principal_id)
                .active(self.now())
                .order_by("issued_at", "session_id")
            )
            return [instance.to_record() for instance in queryset]

    def purge_expired(self) -> int:
        with database_errors():
            deleted, _ = self.model.objects.get_queryset().expired(self.now()).delete()
        return deleted
