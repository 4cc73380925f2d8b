"""
Database abstraction layer for refresh sessions.
"""

from datetime import datetime

from django.db import models


class RefreshSessionQuerySet(models.QuerySet):
    """Custom QuerySet for refresh session management."""

    def for_principal(self, principal_id: str):
        return self.filter(principal_id=str(principal_id))

    def active(self, now: datetime):
        """Returns sessions that are neither revoked nor expired at ``now``."""
        return self.filter(revoked_at__isnull=True, expires_at__gt=now)

    def expired(self, now: datetime):
        return self.filter(expires_at__lte=now)

    def revoke(self, now: datetime) -> int:
        """Mass revokes sessions in the current queryset that are still open."""
        return self.filter(revoked_at__isnull=True).update(revoked_at=now)


class RefreshSessionManager(models.Manager):
    """Manager for the RefreshSession model."""

    def get_queryset(self) -> RefreshSessionQuerySet:
        return RefreshSessionQuerySet(self.model, using=self._db)

    def for_principal(self, principal_id: str) -> RefreshSessionQuerySet:
        return self.get_queryset().for_principal(principal_id)

    def active(self, now: datetime) -> RefreshSessionQuerySet:
        return self.get_queryset().active(now)

    def mark_rotated(self, session_id: str, new_session_id: str, now: datetime) -> int:
        """
        Compare-and-set from open to rotated.

        The ``revoked_at IS NULL`` filter is the guard: of two concurrent
        callers, only one UPDATE can match the row. Returns the number of
        rows changed (0 or 1).
        """
        return self.filter(session_id=session_id, revoked_at__isnull=True).update(
            revoked_at=now, replaced_by=new_session_id
        )
