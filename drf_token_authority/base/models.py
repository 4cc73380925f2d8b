"""
Core model abstractions for refresh session persistence.

This module defines the database schema behind ``DatabaseRefreshStore``.
Each row is one refresh token's server-side record; rotation links rows
into a chain through ``replaced_by``.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from drf_token_authority.types import RefreshRecord
from drf_token_authority.managers import RefreshSessionManager


class BaseModel(models.Model):
    """
    Base abstraction providing creation timestamps and default ordering.
    """

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]


class AbstractRefreshSession(BaseModel):
    """
    Server-side record of a single refresh token.

    ``principal_id`` is opaque text owned by the external identity store; no
    foreign key is implied. A row is live while ``revoked_at`` is empty and
    ``expires_at`` lies in the future.
    """

    session_id = models.CharField(max_length=64, unique=True, editable=False)
    principal_id = models.CharField(max_length=255, db_index=True)

    issued_at = models.DateTimeField()
    expires_at = models.DateTimeField(db_index=True)
    absolute_expiry = models.DateTimeField(null=True, blank=True)

    revoked_at = models.DateTimeField(null=True, blank=True, db_index=True)
    replaced_by = models.CharField(max_length=64, null=True, blank=True)

    objects: RefreshSessionManager = RefreshSessionManager()

    class Meta(BaseModel.Meta):
        abstract = True
        verbose_name = _("Refresh Session")
        verbose_name_plural = _("Refresh Sessions")
        indexes = [
            models.Index(
                fields=["principal_id", "revoked_at", "expires_at"],
                name="principal_session_lookup_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.principal_id} ({self.session_id})"

    @classmethod
    def from_record(cls, record: RefreshRecord):
        return cls(
            session_id=record.session_id,
            principal_id=record.principal_id,
            issued_at=record.issued_at,
            expires_at=record.expires_at,
            absolute_expiry=record.absolute_expiry,
            revoked_at=record.revoked_at,
            replaced_by=record.replaced_by,
        )

    def to_record(self) -> RefreshRecord:
        return RefreshRecord(
            session_id=self.session_id,
            principal_id=self.principal_id,
            issued_at=self.issued_at,
            expires_at=self.expires_at,
            revoked_at=self.revoked_at,
            replaced_by=self.replaced_by,
            absolute_expiry=self.absolute_expiry,
        )
