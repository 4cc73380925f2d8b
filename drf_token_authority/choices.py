"""
Constants for token types and refresh session states.

Token types are embedded in every JWT so an access token can never be
replayed as a refresh token (and vice versa). Session states describe
where a refresh record sits in its rotation chain.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class TOKEN_TYPE(models.TextChoices):
    """
    Recognized values of the token type claim.

    Attributes:
        ACCESS: Short-lived, stateless bearer credential.
        REFRESH: Long-lived, store-backed credential used only for rotation.
    """

    ACCESS = "access", _("Access")
    REFRESH = "refresh", _("Refresh")


class SESSION_STATE(models.TextChoices):
    """
    Lifecycle states of a refresh session record.

    Attributes:
        ACTIVE: Usable for exactly one rotation.
        ROTATED: Consumed by a rotation; points at its successor.
        REVOKED: Explicitly terminated without a successor.
    """

    ACTIVE = "active", _("Active")
    ROTATED = "rotated", _("Rotated")
    REVOKED = "revoked", _("Revoked")
