"""
Concrete model definitions for refresh session records.

This module provides the default implementation of the refresh session
table. It utilizes the 'swapper' pattern to allow integrating projects to
override the model (e.g., to add device metadata) while the database store
keeps working against whichever model is active.
"""

import swapper

from drf_token_authority.compat import Type
from drf_token_authority.base.models import AbstractRefreshSession


def get_refresh_session_model() -> Type[AbstractRefreshSession]:
    """
    Resolves the active RefreshSession model class at runtime.

    Used to support Django's swappable model pattern, ensuring the library
    points to the correct database table even if the end-user has
    customized the RefreshSession implementation.
    """
    return swapper.load_model("drf_token_authority", "RefreshSession")


class RefreshSession(AbstractRefreshSession):
    """
    The default concrete implementation of a refresh session record.
    """

    class Meta(AbstractRefreshSession.Meta):
        swappable = swapper.swappable_setting("drf_token_authority", "RefreshSession")
