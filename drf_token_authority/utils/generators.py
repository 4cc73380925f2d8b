"""Utility functions for generating unique identifiers across the application.

Functions in this module are wrapped to provide a stable interface for
stores and token minting, allowing logic changes (e.g., switching UUID
versions) without touching callers.
"""

import uuid6


def generate_session_id() -> uuid6.UUID:
    """Generates a time-ordered UUID v7 for refresh session records.

    Time ordering keeps database index inserts append-only and makes
    rotation chains sort in issuance order.
    """
    return uuid6.uuid7()


def generate_token_id() -> str:
    """Generates the value of the JWT ``jti`` claim."""
    return uuid6.uuid7().hex
