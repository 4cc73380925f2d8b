"""
Lifecycle and security signals sent by ``SessionAuthority``.

Receivers get ``sender`` (the authority class) plus the keyword arguments
listed next to each signal. Tokens themselves are never sent.
"""

from django.dispatch import Signal

# principal_id, session_id
session_issued = Signal()

# principal_id, session_id, new_session_id
session_rotated = Signal()

# principal_id, session_id, revoked_count
refresh_token_reused = Signal()

# principal_id, session_id (None when every session was revoked), revoked_count
sessions_revoked = Signal()
