import dataclasses
from datetime import datetime, timedelta, timezone

from django.test import SimpleTestCase

from drf_token_authority.choices import SESSION_STATE
from drf_token_authority.types import RefreshRecord, SessionPair, TokenPrincipal


T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


class RefreshRecordTests(SimpleTestCase):
    def setUp(self):
        self.record = RefreshRecord(
            session_id="s1",
            principal_id="user-42",
            issued_at=T0,
            expires_at=T0 + timedelta(days=1),
        )

    def test_new_record_is_active(self):
        self.assertEqual(self.record.state, SESSION_STATE.ACTIVE)
        self.assertFalse(self.record.revoked)
        self.assertTrue(self.record.is_live(T0))

    def test_expiry_is_exclusive(self):
        expires_at = self.record.expires_at
        self.assertFalse(self.record.is_expired(expires_at - timedelta(seconds=1)))
        self.assertTrue(self.record.is_expired(expires_at))
        self.assertFalse(self.record.is_live(expires_at))

    def test_rotated_to_returns_new_record(self):
        rotated = self.record.rotated_to("s2", T0)

        self.assertEqual(rotated.state, SESSION_STATE.ROTATED)
        self.assertEqual(rotated.replaced_by, "s2")
        self.assertEqual(self.record.state, SESSION_STATE.ACTIVE)

    def test_revoked_on(self):
        revoked = self.record.revoked_on(T0)

        self.assertEqual(revoked.state, SESSION_STATE.REVOKED)
        self.assertFalse(revoked.is_live(T0))

    def test_records_are_immutable(self):
        with self.assertRaises(dataclasses.FrozenInstanceError):
            self.record.revoked_at = T0


class SessionPairTests(SimpleTestCase):
    def test_unpacks_in_order(self):
        access, refresh, session_id = SessionPair("access", "refresh", "s1")

        self.assertEqual((access, refresh, session_id), ("access", "refresh", "s1"))


class TokenPrincipalTests(SimpleTestCase):
    def test_user_like_interface(self):
        principal = TokenPrincipal("user-42")

        self.assertTrue(principal.is_authenticated)
        self.assertFalse(principal.is_anonymous)
        self.assertEqual(principal.pk, "user-42")
        self.assertEqual(principal.get_username(), "user-42")
        self.assertEqual(str(principal), "TokenPrincipal user-42")

    def test_equality_by_id(self):
        self.assertEqual(TokenPrincipal("a"), TokenPrincipal("a"))
        self.assertNotEqual(TokenPrincipal("a"), TokenPrincipal("b"))
        self.assertEqual(len({TokenPrincipal("a"), TokenPrincipal("a")}), 1)
