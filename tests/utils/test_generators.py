import uuid6

from django.test import SimpleTestCase

from drf_token_authority.utils.generators import generate_session_id, generate_token_id


class TestSessionIdentifier(SimpleTestCase):
    def test_returns_correct_uuid_type(self):
        """Ensure the generated ID is a valid uuid6.UUID instance."""
        session_id = generate_session_id()
        self.assertIsInstance(session_id, uuid6.UUID)
        self.assertEqual(session_id.version, 7)

    def test_ids_are_unique(self):
        ids = {generate_session_id() for _ in range(100)}
        self.assertEqual(len(ids), 100)

    def test_ids_are_chronologically_ordered(self):
        """Confirm UUID v7 property: later IDs are greater than earlier IDs."""
        id_early = generate_session_id()
        id_later = generate_session_id()

        self.assertLess(id_early, id_later)


class TestTokenIdentifier(SimpleTestCase):
    def test_token_id_is_compact_hex(self):
        token_id = generate_token_id()

        self.assertEqual(len(token_id), 32)
        int(token_id, 16)

    def test_token_ids_are_unique(self):
        self.assertNotEqual(generate_token_id(), generate_token_id())
