import unittest
from datetime import datetime, timezone

from drivemirror.errors import ValidationError
from drivemirror.models import RemoteTree
from drivemirror.models.remote_item import permissions_from_payload, remote_item_from_payload


class TestRemoteItem(unittest.TestCase):
    def test_from_payload(self) -> None:
        item = remote_item_from_payload(
            {
                "id": "F1",
                "name": "Report.pdf",
                "mimeType": "application/pdf",
                "md5Checksum": "abc",
                "modifiedTime": "2025-01-01T00:00:00.000Z",
                "owners": [{"emailAddress": "bot@example.com"}],
                "webViewLink": "https://drive.google.com/file/d/F1/view",
            },
            service_identity="bot@example.com",
        )
        self.assertEqual(item.id, "F1")
        self.assertEqual(item.content_hash, "abc")
        self.assertEqual(item.modified_at, datetime(2025, 1, 1, tzinfo=timezone.utc))
        self.assertTrue(item.owned_by_service_identity)
        self.assertEqual(item.owner_email, "bot@example.com")
        self.assertFalse(item.is_folder)

    def test_not_owned_and_native_without_hash(self) -> None:
        item = remote_item_from_payload(
            {
                "id": "D1",
                "name": "Notes",
                "mimeType": "application/vnd.google-apps.document",
                "owners": [{"emailAddress": "alice@example.com"}],
            },
            service_identity="bot@example.com",
        )
        self.assertFalse(item.owned_by_service_identity)
        self.assertIsNone(item.content_hash)
        self.assertIsNone(item.modified_at)
        self.assertEqual(item.owner_email, "alice@example.com")

    def test_folder(self) -> None:
        item = remote_item_from_payload(
            {"id": "DIR", "name": "sub", "mimeType": "application/vnd.google-apps.folder"}
        )
        self.assertTrue(item.is_folder)

    def test_missing_id_or_name(self) -> None:
        with self.assertRaises(ValidationError):
            remote_item_from_payload({"name": "x"})
        with self.assertRaises(ValidationError):
            remote_item_from_payload({"id": "x", "name": ""})

    def test_permissions_dedupe_and_pending(self) -> None:
        perms = permissions_from_payload(
            [
                {"id": "p1", "emailAddress": "a@example.com", "role": "writer"},
                {"id": "p1b", "emailAddress": "a@example.com", "role": "writer"},
                {"id": "p2", "emailAddress": "bot@example.com", "role": "writer", "pendingOwner": True},
                {"id": "p3", "role": "reader"},
            ]
        )
        self.assertEqual(len(perms), 3)
        self.assertEqual(perms[0].permission_id, "p1")
        self.assertTrue(perms[1].pending_transfer)
        self.assertIsNone(perms[2].principal)

    def test_tree_ids(self) -> None:
        a = remote_item_from_payload({"id": "A", "name": "a", "mimeType": "text/plain"})
        b = remote_item_from_payload({"id": "B", "name": "b", "mimeType": "text/plain"})
        tree = RemoteTree(root_folder_id="ROOT", files=[("a", a), ("sub/b", b)])
        self.assertEqual(tree.ids(), {"A", "B"})


if __name__ == "__main__":
    unittest.main()
