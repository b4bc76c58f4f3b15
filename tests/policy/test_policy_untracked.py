import unittest
from unittest.mock import Mock

from drivemirror.errors import NotFoundError, PermissionError, ServerError, ValidationError
from drivemirror.models import UntrackedItem
from drivemirror.policy import UntrackedPolicy
from drivemirror.util.cancel import CancellationToken

SERVICE = "bot@example.com"


def _item(item_id: str = "U1", owner: str = "alice@example.com") -> UntrackedItem:
    return UntrackedItem(id=item_id, path=f"drafts/{item_id}.pdf", name=f"{item_id}.pdf", owner_email=owner)


class TestUntrackedPolicy(unittest.TestCase):
    def test_ignore_makes_no_remote_calls(self) -> None:
        drive = Mock()
        results = UntrackedPolicy(drive, "ignore", SERVICE).resolve([_item("A"), _item("B")])

        self.assertEqual([r.status for r in results], ["reported", "reported"])
        self.assertEqual(drive.method_calls, [])

    def test_remove_trashes_each_item_once(self) -> None:
        drive = Mock()
        drive.trash.side_effect = [None, NotFoundError("gone", details={"status_code": 404}), ServerError("boom")]

        policy = UntrackedPolicy(drive, "remove", SERVICE)
        results = policy.resolve([_item("A"), _item("B"), _item("C")])

        self.assertTrue(policy.removes_local_artifacts)
        self.assertEqual([c.args for c in drive.trash.call_args_list], [("A",), ("B",), ("C",)])
        self.assertEqual([r.status for r in results], ["resolved", "resolved", "failed"])
        self.assertEqual(results[2].error_type, "ServerError")
        self.assertEqual(results[2].error_message, "boom")

    def test_remove_permission_denied_is_reported_and_continues(self) -> None:
        drive = Mock()
        drive.trash.side_effect = [
            PermissionError("The user does not have sufficient permissions", details={"status_code": 403}),
            None,
        ]

        results = UntrackedPolicy(drive, "remove", SERVICE).resolve([_item("A"), _item("B")])

        self.assertEqual(drive.trash.call_count, 2)
        self.assertEqual(results[0].status, "failed")
        self.assertEqual(results[0].error_type, "PermissionError")
        self.assertEqual(results[0].error_message, "The user does not have sufficient permissions")
        self.assertEqual(results[1].status, "resolved")
        self.assertEqual(results[1].item.id, "B")

    def test_request_transfer_success_sets_flag(self) -> None:
        drive = Mock()
        item = _item()
        results = UntrackedPolicy(drive, "request", SERVICE).resolve([item])

        drive.request_ownership_transfer.assert_called_once_with("U1", SERVICE)
        self.assertEqual(results[0].status, "resolved")
        self.assertTrue(results[0].item.ownership_transfer_requested)
        self.assertFalse(item.ownership_transfer_requested)

    def test_request_transfer_failure_keeps_flag_and_continues(self) -> None:
        drive = Mock()
        drive.request_ownership_transfer.side_effect = [
            PermissionError("Insufficient permissions", details={"status_code": 403}),
            None,
        ]
        results = UntrackedPolicy(drive, "request", SERVICE).resolve([_item("A"), _item("B")])

        self.assertEqual(results[0].status, "failed")
        self.assertFalse(results[0].item.ownership_transfer_requested)
        self.assertEqual(results[0].error_type, "PermissionError")
        self.assertEqual(results[1].status, "resolved")
        self.assertTrue(results[1].item.ownership_transfer_requested)

    def test_request_skips_items_already_owned(self) -> None:
        drive = Mock()
        results = UntrackedPolicy(drive, "request", SERVICE).resolve([_item(owner=SERVICE), _item(owner=None)])
        self.assertEqual([r.status for r in results], ["skipped", "skipped"])
        drive.request_ownership_transfer.assert_not_called()

    def test_cancelled_items_are_skipped(self) -> None:
        token = CancellationToken()
        token.cancel()
        drive = Mock()
        results = UntrackedPolicy(drive, "remove", SERVICE, token).resolve([_item()])
        self.assertEqual(results[0].status, "skipped")
        drive.trash.assert_not_called()

    def test_invalid_policy(self) -> None:
        with self.assertRaises(ValidationError):
            UntrackedPolicy(Mock(), "delete", SERVICE)
        self.assertFalse(UntrackedPolicy(Mock(), "ignore", SERVICE).removes_local_artifacts)


if __name__ == "__main__":
    unittest.main()
