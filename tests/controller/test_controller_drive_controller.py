import json
import unittest
from unittest.mock import Mock, patch

from drivemirror.controller.drive_controller import GoogleDriveController, _http_error_to_info
from drivemirror.errors import (
    ApiError,
    NetworkError,
    NotFoundError,
    PermissionError,
    QuotaExceededError,
    RateLimitError,
)


def _http_error(status: int, reason: str, body: dict = None):
    from googleapiclient.errors import HttpError

    resp = Mock()
    resp.status = status
    resp.reason = reason
    content = json.dumps(body).encode("utf-8") if body is not None else b"{}"
    return HttpError(resp=resp, content=content)


class TestDriveControllerHelpers(unittest.TestCase):
    def test_http_error_to_info_reads_error_payload(self) -> None:
        err = _http_error(
            403,
            "Forbidden",
            {"error": {"message": "Quota hit", "errors": [{"domain": "usageLimits", "reason": "dailyLimitExceeded"}]}},
        )
        info = _http_error_to_info(err)
        self.assertEqual(info.status_code, 403)
        self.assertEqual(info.reason, "dailyLimitExceeded")
        self.assertEqual(info.message, "Quota hit")
        self.assertEqual(info.details["domain"], "usageLimits")


class TestDriveControllerMocked(unittest.TestCase):
    def setUp(self) -> None:
        self.service = Mock()
        self.files_resource = Mock()
        self.perms_resource = Mock()
        self.service.files.return_value = self.files_resource
        self.service.permissions.return_value = self.perms_resource
        self.sleeps: list[float] = []
        self.controller = GoogleDriveController.from_service(self.service, sleep=self.sleeps.append)

    def test_list_children_page_includes_supports_all_drives_kwargs(self) -> None:
        req = Mock()
        req.execute.return_value = {
            "files": [{"id": "A", "name": "a"}, "junk"],
            "nextPageToken": "T2",
        }
        self.files_resource.list.return_value = req

        page = self.controller.list_children_page("P1", None, 50)

        kwargs = self.files_resource.list.call_args.kwargs
        self.assertTrue(kwargs.get("supportsAllDrives"))
        self.assertTrue(kwargs.get("includeItemsFromAllDrives"))
        self.assertEqual(kwargs["q"], "'P1' in parents and trashed=false")
        self.assertEqual(kwargs["pageSize"], 50)
        self.assertEqual(page.items, [{"id": "A", "name": "a"}])
        self.assertEqual(page.next_page_token, "T2")

    def test_without_all_drives(self) -> None:
        req = Mock()
        req.execute.return_value = {"files": []}
        self.files_resource.list.return_value = req
        controller = GoogleDriveController.from_service(self.service, supports_all_drives=False)

        page = controller.list_children_page("P1")

        self.assertNotIn("supportsAllDrives", self.files_resource.list.call_args.kwargs)
        self.assertIsNone(page.next_page_token)

    def test_list_permissions_follows_pages(self) -> None:
        first, second = Mock(), Mock()
        first.execute.return_value = {"permissions": [{"id": "p1"}], "nextPageToken": "N"}
        second.execute.return_value = {"permissions": [{"id": "p2"}]}
        self.perms_resource.list.side_effect = [first, second]

        perms = self.controller.list_permissions("F1")

        self.assertEqual([p["id"] for p in perms], ["p1", "p2"])
        self.assertEqual(self.perms_resource.list.call_args_list[1].kwargs["pageToken"], "N")

    def test_get_maps_http_404_to_not_found(self) -> None:
        req = Mock()
        req.execute.side_effect = _http_error(404, "Not Found")
        self.files_resource.get.return_value = req

        with self.assertRaises(NotFoundError):
            self.controller.get("X")
        self.assertEqual(self.sleeps, [])

    def test_retry_on_429(self) -> None:
        req = Mock()
        http_err = _http_error(
            429,
            "rateLimitExceeded",
            {"error": {"message": "rate limited", "errors": [{"reason": "rateLimitExceeded"}]}},
        )
        # Fail twice, then succeed.
        req.execute.side_effect = [http_err, http_err, {"id": "F1", "name": "n"}]
        self.files_resource.get.return_value = req

        data = self.controller.get("F1")

        self.assertEqual(data["id"], "F1")
        self.assertEqual(req.execute.call_count, 3)
        self.assertEqual(self.sleeps, [1.0, 2.0])

    def test_rate_limit_exhausts_retries(self) -> None:
        req = Mock()
        req.execute.side_effect = _http_error(429, "rateLimitExceeded")
        self.files_resource.get.return_value = req

        with self.assertRaises(RateLimitError):
            self.controller.get("X")
        self.assertEqual(req.execute.call_count, 4)

    def test_quota_is_retried_but_permission_is_not(self) -> None:
        req = Mock()
        req.execute.side_effect = [
            _http_error(403, "Forbidden", {"error": {"errors": [{"reason": "userRateLimitExceeded"}]}}),
            {"id": "F1"},
        ]
        self.files_resource.get.return_value = req
        self.assertEqual(self.controller.get("F1")["id"], "F1")

        req.execute.side_effect = _http_error(403, "Forbidden", {"error": {"message": "Insufficient permissions"}})
        with self.assertRaises(PermissionError) as ctx:
            self.controller.get("F1")
        self.assertNotIsInstance(ctx.exception, QuotaExceededError)
        self.assertEqual(str(ctx.exception), "Insufficient permissions")

    def test_network_error_mapping(self) -> None:
        req = Mock()
        req.execute.side_effect = ConnectionResetError("reset")
        self.files_resource.get.return_value = req
        with self.assertRaises(NetworkError):
            self.controller.get("X")

        req.execute.side_effect = KeyError("weird")
        with self.assertRaises(ApiError):
            self.controller.get("X")

    def test_export_returns_bytes(self) -> None:
        req = Mock()
        req.execute.return_value = b"%PDF"
        self.files_resource.export_media.return_value = req

        self.assertEqual(self.controller.export("D1", "application/pdf"), b"%PDF")
        self.files_resource.export_media.assert_called_once_with(fileId="D1", mimeType="application/pdf")

    def test_download_drives_chunks(self) -> None:
        class FakeDownloader:
            def __init__(self, fd, request) -> None:
                self.fd = fd
                self.calls = 0

            def next_chunk(self):
                self.calls += 1
                self.fd.write(b"chunk%d" % self.calls)
                return None, self.calls == 2

        with patch("googleapiclient.http.MediaIoBaseDownload", FakeDownloader):
            data = self.controller.download("P1")

        self.assertEqual(data, b"chunk1chunk2")
        self.files_resource.get_media.assert_called_once_with(fileId="P1", supportsAllDrives=True)

    def test_copy_trash_delete(self) -> None:
        copy_req = Mock()
        copy_req.execute.return_value = {"id": "TMP"}
        self.files_resource.copy.return_value = copy_req

        new_id = self.controller.copy("W1", "application/vnd.google-apps.document", "memo (temp conversion)")
        self.assertEqual(new_id, "TMP")
        self.assertEqual(
            self.files_resource.copy.call_args.kwargs["body"],
            {"name": "memo (temp conversion)", "mimeType": "application/vnd.google-apps.document"},
        )

        self.controller.trash("U1")
        self.assertEqual(self.files_resource.update.call_args.kwargs["body"], {"trashed": True})

        self.controller.delete_permanently("TMP")
        self.files_resource.delete.assert_called_once_with(fileId="TMP", supportsAllDrives=True)

    def test_copy_without_id(self) -> None:
        copy_req = Mock()
        copy_req.execute.return_value = {}
        self.files_resource.copy.return_value = copy_req
        with self.assertRaises(ApiError):
            self.controller.copy("W1", "application/vnd.google-apps.document", "x")

    def test_request_ownership_transfer_creates_permission(self) -> None:
        list_req = Mock()
        list_req.execute.return_value = {"permissions": [{"id": "p0", "emailAddress": "alice@example.com"}]}
        self.perms_resource.list.return_value = list_req

        self.controller.request_ownership_transfer("U1", "bot@example.com")

        kwargs = self.perms_resource.create.call_args.kwargs
        self.assertEqual(kwargs["body"], {"role": "owner", "type": "user", "emailAddress": "bot@example.com"})
        self.assertTrue(kwargs["transferOwnership"])
        self.assertTrue(kwargs["sendNotificationEmail"])
        self.perms_resource.update.assert_not_called()

    def test_request_ownership_transfer_upgrades_existing_permission(self) -> None:
        list_req = Mock()
        list_req.execute.return_value = {"permissions": [{"id": "p9", "emailAddress": "bot@example.com"}]}
        self.perms_resource.list.return_value = list_req

        self.controller.request_ownership_transfer("U1", "bot@example.com")

        kwargs = self.perms_resource.update.call_args.kwargs
        self.assertEqual(kwargs["permissionId"], "p9")
        self.assertEqual(kwargs["body"], {"role": "owner"})
        self.perms_resource.create.assert_not_called()

    def test_accept_ownership_transfer_sends_empty_body(self) -> None:
        self.controller.accept_ownership_transfer("F1", "p1")
        kwargs = self.perms_resource.update.call_args.kwargs
        self.assertEqual(kwargs["body"], {})
        self.assertTrue(kwargs["transferOwnership"])
        self.assertEqual(kwargs["permissionId"], "p1")


if __name__ == "__main__":
    unittest.main()
