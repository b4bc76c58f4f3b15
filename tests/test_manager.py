import json
import tempfile
import unittest
from pathlib import Path
from typing import Any, Optional
from unittest.mock import Mock

from drivemirror.config import DriveTarget, RunContext, SyncConfig
from drivemirror.config.sync_config import SourceConfig
from drivemirror.controller import CommandResult, ListPage
from drivemirror.errors import PermissionError
from drivemirror.manager import SyncManager
from drivemirror.util.cancel import CancellationToken
from drivemirror.util.hashing import hash_bytes

SERVICE = "bot@example.com"
FOLDER = "application/vnd.google-apps.folder"
DOC = "application/vnd.google-apps.document"
REPORT_BYTES = b"%PDF-report"


class FakeController:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.fail_transfer = False
        self.unreadable_folders: set[str] = set()
        self.tree: dict[str, list[dict[str, Any]]] = {
            "ROOT": [
                {"id": "DOCS", "name": "docs", "mimeType": FOLDER},
                {"id": "DRAFTS", "name": "drafts", "mimeType": FOLDER},
                {
                    "id": "P1",
                    "name": "report.pdf",
                    "mimeType": "application/pdf",
                    "md5Checksum": hash_bytes(REPORT_BYTES),
                    "modifiedTime": "2025-01-01T00:00:00.000Z",
                    "owners": [{"emailAddress": SERVICE}],
                    "webViewLink": "https://drive.google.com/file/d/P1/view",
                },
            ],
            "DOCS": [
                {
                    "id": "D1",
                    "name": "Plan",
                    "mimeType": DOC,
                    "modifiedTime": "2025-01-01T00:00:00.000Z",
                    "owners": [{"emailAddress": SERVICE}],
                    "webViewLink": "https://docs.google.com/document/d/D1/edit",
                }
            ],
            "DRAFTS": [
                {
                    "id": "U1",
                    "name": "wip.pdf",
                    "mimeType": "application/pdf",
                    "md5Checksum": "x",
                    "owners": [{"emailAddress": "alice@example.com"}],
                }
            ],
        }

    def list_children_page(self, folder_id: str, page_token: Optional[str], page_size: int) -> ListPage:
        self.calls.append(("list", folder_id))
        if folder_id in self.unreadable_folders:
            raise PermissionError("access revoked", details={"status_code": 403})
        return ListPage(items=list(self.tree.get(folder_id, [])))

    def list_permissions(self, item_id: str) -> list[dict[str, Any]]:
        return []

    def export(self, item_id: str, mime_type: str) -> bytes:
        self.calls.append(("export", item_id, mime_type))
        return b"%PDF-export"

    def download(self, item_id: str) -> bytes:
        self.calls.append(("download", item_id))
        return REPORT_BYTES

    def trash(self, item_id: str) -> None:
        self.calls.append(("trash", item_id))

    def request_ownership_transfer(self, item_id: str, new_owner: str) -> None:
        self.calls.append(("request_ownership_transfer", item_id, new_owner))
        if self.fail_transfer:
            raise PermissionError("Insufficient permissions", details={"status_code": 403})

    def accept_ownership_transfer(self, item_id: str, permission_id: str) -> None:
        self.calls.append(("accept_ownership_transfer", item_id, permission_id))

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]


class FakeGit:
    def __init__(self) -> None:
        self.calls: list[tuple[str, list[str]]] = []

    def execute(self, command, args=(), *, cwd=None, silent=False, ignore_return_code=False):
        self.calls.append((command, list(args)))
        if command == "rev-parse" and list(args) == ["--abbrev-ref", "HEAD"]:
            return CommandResult("main\n", "", 0)
        if command == "rev-parse":
            return CommandResult("cafebabe\n", "", 0)
        if command == "diff":
            return CommandResult("", "", 1)
        return CommandResult("", "", 0)


def _github() -> Mock:
    github = Mock()
    github.get_repo.return_value = {"default_branch": "main"}
    github.list_pulls.return_value = []
    github.create_pull.return_value = {"number": 11, "html_url": "https://github.com/acme/handbook/pull/11"}
    return github


class TestSyncManager(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.workdir = Path(self._tmp.name)
        self.drive = FakeController()
        self.github = _github()
        self.git = FakeGit()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _manager(self, on_untrack: str = "request", *, dry_run: bool = False, cancel=None) -> SyncManager:
        config = SyncConfig(
            source=SourceConfig(repo="acme/handbook"),
            ignore=("drafts/**",),
            targets=(DriveTarget(drive_folder_id="ROOT", on_untrack=on_untrack),),
        )
        context = RunContext(
            repo_owner="acme",
            repo_name="handbook",
            workdir=self.workdir,
            service_identity=SERVICE,
            run_id="run-1",
            dry_run=dry_run,
        )
        return SyncManager.from_controllers(
            config,
            context,
            self.drive,
            self.github,
            self.git,
            cancel=cancel,
            sleep=lambda _s: None,
        )

    def test_full_run_mirrors_and_publishes(self) -> None:
        report = self._manager().run()

        self.assertFalse(report.cancelled)
        target = report.targets[0]
        self.assertEqual((self.workdir / "report.pdf").read_bytes(), REPORT_BYTES)
        self.assertEqual((self.workdir / "docs/Plan.pdf").read_bytes(), b"%PDF-export")
        sidecar = json.loads((self.workdir / "docs/Plan--D1.doc.link.json").read_text(encoding="utf-8"))
        self.assertEqual(sidecar["id"], "D1")
        self.assertFalse((self.workdir / "drafts").exists())

        self.assertEqual(target.summary["materialize"], 2)
        self.assertEqual(target.summary["apply_success"], 2)
        self.assertEqual(target.untracked[0].status, "resolved")
        self.assertTrue(target.untracked[0].item.ownership_transfer_requested)
        self.assertIn(("request_ownership_transfer", "U1", SERVICE), self.drive.calls)

        self.assertEqual(target.commit, "cafebabe")
        self.assertIn(("checkout", ["-B", "sync-from-drive-ROOT"]), self.git.calls)
        add_args = next(args for cmd, args in self.git.calls if cmd == "add")
        self.assertEqual(
            add_args[2:],
            ["docs/Plan--D1.doc.link.json", "docs/Plan.pdf", "report.pdf", "report.pdf--P1.pdf.link.json"],
        )

        self.assertEqual(target.publish.status, "created")
        self.assertEqual(target.publish.number, 11)
        kwargs = self.github.create_pull.call_args.kwargs
        self.assertEqual(kwargs["head"], "sync-from-drive-ROOT")
        self.assertIn("[`report.pdf`](https://drive.google.com/file/d/P1/view)", kwargs["body"])
        self.assertIn("*Workflow Run ID: run-1*", kwargs["body"])

    def test_second_run_has_nothing_to_publish(self) -> None:
        self._manager().run()
        self.git = FakeGit()
        self.github = _github()
        self.drive.calls.clear()

        report = self._manager().run()

        target = report.targets[0]
        self.assertEqual(target.summary["noop"], 2)
        self.assertEqual(target.summary["materialize"], 0)
        self.assertNotIn("export", self.drive.names())
        self.assertNotIn("download", self.drive.names())
        self.assertEqual(self.git.calls, [])
        self.assertIsNone(target.publish)
        self.github.create_pull.assert_not_called()

    def test_failed_transfer_request_does_not_stop_run(self) -> None:
        self.drive.fail_transfer = True
        target = self._manager().run().targets[0]

        self.assertEqual(target.untracked[0].status, "failed")
        self.assertFalse(target.untracked[0].item.ownership_transfer_requested)
        self.assertEqual(target.publish.status, "created")

    def test_vanished_item_kept_unless_remove_policy(self) -> None:
        gone = self.workdir / "old--G1.link.json"
        gone.write_text(json.dumps({"id": "G1", "name": "old"}), encoding="utf-8")

        target = self._manager(on_untrack="ignore").run().targets[0]
        self.assertTrue(gone.exists())
        self.assertEqual(target.kept_paths, ["old--G1.link.json"])
        self.assertEqual(target.untracked[0].status, "reported")

        self.git = FakeGit()
        target = self._manager(on_untrack="remove").run().targets[0]
        self.assertFalse(gone.exists())
        self.assertIn(("trash", "U1"), self.drive.calls)
        self.assertIn(
            ("rm", ["--cached", "--ignore-unmatch", "-r", "-q", "--", "old--G1.link.json"]),
            self.git.calls,
        )
        self.assertIn("**Removed:**", self.github.create_pull.call_args.kwargs["body"])

    def test_unlisted_subtree_keeps_its_local_mirror(self) -> None:
        self._manager(on_untrack="remove").run()
        self.assertTrue((self.workdir / "docs/Plan.pdf").exists())

        self.drive.unreadable_folders.add("DOCS")
        self.drive.calls.clear()
        self.git = FakeGit()
        self.github = _github()
        target = self._manager(on_untrack="remove").run().targets[0]

        self.assertEqual(target.dropped_folders, ["docs"])
        self.assertTrue((self.workdir / "docs/Plan.pdf").exists())
        self.assertTrue((self.workdir / "docs/Plan--D1.doc.link.json").exists())
        self.assertEqual(target.summary["remove"], 0)
        self.assertNotIn("rm", [cmd for cmd, _ in self.git.calls])
        self.github.create_pull.assert_not_called()

    def test_dry_run_changes_nothing(self) -> None:
        target = self._manager(dry_run=True).run().targets[0]

        self.assertEqual(target.summary["materialize"], 2)
        self.assertEqual(target.summary["untracked"], 1)
        self.assertEqual(set(self.drive.names()), {"list"})
        self.assertEqual(list(self.workdir.iterdir()), [])
        self.assertEqual(self.git.calls, [])

    def test_dry_run_after_sync_reports_nothing_to_do(self) -> None:
        self._manager().run()

        with self.assertLogs("drivemirror.manager", level="INFO") as logs:
            self._manager(dry_run=True).run()

        self.assertTrue(any("already mirrored" in line for line in logs.output))

    def test_cancelled_before_start(self) -> None:
        token = CancellationToken()
        token.cancel()
        report = self._manager(cancel=token).run()

        self.assertTrue(report.cancelled)
        self.assertEqual(report.targets, [])
        self.assertEqual(self.drive.calls, [])


if __name__ == "__main__":
    unittest.main()
