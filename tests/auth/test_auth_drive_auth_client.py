import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from drivemirror.auth import AuthInfo, DriveAuthClient
from drivemirror.errors import AuthError, InvalidArgumentError


def _oauth_info(tmp_path: Path, token_file: Path) -> AuthInfo:
    return AuthInfo(
        kind="oauth",
        data={
            "client_secrets_file": str(tmp_path / "client_secrets.json"),
            "token_file": str(token_file),
            "identity_email": "owner@example.com",
        },
    )


class TestDriveAuthClient(unittest.TestCase):
    def test_get_credentials_loads_token_file_without_refresh(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            tmp_path = Path(tmp)
            token_file = tmp_path / "token.json"

            token_payload = {
                "token": "fake-token",
                "refresh_token": "fake-refresh-token",
                "token_uri": "https://oauth2.googleapis.com/token",
                "client_id": "fake-client-id",
                "client_secret": "fake-client-secret",
                "scopes": ["https://www.googleapis.com/auth/drive"],
                "type": "authorized_user",
            }
            token_file.write_text(json.dumps(token_payload), encoding="utf-8")

            client = DriveAuthClient(_oauth_info(tmp_path, token_file))
            creds = client.get_credentials(ensure_valid=False)

            self.assertEqual(creds.refresh_token, "fake-refresh-token")
            # Cached on the second call.
            self.assertIs(client.get_credentials(ensure_valid=False), creds)

    def test_oauth_service_identity_is_configured_email(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            tmp_path = Path(tmp)
            client = DriveAuthClient(_oauth_info(tmp_path, tmp_path / "token.json"))
            self.assertEqual(client.service_identity(), "owner@example.com")

    def test_invalid_scopes(self) -> None:
        client = DriveAuthClient(AuthInfo.service_account("/tmp/key.json"))
        with self.assertRaises(InvalidArgumentError):
            client.get_credentials(scopes=[])

    def test_service_account_missing_file(self) -> None:
        client = DriveAuthClient(AuthInfo.service_account("/nonexistent/key.json"))
        with self.assertRaises(AuthError):
            client.get_credentials()

    def test_service_account_identity(self) -> None:
        fake_creds = Mock()
        fake_creds.service_account_email = "bot@project.iam.gserviceaccount.com"
        with patch(
            "google.oauth2.service_account.Credentials.from_service_account_file",
            return_value=fake_creds,
        ) as loader:
            client = DriveAuthClient(AuthInfo.service_account("/tmp/key.json"))
            self.assertEqual(client.service_identity(), "bot@project.iam.gserviceaccount.com")

        loader.assert_called_once_with("/tmp/key.json", scopes=["https://www.googleapis.com/auth/drive"])


if __name__ == "__main__":
    unittest.main()
