"""Authentication information for drivemirror."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from drivemirror.errors import ValidationError

_REQUIRED_KEYS: dict[str, tuple[str, ...]] = {
    "service_account": ("credentials_file",),
    "oauth": ("client_secrets_file", "token_file", "identity_email"),
}


@dataclass(slots=True, frozen=True)
class AuthInfo:
    """
    Authentication information.

    Supported kinds:
        kind = "service_account"
            data must include:
                - credentials_file
        kind = "oauth"
            data must include:
                - client_secrets_file
                - token_file
                - identity_email (the account ownership transfers go to)
    """

    kind: str
    data: dict[str, Any]

    def __post_init__(self) -> None:
        if self.kind not in _REQUIRED_KEYS:
            raise ValidationError(
                "AuthInfo.kind must be 'service_account' or 'oauth'",
                details={"kind": self.kind},
            )

        if not isinstance(self.data, dict):
            raise ValidationError("AuthInfo.data must be a dict")

        for key in _REQUIRED_KEYS[self.kind]:
            value = self.data.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"AuthInfo.data['{key}'] must be a non-empty string")

    @classmethod
    def service_account(cls, credentials_file: str) -> "AuthInfo":
        return cls(kind="service_account", data={"credentials_file": credentials_file})

    @property
    def credentials_file(self) -> str:
        """Path to a service account key JSON."""
        return str(self.data["credentials_file"])

    @property
    def client_secrets_file(self) -> str:
        """Path to OAuth client secrets JSON."""
        return str(self.data["client_secrets_file"])

    @property
    def token_file(self) -> str:
        """Path to OAuth token JSON (authorized user)."""
        return str(self.data["token_file"])

    @property
    def identity_email(self) -> str:
        return str(self.data["identity_email"])
