"""Public auth exports for drivemirror."""

from __future__ import annotations

from .auth_info import AuthInfo
from .drive_auth_client import DriveAuthClient

__all__ = ["AuthInfo", "DriveAuthClient"]
