"""Field definitions for Google Drive API responses."""

from __future__ import annotations

FILE_FIELDS: str = (
    "id,"
    "name,"
    "mimeType,"
    "md5Checksum,"
    "modifiedTime,"
    "owners(emailAddress),"
    "webViewLink"
)

LIST_FIELDS: str = f"nextPageToken,files({FILE_FIELDS})"

PERMISSION_FIELDS: str = "id,role,emailAddress,pendingOwner"

PERMISSION_LIST_FIELDS: str = f"nextPageToken,permissions({PERMISSION_FIELDS})"
