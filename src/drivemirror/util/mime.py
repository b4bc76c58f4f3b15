from __future__ import annotations

FOLDER_MIME: str = "application/vnd.google-apps.folder"
SHORTCUT_MIME: str = "application/vnd.google-apps.shortcut"
PDF_MIME: str = "application/pdf"

GOOGLE_APPS_PREFIX: str = "application/vnd.google-apps."

GOOGLE_DOCUMENT: str = "application/vnd.google-apps.document"
GOOGLE_SPREADSHEET: str = "application/vnd.google-apps.spreadsheet"
GOOGLE_PRESENTATION: str = "application/vnd.google-apps.presentation"
GOOGLE_DRAWING: str = "application/vnd.google-apps.drawing"

GOOGLE_APP_MIMES: set[str] = {
    GOOGLE_DOCUMENT,
    GOOGLE_SPREADSHEET,
    GOOGLE_PRESENTATION,
    GOOGLE_DRAWING,
    "application/vnd.google-apps.form",
    "application/vnd.google-apps.script",
    "application/vnd.google-apps.site",
    "application/vnd.google-apps.map",
    "application/vnd.google-apps.fusiontable",
}


def is_folder(mime_type: str) -> bool:
    return mime_type == FOLDER_MIME


def is_google_app(mime_type: str) -> bool:
    """
    Returns True if the MIME type is a Google 'apps' type.

    Unlisted types are still detected through the 'application/vnd.google-apps.' prefix.
    """
    if mime_type in GOOGLE_APP_MIMES:
        return True
    return mime_type.startswith(GOOGLE_APPS_PREFIX)
