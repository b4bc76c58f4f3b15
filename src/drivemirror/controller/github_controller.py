"""GitHub REST API controller (pull requests only)."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from drivemirror.errors import (
    ApiError,
    DriveMirrorError,
    HttpErrorInfo,
    NetworkError,
    map_http_error,
)

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"


class GitHubController:
    """
    Thin httpx wrapper around the pull request endpoints.

    Errors are mapped to drivemirror exceptions carrying the HTTP status and
    the upstream message verbatim. Retries are the caller's concern.
    """

    def __init__(self, token: str, *, base_url: str = GITHUB_API, timeout: float = 60.0) -> None:
        client = httpx.Client(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=timeout,
        )
        self._client = client

    @classmethod
    def from_client(cls, client: httpx.Client) -> "GitHubController":
        """Create controller from a pre-built httpx client (useful for tests)."""
        obj = cls.__new__(cls)
        obj._client = client
        return obj

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GitHubController":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ----------------------------
    # Public API
    # ----------------------------
    def get_repo(self, owner: str, repo: str) -> dict[str, Any]:
        return self._request("GET", f"/repos/{owner}/{repo}")

    def list_pulls(
        self,
        owner: str,
        repo: str,
        *,
        head: str,
        base: str,
        state: str = "open",
    ) -> list[dict[str, Any]]:
        data = self._request(
            "GET",
            f"/repos/{owner}/{repo}/pulls",
            params={"head": head, "base": base, "state": state, "per_page": 100},
        )
        if not isinstance(data, list):
            raise ApiError("Unexpected pull list payload", details={"payload": data})
        return data

    def create_pull(
        self,
        owner: str,
        repo: str,
        *,
        title: str,
        head: str,
        base: str,
        body: str,
    ) -> dict[str, Any]:
        return self._request(
            "POST",
            f"/repos/{owner}/{repo}/pulls",
            json={"title": title, "head": head, "base": base, "body": body},
        )

    def update_pull(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        title: str,
        body: str,
        base: str,
    ) -> dict[str, Any]:
        return self._request(
            "PATCH",
            f"/repos/{owner}/{repo}/pulls/{number}",
            json={"title": title, "body": body, "base": base},
        )

    # ----------------------------
    # Internals
    # ----------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        logger.debug("GitHub %s %s", method, path)
        try:
            response = self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            raise NetworkError(f"GitHub request failed: {exc}", cause=exc) from exc

        if response.is_error:
            raise _response_to_error(response, method, path)

        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                "GitHub returned a non-JSON response",
                details={"status_code": response.status_code, "path": path},
                cause=exc,
            ) from exc


def _response_to_error(response: httpx.Response, method: str, path: str) -> DriveMirrorError:
    message: Optional[str] = None
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        parts: list[str] = []
        if isinstance(payload.get("message"), str):
            parts.append(payload["message"])
        for err in payload.get("errors") or []:
            if isinstance(err, dict) and isinstance(err.get("message"), str):
                parts.append(err["message"])
        message = "; ".join(parts) or None
    if message is None:
        message = response.text or response.reason_phrase

    info = HttpErrorInfo(
        status_code=response.status_code,
        reason=response.reason_phrase,
        message=message,
        details={"method": method, "path": path},
    )
    return map_http_error(info)
