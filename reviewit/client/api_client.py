"""HTTP client for the Review it! API (used by `reviewit push`)."""

from typing import Any, Dict

import requests

import reviewit


class ApiError(Exception):
    """Raised when an API call fails."""

    pass


class ApiClient:
    """Talks to /api/projects/<project_id> with the user's token."""

    def __init__(self, api_url: str, api_token: str, project_id: int) -> None:
        self._api_url = api_url.rstrip("/")
        self._project_id = project_id
        self._session = requests.Session()
        self._auth = {"api_token": api_token, "cli_version": reviewit.__version__}

    def _request(self, method: str, path: str, json: Dict[str, Any] | None = None) -> Dict[str, Any]:
        url = f"{self._api_url}/projects/{self._project_id}{path}"
        resp = self._session.request(method, url, params=self._auth, json=json, timeout=30)
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                msg = resp.json().get("error", msg)
            except ValueError:
                pass
            raise ApiError(f"{resp.status_code}: {msg}")
        return resp.json()

    def create_merge_request(self, subject: str, commit_message: str, diff: str, target_branch: str) -> int:
        data = self._request(
            "POST",
            "/merge_requests",
            json={
                "subject": subject,
                "commit_message": commit_message,
                "diff": diff,
                "target_branch": target_branch,
                "linter_ok": False,
            },
        )
        return int(data["mr_id"])

    def update_merge_request(
        self, mr_id: int, subject: str, commit_message: str, diff: str, description: str = ""
    ) -> int:
        data = self._request(
            "PATCH",
            f"/merge_requests/{mr_id}",
            json={
                "subject": subject,
                "commit_message": commit_message,
                "diff": diff,
                "description": description,
                "linter_ok": False,
            },
        )
        return int(data["mr_id"])
