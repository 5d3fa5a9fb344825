"""Programmatic client for the StyleCheck API.

Authenticates with a session cookie, a GitHub bearer token, or both.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from services.shared.github_client import fetch_github_user


logger = logging.getLogger("stylecheck.client")

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_CLIENT_TIMEOUT = 30.0


class StyleCheckAPIError(RuntimeError):
    """
    Raised when the API answers with a non-2xx status

    Attributes:
        status_code (int): HTTP status of the failed response
    """

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def _json_or_none(resp: httpx.Response):
    try:
        return resp.json()
    except ValueError:
        return None


def _error_message(resp: httpx.Response) -> str:
    data = _json_or_none(resp)
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"HTTP {resp.status_code}: {resp.reason_phrase}"


class StyleCheckClient:
    def __init__(
        self,
        api_url=DEFAULT_API_URL,
        session_id=None,
        github_token=None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_url = str(api_url or DEFAULT_API_URL).rstrip("/")
        self.session_id = session_id
        self.github_token = github_token
        self._owns_http_client = http_client is None
        self.http = http_client or httpx.Client(timeout=DEFAULT_CLIENT_TIMEOUT)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        if self._owns_http_client:
            self.http.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.session_id:
            headers["Cookie"] = f"session_id={self.session_id}"
        if self.github_token:
            headers["Authorization"] = f"Bearer {self.github_token}"
        return headers

    def _send(self, method, path, body=None) -> httpx.Response:
        url = f"{self.api_url}{path}"
        logger.debug("request method=%s path=%s", method.upper(), path)
        return self.http.request(method.upper(), url, headers=self._headers(), json=body)

    def _request(self, method, path, body=None) -> Any:
        """
        Send a request and decode the JSON body

        Args:
            method (str): HTTP method
            path (str): Path beginning with "/"
            body: JSON-serializable body, or None

        Returns:
            Decoded JSON body

        Raises:
            StyleCheckAPIError: On any non-2xx response
        """
        resp = self._send(method, path, body)
        if resp.is_error:
            raise StyleCheckAPIError(_error_message(resp), status_code=resp.status_code)
        return _json_or_none(resp)

    def call(self, method, path, body=None) -> Tuple[int, Any]:
        """
        Send an arbitrary request without raising on error statuses

        Returns:
            Tuple of (status_code, decoded JSON body or None)
        """
        resp = self._send(method, path, body)
        return resp.status_code, _json_or_none(resp)

    def get_current_user(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")

    def logout(self) -> Dict[str, Any]:
        result = self._request("POST", "/auth/logout")
        self.session_id = None
        return result

    def create_session(self, github_token) -> Dict[str, Any]:
        """
        Create a development session from a GitHub personal access token

        Looks the user up on GitHub first, then asks the API to mint a
        session for them. The new session id is used for later requests.

        Args:
            github_token (str): GitHub personal access token

        Returns:
            dict with session_id, user_id, username, expires_at
        """
        github_user = fetch_github_user(github_token)
        result = self._request(
            "POST",
            "/dev/create-session",
            {"github_token": github_token, "github_user": github_user},
        )
        self.session_id = result["session_id"]
        return result

    def seed_database(self) -> Dict[str, Any]:
        return self._request("POST", "/dev/seed")

    def get_database_status(self) -> Dict[str, Any]:
        return self._request("GET", "/dev/status")

    def list_profiles(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/profiles")

    def get_profile(self, profile_id) -> Dict[str, Any]:
        return self._request("GET", f"/profiles/{int(profile_id)}")

    def create_profile(self, profile) -> Dict[str, Any]:
        return self._request("POST", "/profiles", profile)

    def update_profile(self, profile_id, fields) -> Dict[str, Any]:
        return self._request("PUT", f"/profiles/{int(profile_id)}", fields)

    def delete_profile(self, profile_id) -> Dict[str, Any]:
        return self._request("DELETE", f"/profiles/{int(profile_id)}")
