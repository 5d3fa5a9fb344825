from contextlib import contextmanager
from typing import Any, Dict, Iterator
from urllib.parse import urlencode
import hashlib
import logging

import httpx


logger = logging.getLogger("github_client")

GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL = "https://api.github.com/user"
GITHUB_OAUTH_SCOPE = "read:user user:email"
DEFAULT_GITHUB_TIMEOUT = 30.0


class GitHubOAuthError(RuntimeError):
    """
    Raised when GitHub rejects an OAuth exchange or user lookup

    Attributes:
        status_code (int): HTTP status from GitHub when available
        error (str): GitHub `error` code when present in the payload
    """

    def __init__(self, message, status_code=None, error=None):
        super().__init__(message)
        self.status_code = status_code
        self.error = error


@contextmanager
def _http_client() -> Iterator[httpx.Client]:
    """
    Provide a configured httpx client

    Returns:
        httpx.Client context manager
    """
    with httpx.Client(timeout=DEFAULT_GITHUB_TIMEOUT) as client:
        yield client


def _token_hash(token) -> str:
    return hashlib.sha256((token or "").encode("utf-8")).hexdigest()[:6]


def build_authorize_url(settings, state) -> str:
    """
    Build the GitHub authorize URL for the login redirect

    Args:
        settings (Settings): Provides client id and callback URL
        state (str): Anti-forgery token echoed back on callback

    Returns:
        str URL
    """
    query = urlencode(
        {
            "client_id": settings.github_client_id,
            "redirect_uri": settings.github_callback_url,
            "scope": GITHUB_OAUTH_SCOPE,
            "state": state,
        }
    )
    return f"{GITHUB_AUTHORIZE_URL}?{query}"


def exchange_code_for_token(settings, code) -> str:
    """
    Trade an authorization code for an access token

    Args:
        settings (Settings): Provides client credentials and callback URL
        code (str): Authorization code from the callback

    Returns:
        str access token

    Raises:
        GitHubOAuthError: When GitHub answers without an access token
    """
    with _http_client() as client:
        resp = client.post(
            GITHUB_TOKEN_URL,
            headers={"Accept": "application/json"},
            json={
                "client_id": settings.github_client_id,
                "client_secret": settings.github_client_secret,
                "code": code,
                "redirect_uri": settings.github_callback_url,
            },
        )

    try:
        data = resp.json()
    except ValueError:
        data = {}

    access_token = (data or {}).get("access_token")
    if not access_token:
        error = (data or {}).get("error")
        logger.error("GitHub token exchange failed status=%s error=%s", resp.status_code, error or "missing_token")
        raise GitHubOAuthError("No access token received", status_code=resp.status_code, error=error)

    return str(access_token)


def fetch_github_user(access_token) -> Dict[str, Any]:
    """
    Fetch the authenticated GitHub user

    Args:
        access_token (str): OAuth or personal access token

    Returns:
        dict with id, login, email, avatar_url, name

    Raises:
        GitHubOAuthError: When GitHub rejects the token
    """
    with _http_client() as client:
        resp = client.get(
            GITHUB_USER_URL,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
        )

    if resp.status_code != 200:
        logger.error("GitHub user fetch failed status=%s token=%s", resp.status_code, _token_hash(access_token))
        raise GitHubOAuthError("Invalid GitHub token", status_code=resp.status_code)

    return resp.json()
