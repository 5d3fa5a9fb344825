import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from services.shared.github_client import GitHubOAuthError

from .client import DEFAULT_API_URL, StyleCheckAPIError, StyleCheckClient


logger = logging.getLogger("stylecheck.cli")

DEFAULT_SESSION_FILE = ".stylecheck-session"

HELP_TEXT = """\
StyleCheck CLI - headless development tool

USAGE:
  stylecheck <command> [options]

COMMANDS:
  login <github-token>            Login with a GitHub personal access token
  me                              Show current user
  logout                          Logout and clear session
  request <method> <path> [body]  Make an authenticated API request
  seed                            Seed database with demo data
  status                          Show database row counts
  profiles                        List style profiles
  help                            Show this help message

EXAMPLES:
  stylecheck login ghp_xxxxxxxxxxxx
  stylecheck me
  stylecheck request GET /profiles
  stylecheck request POST /profiles '{"name": "Mine", "preferences": {}}'
  stylecheck seed
  stylecheck logout

ENVIRONMENT:
  API_URL                  API endpoint (default: http://localhost:8000)
  STYLECHECK_SESSION_FILE  Session file (default: .stylecheck-session)

SESSION:
  The session file holds your session id and GitHub token; keep it private.
"""


class CLIError(RuntimeError):
    pass


class NotLoggedInError(CLIError):
    def __init__(self):
        super().__init__("Not logged in. Run: stylecheck login <github-token>")


class SessionFileStore:
    """
    Persist the CLI session as a small JSON file

    Stored keys: session_id, github_token, username, created_at
    """

    def __init__(self, path=None):
        self.path = path or os.getenv("STYLECHECK_SESSION_FILE") or DEFAULT_SESSION_FILE

    def load(self) -> Dict[str, Any]:
        """
        Read the stored session

        Returns:
            dict with the stored keys

        Raises:
            NotLoggedInError: When the file is missing, unreadable, or has no session id
        """
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            raise NotLoggedInError() from exc

        if not isinstance(data, dict) or not data.get("session_id"):
            raise NotLoggedInError()
        return data

    def save(self, session_id, github_token, username) -> None:
        payload = {
            "session_id": session_id,
            "github_token": github_token,
            "username": username,
            "created_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        with open(self.path, "w", encoding="utf-8") as handle:
            json.dump(payload, handle)

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


def _print_json(value) -> None:
    print(json.dumps(value, indent=2))


def _client_for_session(client_factory, session) -> StyleCheckClient:
    return client_factory(session_id=session.get("session_id"))


def cmd_login(args, store, client_factory) -> None:
    print("Authenticating with GitHub token...")
    client = client_factory()
    result = client.create_session(args.token)
    store.save(result["session_id"], args.token, result.get("username"))
    print(f"Logged in as {result.get('username')}")
    print(f"Session saved to {store.path}")


def cmd_me(args, store, client_factory) -> None:
    client = _client_for_session(client_factory, store.load())
    data = client.get_current_user()
    print("Current user:")
    _print_json(data.get("user"))


def cmd_logout(args, store, client_factory) -> None:
    client = _client_for_session(client_factory, store.load())
    try:
        client.logout()
    except StyleCheckAPIError as exc:
        logger.warning("server logout failed status=%s error=%s", exc.status_code, str(exc))
    store.clear()
    print("Logged out successfully")


def cmd_request(args, store, client_factory) -> None:
    client = _client_for_session(client_factory, store.load())

    body = None
    if args.body:
        try:
            body = json.loads(args.body)
        except ValueError as exc:
            raise CLIError(f"Request body is not valid JSON: {exc}") from exc

    status_code, data = client.call(args.method, args.path, body)
    print(f"{status_code} {args.method.upper()} {args.path}")
    _print_json(data)


def cmd_seed(args, store, client_factory) -> None:
    print("Seeding database...")
    client = _client_for_session(client_factory, store.load())
    data = client.seed_database()
    print("Database seeded:")
    _print_json(data)


def cmd_status(args, store, client_factory) -> None:
    client = _client_for_session(client_factory, store.load())
    _print_json(client.get_database_status())


def cmd_profiles(args, store, client_factory) -> None:
    client = _client_for_session(client_factory, store.load())
    for profile in client.list_profiles():
        marker = " (built-in)" if profile.get("is_builtin") else ""
        print(f"{profile.get('id')}\t{profile.get('name')}{marker}")


def cmd_help(args, store, client_factory) -> None:
    print(HELP_TEXT)


COMMANDS = {
    "login": cmd_login,
    "me": cmd_me,
    "logout": cmd_logout,
    "request": cmd_request,
    "seed": cmd_seed,
    "status": cmd_status,
    "profiles": cmd_profiles,
    "help": cmd_help,
}


def build_arg_parser():
    parser = argparse.ArgumentParser(prog="stylecheck", add_help=False)
    subparsers = parser.add_subparsers(dest="command")

    login = subparsers.add_parser("login", help="Login with a GitHub personal access token")
    login.add_argument("token")

    subparsers.add_parser("me", help="Show current user")
    subparsers.add_parser("logout", help="Logout and clear session")

    request = subparsers.add_parser("request", help="Make an authenticated API request")
    request.add_argument("method")
    request.add_argument("path")
    request.add_argument("body", nargs="?", default=None)

    subparsers.add_parser("seed", help="Seed database with demo data")
    subparsers.add_parser("status", help="Show database row counts")
    subparsers.add_parser("profiles", help="List style profiles")
    subparsers.add_parser("help", help="Show this help message")

    return parser


def main(argv=None, store: Optional[SessionFileStore] = None, client_factory=None) -> int:
    """
    Run the CLI

    Args:
        argv (list): Arguments without the program name; defaults to sys.argv
        store (SessionFileStore): Session persistence
        client_factory (callable): Builds a StyleCheckClient from keyword args

    Returns:
        int exit code
    """
    logging.basicConfig(level=str(os.getenv("LOG_LEVEL", "WARNING")).upper())

    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if not args.command:
        args.command = "help"

    store = store or SessionFileStore()
    if client_factory is None:
        api_url = os.getenv("API_URL", DEFAULT_API_URL)

        def client_factory(**kwargs):
            return StyleCheckClient(api_url=api_url, **kwargs)

    try:
        COMMANDS[args.command](args, store, client_factory)
    except (CLIError, StyleCheckAPIError, GitHubOAuthError, httpx.HTTPError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
