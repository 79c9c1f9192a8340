from __future__ import annotations

_AUTH_MARKERS = (
    "bad credentials",
    "authentication required",
    "requires authentication",
    "not authorized",
    "unauthorized",
    "forbidden",
    "gh auth login",
    "not logged in",
    "no oauth token",
)

_USER_NOT_FOUND_MARKERS = (
    "Could not resolve to a User with the login of",
    "Could not resolve to a User",
)


class GitHubError(Exception):
    """Base class for contribution-calendar fetch failures."""


class AuthError(GitHubError):
    """Authentication is required, missing, or invalid.

    Typed so callers can adjust UX (e.g. show auth hints).
    """

    def __init__(self, message: str = "authentication error") -> None:
        super().__init__(message or "authentication error")


class UserNotFoundError(GitHubError):
    """The requested GitHub user does not exist (callers should skip auth hints)."""

    def __init__(self, login: str = "") -> None:
        self.login = login
        super().__init__(f"user {login!r} not found" if login else "user not found")


class GitHubAPIError(GitHubError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


def _cause_chain(exc: BaseException):
    seen: set[int] = set()
    e: BaseException | None = exc
    while e is not None and id(e) not in seen:
        seen.add(id(e))
        yield e
        e = e.__cause__ or e.__context__


def is_auth_error(exc: BaseException | None) -> bool:
    """Return True if the exception chain likely represents an authentication issue.

    Permissive on purpose: upstream errors from the GitHub API are not strongly typed.
    """

    if exc is None:
        return False

    for e in _cause_chain(exc):
        if isinstance(e, AuthError):
            return True
        if isinstance(e, GitHubAPIError) and e.status_code in {401, 403}:
            return True

        msg = str(e).casefold()
        if ("github_token" in msg or "gh_token" in msg) and "not set" in msg:
            return True
        if any(m in msg for m in _AUTH_MARKERS):
            return True
        if "no token" in msg and "gh" in msg:
            return True

    return False


def is_user_not_found(exc: BaseException | None) -> bool:
    return exc is not None and any(isinstance(e, UserNotFoundError) for e in _cause_chain(exc))


def is_graphql_user_not_found(message: str) -> bool:
    # Observed: "Could not resolve to a User with the login of 'xxx'."
    return any(m in message for m in _USER_NOT_FOUND_MARKERS)
