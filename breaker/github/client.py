from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import httpx
from pydantic import ValidationError

from breaker.api.models import ContributionCalendar
from breaker.config import Settings
from breaker.github.errors import AuthError, GitHubAPIError, UserNotFoundError, is_graphql_user_not_found

logger = logging.getLogger(__name__)

_CALENDAR_FIELDS = """
    contributionsCollection(from: $from, to: $to) {
      contributionCalendar {
        weeks {
          contributionDays {
            date
            weekday
            contributionCount
          }
        }
      }
    }
"""

VIEWER_QUERY = (
    "query($from: DateTime!, $to: DateTime!) {\n  viewer {\n    login\n" + _CALENDAR_FIELDS + "  }\n}"
)

USER_QUERY = (
    "query($login: String!, $from: DateTime!, $to: DateTime!) {\n  user(login: $login) {\n    login\n"
    + _CALENDAR_FIELDS
    + "  }\n}"
)


def _iso(ts: datetime) -> str:
    return ts.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class ContributionsClient:
    """Fetch GitHub contribution calendars over the GraphQL API.

    `transport` lets tests plug in `httpx.MockTransport`.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout_s: float = 10.0,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._timeout_s = timeout_s

    async def _graphql(self, *, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        token = self._settings.github_token
        if not token:
            raise AuthError("GITHUB_TOKEN or GH_TOKEN environment variable is not set")

        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout_s) as client:
            try:
                resp = await client.post(
                    self._settings.github_graphql_url,
                    json={"query": query, "variables": variables},
                    headers=headers,
                )
            except httpx.HTTPError as e:
                raise GitHubAPIError(f"failed to send request: {e}") from e

        if resp.status_code != httpx.codes.OK:
            raise GitHubAPIError(
                f"GitHub API error (status {resp.status_code}): {resp.text}",
                status_code=resp.status_code,
            )

        try:
            body = resp.json()
        except ValueError as e:
            raise GitHubAPIError(f"failed to parse response: {e}", status_code=resp.status_code) from e

        errors = body.get("errors") or []
        if errors:
            message = str(errors[0].get("message", "unknown error"))
            if is_graphql_user_not_found(message):
                raise UserNotFoundError(str(variables.get("login", "")))
            raise GitHubAPIError(f"GraphQL error: {message}", status_code=resp.status_code)

        data = body.get("data")
        if not isinstance(data, dict):
            raise GitHubAPIError("GraphQL response has no data", status_code=resp.status_code)
        return data

    async def fetch_calendar(
        self,
        *,
        start: datetime,
        end: datetime,
        login: str | None = None,
    ) -> tuple[str, ContributionCalendar]:
        """Return (login, calendar) for `login`, or for the token's viewer when login is None."""

        variables: dict[str, Any] = {"from": _iso(start), "to": _iso(end)}
        if login is None:
            data = await self._graphql(query=VIEWER_QUERY, variables=variables)
            node = data.get("viewer")
        else:
            if not login:
                raise ValueError("user login must not be empty")
            variables["login"] = login
            data = await self._graphql(query=USER_QUERY, variables=variables)
            node = data.get("user")
            if not node or not node.get("login"):
                raise UserNotFoundError(login)

        if not isinstance(node, dict):
            raise GitHubAPIError("GraphQL response has no viewer")

        raw = (node.get("contributionsCollection") or {}).get("contributionCalendar") or {}
        try:
            calendar = ContributionCalendar.model_validate(raw)
        except ValidationError as e:
            raise GitHubAPIError(f"failed to parse data: {e}") from e

        logger.info(
            "fetched contribution calendar login=%s weeks=%d total=%d",
            node.get("login"),
            len(calendar.weeks),
            calendar.total_contributions,
        )
        return str(node.get("login") or ""), calendar
