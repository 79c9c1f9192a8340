from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"
DEFAULT_CALENDAR_TTL_S = 600


@dataclass(frozen=True, slots=True)
class Settings:
    redis_url: str
    github_token: str | None
    github_graphql_url: str
    calendar_ttl_s: int
    log_level: str


def github_token_from_env() -> str | None:
    # Same precedence as the gh CLI.
    return os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN") or None


def settings_from_env() -> Settings:
    ttl_raw = os.environ.get("BREAKER_CALENDAR_TTL_S", str(DEFAULT_CALENDAR_TTL_S))
    try:
        ttl = int(ttl_raw)
    except ValueError as e:
        raise RuntimeError(f"BREAKER_CALENDAR_TTL_S must be an integer, got {ttl_raw!r}") from e

    return Settings(
        redis_url=os.environ.get("REDIS_URL", "redis://localhost:6379/0"),
        github_token=github_token_from_env(),
        github_graphql_url=os.environ.get("GITHUB_GRAPHQL_URL", DEFAULT_GRAPHQL_URL),
        calendar_ttl_s=max(ttl, 0),
        log_level=os.environ.get("BREAKER_LOG_LEVEL", "INFO").upper(),
    )
