from __future__ import annotations

from collections.abc import Generator

import redis

from breaker.config import Settings, settings_from_env
from breaker.github.client import ContributionsClient
from breaker.infra.redis_client import create_redis
from breaker.session_store import SessionRegistry, registry


def get_redis() -> Generator[redis.Redis, None, None]:
    """Per-request connection for the calendar cache and the session event streams."""

    with create_redis() as client:
        yield client


def get_settings() -> Settings:
    return settings_from_env()


def get_contributions_client() -> ContributionsClient:
    return ContributionsClient(settings_from_env())


def get_sessions() -> SessionRegistry:
    return registry
