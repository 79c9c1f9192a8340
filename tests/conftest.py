from __future__ import annotations

import os
from collections.abc import Callable, Generator
from datetime import date, timedelta
from pathlib import Path

import pytest

from breaker.api.models import ContributionCalendar, ContributionDay, ContributionWeek

# A Sunday, so weekday 0 lines up with the first day of every week.
CALENDAR_START = date(2024, 1, 7)


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs.

    This makes GITHUB_TOKEN available to the opt-in live GitHub test without
    exporting it in your shell. In CI we don't auto-load `.env`, so the live test
    stays skipped unless explicitly opted-in with BREAKER_LOAD_DOTENV_FOR_TESTS=1.
    """

    if os.environ.get("CI") and os.environ.get("BREAKER_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


def calendar_from_counts(weeks: list[list[int]]) -> ContributionCalendar:
    """Build a calendar where weeks[i][d] is the count for weekday d of week i."""

    return ContributionCalendar(
        weeks=[
            ContributionWeek(
                contribution_days=[
                    ContributionDay(
                        date=CALENDAR_START + timedelta(days=7 * wi + d),
                        weekday=d,
                        contribution_count=count,
                    )
                    for d, count in enumerate(counts)
                ]
            )
            for wi, counts in enumerate(weeks)
        ]
    )


@pytest.fixture()
def make_calendar() -> Callable[[list[list[int]]], ContributionCalendar]:
    return calendar_from_counts


@pytest.fixture()
def client_and_redis():
    """FastAPI TestClient wired to fakeredis and a fresh in-process session registry."""

    import fakeredis
    from fastapi.testclient import TestClient

    from breaker.api.deps import get_redis, get_sessions
    from breaker.main import app
    from breaker.session_store import SessionRegistry

    r = fakeredis.FakeRedis(decode_responses=True)
    sessions = SessionRegistry()

    def _override_redis() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override_redis
    app.dependency_overrides[get_sessions] = lambda: sessions
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
