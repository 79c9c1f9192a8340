from __future__ import annotations

import logging
from datetime import UTC, datetime

import redis
from pydantic import ValidationError

from breaker.api.models import ContributionCalendar
from breaker.github.client import ContributionsClient

logger = logging.getLogger(__name__)

CALENDAR_KEY_PREFIX = "breaker:calendar:"  # + {login}:{from}:{to}
VIEWER_KEY = "@viewer"


def _day(ts: datetime) -> str:
    return ts.astimezone(UTC).strftime("%Y-%m-%d")


def calendar_key(*, login: str | None, start: datetime, end: datetime) -> str:
    # Day granularity so repeated "last N weeks" requests within a day share an entry.
    who = login.casefold() if login else VIEWER_KEY
    return f"{CALENDAR_KEY_PREFIX}{who}:{_day(start)}:{_day(end)}"


def save_calendar(
    *,
    r: redis.Redis,
    login: str | None,
    start: datetime,
    end: datetime,
    resolved_login: str,
    calendar: ContributionCalendar,
    ttl_s: int,
) -> None:
    """Cache a fetched calendar; a TTL of 0 disables caching."""

    if ttl_s <= 0:
        return
    key = calendar_key(login=login, start=start, end=end)
    r.hset(key, mapping={"login": resolved_login, "calendar": calendar.model_dump_json(by_alias=True)})
    r.expire(key, ttl_s)


def get_calendar(
    *,
    r: redis.Redis,
    login: str | None,
    start: datetime,
    end: datetime,
) -> tuple[str, ContributionCalendar] | None:
    key = calendar_key(login=login, start=start, end=end)
    raw = r.hgetall(key)
    if not raw or "calendar" not in raw:
        return None
    try:
        calendar = ContributionCalendar.model_validate_json(raw["calendar"])
    except ValidationError:
        # Stale schema; drop it and refetch.
        logger.warning("discarding unreadable cached calendar key=%s", key)
        r.delete(key)
        return None
    return raw.get("login", ""), calendar


async def load_calendar(
    *,
    r: redis.Redis,
    client: ContributionsClient,
    login: str | None,
    start: datetime,
    end: datetime,
    ttl_s: int,
) -> tuple[str, ContributionCalendar]:
    """Return a cached calendar, fetching (and caching) it on a miss.

    Fetch errors from the client propagate unchanged.
    """

    cached = get_calendar(r=r, login=login, start=start, end=end)
    if cached is not None:
        logger.debug("calendar cache hit login=%s", login or VIEWER_KEY)
        return cached

    resolved_login, calendar = await client.fetch_calendar(login=login, start=start, end=end)
    save_calendar(
        r=r,
        login=login,
        start=start,
        end=end,
        resolved_login=resolved_login,
        calendar=calendar,
        ttl_s=ttl_s,
    )
    return resolved_login, calendar
