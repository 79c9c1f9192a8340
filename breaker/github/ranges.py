from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta

DEFAULT_WEEKS = 52
MAX_WEEKS = 52
# GitHub launched 2008-04-10; earlier dates are not meaningful for contributions.
GITHUB_LAUNCH = datetime(2008, 4, 10, tzinfo=UTC)
# contributionsCollection(from, to) must not exceed one year; allow leap years.
MAX_SPAN = timedelta(days=366)

_DATE_FORMAT = "%Y-%m-%d"


def validate_weeks(weeks: int) -> None:
    if weeks <= 0:
        raise ValueError("weeks must be > 0")
    if weeks > MAX_WEEKS:
        raise ValueError(f"weeks must be between 1 and {MAX_WEEKS} (GitHub API limit: 1 year)")


def validate_range(start: datetime | None, end: datetime | None) -> None:
    if start is None or end is None:
        raise ValueError("from/to must be set")
    if start > end:
        raise ValueError("from must be <= to")
    if start < GITHUB_LAUNCH or end < GITHUB_LAUNCH:
        raise ValueError("date range must be on/after 2008-04-10 (GitHub launch)")
    if end - start > MAX_SPAN:
        raise ValueError("date range must not exceed 1 year (GitHub API limit)")


def _parse_day(s: str, *, flag: str) -> date:
    try:
        return datetime.strptime(s, _DATE_FORMAT).date()
    except ValueError as e:
        raise ValueError(f"invalid {flag} date {s!r} (expected YYYY-MM-DD)") from e


def parse_date_start(s: str) -> datetime:
    return datetime.combine(_parse_day(s, flag="from"), time(0, 0, 0), tzinfo=UTC)


def parse_date_end(s: str) -> datetime:
    return datetime.combine(_parse_day(s, flag="to"), time(23, 59, 59), tzinfo=UTC)


def resolve_range(
    *,
    weeks: int = DEFAULT_WEEKS,
    from_date: str | None = None,
    to_date: str | None = None,
    now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """Turn user-facing range options into a validated [start, end] in UTC.

    - no dates: the last `weeks` weeks ending now.
    - any date set: range mode; `to` defaults to now and `from` to 52 weeks before `to`.
    """

    now = (now or datetime.now(tz=UTC)).astimezone(UTC)

    if from_date or to_date:
        end = parse_date_end(to_date) if to_date else now
        start = parse_date_start(from_date) if from_date else end - timedelta(weeks=DEFAULT_WEEKS)
        validate_range(start, end)
        return start, end

    validate_weeks(weeks)
    return now - timedelta(weeks=weeks), now
