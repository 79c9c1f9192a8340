from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from breaker.github.ranges import (
    parse_date_end,
    parse_date_start,
    resolve_range,
    validate_range,
    validate_weeks,
)

NOW = datetime(2024, 6, 15, 12, 30, tzinfo=UTC)


@pytest.mark.parametrize("weeks", [1, 26, 52])
def test_valid_weeks(weeks: int) -> None:
    validate_weeks(weeks)


@pytest.mark.parametrize("weeks", [0, -1, 53])
def test_invalid_weeks(weeks: int) -> None:
    with pytest.raises(ValueError):
        validate_weeks(weeks)


def test_dates_cover_whole_days_in_utc() -> None:
    assert parse_date_start("2024-01-01") == datetime(2024, 1, 1, 0, 0, 0, tzinfo=UTC)
    assert parse_date_end("2024-01-01") == datetime(2024, 1, 1, 23, 59, 59, tzinfo=UTC)


def test_bad_date_names_the_flag() -> None:
    with pytest.raises(ValueError, match="invalid from date"):
        parse_date_start("2024/01/01")
    with pytest.raises(ValueError, match="invalid to date"):
        parse_date_end("yesterday")


def test_range_rules() -> None:
    validate_range(parse_date_start("2023-01-01"), parse_date_end("2023-12-31"))

    with pytest.raises(ValueError, match="from must be <= to"):
        validate_range(parse_date_start("2024-02-01"), parse_date_end("2024-01-01"))
    with pytest.raises(ValueError, match="2008-04-10"):
        validate_range(parse_date_start("2008-04-09"), parse_date_end("2008-12-31"))
    with pytest.raises(ValueError, match="1 year"):
        validate_range(parse_date_start("2022-01-01"), parse_date_end("2023-06-01"))
    with pytest.raises(ValueError):
        validate_range(None, NOW)


def test_leap_year_span_is_allowed() -> None:
    # 2024-01-01 .. 2024-12-31 is 365 days and change.
    validate_range(parse_date_start("2024-01-01"), parse_date_end("2024-12-31"))


def test_default_is_last_weeks_ending_now() -> None:
    start, end = resolve_range(weeks=4, now=NOW)

    assert end == NOW
    assert start == NOW - timedelta(weeks=4)


def test_range_mode_defaults_from_to_a_year_before_to() -> None:
    start, end = resolve_range(to_date="2024-03-31", now=NOW)

    assert end == datetime(2024, 3, 31, 23, 59, 59, tzinfo=UTC)
    assert start == end - timedelta(weeks=52)


def test_range_mode_defaults_to_to_now() -> None:
    start, end = resolve_range(from_date="2024-01-01", now=NOW)

    assert start == datetime(2024, 1, 1, tzinfo=UTC)
    assert end == NOW


def test_range_mode_ignores_weeks() -> None:
    start, end = resolve_range(weeks=99, from_date="2024-01-01", to_date="2024-01-31", now=NOW)

    assert (end - start).days == 30


def test_invalid_range_is_rejected() -> None:
    with pytest.raises(ValueError):
        resolve_range(from_date="2024-05-01", to_date="2024-04-01", now=NOW)
