from __future__ import annotations

import math
from dataclasses import dataclass

from breaker.api.models import ContributionCalendar

DAYS_PER_WEEK = 7
MAX_HP = 4


@dataclass(frozen=True, slots=True)
class BrickCell:
    count: int = 0
    hp: int = 0


@dataclass(frozen=True, slots=True)
class BrickGrid:
    """A 7 (row: weekday 0..6) x N (col) grid of bricks.

    Rows follow GitHub's weekday numbering (0=Sunday..6=Saturday).
    """

    rows: int
    cols: int
    max_count: int
    cells: tuple[tuple[BrickCell, ...], ...]  # [row][col]

    def hp_matrix(self) -> list[list[int]]:
        return [[cell.hp for cell in row] for row in self.cells]


def hp_from_count(count: int, max_count: int) -> int:
    if count <= 0:
        return 0
    if max_count <= 0:
        return 1
    return min(max(math.ceil(MAX_HP * count / max_count), 1), MAX_HP)


def column_for_week(week_index: int, *, num_weeks: int, cols: int) -> int:
    """Evenly distribute week indices into [0..cols-1]."""

    return (week_index * cols) // num_weeks


def build_brick_grid(calendar: ContributionCalendar, max_cols: int) -> BrickGrid:
    """Convert a contribution calendar into a brick grid.

    The calendar is week-major (N weeks x 7 days). To fit the field, weeks are
    compressed into up to `max_cols` columns by grouping neighbouring weeks and
    taking the per-weekday MAX contribution count within each group, so a single
    intense day is never averaged away.
    """

    weeks = calendar.weeks
    if max_cols <= 0:
        max_cols = 1
    if not weeks:
        return BrickGrid(rows=DAYS_PER_WEEK, cols=0, max_count=0, cells=tuple(() for _ in range(DAYS_PER_WEEK)))

    cols = min(len(weeks), max_cols)
    counts = [[0] * cols for _ in range(DAYS_PER_WEEK)]

    for wi, week in enumerate(weeks):
        col = column_for_week(wi, num_weeks=len(weeks), cols=cols)
        for day in week.contribution_days:
            r = day.weekday
            # Malformed upstream weekday; skip instead of failing the whole grid.
            if r < 0 or r >= DAYS_PER_WEEK:
                continue
            if day.contribution_count > counts[r][col]:
                counts[r][col] = day.contribution_count

    max_count = max((c for row in counts for c in row), default=0)

    cells = tuple(
        tuple(BrickCell(count=c, hp=hp_from_count(c, max_count)) for c in row)
        for row in counts
    )
    return BrickGrid(rows=DAYS_PER_WEEK, cols=cols, max_count=max_count, cells=cells)
