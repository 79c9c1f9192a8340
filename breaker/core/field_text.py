from __future__ import annotations

import math
from dataclasses import dataclass

from breaker.api.models import StateSnapshot


@dataclass(frozen=True, slots=True)
class FieldTextOptions:
    show_hud: bool = True
    empty: str = " "
    paddle: str = "="
    ball: str = "o"


def _hud_line(snap: StateSnapshot) -> str:
    line = f"score {snap.score:>6}  blocks {snap.bricks_remaining}/{snap.bricks_total}"
    if snap.cleared:
        line += "  CLEAR!"
    elif snap.game_over:
        line += "  GAME OVER"
    return line


def render_field_text(snap: StateSnapshot, *, options: FieldTextOptions | None = None) -> str:
    """Plain-text dump of a snapshot, one character per field cell.

    Bricks are drawn as their current HP digit so the dump doubles as a quick
    visual check of the grid builder. No colours or terminal control codes.
    """

    opts = options or FieldTextOptions()
    width = max(snap.width, 0)
    canvas = [[opts.empty] * width for _ in range(snap.height)]

    for r, row in enumerate(snap.bricks):
        y = snap.top_offset + r
        if y >= snap.height:
            break
        for c, hp in enumerate(row):
            if hp <= 0:
                continue
            for x in range(c * snap.brick_w, min((c + 1) * snap.brick_w, width)):
                canvas[y][x] = str(hp)

    py = int(snap.paddle.y)
    if 0 <= py < snap.height:
        start = max(int(snap.paddle.x), 0)
        end = min(int(snap.paddle.x + snap.paddle.width), width)
        for x in range(start, end):
            canvas[py][x] = opts.paddle

    bx = math.floor(snap.ball.x)
    by = math.floor(snap.ball.y)
    if 0 <= by < snap.height and 0 <= bx < width:
        canvas[by][bx] = opts.ball

    lines = ["".join(row) for row in canvas]
    if opts.show_hud:
        lines.insert(0, _hud_line(snap))
    return "\n".join(lines)
