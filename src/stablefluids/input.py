"""Pointer input: turns a cursor state into per-frame force/source impulses.

Positions are normalized domain coordinates in [0, 1] x [0, 1] covering the
whole padded grid, so a cursor over the ring maps to a boundary cell and is
ignored.
"""

import math
from dataclasses import dataclass
from typing import Iterator, Tuple


@dataclass
class PointerState:
    """Cursor position, frame delta and button state."""

    x: float
    y: float
    dx: float = 0.0
    dy: float = 0.0
    push: bool = False  # inject force along (dx, dy)
    emit: bool = False  # inject density


class PointerInput:
    """Writes pointer impulses into the previous buffers of a field set.

    Force and delta are in normalized units; the force impulse is scaled by
    the padded resolution so the same stroke pushes equally on any grid.
    """

    def __init__(self, n: int, force: float = 75.0, source: float = 100.0):
        self.n = n
        self.n2 = n + 2
        self.force = force
        self.source = source

    def cell(self, x: float, y: float) -> Tuple[int, int]:
        """Grid cell under a normalized position, clamped to the padded grid."""
        i = min(max(int(math.floor(x * self.n2)), 0), self.n2 - 1)
        j = min(max(int(math.floor(y * self.n2)), 0), self.n2 - 1)
        return i, j

    def apply(self, fields, state: PointerState) -> bool:
        """Write the impulse of ``state`` into u0, v0 and d0.

        Returns True if anything was written.
        """
        if state is None or not (state.push or state.emit):
            return False

        i, j = self.cell(state.x, state.y)
        if not (1 <= i <= self.n and 1 <= j <= self.n):
            return False

        k = fields.index(i, j)
        if state.push:
            fields["u0"][k] = self.force * state.dx * self.n2
            fields["v0"][k] = self.force * state.dy * self.n2
        if state.emit:
            fields["d0"][k] = self.source
        return True


def circle_stroke(frames: int, radius: float = 0.25, center=(0.5, 0.5),
                  turns: float = 1.0, push: bool = True,
                  emit: bool = True) -> Iterator[PointerState]:
    """Scripted pointer moving on a circle, one state per frame."""
    cx, cy = center
    x_prev = cx + radius
    y_prev = cy
    for frame in range(frames):
        angle = 2.0 * math.pi * turns * (frame + 1) / max(frames, 1)
        x = cx + radius * math.cos(angle)
        y = cy + radius * math.sin(angle)
        yield PointerState(x=x, y=y, dx=x - x_prev, dy=y - y_prev, push=push, emit=emit)
        x_prev, y_prev = x, y
