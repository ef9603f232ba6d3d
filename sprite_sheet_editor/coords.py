"""Image-absolute and image-center-relative point coordinates.

Absolute points are pixel offsets from a frame's top-left corner.
Relative points are offsets from the frame's geometric center and only
arise from imported legacy position tables.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Union


class CoordinateSpace(Enum):
    ABSOLUTE = "absolute"
    CENTER_RELATIVE = "center_relative"


@dataclass(frozen=True)
class AbsolutePoint:
    x: float = 0.0
    y: float = 0.0

    @property
    def space(self) -> CoordinateSpace:
        return CoordinateSpace.ABSOLUTE


@dataclass(frozen=True)
class RelativePoint:
    x: float = 0.0
    y: float = 0.0

    @property
    def space(self) -> CoordinateSpace:
        return CoordinateSpace.CENTER_RELATIVE


Point = Union[AbsolutePoint, RelativePoint]

PLACEHOLDER = AbsolutePoint(0, 0)


def round_half_up(value: float) -> int:
    # Halves round toward +inf (-0.5 -> 0, 2.5 -> 3), never to even.
    return int(math.floor(value + 0.5))


def _center(width: float, height: float) -> tuple[float, float]:
    return ((width or 0) / 2, (height or 0) / 2)


def to_absolute(point: Point, width: float, height: float) -> AbsolutePoint:
    if isinstance(point, AbsolutePoint):
        return point
    if isinstance(point, RelativePoint):
        cx, cy = _center(width, height)
        return AbsolutePoint(cx + point.x, cy + point.y)
    raise TypeError(f"Not a point: {point!r}")


def to_relative(point: Point, width: float, height: float) -> RelativePoint:
    if isinstance(point, RelativePoint):
        return point
    if isinstance(point, AbsolutePoint):
        cx, cy = _center(width, height)
        return RelativePoint(point.x - cx, point.y - cy)
    raise TypeError(f"Not a point: {point!r}")


def rounded_absolute(point: Point, width: float, height: float) -> tuple[int, int]:
    absolute = to_absolute(point, width, height)
    return (round_half_up(absolute.x), round_half_up(absolute.y))
