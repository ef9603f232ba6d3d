from dataclasses import dataclass
from typing import Optional

from PIL import Image, ImageDraw

from .config import (
    CATEGORY_COLORS,
    MAGNIFIER_DOT_RADIUS,
    MAGNIFIER_SIZE,
    MAGNIFIER_ZOOM,
    MARKER_RADIUS,
    SELECTED_RING_RADIUS,
)
from .frames import Frame
from .points import PointRef


@dataclass(frozen=True)
class Marker:
    category: str
    index: int
    x: float
    y: float
    color: str
    selected: bool = False

    def label(self) -> str:
        return f"{self.category[:1]}{self.index + 1}"


def category_color(name: str) -> str:
    if name in CATEGORY_COLORS:
        return CATEGORY_COLORS[name]
    h = 0
    for ch in name:
        h = (ord(ch) + ((h << 5) - h)) & 0xFFFFFFFF
    r, g, b = h & 0xFF, (h >> 8) & 0xFF, (h >> 16) & 0xFF
    return f"#{r:02x}{g:02x}{b:02x}"


def lighten_color(color: str) -> str:
    r, g, b = (int(color[i : i + 2], 16) for i in (1, 3, 5))
    r, g, b = (round(c + (255 - c) * 0.5) for c in (r, g, b))
    return f"#{r:02x}{g:02x}{b:02x}"


def current_markers(frame: Optional[Frame], selection: Optional[PointRef]) -> list[Marker]:
    if frame is None:
        return []
    markers: list[Marker] = []
    for category in frame.points:
        color = category_color(category)
        for i, point in enumerate(frame.absolute_points(category)):
            markers.append(
                Marker(
                    category=category,
                    index=i,
                    x=point.x,
                    y=point.y,
                    color=color,
                    selected=selection == PointRef(category, i),
                )
            )
    return markers


def draw_markers(image: Image.Image, markers: list[Marker]) -> Image.Image:
    out = image.convert("RGBA")
    draw = ImageDraw.Draw(out)
    for m in markers:
        r = MARKER_RADIUS
        fill = lighten_color(m.color) if m.selected else m.color
        draw.ellipse((m.x - r, m.y - r, m.x + r, m.y + r), fill=fill, outline="white", width=2)
        left, top, right, bottom = draw.textbbox((0, 0), m.label())
        draw.text((m.x - (right - left) / 2, m.y - (bottom - top) / 2), m.label(), fill="white")
        if m.selected:
            r = SELECTED_RING_RADIUS
            draw.ellipse((m.x - r, m.y - r, m.x + r, m.y + r), outline="yellow", width=2)
    return out


def magnifier_view(image: Image.Image, x: float, y: float) -> Image.Image:
    size = MAGNIFIER_SIZE
    zoom = MAGNIFIER_ZOOM
    source = size / zoom
    w, h = image.size
    sx = max(0.0, min(w - source, x - source / 2))
    sy = max(0.0, min(h - source, y - source / 2))
    sw = min(source, w - sx)
    sh = min(source, h - sy)
    if sw > 0 and sh > 0:
        out = image.convert("RGBA").resize(
            (size, size), Image.Resampling.NEAREST, box=(sx, sy, sx + sw, sy + sh)
        )
    else:
        out = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    mx = (x - sx) * zoom
    my = (y - sy) * zoom
    r = MAGNIFIER_DOT_RADIUS
    ImageDraw.Draw(out).ellipse((mx - r, my - r, mx + r, my + r), fill="white", outline="black", width=2)
    return out
