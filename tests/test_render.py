import re

from sprite_sheet_editor.coords import AbsolutePoint, RelativePoint
from sprite_sheet_editor.frames import Frame
from sprite_sheet_editor.points import PointRef
from sprite_sheet_editor.render import (
    Marker,
    category_color,
    current_markers,
    draw_markers,
    lighten_color,
    magnifier_view,
)

from .conftest import make_image


def test_fixed_and_hashed_category_colors():
    assert category_color("Laser") == "#ff0000"
    assert category_color("Smoke") == "#808080"
    color = category_color("Turret")
    assert re.fullmatch(r"#[0-9a-f]{6}", color)
    assert category_color("Turret") == color


def test_lighten_color():
    assert lighten_color("#000000") == "#808080"
    assert lighten_color("#ff0000") == "#ff8080"


def test_current_markers_resolve_relative_points():
    frame = Frame(make_image(20, 20), "a.png", {"Laser": [AbsolutePoint(1, 2), RelativePoint(-2, -2)]})
    markers = current_markers(frame, PointRef("Laser", 1))
    assert [(m.x, m.y, m.selected) for m in markers] == [(1, 2, False), (8, 8, True)]
    assert markers[1].label() == "L2"
    assert current_markers(None, None) == []


def test_draw_markers_paints_onto_a_copy():
    image = make_image(30, 30, (0, 0, 0, 255))
    marker = Marker("Laser", 0, 15, 15, "#ff0000", selected=True)
    out = draw_markers(image, [marker])
    assert out.size == image.size
    assert out.tobytes() != image.tobytes()
    assert image.getpixel((15, 15)) == (0, 0, 0, 255)


def test_magnifier_view_size():
    assert magnifier_view(make_image(100, 100), 50, 50).size == (150, 150)
    assert magnifier_view(make_image(10, 10), 0, 0).size == (150, 150)
