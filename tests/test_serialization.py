import json
import xml.etree.ElementTree as ET

import pytest

from sprite_sheet_editor.coords import AbsolutePoint, RelativePoint
from sprite_sheet_editor.errors import InvalidCategoryName, NoData, ParseError
from sprite_sheet_editor.frames import Frame
from sprite_sheet_editor.serialization import (
    build_sheet_record,
    from_json,
    from_xml,
    json_to_xml,
    to_json,
    to_json_dict,
    to_xml,
    xml_to_json,
)

from .conftest import make_image

GENERATED = "2024-01-01T00:00:00.000Z"

EXPECTED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<SpriteSheet>
  <Metadata>
    <Generated>2024-01-01T00:00:00.000Z</Generated>
    <FrameCount>1</FrameCount>
  </Metadata>
  <Frames>
    <Frame id="0" name="a.png" x="0" y="0" width="4" height="4">
      <Points>
        <LaserPoint id="1" x="1" y="2" />
      </Points>
    </Frame>
  </Frames>
</SpriteSheet>
"""


@pytest.fixture
def frames():
    return [
        Frame(make_image(10, 10), "a.png", {"Laser": [AbsolutePoint(1, 2)], "Engine": [RelativePoint(0, 0)]}),
        Frame(make_image(20, 20), "b.png", {"Laser": [RelativePoint(-2, -2)], "Engine": [AbsolutePoint(3, 4)]}),
    ]


def test_record_stacks_frames_vertically(frames):
    record = build_sheet_record(frames, generated=GENERATED)
    assert record.frame_count == 2
    assert [(fr.x, fr.y, fr.width, fr.height) for fr in record.frames] == [(0, 0, 10, 10), (0, 10, 20, 20)]
    assert [(p.id, p.x, p.y) for p in record.frames[0].points["Engine"]] == [(1, 5, 5)]
    assert [(p.id, p.x, p.y) for p in record.frames[1].points["Laser"]] == [(1, 8, 8)]


def test_relative_points_round_half_up():
    frame = Frame(make_image(5, 5), "odd.png", {"Laser": [RelativePoint(0, 0)]})
    point = build_sheet_record([frame], GENERATED).frames[0].points["Laser"][0]
    assert (point.x, point.y) == (3, 3)


def test_generated_timestamp_defaults_to_utc():
    record = build_sheet_record([Frame(make_image(1, 1), "a.png")])
    assert record.generated.endswith("Z")


def test_xml_layout():
    frame = Frame(make_image(4, 4), "a.png", {"Laser": [AbsolutePoint(1, 2)]})
    assert to_xml(build_sheet_record([frame], GENERATED)) == EXPECTED_XML


def test_json_layout(frames):
    data = json.loads(to_json(build_sheet_record(frames, GENERATED)))
    assert data["metadata"] == {"generated": GENERATED, "frameCount": 2}
    assert data["frames"][1] == {
        "id": 1,
        "name": "b.png",
        "x": 0,
        "y": 10,
        "width": 20,
        "height": 20,
        "points": {"Laser": [{"id": 1, "x": 8, "y": 8}], "Engine": [{"id": 1, "x": 3, "y": 4}]},
    }


def test_xml_round_trip(frames):
    record = build_sheet_record(frames, GENERATED)
    assert from_xml(to_xml(record)) == record


def test_json_round_trip(frames):
    record = build_sheet_record(frames, GENERATED)
    assert from_json(to_json(record)) == record


def test_cross_format_conversion(frames):
    record = build_sheet_record(frames, GENERATED)
    assert json.loads(xml_to_json(to_xml(record))) == to_json_dict(record)
    assert json_to_xml(to_json(record)) == to_xml(record)


def test_xml_category_must_be_a_valid_element_name():
    frame = Frame(make_image(4, 4), "a.png", {"Engine Mount": [AbsolutePoint(1, 1)]})
    record = build_sheet_record([frame], GENERATED)
    with pytest.raises(InvalidCategoryName):
        to_xml(record)
    assert json.loads(to_json(record))["frames"][0]["points"]["Engine Mount"] == [{"id": 1, "x": 1, "y": 1}]


def test_xml_is_well_formed(frames):
    root = ET.fromstring(to_xml(build_sheet_record(frames, GENERATED)))
    assert [el.get("name") for el in root.iter("Frame")] == ["a.png", "b.png"]


@pytest.mark.parametrize(
    "text",
    [
        '<Data><Frames><Frame name="x.png" width="4" height="4"/></Frames></Data>',
        '<Root><Frame name="x.png" width="4" height="4"/></Root>',
    ],
)
def test_xml_frame_fallbacks(text):
    record = from_xml(text)
    assert [(fr.name, fr.width, fr.height) for fr in record.frames] == [("x.png", 4, 4)]
    assert record.frame_count == 1


def test_xml_point_tags_strip_suffix():
    text = (
        '<SpriteSheet><Frames><Frame width="4" height="4"><Points>'
        '<EnginePoint id="1" x="1" y="1"/><Marker x="2" y="2"/>'
        "</Points></Frame></Frames></SpriteSheet>"
    )
    frame = from_xml(text).frames[0]
    assert sorted(frame.points) == ["Engine", "Marker"]
    assert frame.name == "frame_0.png"
    assert frame.points["Marker"][0].id == 1


def test_xml_errors():
    with pytest.raises(ParseError):
        from_xml("<SpriteSheet>")
    with pytest.raises(NoData):
        from_xml("<SpriteSheet/>")
    with pytest.raises(NoData):
        from_xml("")


def test_json_frame_fallbacks():
    nested = from_json('{"spriteSheet": {"frames": [{"name": "n.png", "width": 2, "height": 2}]}}')
    bare = from_json('[{"name": "b.png", "width": 2, "height": 2}]')
    assert nested.frames[0].name == "n.png"
    assert bare.frames[0].name == "b.png"


def test_json_skips_non_object_frames():
    record = from_json('{"frames": [1, {"width": 2, "height": 2}]}')
    assert len(record.frames) == 1
    assert record.frames[0].name == "frame_1.png"
    assert len(record.warnings) == 1


def test_json_non_integer_dimensions_are_invalid():
    record = from_json('{"frames": [{"width": 2.5, "height": "abc"}]}')
    assert (record.frames[0].width, record.frames[0].height) == (0, 0)


def test_json_errors():
    with pytest.raises(ParseError):
        from_json("{nope")
    with pytest.raises(NoData):
        from_json('{"frames": []}')
    with pytest.raises(NoData):
        from_json('{"other": 1}')


def test_json_category_points_that_are_not_a_list_are_skipped():
    text = (
        '{"frames": [{"name": "a.png", "width": 4, "height": 4,'
        ' "points": {"Laser": 5, "Smoke": [{"id": 1, "x": 1, "y": 2}]}}]}'
    )
    record = from_json(text)
    assert list(record.frames[0].points) == ["Smoke"]
    assert len(record.warnings) == 1
    assert "Laser" in record.warnings[0]


def test_json_non_finite_coordinates_fall_back_to_zero():
    text = '{"frames": [{"name": "a.png", "width": 4, "height": 4, "points": {"Laser": [{"id": 1, "x": NaN, "y": Infinity}]}}]}'
    record = from_json(text)
    point = record.frames[0].points["Laser"][0]
    assert (point.x, point.y) == (0, 0)
    assert len(record.warnings) == 2
    assert json.loads(to_json(record))["frames"][0]["points"]["Laser"] == [{"id": 1, "x": 0, "y": 0}]


def test_json_numeric_frame_name_becomes_text():
    record = from_json('{"frames": [{"name": 7, "width": 4, "height": 4}]}')
    assert record.frames[0].name == "7"
    assert 'name="7"' in json_to_xml('{"frames": [{"name": 7, "width": 4, "height": 4}]}')
