"""Merging legacy ``positionsList`` tables into loaded frames."""

import pytest

from sprite_sheet_editor.coords import AbsolutePoint, RelativePoint
from sprite_sheet_editor.errors import NoData, NoFramesLoaded, ParseError
from sprite_sheet_editor.frames import FrameCollection
from sprite_sheet_editor.points import PointModel
from sprite_sheet_editor.reconcile import (
    import_positions,
    parse_coordinate_string,
    parse_position_document,
)
from sprite_sheet_editor.serialization import build_sheet_record

from .conftest import make_images

GROUPED = """
<ship>
  <enginePosition>
    <positionsList name="A" data="1,1,2,2" />
    <positionsList name="B" data="3,3,4,4" />
    <positionsList name="C" data="5,5,6,6" />
  </enginePosition>
</ship>
"""


def test_parse_coordinate_string():
    assert parse_coordinate_string("5,5,-2,-2,0,0") == [(5, 5), (-2, -2), (0, 0)]
    assert parse_coordinate_string("1,2,3") == [(1, 2)]
    assert parse_coordinate_string("1, abc, 2") == [(1, 2)]
    assert parse_coordinate_string("") == []


def test_center_relative_import_exports_absolute(model):
    model.add_category("Laser")
    model.add_point_to_category("Laser")
    report = import_positions(model, '<root><positionsList name="Laser" data="5,5,-2,-2,0,0"/></root>')

    assert report.points_written == 3
    assert report.warnings == []
    assert [frame.points["Laser"] for frame in model.frames] == [
        [RelativePoint(5, 5)],
        [RelativePoint(-2, -2)],
        [RelativePoint(0, 0)],
    ]
    record = build_sheet_record(model.frames, generated="t")
    exported = [(fr.points["Laser"][0].x, fr.points["Laser"][0].y) for fr in record.frames]
    assert exported == [(10, 10), (8, 8), (15, 15)]


def test_import_creates_missing_category(model):
    report = import_positions(model, '<root><positionsList name="Smoke" data="1,1,1,1,1,1"/></root>')
    assert report.categories == ["Smoke"]
    assert model.template.count("Smoke") == 1
    assert model.is_aligned()


def test_grouped_lists_get_distinct_slots():
    frames = FrameCollection()
    model = PointModel(frames)
    frames.load(make_images((10, 10), (10, 10)), model.template)

    report = import_positions(model, GROUPED)

    assert report.categories == ["engine"]
    assert model.template.count("engine") == 3
    assert frames[0].points["engine"] == [RelativePoint(1, 1), RelativePoint(3, 3), RelativePoint(5, 5)]
    assert frames[1].points["engine"] == [RelativePoint(2, 2), RelativePoint(4, 4), RelativePoint(6, 6)]


def test_grouped_lists_parse_ordinals():
    lists = parse_position_document(GROUPED)
    assert [(pl.category(), pl.point_index()) for pl in lists] == [("engine", 0), ("engine", 1), ("engine", 2)]


def test_short_list_warns_and_leaves_other_frames(model):
    model.add_category("Laser")
    model.add_point_to_category("Laser")
    model.set_point(2, "Laser", 0, 7, 7)

    report = import_positions(model, '<root><positionsList name="Laser" data="1,1,2,2"/></root>')

    assert len(report.warnings) == 1
    assert model.get_point(0, "Laser", 0) == RelativePoint(1, 1)
    assert model.get_point(1, "Laser", 0) == RelativePoint(2, 2)
    assert model.get_point(2, "Laser", 0) == AbsolutePoint(7, 7)


def test_extra_pairs_are_ignored(model):
    report = import_positions(model, '<root><positionsList name="Laser" data="1,1,2,2,3,3,4,4"/></root>')
    assert report.points_written == 3
    assert len(report.warnings) == 1


def test_bad_list_does_not_stop_the_rest(model):
    text = '<root><positionsList name="Broken"/><positionsList name="Laser" data="0,0,0,0,0,0"/></root>'
    report = import_positions(model, text)
    assert report.categories == ["Laser"]
    assert "Broken" not in model.template
    assert len(report.warnings) == 1


def test_malformed_markup(model):
    with pytest.raises(ParseError):
        import_positions(model, "<root><positionsList")


def test_empty_or_listless_documents(model):
    model.add_category("Laser")
    with pytest.raises(NoData):
        import_positions(model, "   ")
    with pytest.raises(NoData):
        import_positions(model, "<root><other/></root>")
    assert model.categories() == ["Laser"]


def test_no_frames_loaded():
    model = PointModel(FrameCollection())
    with pytest.raises(NoFramesLoaded):
        import_positions(model, '<root><positionsList name="Laser" data="1,1"/></root>')
    assert model.categories() == []


def test_repeated_group_name_reuses_its_first_slot():
    frames = FrameCollection()
    model = PointModel(frames)
    frames.load(make_images((10, 10)), model.template)
    text = (
        "<ship><enginePosition>"
        '<positionsList name="A" data="1,1" />'
        '<positionsList name="A" data="2,2" />'
        '<positionsList name="B" data="3,3" />'
        "</enginePosition></ship>"
    )

    assert [pl.point_index() for pl in parse_position_document(text)] == [0, 0, 2]
    import_positions(model, text)

    assert model.template.count("engine") == 3
    assert frames[0].points["engine"] == [RelativePoint(2, 2), AbsolutePoint(0, 0), RelativePoint(3, 3)]
    assert model.is_aligned()
