"""Merge legacy position tables into the point model.

A legacy table is markup holding ``positionsList`` elements, each with a
``name`` and a ``data`` attribute of comma-separated numbers read as x,y
pairs, one pair per frame.  Lists nested under a ``<prefix>Position``
element are grouped: they share the category ``<prefix>`` and each list
writes the point slot at the first position of its name among the
group's lists.  Imported coordinates are relative to the frame center.
"""

import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .config import GROUP_TAG_SUFFIX, POSITION_LIST_TAG
from .errors import NoData, NoFramesLoaded, ParseError, SpriteSheetError
from .points import PointModel

logger = logging.getLogger(__name__)


@dataclass
class PositionList:
    name: Optional[str]
    data: Optional[str]
    group: Optional[str] = None
    ordinal: int = 0

    @property
    def grouped(self) -> bool:
        return self.group is not None

    def category(self) -> str:
        return self.group if self.group is not None else (self.name or "")

    def point_index(self) -> int:
        return self.ordinal if self.grouped else 0


@dataclass
class ImportReport:
    categories: list[str] = field(default_factory=list)
    points_written: int = 0
    warnings: list[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


def parse_coordinate_string(data: Optional[str]) -> list[tuple[float, float]]:
    if not data:
        return []
    values: list[float] = []
    for token in data.split(","):
        try:
            value = float(token.strip())
        except ValueError:
            continue
        if math.isfinite(value):
            values.append(value)
    # A trailing unpaired value is dropped by zip.
    return list(zip(values[0::2], values[1::2]))


def _group_name(tag: str) -> Optional[str]:
    if tag.endswith(GROUP_TAG_SUFFIX) and len(tag) > len(GROUP_TAG_SUFFIX):
        return tag[: -len(GROUP_TAG_SUFFIX)]
    return None


def _sibling_ordinal(parent: ET.Element, name: Optional[str]) -> int:
    # Slot is the first position of the name among every list under the group.
    names = [sibling.get("name") for sibling in parent.iter(POSITION_LIST_TAG)]
    return names.index(name) if name in names else 0


def parse_position_document(text: str) -> list[PositionList]:
    if not text or not text.strip():
        raise NoData("No position data supplied.")
    try:
        root = ET.fromstring(text.strip())
    except ET.ParseError as exc:
        raise ParseError(f"Invalid XML format: {exc}") from exc

    parents = {child: parent for parent in root.iter() for child in parent}
    lists: list[PositionList] = []
    for element in root.iter(POSITION_LIST_TAG):
        name = element.get("name")
        parent = parents.get(element)
        group = _group_name(parent.tag) if parent is not None else None
        ordinal = _sibling_ordinal(parent, name) if group is not None else 0
        lists.append(PositionList(name=name, data=element.get("data"), group=group, ordinal=ordinal))
    if not lists:
        raise NoData(f"No {POSITION_LIST_TAG} elements found.")
    return lists


def _apply_list(model: PointModel, position_list: PositionList, report: ImportReport) -> None:
    if not position_list.name or not position_list.data:
        report.warn(f"Skipping {POSITION_LIST_TAG} without name or data.")
        return
    pairs = parse_coordinate_string(position_list.data)
    if not pairs:
        report.warn(f"No valid coordinates for {position_list.name}.")
        return
    frame_count = len(model.frames)
    if len(pairs) != frame_count:
        report.warn(
            f"Coordinate count ({len(pairs)}) doesn't match frame count ({frame_count}) for {position_list.name}."
        )

    category = position_list.category()
    model.ensure_category(category)
    index = position_list.point_index()
    model.ensure_point_slots(category, index + 1)
    for frame_index, (x, y) in enumerate(pairs[:frame_count]):
        model.set_relative_point(frame_index, category, index, x, y)
        report.points_written += 1
    if category not in report.categories:
        report.categories.append(category)


def reconcile(model: PointModel, position_lists: Iterable[PositionList]) -> ImportReport:
    position_lists = list(position_lists)
    if not position_lists:
        raise NoData("No position lists to import.")
    if len(model.frames) == 0:
        raise NoFramesLoaded("Load frames before importing positions.")
    report = ImportReport()
    for position_list in position_lists:
        try:
            _apply_list(model, position_list, report)
        except SpriteSheetError as exc:
            report.warn(f"Failed to import {position_list.name}: {exc}")
    return report


def import_positions(model: PointModel, text: str) -> ImportReport:
    return reconcile(model, parse_position_document(text))
