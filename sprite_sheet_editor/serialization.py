"""Sprite sheet metadata in markup (XML) and data-object (JSON) form.

Both encodings carry the same ``SheetRecord``: frame rectangles inside
the vertically stacked sheet plus every point, always written in
absolute integer pixel coordinates.  Coordinate-space tags are not
persisted.
"""

import json
import logging
import math
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from .config import POINT_ELEMENT_SUFFIX
from .coords import AbsolutePoint, rounded_absolute
from .errors import InvalidCategoryName, NoData, ParseError
from .frames import Frame

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'
_XML_NAME = re.compile(r"^[A-Za-z_][\w.-]*$")


@dataclass
class PointRecord:
    id: int
    x: float
    y: float


@dataclass
class FrameRecord:
    id: int
    name: str
    x: int
    y: int
    width: int
    height: int
    points: dict[str, list[PointRecord]] = field(default_factory=dict)

    def absolute_points(self) -> dict[str, list[AbsolutePoint]]:
        return {name: [AbsolutePoint(p.x, p.y) for p in values] for name, values in self.points.items()}


@dataclass
class SheetRecord:
    generated: str
    frame_count: int
    frames: list[FrameRecord] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _safe_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(float(value))
    except Exception:
        return default


def _safe_number(value: Any, default: float = 0) -> float:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(value)
    except Exception:
        return default
    return int(number) if number.is_integer() else number


def _finite_number(value: Any, warnings: list[str], where: str) -> float:
    number = _safe_number(value)
    if isinstance(number, float) and not math.isfinite(number):
        _warn(warnings, f"{where}: non-finite coordinate {value!r} replaced with 0.")
        return 0
    return number


def _warn(warnings: list[str], message: str) -> None:
    logger.warning(message)
    warnings.append(message)


def _dimension(value: Any) -> int:
    # Anything that is not a whole number parses as 0 (invalid).
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else 0
    text = str(value).strip()
    return int(text) if re.fullmatch(r"[+-]?\d+", text) else 0


# Export ---------------------------------------------------------------------


def build_sheet_record(frames: Iterable[Frame], generated: Optional[str] = None) -> SheetRecord:
    records: list[FrameRecord] = []
    y = 0
    for idx, frame in enumerate(frames):
        points: dict[str, list[PointRecord]] = {}
        for category, values in frame.points.items():
            points[category] = []
            for i, point in enumerate(values):
                px, py = rounded_absolute(point, frame.width, frame.height)
                points[category].append(PointRecord(id=i + 1, x=px, y=py))
        records.append(
            FrameRecord(
                id=idx,
                name=frame.name,
                x=0,
                y=y,
                width=frame.width,
                height=frame.height,
                points=points,
            )
        )
        y += frame.height
    return SheetRecord(generated=generated or _timestamp(), frame_count=len(records), frames=records)


def to_json_dict(record: SheetRecord) -> dict:
    return {
        "metadata": {"generated": record.generated, "frameCount": record.frame_count},
        "frames": [
            {
                "id": fr.id,
                "name": fr.name,
                "x": fr.x,
                "y": fr.y,
                "width": fr.width,
                "height": fr.height,
                "points": {
                    category: [{"id": p.id, "x": p.x, "y": p.y} for p in values]
                    for category, values in fr.points.items()
                },
            }
            for fr in record.frames
        ],
    }


def to_json(record: SheetRecord) -> str:
    return json.dumps(to_json_dict(record), indent=2)


def point_element_name(category: str) -> str:
    tag = f"{category}{POINT_ELEMENT_SUFFIX}"
    if not _XML_NAME.match(tag):
        raise InvalidCategoryName(f"Category {category!r} cannot be written as an XML element name.")
    return tag


def to_xml(record: SheetRecord) -> str:
    root = ET.Element("SpriteSheet")
    meta = ET.SubElement(root, "Metadata")
    ET.SubElement(meta, "Generated").text = record.generated
    ET.SubElement(meta, "FrameCount").text = str(record.frame_count)
    frames_el = ET.SubElement(root, "Frames")
    for fr in record.frames:
        frame_el = ET.SubElement(
            frames_el,
            "Frame",
            {
                "id": str(fr.id),
                "name": fr.name,
                "x": str(fr.x),
                "y": str(fr.y),
                "width": str(fr.width),
                "height": str(fr.height),
            },
        )
        points_el = ET.SubElement(frame_el, "Points")
        for category, values in fr.points.items():
            tag = point_element_name(category)
            for p in values:
                ET.SubElement(points_el, tag, {"id": str(p.id), "x": str(p.x), "y": str(p.y)})
    ET.indent(root, space="  ")
    return XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"


# Import ---------------------------------------------------------------------


def _xml_frame_candidates(root: ET.Element) -> list[Callable[[], list[ET.Element]]]:
    return [
        lambda: root.findall("./Frames/Frame") if root.tag == "SpriteSheet" else root.findall(".//SpriteSheet/Frames/Frame"),
        lambda: root.findall(".//Frames/Frame"),
        lambda: root.findall(".//Frame"),
    ]


def from_xml(text: str) -> SheetRecord:
    if not text or not text.strip():
        raise NoData("Empty XML document.")
    try:
        root = ET.fromstring(text.strip())
    except ET.ParseError as exc:
        raise ParseError(f"Invalid XML format: {exc}") from exc

    elements: list[ET.Element] = []
    for candidate in _xml_frame_candidates(root):
        elements = candidate()
        if elements:
            break
    if not elements:
        raise NoData("No frames found in XML data.")

    frames: list[FrameRecord] = []
    for idx, el in enumerate(elements):
        points: dict[str, list[PointRecord]] = {}
        points_el = el.find("Points")
        if points_el is not None:
            for point_el in points_el:
                category = point_el.tag
                if category.endswith(POINT_ELEMENT_SUFFIX):
                    category = category[: -len(POINT_ELEMENT_SUFFIX)]
                values = points.setdefault(category, [])
                values.append(
                    PointRecord(
                        id=_safe_int(point_el.get("id"), len(values) + 1),
                        x=_safe_int(point_el.get("x")),
                        y=_safe_int(point_el.get("y")),
                    )
                )
        frames.append(
            FrameRecord(
                id=_safe_int(el.get("id"), idx),
                name=el.get("name") or f"frame_{idx}.png",
                x=_safe_int(el.get("x")),
                y=_safe_int(el.get("y")),
                width=_dimension(el.get("width")),
                height=_dimension(el.get("height")),
                points=points,
            )
        )

    generated = root.findtext("./Metadata/Generated") or ""
    count = _safe_int(root.findtext("./Metadata/FrameCount"), len(frames))
    return SheetRecord(generated=generated, frame_count=count, frames=frames)


def _json_frame_candidates(data: Any) -> list[Callable[[], Any]]:
    def nested() -> Any:
        sheet = data.get("spriteSheet") if isinstance(data, dict) else None
        return sheet.get("frames") if isinstance(sheet, dict) else None

    return [
        nested,
        lambda: data.get("frames") if isinstance(data, dict) else None,
        lambda: data if isinstance(data, list) else None,
    ]


def from_json(text: str) -> SheetRecord:
    if not text or not text.strip():
        raise NoData("Empty JSON document.")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON format: {exc}") from exc

    entries: list = []
    for candidate in _json_frame_candidates(data):
        found = candidate()
        if isinstance(found, list) and found:
            entries = found
            break
    if not entries:
        raise NoData("Invalid JSON structure. No frames found.")

    frames: list[FrameRecord] = []
    warnings: list[str] = []
    for idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            _warn(warnings, f"Skipping frame entry {idx}: not an object.")
            continue
        points: dict[str, list[PointRecord]] = {}
        raw_points = entry.get("points") or {}
        if not isinstance(raw_points, dict):
            _warn(warnings, f"Frame {idx}: points is not an object, ignoring it.")
            raw_points = {}
        for category, values in raw_points.items():
            if not isinstance(values, list):
                _warn(warnings, f"Frame {idx}: skipping {category} points, not a list.")
                continue
            points[category] = []
            for i, p in enumerate(values):
                if not isinstance(p, dict):
                    _warn(warnings, f"Frame {idx}: skipping {category} point {i + 1}, not an object.")
                    continue
                where = f"Frame {idx} {category} point {i + 1}"
                points[category].append(
                    PointRecord(
                        id=_safe_int(p.get("id"), i + 1),
                        x=_finite_number(p.get("x"), warnings, where),
                        y=_finite_number(p.get("y"), warnings, where),
                    )
                )
        name = entry.get("name")
        frames.append(
            FrameRecord(
                id=_safe_int(entry.get("id"), idx),
                name=str(name) if name not in (None, "") else f"frame_{idx}.png",
                x=_safe_int(entry.get("x")),
                y=_safe_int(entry.get("y")),
                width=_dimension(entry.get("width")),
                height=_dimension(entry.get("height")),
                points=points,
            )
        )

    meta = data.get("metadata") if isinstance(data, dict) else None
    meta = meta if isinstance(meta, dict) else {}
    return SheetRecord(
        generated=str(meta.get("generated") or ""),
        frame_count=_safe_int(meta.get("frameCount"), len(frames)),
        frames=frames,
        warnings=warnings,
    )


def xml_to_json(text: str) -> str:
    return to_json(from_xml(text))


def json_to_xml(text: str) -> str:
    return to_xml(from_json(text))
