from dataclasses import dataclass
from io import BytesIO
from typing import Sequence

from PIL import Image

from .config import JSON_FILENAME, JSON_MIME, PNG_MIME, SHEET_FILENAME, XML_FILENAME, XML_MIME
from .errors import NoFramesLoaded
from .frames import Frame
from .serialization import SheetRecord, to_json, to_xml


@dataclass
class ExportPayload:
    data: bytes
    filename: str
    mime_type: str


def compose_sheet(frames: Sequence[Frame]) -> Image.Image:
    if not frames:
        raise NoFramesLoaded("Load at least one frame first.")
    sheet_w = max(frame.width for frame in frames)
    sheet_h = sum(frame.height for frame in frames)
    sheet = Image.new("RGBA", (sheet_w, sheet_h), (0, 0, 0, 0))
    y = 0
    for frame in frames:
        sheet.alpha_composite(frame.image.convert("RGBA"), (0, y))
        y += frame.height
    return sheet


def slice_frame(sheet: Image.Image, x: int, y: int, width: int, height: int) -> Image.Image:
    # crop() pads with transparent pixels when the rectangle leaves the sheet.
    return sheet.convert("RGBA").crop((x, y, x + width, y + height))


def encode_png(image: Image.Image) -> bytes:
    b = BytesIO()
    image.save(b, format="PNG")
    return b.getvalue()


def sheet_payload(frames: Sequence[Frame]) -> ExportPayload:
    return ExportPayload(encode_png(compose_sheet(frames)), SHEET_FILENAME, PNG_MIME)


def xml_payload(record: SheetRecord) -> ExportPayload:
    return ExportPayload(to_xml(record).encode("utf-8"), XML_FILENAME, XML_MIME)


def json_payload(record: SheetRecord) -> ExportPayload:
    return ExportPayload(to_json(record).encode("utf-8"), JSON_FILENAME, JSON_MIME)
