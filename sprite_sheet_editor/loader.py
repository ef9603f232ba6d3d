import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Union

from PIL import Image, UnidentifiedImageError

from .errors import ParseError, UnsupportedFileType
from .serialization import SheetRecord, from_json, from_xml

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class LoadResult:
    images: list[tuple[Image.Image, str]] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def expand_png_paths(raw_paths: Iterable[PathLike]) -> list[str]:
    expanded: list[str] = []
    seen: set[str] = set()
    for raw in raw_paths:
        if raw is None:
            continue
        p = str(raw).strip().strip('"').strip("{}")
        if p == "":
            continue
        path_obj = Path(p)
        if path_obj.is_dir():
            candidates = sorted(path_obj.glob("*.png"))
        else:
            candidates = [path_obj]
        for candidate in candidates:
            candidate_str = str(candidate)
            if not candidate_str.lower().endswith(".png"):
                logger.info("Ignoring non-PNG file %s", candidate_str)
                continue
            key = os.path.normcase(candidate_str)
            if key in seen:
                continue
            seen.add(key)
            expanded.append(candidate_str)
    return expanded


def _open_png(path: PathLike) -> Image.Image:
    try:
        with Image.open(path) as img:
            if img.format != "PNG":
                raise UnsupportedFileType(f"{Path(path).name} is not a PNG image.")
            return img.convert("RGBA")
    except UnidentifiedImageError as exc:
        raise UnsupportedFileType(f"{Path(path).name} is not a PNG image.") from exc


def load_frame_images(raw_paths: Iterable[PathLike]) -> LoadResult:
    paths = expand_png_paths(raw_paths)
    if not paths:
        raise UnsupportedFileType("Please select at least one PNG image.")
    result = LoadResult()
    for path in paths:
        try:
            result.images.append((_open_png(path), Path(path).name))
        except (UnsupportedFileType, OSError) as exc:
            logger.warning("Skip %s: %s", Path(path).name, exc)
            result.skipped.append(f"{Path(path).name}: {exc}")
    if not result.images:
        raise UnsupportedFileType("None of the selected files could be read as PNG images.")
    return result


def load_sheet_image(path: PathLike) -> Image.Image:
    if not str(path).lower().endswith(".png"):
        raise UnsupportedFileType("Please select a PNG file.")
    return _open_png(path)


def read_metadata(path: PathLike) -> SheetRecord:
    suffix = Path(path).suffix.lower()
    if suffix not in (".xml", ".json"):
        raise UnsupportedFileType("Please select an XML or JSON file.")
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"{Path(path).name} is not valid UTF-8 text.") from exc
    return from_xml(text) if suffix == ".xml" else from_json(text)
