"""Editing session: one owned object holding every piece of editor state.

The GUI talks only to a ``Session``.  Frames, the category template,
the point selection, the mode and the playback timer all live here and
are discarded together on a mode switch.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from PIL import Image

from .config import DEFAULT_PLAY_SPEED_MS, MODE_CREATE, MODE_EDIT
from .coords import Point, round_half_up, rounded_absolute
from .errors import NoData, NoFramesLoaded, ParseError
from .frames import Frame, FrameCollection
from .loader import LoadResult, PathLike, load_frame_images
from .playback import Playback
from .points import CategoryTemplate, PointModel, PointRef
from .reconcile import ImportReport, import_positions
from .render import Marker, current_markers
from .serialization import SheetRecord, build_sheet_record
from .sheet import ExportPayload, json_payload, sheet_payload, slice_frame, xml_payload

logger = logging.getLogger(__name__)


@dataclass
class EditLoadReport:
    frames_loaded: int = 0
    warnings: list[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


class Session:
    def __init__(self) -> None:
        self.mode = MODE_CREATE
        self.frames = FrameCollection()
        self.template = CategoryTemplate()
        self.model = PointModel(self.frames, self.template)
        self.playback: Optional[Playback] = None
        self._on_play_frame: Optional[Callable[[], None]] = None
        self.sheet_image: Optional[Image.Image] = None
        self.edit_record: Optional[SheetRecord] = None

    # Mode -----------------------------------------------------------------

    def set_mode(self, mode: str) -> None:
        if mode not in (MODE_CREATE, MODE_EDIT):
            raise ValueError(f"Unknown mode: {mode}")
        if mode != self.mode:
            self.reset()
        self.mode = mode

    def reset(self) -> None:
        self.stop_playback()
        self.frames.clear()
        self.template.clear()
        self.model.clear_selection()
        self.sheet_image = None
        self.edit_record = None

    # Frames ---------------------------------------------------------------

    def load_images(self, images: Iterable[tuple[Image.Image, str]]) -> None:
        self.stop_playback()
        self.frames.load(images, self.template)
        self.model.clear_selection()
        if len(self.frames) > 0:
            self.select_frame(0)
        logger.info("Loaded %d frame(s)", len(self.frames))

    def load_paths(self, paths: Iterable[PathLike]) -> LoadResult:
        result = load_frame_images(paths)
        self.load_images(result.images)
        return result

    def current_frame(self) -> Optional[Frame]:
        return self.frames.current()

    def _stop_for_manual(self, from_play: bool) -> None:
        if not from_play:
            self.stop_playback()

    def select_frame(self, index: int, from_play: bool = False) -> Frame:
        self._stop_for_manual(from_play)
        frame = self.frames.select(index)
        self.model.clear_selection()
        return frame

    def next_frame(self, from_play: bool = False) -> Optional[Frame]:
        if len(self.frames) == 0:
            return None
        self._stop_for_manual(from_play)
        frame = self.frames.next()
        self.model.clear_selection()
        return frame

    def previous_frame(self, from_play: bool = False) -> Optional[Frame]:
        if len(self.frames) == 0:
            return None
        self._stop_for_manual(from_play)
        frame = self.frames.previous()
        self.model.clear_selection()
        return frame

    def frame_label(self) -> str:
        if len(self.frames) > 0 and self.frames.active_idx is not None:
            return f"Frame {self.frames.active_idx + 1} of {len(self.frames)}"
        return "Frame 0 of 0"

    # Playback -------------------------------------------------------------

    def attach_playback(
        self,
        schedule: Callable[[int, Callable[[], None]], Any],
        cancel: Callable[[Any], None],
        interval_ms: int = DEFAULT_PLAY_SPEED_MS,
        on_frame: Optional[Callable[[], None]] = None,
    ) -> Playback:
        self.stop_playback()
        self._on_play_frame = on_frame
        self.playback = Playback(schedule, cancel, self._play_tick, interval_ms)
        return self.playback

    def _play_tick(self) -> bool:
        if self.next_frame(from_play=True) is None:
            return False
        if self._on_play_frame is not None:
            self._on_play_frame()
        return True

    def start_playback(self) -> bool:
        if self.playback is None or len(self.frames) == 0:
            return False
        self.playback.start()
        return True

    def stop_playback(self) -> None:
        if self.playback is not None:
            self.playback.stop()

    def is_playing(self) -> bool:
        return self.playback is not None and self.playback.is_playing

    def set_play_speed(self, interval_ms: int) -> None:
        if self.playback is not None:
            self.playback.set_interval(interval_ms)

    # Categories and points ------------------------------------------------

    def add_category(self, name: str) -> str:
        return self.model.add_category(name)

    def remove_category(self, name: str) -> None:
        self.model.remove_category(name)

    def add_point(self, category: str) -> int:
        return self.model.add_point_to_category(category)

    def remove_point(self, category: str, index: int) -> None:
        self.model.remove_point_from_category(category, index)

    def select_point(self, category: str, index: int) -> PointRef:
        return self.model.select_point(category, index)

    @property
    def selection(self) -> Optional[PointRef]:
        return self.model.selection

    def _require_current(self) -> int:
        active = self.frames.active_idx
        if active is None or self.frames.current() is None:
            raise NoFramesLoaded("No frame selected.")
        return active

    def place_selected_point(self, x: float, y: float) -> Optional[Point]:
        """Drop the armed point at a click position on the current frame."""
        sel = self.model.selection
        if sel is None or self.frames.current() is None:
            return None
        stored = self.set_current_point(sel.category, sel.index, x, y)
        self.model.clear_selection()
        return stored

    def set_current_point(self, category: str, index: int, x: float, y: float) -> Point:
        frame_index = self._require_current()
        return self.model.set_point(frame_index, category, index, round_half_up(x), round_half_up(y))

    def point_fields(self, category: str, index: int) -> tuple[str, str]:
        frame_index = self._require_current()
        frame = self.frames[frame_index]
        x, y = rounded_absolute(self.model.get_point(frame_index, category, index), frame.width, frame.height)
        return str(x), str(y)

    def edit_current_point(self, category: str, index: int, x_text: str, y_text: str) -> Optional[Point]:
        """Apply typed coordinates; text matching the displayed value is not an edit."""
        if (x_text.strip(), y_text.strip()) == self.point_fields(category, index):
            return None
        try:
            x, y = float(x_text), float(y_text)
        except ValueError as exc:
            raise ParseError("Point coordinates must be numbers.") from exc
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ParseError("Point coordinates must be finite numbers.")
        return self.set_current_point(category, index, x, y)

    def clear_current_point(self, category: str, index: int) -> None:
        self.model.clear_point(self._require_current(), category, index)

    def markers(self) -> list[Marker]:
        return current_markers(self.frames.current(), self.model.selection)

    # Legacy position import -----------------------------------------------

    def import_positions(self, text: str) -> ImportReport:
        report = import_positions(self.model, text)
        logger.info("Imported %d point(s) into %d categories", report.points_written, len(report.categories))
        return report

    # Edit workflow --------------------------------------------------------

    def set_sheet_image(self, image: Image.Image) -> None:
        self.sheet_image = image

    def set_edit_record(self, record: SheetRecord) -> None:
        self.edit_record = record

    def load_edit_data(
        self,
        sheet_image: Optional[Image.Image] = None,
        record: Optional[SheetRecord] = None,
    ) -> EditLoadReport:
        """Split a sprite sheet back into frames using its metadata."""
        sheet = sheet_image if sheet_image is not None else self.sheet_image
        record = record if record is not None else self.edit_record
        if sheet is None or record is None:
            raise NoData("Please upload both sprite sheet PNG and data file (XML or JSON).")

        report = EditLoadReport(warnings=list(record.warnings))
        frames: list[Frame] = []
        for idx, fr in enumerate(record.frames):
            if fr.width <= 0 or fr.height <= 0:
                report.warn(f"Invalid dimensions for frame {idx}: {fr.width}x{fr.height}")
                continue
            image = slice_frame(sheet, fr.x, fr.y, fr.width, fr.height)
            frames.append(Frame(image=image, name=fr.name, points=fr.absolute_points()))
        if not frames:
            raise NoData("No usable frames found in the sprite sheet data.")

        self.stop_playback()
        self.template.reset_from(frames[0].points)
        self.frames.replace(frames)
        self.model.clear_selection()
        for idx, frame in enumerate(frames[1:], start=1):
            for change in self.model.conform(frame):
                report.warn(f"Frame {idx} ({frame.name}): {change}")
        self.mode = MODE_CREATE
        self.select_frame(0)
        report.frames_loaded = len(frames)
        logger.info("Loaded %d frame(s) for editing", report.frames_loaded)
        return report

    # Export ---------------------------------------------------------------

    def sheet_record(self, generated: Optional[str] = None) -> SheetRecord:
        if len(self.frames) == 0:
            raise NoFramesLoaded("Please upload at least one image first.")
        return build_sheet_record(self.frames, generated)

    def export_sheet(self) -> ExportPayload:
        return sheet_payload(self.frames.frames)

    def export_xml(self, generated: Optional[str] = None) -> ExportPayload:
        return xml_payload(self.sheet_record(generated))

    def export_json(self, generated: Optional[str] = None) -> ExportPayload:
        return json_payload(self.sheet_record(generated))
