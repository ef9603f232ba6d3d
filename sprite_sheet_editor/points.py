"""Per-frame point categories.

The category template records how many points each category holds.
Every frame carries an array of exactly that length per category; all
structural edits below are applied to the template and to every frame
in the same call so the lengths never drift apart.  A point's identity
is its index inside the category array.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from .coords import AbsolutePoint, PLACEHOLDER, Point, RelativePoint, to_relative
from .errors import DuplicateCategory, IndexOutOfRange, UnknownCategory
from .frames import Frame, FrameCollection


@dataclass(frozen=True)
class PointRef:
    category: str
    index: int

    def label(self) -> str:
        return f"{self.category} Point {self.index + 1}"


class CategoryTemplate:
    def __init__(self) -> None:
        self._counts: dict[str, int] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._counts

    def __len__(self) -> int:
        return len(self._counts)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._counts))

    def names(self) -> list[str]:
        return list(self._counts)

    def count(self, name: str) -> int:
        if name not in self._counts:
            raise UnknownCategory(f"Unknown category: {name}")
        return self._counts[name]

    def placeholders(self, name: str) -> list[Point]:
        return [PLACEHOLDER] * self.count(name)

    def as_dict(self) -> dict[str, int]:
        return dict(self._counts)

    def clear(self) -> None:
        self._counts.clear()

    def _add(self, name: str) -> None:
        self._counts[name] = 0

    def _remove(self, name: str) -> None:
        self._counts.pop(name, None)

    def _set_count(self, name: str, count: int) -> None:
        self._counts[name] = count

    def reset_from(self, points: dict[str, list[Point]]) -> None:
        self._counts = {name: len(values) for name, values in points.items()}


class PointModel:
    def __init__(self, frames: FrameCollection, template: Optional[CategoryTemplate] = None) -> None:
        self.frames = frames
        self.template = template if template is not None else CategoryTemplate()
        self.selection: Optional[PointRef] = None

    # Categories -----------------------------------------------------------

    def add_category(self, name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise DuplicateCategory("Category name is empty.")
        if name in self.template:
            raise DuplicateCategory(f"Category already exists: {name}")
        self._create_category(name)
        return name

    def ensure_category(self, name: str) -> bool:
        if name in self.template:
            return False
        self._create_category(name)
        return True

    def _create_category(self, name: str) -> None:
        self.template._add(name)
        for frame in self.frames:
            frame.points.setdefault(name, [])

    def remove_category(self, name: str) -> None:
        self.template._remove(name)
        for frame in self.frames:
            frame.points.pop(name, None)
        if self.selection is not None and self.selection.category == name:
            self.selection = None

    def categories(self) -> list[str]:
        return self.template.names()

    # Point slots ----------------------------------------------------------

    def add_point_to_category(self, name: str) -> int:
        count = self.template.count(name)
        self.template._set_count(name, count + 1)
        for frame in self.frames:
            frame.points.setdefault(name, []).append(PLACEHOLDER)
        return count

    def ensure_point_slots(self, name: str, count: int) -> None:
        while self.template.count(name) < count:
            self.add_point_to_category(name)

    def remove_point_from_category(self, name: str, index: int) -> None:
        count = self.template.count(name)
        if not (0 <= index < count):
            raise IndexOutOfRange(f"{name} has no point {index} (has {count})")
        self.template._set_count(name, count - 1)
        for frame in self.frames:
            del frame.points[name][index]
        sel = self.selection
        if sel is not None and sel.category == name and sel.index >= index:
            self.selection = None

    # Point values ---------------------------------------------------------

    def _slot(self, frame_index: int, category: str, index: int) -> tuple[Frame, list[Point]]:
        frame = self.frames[frame_index]
        count = self.template.count(category)
        if not (0 <= index < count):
            raise IndexOutOfRange(f"{category} has no point {index} (has {count})")
        return frame, frame.points[category]

    def get_point(self, frame_index: int, category: str, index: int) -> Point:
        _frame, values = self._slot(frame_index, category, index)
        return values[index]

    def set_point(self, frame_index: int, category: str, index: int, x: float, y: float) -> Point:
        """Store an absolute (screen) position into a slot.

        A slot that already holds a center-relative point keeps that tag:
        the incoming position is converted into the frame's relative space.
        """
        frame, values = self._slot(frame_index, category, index)
        incoming = AbsolutePoint(x, y)
        if isinstance(values[index], RelativePoint):
            stored: Point = to_relative(incoming, frame.width, frame.height)
        else:
            stored = incoming
        values[index] = stored
        return stored

    def set_relative_point(self, frame_index: int, category: str, index: int, x: float, y: float) -> Point:
        _frame, values = self._slot(frame_index, category, index)
        values[index] = RelativePoint(x, y)
        return values[index]

    def clear_point(self, frame_index: int, category: str, index: int) -> None:
        _frame, values = self._slot(frame_index, category, index)
        values[index] = PLACEHOLDER

    # Selection ------------------------------------------------------------

    def select_point(self, category: str, index: int) -> PointRef:
        count = self.template.count(category)
        if not (0 <= index < count):
            raise IndexOutOfRange(f"{category} has no point {index} (has {count})")
        self.selection = PointRef(category, index)
        return self.selection

    def clear_selection(self) -> None:
        self.selection = None

    def is_selected(self, category: str, index: int) -> bool:
        return self.selection == PointRef(category, index)

    # Structure ------------------------------------------------------------

    def conform(self, frame: Frame) -> list[str]:
        """Pad or trim a frame's arrays to the template; return what changed."""
        changes: list[str] = []
        for name in list(frame.points):
            if name not in self.template:
                del frame.points[name]
                changes.append(f"dropped category {name}")
        for name in self.template:
            values = frame.points.setdefault(name, [])
            want = self.template.count(name)
            if len(values) < want:
                changes.append(f"{name}: padded {len(values)} -> {want}")
                values.extend([PLACEHOLDER] * (want - len(values)))
            elif len(values) > want:
                changes.append(f"{name}: trimmed {len(values)} -> {want}")
                del values[want:]
        return changes

    def is_aligned(self) -> bool:
        for frame in self.frames:
            if set(frame.points) != set(self.template.names()):
                return False
            for name in self.template:
                if len(frame.points[name]) != self.template.count(name):
                    return False
        return True
