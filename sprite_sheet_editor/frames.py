from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, TYPE_CHECKING

from PIL import Image

from .coords import AbsolutePoint, Point, to_absolute
from .errors import IndexOutOfRange

if TYPE_CHECKING:
    from .points import CategoryTemplate


@dataclass
class Frame:
    image: Image.Image
    name: str
    points: dict[str, list[Point]] = field(default_factory=dict)

    @property
    def width(self) -> int:
        return self.image.size[0]

    @property
    def height(self) -> int:
        return self.image.size[1]

    def absolute_points(self, category: str) -> list[AbsolutePoint]:
        return [to_absolute(p, self.width, self.height) for p in self.points.get(category, [])]

    def label(self) -> str:
        return self.name


class FrameCollection:
    """Ordered frames in load order plus the active frame index."""

    def __init__(self) -> None:
        self.frames: list[Frame] = []
        self.active_idx: Optional[int] = None

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(self.frames)

    def __getitem__(self, index: int) -> Frame:
        self._check_index(index)
        return self.frames[index]

    def _check_index(self, index: int) -> None:
        if not (0 <= index < len(self.frames)):
            raise IndexOutOfRange(f"Frame index {index} outside 0..{len(self.frames) - 1}")

    def load(self, images: Iterable[tuple[Image.Image, str]], template: "CategoryTemplate") -> None:
        frames = [Frame(image=image, name=name) for image, name in images]
        for frame in frames:
            for category in template.names():
                frame.points[category] = template.placeholders(category)
        self.replace(frames)

    def replace(self, frames: list[Frame]) -> None:
        self.frames = list(frames)
        self.active_idx = None

    def clear(self) -> None:
        self.replace([])

    def current(self) -> Optional[Frame]:
        if self.active_idx is None or not (0 <= self.active_idx < len(self.frames)):
            return None
        return self.frames[self.active_idx]

    def select(self, index: int) -> Frame:
        self._check_index(index)
        self.active_idx = index
        return self.frames[index]

    def next(self) -> Optional[Frame]:
        if not self.frames:
            return None
        idx = -1 if self.active_idx is None else self.active_idx
        return self.select(idx + 1 if idx < len(self.frames) - 1 else 0)

    def previous(self) -> Optional[Frame]:
        if not self.frames:
            return None
        idx = -1 if self.active_idx is None else self.active_idx
        return self.select(idx - 1 if idx > 0 else len(self.frames) - 1)

    def vertical_offsets(self) -> list[int]:
        offsets: list[int] = []
        y = 0
        for frame in self.frames:
            offsets.append(y)
            y += frame.height
        return offsets
