from .coords import AbsolutePoint, CoordinateSpace, RelativePoint, to_absolute, to_relative
from .errors import (
    DuplicateCategory,
    IndexOutOfRange,
    InvalidCategoryName,
    NoData,
    NoFramesLoaded,
    ParseError,
    SpriteSheetError,
    UnknownCategory,
    UnsupportedFileType,
)
from .frames import Frame, FrameCollection
from .points import CategoryTemplate, PointModel, PointRef
from .session import Session

__all__ = [
    "AbsolutePoint",
    "CategoryTemplate",
    "CoordinateSpace",
    "DuplicateCategory",
    "Frame",
    "FrameCollection",
    "IndexOutOfRange",
    "InvalidCategoryName",
    "NoData",
    "NoFramesLoaded",
    "ParseError",
    "PointModel",
    "PointRef",
    "RelativePoint",
    "Session",
    "SpriteSheetError",
    "UnknownCategory",
    "UnsupportedFileType",
    "to_absolute",
    "to_relative",
]
