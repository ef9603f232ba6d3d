class SpriteSheetError(Exception):
    """Base class for every error raised by the editor core."""


class ParseError(SpriteSheetError, ValueError):
    pass


class NoData(SpriteSheetError):
    pass


class NoFramesLoaded(NoData):
    pass


class DuplicateCategory(SpriteSheetError, ValueError):
    pass


class UnknownCategory(SpriteSheetError, KeyError):
    def __str__(self) -> str:
        # KeyError quotes its argument; keep messages readable.
        return str(self.args[0]) if self.args else ""


class IndexOutOfRange(SpriteSheetError, IndexError):
    pass


class UnsupportedFileType(SpriteSheetError, ValueError):
    pass


class InvalidCategoryName(SpriteSheetError, ValueError):
    pass
