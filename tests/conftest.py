import pytest
from PIL import Image

from sprite_sheet_editor.frames import FrameCollection
from sprite_sheet_editor.points import PointModel
from sprite_sheet_editor.session import Session


def make_image(width, height, color=(255, 0, 0, 255)):
    return Image.new("RGBA", (width, height), color)


def make_images(*sizes):
    return [(make_image(w, h), f"frame_{i}.png") for i, (w, h) in enumerate(sizes)]


@pytest.fixture
def model():
    frames = FrameCollection()
    point_model = PointModel(frames)
    frames.load(make_images((10, 10), (20, 20), (30, 30)), point_model.template)
    return point_model


@pytest.fixture
def session():
    s = Session()
    s.load_images(make_images((10, 10), (20, 20), (30, 30)))
    return s


class FakeScheduler:
    def __init__(self):
        self.pending = {}
        self.cancelled = []
        self._next_id = 0

    def after(self, ms, callback):
        self._next_id += 1
        self.pending[self._next_id] = (ms, callback)
        return self._next_id

    def cancel(self, handle):
        self.cancelled.append(handle)
        self.pending.pop(handle, None)

    def fire(self):
        handles = list(self.pending)
        for handle in handles:
            _ms, callback = self.pending.pop(handle)
            callback()


@pytest.fixture
def scheduler():
    return FakeScheduler()
