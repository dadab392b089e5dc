import asyncio
import base64
import io
from collections import deque

import pytest
from PIL import Image

from models.session_models import DetectionResult
from services.openai.response_parser import ClassificationError
from services.realtime.frame_source import FrameSourceError

FAKE_FRAME = base64.b64encode(b"fake-jpeg-bytes")


def make_detection(**overrides) -> DetectionResult:
    values = {
        "is_applying_toothpaste": False,
        "is_brush_in_mouth": False,
        "is_brushing": False,
        "confidence": 0.9,
        "reasoning": "test",
    }
    values.update(overrides)
    return DetectionResult(**values)


class PendingClassifier:
    """Classifier whose calls stay outstanding until the test resolves them."""

    def __init__(self):
        self.calls = []
        self.futures = deque()

    async def classify(self, image_b64, current_state):
        self.calls.append(current_state)
        future = asyncio.get_running_loop().create_future()
        self.futures.append(future)
        return await future

    async def resolve(self, result):
        (await self._next_call()).set_result(result)

    async def fail(self, message="boom"):
        (await self._next_call()).set_exception(ClassificationError(message))

    async def _next_call(self):
        # classification tasks only start once the loop gets a turn
        for _ in range(100):
            if self.futures:
                return self.futures.popleft()
            await asyncio.sleep(0)
        raise AssertionError("no classification was requested")


class ScriptedClassifier:
    """Classifier that answers immediately from a script, repeating the last entry."""

    def __init__(self, *results):
        self.results = deque(results)
        self.calls = []

    async def classify(self, image_b64, current_state):
        self.calls.append(current_state)
        result = self.results[0] if len(self.results) == 1 else self.results.popleft()
        if isinstance(result, Exception):
            raise result
        return result


class StaticFrameSource:
    def __init__(self, frame=FAKE_FRAME):
        self.frame = frame
        self.failure = None

    def capture(self):
        if self.failure is not None:
            raise FrameSourceError(self.failure)
        return self.frame

    def acquire(self):
        self.failure = None

    def release(self):
        self.frame = None


def jpeg_bytes(size=(64, 48), color=(200, 30, 30), fmt="JPEG", mode="RGB") -> bytes:
    image = Image.new(mode, size, color if mode == "RGB" else color + (128,))
    out = io.BytesIO()
    image.save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def detection():
    return make_detection


@pytest.fixture
def frame_bytes():
    return jpeg_bytes
