import pytest

from visionbot.vision_client import VisionResult
from fakes import FakeMessenger, FakeVision


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def vision():
    return FakeVision(
        VisionResult(
            tags=("cat", "indoor"),
            categories=("animal_cat",),
            captions=("a cat sitting on a couch",),
        )
    )
