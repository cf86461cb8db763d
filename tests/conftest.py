import io

import pytest
from PIL import Image

from personalize.errors import FetchError


def make_png(size=(100, 100), color=(255, 255, 255, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeFetcher:
    """Serves bytes from a dict; unknown URLs behave like a 404."""

    def __init__(self, assets=None):
        self.assets = dict(assets or {})
        self.calls = []

    def __call__(self, url: str) -> bytes:
        self.calls.append(url)
        if url not in self.assets:
            raise FetchError(url, "404 Not Found", status_code=404)
        return self.assets[url]


class FakeTextGenerator:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def generate(self, prompt: str, system_instruction: str):
        self.calls.append((prompt, system_instruction))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def png():
    return make_png


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def text_generator():
    return FakeTextGenerator
