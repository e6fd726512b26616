import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from caption_overlay.config import StyleConfig


def char_measure(text: str) -> float:
    """Deterministic stand-in for font metrics: 10px per character."""
    return 10.0 * len(text)


@pytest.fixture
def measure():
    return char_measure


@pytest.fixture
def config():
    return StyleConfig()


@pytest.fixture
def png_bytes():
    """A small solid black PNG."""
    buf = io.BytesIO()
    Image.new("RGB", (64, 96), (0, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def client():
    """FastAPI test client; restores the service default config afterwards."""
    from api_text_overlay.main import app, overlay_service

    original = overlay_service.config
    yield TestClient(app)
    overlay_service.replace_config(original)
