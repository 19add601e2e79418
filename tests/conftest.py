import io
import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]

# Flat layout: make the top-level modules importable without an install
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def rgb_image() -> Image.Image:
    """Deterministic 32x24 RGB gradient with some structure in every channel."""
    h, w = 24, 32
    yy, xx = np.indices((h, w))
    arr = np.stack(
        [
            (xx * 8) % 256,
            (yy * 10) % 256,
            ((xx + yy) * 5) % 256,
        ],
        axis=2,
    ).astype(np.uint8)
    return Image.fromarray(arr, "RGB")


@pytest.fixture
def rgba_image(rgb_image) -> Image.Image:
    img = rgb_image.convert("RGBA")
    alpha = Image.linear_gradient("L").resize(img.size)
    img.putalpha(alpha)
    return img


@pytest.fixture
def png_bytes(rgb_image) -> bytes:
    buf = io.BytesIO()
    rgb_image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_file(tmp_path, rgb_image) -> Path:
    path = tmp_path / "sample.png"
    rgb_image.save(path)
    return path
