# images.py
from __future__ import annotations

import io
import os
from typing import Any, BinaryIO
from urllib.parse import unquote, urlparse

from PIL import Image, UnidentifiedImageError

from errors import DecodeFailure, EncodeFailure, ReadFailure, WriteFailure

# ------------------------------------------------------------
# Path handling (file:// URIs)
# ------------------------------------------------------------
def _sanitize_path(p: Any) -> str:
    """
    Accepts a plain filesystem path or a file:// URI
    (e.g. file:///home/me/My%20File.png) and returns a filesystem path.
    """
    s = str(p)
    if s.lower().startswith("file:"):
        u = urlparse(s)
        s = unquote(u.path)
        # Windows: /C:/... -> C:/...
        if os.name == "nt" and len(s) >= 3 and s[0] == "/" and s[2] == ":":
            s = s[1:]
    return s

# ------------------------------------------------------------
# Source side
# ------------------------------------------------------------
def read_stream(stream: BinaryIO) -> bytes:
    """
    Read a binary stream to EOF. A failing read is not reported; whatever
    arrived before the failure is returned.
    """
    chunks = []
    try:
        for chunk in iter(lambda: stream.read(65536), b""):
            chunks.append(chunk)
    except OSError:
        pass
    return b"".join(chunks)


def _decode(opener, label: str) -> Image.Image:
    try:
        img = opener()
        img.load()  # PIL decodes lazily; force it so errors surface here
    except UnidentifiedImageError as e:
        raise DecodeFailure(f"{label}: not a recognized image format ({e})") from e
    except (FileNotFoundError, IsADirectoryError, PermissionError) as e:
        raise ReadFailure(f"{label}: {e.strerror or e}") from e
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise DecodeFailure(f"{label}: {e}") from e
    return img


def decode_bytes(data: bytes) -> Image.Image:
    """Decode an in-memory image, detecting the format from its signature."""
    return _decode(lambda: Image.open(io.BytesIO(data)), "stdin")


def load_image(path: str) -> Image.Image:
    """Open and decode an image file, letting Pillow infer the format."""
    p = _sanitize_path(path)
    return _decode(lambda: Image.open(p), p)

# ------------------------------------------------------------
# Sink side
# ------------------------------------------------------------
def encode_png(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    try:
        img.save(buf, format="PNG")
    except (OSError, ValueError, KeyError) as e:
        raise EncodeFailure(f"could not encode PNG: {e}") from e
    return buf.getvalue()


def write_stream(stream: BinaryIO, data: bytes) -> None:
    try:
        stream.write(data)
        stream.flush()
    except OSError as e:
        raise WriteFailure(f"could not write output: {e}") from e


def save_image(img: Image.Image, path: str) -> None:
    """Save to ``path``; the format comes from the file extension."""
    # Pick the format up front so an unknown extension is an encode error,
    # not a half-written file
    ext = os.path.splitext(path)[1].lower()
    Image.init()
    fmt = Image.EXTENSION.get(ext)
    if fmt is None:
        raise EncodeFailure(f"unknown output format for '{path}'")

    buf = io.BytesIO()
    try:
        img.save(buf, format=fmt)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeFailure(f"could not encode {fmt} for '{path}': {e}") from e
    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)) or ".", exist_ok=True)
        with open(path, "wb") as fh:
            fh.write(buf.getvalue())
    except OSError as e:
        raise WriteFailure(f"could not write '{path}': {e}") from e
