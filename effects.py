# effects.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
from PIL import Image, ImageFilter, ImageOps

from errors import InvalidArgument, MissingArgument, UnrecognizedDirective

# =============== Registry ===============
class EffectRegistry:
    def __init__(self) -> None:
        self._by_name: Dict[str, type[BaseEffect]] = {}

    def register(self, name: str, cls: type["BaseEffect"]) -> None:
        key = name.strip().lower()
        self._by_name[key] = cls

    def names(self) -> List[str]:
        return sorted(self._by_name.keys())

    def __contains__(self, name: str) -> bool:
        return name.strip().lower() in self._by_name

    def takes_argument(self, name: str) -> bool:
        return self._lookup(name).ARG_NAME is not None

    def create(self, name: str, arg: Optional[str] = None) -> "BaseEffect":
        """Build an effect from its directive name and (raw) argument token.

        The argument is required exactly when the effect class declares one;
        ``arg`` is ignored otherwise.
        """
        cls = self._lookup(name)
        if cls.ARG_NAME is None:
            return cls()
        if arg is None:
            raise MissingArgument(f"-{name.strip().lower()}")
        return cls(parse_f32(arg, directive=f"-{name.strip().lower()}"))

    def _lookup(self, name: str) -> type["BaseEffect"]:
        key = name.strip().lower()
        if key not in self._by_name:
            raise UnrecognizedDirective(name, [f"-{n}" for n in self.names()])
        return self._by_name[key]

REGISTRY = EffectRegistry()

# =============== Base & utils ===============
@dataclass(frozen=True)
class BaseEffect:
    # Name of the single numeric parameter, None for parameterless effects
    ARG_NAME = None

    def apply(self, img: Image.Image) -> Image.Image:
        """Return the transformed buffer. May return ``img`` itself."""
        raise NotImplementedError

    def describe(self) -> str:
        name = type(self).__name__
        if self.ARG_NAME is None:
            return name
        return f"{name}({getattr(self, self.ARG_NAME)})"


def parse_f32(token: str, *, directive: str) -> float:
    """Parse a CLI token as a finite 32-bit float."""
    s = token.strip()
    # float() also takes "1_0" and non-ASCII digits; plain ASCII numbers only
    if not s.isascii() or "_" in s:
        raise InvalidArgument(directive, token)
    try:
        v = float(s)
    except ValueError:
        raise InvalidArgument(directive, token) from None
    # Narrow to f32; anything past f32 range turns into inf here
    with np.errstate(over="ignore"):
        v32 = np.float32(v)
    if not math.isfinite(float(v32)):
        raise InvalidArgument(directive, token)
    return float(v32)


# Modes the effects work on directly; others are converted when an effect runs
WORKING_MODES = ("L", "LA", "RGB", "RGBA")
_WIDE_GRAY_MODES = ("I", "I;16", "I;16L", "I;16B", "I;16N")


def to_working_mode(img: Image.Image) -> Image.Image:
    if img.mode in WORKING_MODES:
        return img
    if img.mode in _WIDE_GRAY_MODES:
        # 16-bit gray: scale down to 8 bits instead of clipping
        arr = np.asarray(img).astype(np.float64) / 257.0
        return Image.fromarray(np.clip(np.rint(arr), 0, 255).astype(np.uint8))
    # Palette images with a transparent index, PA, RGBa, ...
    if img.has_transparency_data:
        return img.convert("RGBA")
    return img.convert("RGB")


def _split_alpha(img: Image.Image) -> Tuple[List[Image.Image], List[Image.Image]]:
    # (color bands, alpha bands); alpha is always last in the working modes
    bands = list(img.split())
    if "A" in img.getbands():
        return bands[:-1], bands[-1:]
    return bands, []


def _contrast_lut(amount: float) -> List[int]:
    k = np.float32(((100.0 + amount) / 100.0) ** 2)
    x = np.arange(256, dtype=np.float32) / np.float32(255.0)
    y = ((x - np.float32(0.5)) * k + np.float32(0.5)) * np.float32(255.0)
    return np.clip(np.rint(y), 0, 255).astype(np.uint8).tolist()

# =============== Effects ===============

@dataclass(frozen=True)
class Pass(BaseEffect):
    """No-op."""
    def apply(self, img):
        return img


@dataclass(frozen=True)
class Blur(BaseEffect):
    """Gaussian blur. Params: radius (standard deviation, pixels)"""
    radius: float = 0.0
    ARG_NAME = "radius"

    def apply(self, img):
        if self.radius > 0: # Non-positive radius leaves the buffer alone
            return to_working_mode(img).filter(ImageFilter.GaussianBlur(self.radius))
        return img


@dataclass(frozen=True)
class Contrast(BaseEffect):
    """
    Contrast adjustment. Params: amount (percent, 0 = no change,
    negative flattens toward mid-gray, positive pushes away from it).
    Alpha is left untouched.
    """
    amount: float = 0.0
    ARG_NAME = "amount"

    def apply(self, img):
        lut = _contrast_lut(self.amount)
        img = to_working_mode(img)
        color, alpha = _split_alpha(img)
        adjusted = [ch.point(lut) for ch in color]
        return Image.merge(img.mode, (*adjusted, *alpha))


@dataclass(frozen=True)
class Invert(BaseEffect):
    """Invert color channels, keep alpha."""
    def apply(self, img):
        img = to_working_mode(img)
        color, alpha = _split_alpha(img)
        inverted = [ImageOps.invert(ch) for ch in color]
        return Image.merge(img.mode, (*inverted, *alpha))

# =============== Registration Calls ===============
REGISTRY.register("pass", Pass)
REGISTRY.register("blur", Blur)
REGISTRY.register("contrast", Contrast)
REGISTRY.register("invert", Invert)
