# layers.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Union

from PIL import Image

from effects import REGISTRY as EFFECT_REGISTRY, BaseEffect
from errors import MissingArgument, UnrecognizedDirective

# ---------------------------------------------------------------------------
# Input / output selection
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PipeInput:
    """Read the encoded image from standard input."""


@dataclass(frozen=True)
class PathInput:
    path: Optional[str] = None  # None => no input chosen yet


@dataclass(frozen=True)
class DumpOutput:
    """Write PNG bytes to standard output."""


@dataclass(frozen=True)
class PathOutput:
    path: str


Input = Union[PipeInput, PathInput]
Output = Union[DumpOutput, PathOutput]


@dataclass
class Configuration:
    input: Input = field(default_factory=PathInput)
    output: Output = field(default_factory=DumpOutput)

# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------
def _placeholder() -> Image.Image:
    return Image.new("RGB", (1, 1))


@dataclass
class Layer:
    image: Image.Image = field(default_factory=_placeholder)
    effect_chain: List[BaseEffect] = field(default_factory=list)

    def append(self, effect: BaseEffect) -> None:
        self.effect_chain.append(effect)


@dataclass
class Pipeline:
    config: Configuration = field(default_factory=Configuration)
    layers: List[Layer] = field(default_factory=lambda: [Layer()])

    @property
    def first_layer(self) -> Layer:
        return self.layers[0]

    @property
    def current_layer(self) -> Layer:
        return self.layers[-1]

# ---------------------------------------------------------------------------
# Token stream -> Pipeline
# ---------------------------------------------------------------------------
def _next_arg(tokens: Iterator[str], directive: str) -> str:
    try:
        return next(tokens).strip()
    except StopIteration:
        raise MissingArgument(directive) from None


def build_pipeline(argv: Iterable[str]) -> Pipeline:
    """
    Walk the directive tokens once, left to right.

    I/O directives update the configuration as they are seen, except ``-i``
    whose path is applied after the last token so an explicit file always
    beats ``-pipe``. Effect directives append to the most recent layer.
    """
    pipeline = Pipeline()
    config = pipeline.config
    input_path: Optional[str] = None

    tokens = iter(argv)
    for raw in tokens:
        token = raw.strip()
        if token == "-i":
            input_path = _next_arg(tokens, token)
        elif token == "-o":
            config.output = PathOutput(_next_arg(tokens, token))
        elif token == "-pipe":
            config.input = PipeInput()
        elif token == "-dump":
            config.output = DumpOutput()
        elif token == "-layer":
            pipeline.layers.append(Layer())
        elif token.startswith("-") and token[1:] in EFFECT_REGISTRY.names():
            name = token[1:]
            arg = _next_arg(tokens, token) if EFFECT_REGISTRY.takes_argument(name) else None
            pipeline.current_layer.append(EFFECT_REGISTRY.create(name, arg))
        else:
            available = ["-i", "-o", "-pipe", "-dump", "-layer"]
            available += [f"-{n}" for n in EFFECT_REGISTRY.names()]
            raise UnrecognizedDirective(raw, available)

    if input_path is not None:
        config.input = PathInput(input_path)

    return pipeline
