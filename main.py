#!/usr/bin/env python3
from __future__ import annotations

import sys
from typing import List, Optional, TextIO, BinaryIO

from PIL import Image

from errors import MissingInput, PipelineError, WriteFailure
from images import decode_bytes, encode_png, load_image, read_stream, save_image, write_stream
from layers import DumpOutput, PathInput, PathOutput, Pipeline, PipeInput, build_pipeline

USAGE = """\
usage: layerfx (-i PATH | -pipe) [-o PATH | -dump] [EFFECT ...] [-layer EFFECT ...]

  -i PATH           read the image from PATH (wins over -pipe)
  -pipe             read the image from standard input
  -o PATH           write to PATH, format from the extension
  -dump             write PNG to standard output (default)
  -layer            start a new layer; following effects go to it
  -pass             no-op
  -blur SIGMA       gaussian blur
  -contrast AMOUNT  contrast change in percent (0 = none)
  -invert           invert colors
"""

# ----- Executor -----
class Executor:
    """Loads the source into layer 0, runs every layer's chain, emits layer 0."""

    def __init__(
        self,
        *,
        stdin: Optional[BinaryIO] = None,
        stdout: Optional[BinaryIO] = None,
        stderr: Optional[TextIO] = None,
    ) -> None:
        # None => use the process streams, looked up only when needed
        self.stdin = stdin
        self.stdout = stdout
        self.stderr = stderr

    def _diag(self, msg: str) -> None:
        stream = self.stderr if self.stderr is not None else sys.stderr
        if stream is not None:  # detached process
            print(msg, file=stream)

    def load_source(self, pipeline: Pipeline) -> Image.Image:
        source = pipeline.config.input
        if isinstance(source, PipeInput):
            stream = self.stdin if self.stdin is not None else getattr(sys.stdin, "buffer", None)
            # No stdin at all reads as nothing, like a failed read
            data = read_stream(stream) if stream is not None else b""
            self._diag(f"read {len(data)} bytes")
            return decode_bytes(data)
        if isinstance(source, PathInput) and source.path is not None:
            return load_image(source.path)
        raise MissingInput()

    def apply_layers(self, pipeline: Pipeline) -> None:
        for layer in pipeline.layers:
            self._diag("layer:")
            for effect in layer.effect_chain:
                self._diag(f"    {effect.describe()}")
                layer.image = effect.apply(layer.image)

    def emit(self, pipeline: Pipeline, img: Image.Image) -> None:
        sink = pipeline.config.output
        if isinstance(sink, DumpOutput):
            data = encode_png(img)
            stream = self.stdout if self.stdout is not None else getattr(sys.stdout, "buffer", None)
            if stream is None:
                raise WriteFailure("standard output is not available")
            write_stream(stream, data)
        elif isinstance(sink, PathOutput):
            save_image(img, sink.path)
        else:
            raise TypeError(f"Unknown output {sink!r}")

    def run(self, pipeline: Pipeline) -> Image.Image:
        pipeline.first_layer.image = self.load_source(pipeline)
        self.apply_layers(pipeline)
        # Only layer 0 is emitted; later layers are processed but unused
        output_image = pipeline.first_layer.image
        self.emit(pipeline, output_image)
        return output_image

# ---------------- Main Execution ----------------

def main(argv: Optional[List[str]] = None) -> int:
    """Builds the pipeline from the argument tokens and runs it."""
    argv = sys.argv[1:] if argv is None else argv

    if not argv:  # Nothing to do without at least an input
        print(USAGE, end="", file=sys.stderr)
        return 1

    try:
        pipeline = build_pipeline(argv)
        Executor().run(pipeline)
        return 0
    except PipelineError as e:
        print(f"[Error] {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"[Error] An unexpected error occurred: {e}", file=sys.stderr)
        return 2

if __name__ == "__main__":
    sys.exit(main())
