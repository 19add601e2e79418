# errors.py
from __future__ import annotations


class PipelineError(Exception):
    """Base class for every fatal condition in a layerfx run."""


# ---------------- token parsing ----------------
class MissingArgument(PipelineError):
    def __init__(self, directive: str) -> None:
        super().__init__(f"'{directive}' needs an argument")
        self.directive = directive


class InvalidArgument(PipelineError):
    def __init__(self, directive: str, value: str, reason: str = "must be a finite 32-bit float") -> None:
        super().__init__(f"'{directive}' argument {value!r} {reason}")
        self.directive = directive
        self.value = value


class UnrecognizedDirective(PipelineError):
    def __init__(self, token: str, available: list[str] | None = None) -> None:
        msg = f"couldn't parse input: unknown directive '{token}'"
        if available:
            msg += f". Available: {', '.join(available)}"
        super().__init__(msg)
        self.token = token


# ---------------- source side ----------------
class MissingInput(PipelineError):
    def __init__(self) -> None:
        super().__init__("input needed (use -i <path> or -pipe)")


class ReadFailure(PipelineError):
    pass


class DecodeFailure(PipelineError):
    pass


# ---------------- sink side ----------------
class EncodeFailure(PipelineError):
    pass


class WriteFailure(PipelineError):
    pass
