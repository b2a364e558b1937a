"""Exception hierarchy for the stylesheet sync engine."""

from __future__ import annotations


class ScissorsError(Exception):
    """Base class for every error raised by scissors_core."""


class ParseError(ScissorsError):
    """Raised by a Parser when stylesheet source text cannot be parsed."""

    def __init__(
        self, message: str, line: int | None = None, column: int | None = None
    ) -> None:
        self.line = line
        self.column = column
        where = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"{message}{where}")


class InvalidRuleError(ScissorsError):
    """A structured rule of a known kind has a broken shape."""


class MalformedDiffError(ScissorsError):
    """An incoming wire diff does not match the expected entry shapes."""

    def __init__(self, message: str, path: str = "$") -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class RuleRejectedError(ScissorsError):
    """A sink refused to insert a rule (unsupported or malformed CSS)."""


class RemovalError(ScissorsError):
    """A sink could not remove the rule at a position."""


class DeliveryError(ScissorsError):
    """One or more connections failed to receive a broadcast message."""

    def __init__(self, failures: list[Exception]) -> None:
        self.failures = failures
        super().__init__(
            f"{len(failures)} connection(s) failed: "
            + "; ".join(str(f) for f in failures)
        )
