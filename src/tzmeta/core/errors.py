from collections.abc import Sequence
from typing import Any

PathStep = str | int


class TzmetaError(Exception):
    """Base class for errors raised by the metadata core."""


class MetadataDecodeError(TzmetaError):
    """A document (or a fragment of it) does not have the expected shape.

    ``path`` is the sequence of object keys and array indexes leading to the
    offending value, ``expected`` describes what was expected there and
    ``actual`` is the value that was found.
    """

    def __init__(self, path: Sequence[PathStep], expected: str, actual: Any = None) -> None:
        self.path: tuple[PathStep, ...] = tuple(path)
        self.expected = expected
        self.actual = actual
        super().__init__(self._message())

    @property
    def json_path(self) -> str:
        out = "$"
        for step in self.path:
            out += f"[{step}]" if isinstance(step, int) else f".{step}"
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetadataDecodeError):
            return NotImplemented
        return (self.path, self.expected, repr(self.actual)) == (other.path, other.expected, repr(other.actual))

    def __hash__(self) -> int:
        return hash((self.path, self.expected, repr(self.actual)))

    def prefixed(self, *prefix: PathStep) -> "MetadataDecodeError":
        return MetadataDecodeError((*prefix, *self.path), self.expected, self.actual)

    def _message(self) -> str:
        return f"At path {self.json_path}: expecting {self.expected} but got {self.actual!r}"


class TreeDecodeError(TzmetaError):
    """A Micheline value returned by a view does not have the expected structure."""

    def __init__(self, message: str, rendered: str) -> None:
        self.rendered = rendered
        super().__init__(f"{message}: {rendered}")


class ViewCallError(TzmetaError):
    """Calling an off-chain view failed; the message is opaque and human-readable."""


class MetadataUriError(TzmetaError):
    def __init__(self, kind: str, input: str, detail: str | None = None) -> None:
        self.kind = kind
        self.input = input
        self.detail = detail
        message = f"Failed to parse URI {input!r}: {kind}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)
