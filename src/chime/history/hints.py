"""Tagged hint values for notifications.

Freedesktop hints arrive as a{sv}: arbitrary variants. We narrow them to a
small tagged union so the history file has a well-defined encoding.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Union

from dbus_next import Variant

HintScalar = Union[str, int, float, bool, bytes]

KINDS = ("str", "int", "float", "bool", "bytes", "list", "dict")


@dataclass(frozen=True)
class Hint:
    """A single hint value tagged with its kind.

    `list` hints hold a tuple of nested Hints (e.g. the image-data struct).
    `dict` hints hold a tuple of (key, Hint) pairs, in the order received.
    """

    kind: str
    value: HintScalar | tuple[Hint, ...] | tuple[tuple[str, Hint], ...]

    @classmethod
    def wrap(cls, value: Any) -> Hint:
        """Build a Hint from a plain Python or D-Bus value."""
        if isinstance(value, Hint):
            return value
        if isinstance(value, Variant):
            return cls.wrap(value.value)
        # bool before int, bool is an int subclass
        if isinstance(value, bool):
            return cls("bool", value)
        if isinstance(value, int):
            return cls("int", value)
        if isinstance(value, float):
            return cls("float", value)
        if isinstance(value, str):
            return cls("str", value)
        if isinstance(value, (bytes, bytearray)):
            return cls("bytes", bytes(value))
        if isinstance(value, (list, tuple)):
            return cls("list", tuple(cls.wrap(v) for v in value))
        if isinstance(value, dict):
            return cls("dict", tuple((str(k), cls.wrap(v)) for k, v in value.items()))
        # anything else exotic is kept as its text form
        return cls("str", str(value))

    def unwrap(self) -> Any:
        """Return the plain Python value."""
        if self.kind == "list":
            return [h.unwrap() for h in self.value]  # type: ignore[union-attr]
        if self.kind == "dict":
            return {k: h.unwrap() for k, h in self.value}  # type: ignore[misc]
        return self.value

    def to_json(self) -> dict[str, Any]:
        if self.kind == "bytes":
            value: Any = base64.b64encode(self.value).decode("ascii")  # type: ignore[arg-type]
        elif self.kind == "list":
            value = [h.to_json() for h in self.value]  # type: ignore[union-attr]
        elif self.kind == "dict":
            value = {k: h.to_json() for k, h in self.value}  # type: ignore[misc]
        else:
            value = self.value
        return {"type": self.kind, "value": value}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Hint:
        """Decode a tagged hint. Raises ValueError on unknown or mistyped tags."""
        kind = data["type"]
        value = data["value"]
        if kind == "bytes":
            return cls(kind, base64.b64decode(value))
        if kind == "list":
            return cls(kind, tuple(cls.from_json(v) for v in value))
        if kind == "dict":
            if not isinstance(value, dict):
                raise ValueError(f"hint value {value!r} is not a dict")
            return cls(kind, tuple((str(k), cls.from_json(v)) for k, v in value.items()))
        if kind not in KINDS:
            raise ValueError(f"unknown hint type: {kind!r}")

        expected = {"str": str, "int": int, "float": float, "bool": bool}[kind]
        # JSON writes 1.0 as 1.0 but be lenient with ints for float hints
        if kind == "float" and type(value) is int:
            value = float(value)
        if type(value) is not expected:
            raise ValueError(f"hint value {value!r} is not a {kind}")
        return cls(kind, value)


def wrap_hints(hints: dict[str, Any] | None) -> dict[str, Hint]:
    """Wrap a mapping of raw hint values (or D-Bus variants) into Hints."""
    if not hints:
        return {}
    return {str(k): Hint.wrap(v) for k, v in hints.items()}
