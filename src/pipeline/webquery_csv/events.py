"""Structural events describing a tokenized WebQuery document.

The extraction engine never sees raw markup. An external tokenizer turns the
document into this ordered stream of element starts, element ends, text
runs and a single terminal end-of-document marker.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Union


class EventKind(enum.Enum):
    """Kinds of structural events the extractor dispatches on."""

    START_ELEMENT = "start_element"
    END_ELEMENT = "end_element"
    TEXT = "text"
    END_DOCUMENT = "end_document"


def _freeze_attrs(attrs: Mapping[str, str | None] | None) -> Mapping[str, str | None]:
    return MappingProxyType(dict(attrs or {}))


@dataclass(frozen=True)
class StartElement:
    """An element was opened.

    Attributes
    ----------
    name : str
        Lowercase element name, e.g. ``"col"`` or ``"td"``.
    attrs : Mapping[str, str | None]
        Read-only attribute mapping; valueless attributes map to ``None``.
    """

    name: str
    attrs: Mapping[str, str | None] = field(default_factory=dict)
    kind: EventKind = field(default=EventKind.START_ELEMENT, init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", self.name.lower())
        object.__setattr__(self, "attrs", _freeze_attrs(self.attrs))


@dataclass(frozen=True)
class EndElement:
    """An element was closed."""

    name: str
    kind: EventKind = field(default=EventKind.END_ELEMENT, init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", self.name.lower())


@dataclass(frozen=True)
class Text:
    """A run of character data."""

    data: str
    kind: EventKind = field(default=EventKind.TEXT, init=False)


@dataclass(frozen=True)
class EndDocument:
    """Terminal event: the document has been fully delivered."""

    kind: EventKind = field(default=EventKind.END_DOCUMENT, init=False)


StructuralEvent = Union[StartElement, EndElement, Text, EndDocument]

__all__ = [
    "EndDocument",
    "EndElement",
    "EventKind",
    "StartElement",
    "StructuralEvent",
    "Text",
]
