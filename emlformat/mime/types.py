from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime


class HeaderMap(Mapping[str, str | tuple[str, ...]]):
    """Ordered, case-insensitive view over a message header block.

    A name that occurred once maps to its value; a repeated name maps to the
    tuple of its values in appearance order.
    """

    __slots__ = ("_names", "_values")

    def __init__(self, items: Mapping[str, list[str]] | None = None) -> None:
        self._names: dict[str, str] = {}
        self._values: dict[str, tuple[str, ...]] = {}
        for name, values in (items or {}).items():
            key = name.lower()
            self._names.setdefault(key, name)
            self._values[key] = self._values.get(key, ()) + tuple(values)

    def __getitem__(self, name: str) -> str | tuple[str, ...]:
        values = self._values[name.lower()]
        return values[0] if len(values) == 1 else values

    def __iter__(self) -> Iterator[str]:
        return iter(self._names.values())

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HeaderMap):
            return list(self.items_all()) == list(other.items_all())
        return super().__eq__(other)

    def __repr__(self) -> str:
        return f"HeaderMap({dict(self.items())!r})"

    def get(self, name: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._values.get(name.lower())
        return values[0] if values else default

    def get_all(self, name: str) -> list[str]:
        return list(self._values.get(name.lower(), ()))

    def is_multi(self, name: str) -> bool:
        return len(self._values.get(name.lower(), ())) > 1

    def items_all(self) -> Iterator[tuple[str, list[str]]]:
        for key, name in self._names.items():
            yield name, list(self._values[key])


@dataclass(frozen=True)
class Leaf:
    text: str


@dataclass(frozen=True)
class BoundaryPart:
    marker: str
    part: ParseNode


@dataclass(frozen=True)
class Multipart:
    parts: tuple[BoundaryPart, ...]


Body = Leaf | Multipart


@dataclass(frozen=True)
class ParseNode:
    headers: HeaderMap
    body: Body | None = None

    @property
    def is_multipart(self) -> bool:
        return isinstance(self.body, Multipart)

    def walk(self) -> Iterator[ParseNode]:
        """Yield the non-multipart nodes of the tree in document order."""
        if isinstance(self.body, Multipart):
            for boundary_part in self.body.parts:
                yield from boundary_part.part.walk()
        else:
            yield self


@dataclass(frozen=True)
class EmailAddress:
    email: str
    name: str | None = None


@dataclass(frozen=True)
class Attachment:
    """A non-body part of a read message.

    ``data`` is ``bytes`` when the part was base64 encoded and ``str`` otherwise
    (the part text as parsed, with any undecodable octets as surrogate escapes).
    ``build`` writes both as base64, so a rebuilt message reads back ``bytes``;
    compare payloads with ``compute_attachment_sha256``, which treats both alike.
    """

    data: bytes | str
    id: str | None = None
    name: str | None = None
    content_type: str | None = None
    inline: bool = False


@dataclass(frozen=True)
class FriendlyMessage:
    date: datetime
    headers: HeaderMap
    subject: str | None = None
    from_: str | None = None
    to: str | None = None
    message_id: str | None = None
    references: str | None = None
    text: str | None = None
    html: str | None = None
    attachments: list[Attachment] = field(default_factory=list)
