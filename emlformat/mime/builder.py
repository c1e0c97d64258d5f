from __future__ import annotations

import base64
import os
import re
from collections.abc import Mapping
from email.utils import format_datetime
from typing import Any

from pydantic import ValidationError

from emlformat.codec.charset import UTF8, CharsetCodec, default_codec, has_surrogate_escapes
from emlformat.core.config import Settings, get_settings
from emlformat.core.errors import InvalidInputError, MissingRecipientError
from emlformat.mime.headers import (
    default_attachment_name,
    format_address,
    get_boundary,
    is_multipart,
)
from emlformat.mime.types import FriendlyMessage
from emlformat.schemas.draft import AttachmentDraft, MessageDraft

EOL = "\r\n"
BASE64_LINE_LENGTH = 76
HEADER_LINE_LENGTH = 76
# Keeps each encoded-word within the 75 character limit of RFC 2047.
_ENCODED_WORD_CHUNK_BYTES = 45

_LINE_BREAK_RE = re.compile(r"\r?\n")
_FOLD_TOKEN_RE = re.compile(r"\s*\S+")


def new_boundary() -> str:
    raw = os.urandom(18)
    return "----=" + base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def wrap(s: str, width: int) -> list[str]:
    return [s[i : i + width] for i in range(0, len(s), width)]


def _utf8(s: str) -> bytes:
    # Header values parsed from bytes may still carry undecodable octets.
    return s.encode("utf-8", errors="surrogateescape")


def _encode_header_value(value: str) -> str:
    if value.isascii():
        return value
    words: list[str] = []
    chunk = ""
    for ch in value:
        if chunk and len(_utf8(chunk + ch)) > _ENCODED_WORD_CHUNK_BYTES:
            words.append(chunk)
            chunk = ""
        chunk += ch
    words.append(chunk)
    return EOL.join(
        "=?utf-8?B?" + base64.b64encode(_utf8(w)).decode("ascii") + "?=" for w in words
    )


def _fold(value: str) -> str:
    return _LINE_BREAK_RE.sub(EOL + "  ", value)


def _break_long(name: str, value: str) -> str:
    """Insert line breaks at whitespace so no header line runs past 76 columns.

    Values that already span lines (encoded-words, caller folding) are left as is.
    """
    if len(name) + 2 + len(value) <= HEADER_LINE_LENGTH or _LINE_BREAK_RE.search(value):
        return value
    lines: list[str] = []
    current = ""
    width = HEADER_LINE_LENGTH - len(name) - 2
    for token in _FOLD_TOKEN_RE.findall(value):
        if current and len(current) + len(token) > width:
            lines.append(current)
            current = token.lstrip()
            width = HEADER_LINE_LENGTH - 2
        else:
            current += token
    lines.append(current)
    return EOL.join(lines)


def _header_lines(name: str, value: str | list[str]) -> list[str]:
    values = value if isinstance(value, list) else [value]
    return [
        f"{name}: {_fold(_break_long(name, _encode_header_value(v)))}"
        for v in values
        if v is not None
    ]


def _coerce_draft(data: Any) -> MessageDraft:
    if isinstance(data, MessageDraft):
        return data
    if isinstance(data, FriendlyMessage):
        return MessageDraft.from_friendly(data)
    if isinstance(data, Mapping):
        try:
            return MessageDraft.model_validate(dict(data))
        except ValidationError as e:
            raise InvalidInputError(str(e)) from e
    raise InvalidInputError("Argument 'data' expected to be a message draft or mapping")


class _HeaderBlock:
    """Insertion-ordered headers with case-insensitive replacement."""

    def __init__(self, headers: Mapping[str, str | list[str]]) -> None:
        self._items: dict[str, tuple[str, str | list[str]]] = {}
        for name, value in headers.items():
            self.set(name, value)

    def set(self, name: str, value: str | list[str]) -> None:
        key = name.lower()
        existing = self._items.get(key)
        self._items[key] = (existing[0] if existing else name, value)

    def get(self, name: str) -> str | None:
        item = self._items.get(name.lower())
        if item is None:
            return None
        value = item[1]
        if isinstance(value, list):
            return value[0] if value else None
        return value

    def pop(self, name: str) -> None:
        self._items.pop(name.lower(), None)

    def lines(self) -> list[str]:
        out: list[str] = []
        for name, value in self._items.values():
            out.extend(_header_lines(name, value))
        return out


def _attachment_lines(
    index: int,
    attachment: AttachmentDraft,
    *,
    codec: CharsetCodec,
    settings: Settings,
) -> list[str]:
    content_type = attachment.content_type or "application/octet-stream"
    filename = (
        attachment.filename
        or attachment.name
        or default_attachment_name(index, attachment.content_type, settings=settings)
    )
    safe_name = filename.replace('"', "'")
    disposition = "inline" if attachment.inline else "attachment"
    data = attachment.data
    if isinstance(data, str):
        # Octets kept as surrogate escapes when the source was parsed from bytes.
        data = _utf8(data) if has_surrogate_escapes(data) else codec.encode(data, UTF8)

    lines = [
        f"Content-Type: {_fold(content_type)}",
        "Content-Transfer-Encoding: base64",
        f'Content-Disposition: {disposition}; filename="{_fold(_encode_header_value(safe_name))}"',
    ]
    if attachment.id:
        lines.append(f"Content-ID: {attachment.id}")
    lines.append("")
    lines.extend(wrap(base64.b64encode(data).decode("ascii"), BASE64_LINE_LENGTH))
    return lines


def build(
    data: MessageDraft | FriendlyMessage | Mapping[str, Any],
    *,
    settings: Settings | None = None,
    codec: CharsetCodec | None = None,
) -> str:
    """Serialize a draft or friendly message into a raw multipart message with CRLF line ends."""
    settings = settings or get_settings()
    codec = codec or default_codec()
    draft = _coerce_draft(data)

    headers = _HeaderBlock(draft.headers)
    if draft.subject is not None:
        headers.set("Subject", draft.subject)
    if draft.from_ is not None:
        headers.set("From", format_address(draft.from_))
    if draft.to is not None:
        headers.set("To", format_address(draft.to))
    if not headers.get("To"):
        raise MissingRecipientError("Missing 'To' e-mail address!")
    if draft.date is not None and headers.get("Date") is None:
        headers.set("Date", format_datetime(draft.date))
    if headers.get("MIME-Version") is None:
        headers.set("MIME-Version", "1.0")

    content_type = headers.get("Content-Type")
    boundary = get_boundary(content_type) if is_multipart(content_type) else None
    if boundary is None:
        boundary = new_boundary()
        headers.pop("Content-Transfer-Encoding")
        headers.set("Content-Type", f'multipart/mixed;{EOL}boundary="{boundary}"')

    lines = headers.lines()
    lines.append("")

    parts: list[list[str]] = []
    if draft.text is not None:
        parts.append(["Content-Type: text/plain; charset=utf-8", "", draft.text])
    if draft.html is not None:
        parts.append(["Content-Type: text/html; charset=utf-8", "", draft.html])
    for i, attachment in enumerate(draft.attachments):
        parts.append(_attachment_lines(i, attachment, codec=codec, settings=settings))

    # Every delimiter follows a blank line so strict boundary detection finds it.
    for part in parts:
        lines.append(f"--{boundary}")
        lines.extend(part)
        lines.append("")
    lines.append(f"--{boundary}--")
    return EOL.join(lines) + EOL
