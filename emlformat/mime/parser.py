from __future__ import annotations

import logging
import re

from emlformat.core.config import Settings, get_settings
from emlformat.core.diagnostics import log_diagnostic
from emlformat.core.errors import InvalidInputError
from emlformat.mime.headers import get_boundary, is_multipart, normalize_header_name
from emlformat.mime.types import BoundaryPart, HeaderMap, Leaf, Multipart, ParseNode

EOL = "\r\n"

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_HEADER_RE = re.compile(r"^([\w\-]+):\s*(.*)$")
_CONTINUATION_RE = re.compile(r"^\s+(\S.*)$")


def parse(raw: str | bytes, *, settings: Settings | None = None) -> ParseNode:
    """Split a raw message into a tree of header blocks and bodies.

    ``bytes`` are decoded as UTF-8 with ``surrogateescape`` so 8bit parts in
    other charsets can be recovered octet for octet by the reader.
    """
    settings = settings or get_settings()
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8", errors="surrogateescape")
    elif not isinstance(raw, str):
        raise InvalidInputError(
            f"Argument 'raw' expected to be str or bytes, got {type(raw).__name__}"
        )
    return _parse_lines(_LINE_SPLIT_RE.split(raw), settings=settings)


def _parse_lines(lines: list[str], *, settings: Settings) -> ParseNode:
    names: dict[str, str] = {}
    values: dict[str, list[str]] = {}
    last_key: str | None = None
    body_start: int | None = None

    for i, line in enumerate(lines):
        if line == "":
            body_start = i + 1
            break

        m = _CONTINUATION_RE.match(line)
        if m:
            if last_key is not None:
                current = values[last_key]
                tail = m.group(1)
                current[-1] = f"{current[-1]}{EOL}{tail}" if current[-1] else tail
            continue

        m = _HEADER_RE.match(line)
        if m:
            name = normalize_header_name(m.group(1))
            last_key = name.lower()
            names.setdefault(last_key, name)
            values.setdefault(last_key, []).append(m.group(2))

    headers = HeaderMap({names[key]: vals for key, vals in values.items()})
    if body_start is None or settings.HEADERS_ONLY:
        return ParseNode(headers=headers)

    content_type = headers.get("Content-Type")
    if is_multipart(content_type):
        boundary = get_boundary(content_type)
        if boundary:
            return ParseNode(
                headers=headers,
                body=_parse_multipart(lines, body_start, boundary, settings=settings),
            )
        log_diagnostic(
            settings=settings,
            event="mime.multipart.missing_boundary",
            content_type=(content_type or "").replace(EOL, " "),
        )

    return ParseNode(headers=headers, body=Leaf(EOL.join(lines[body_start:])))


def _is_delimiter(line: str, token: str) -> bool:
    return line.startswith(token) and not line[len(token) :].strip()


def _boundary_part(
    marker: str, lines: list[str], *, settings: Settings, delimited: bool = True
) -> BoundaryPart:
    # RFC 2046 5.1.1: the line break before a delimiter belongs to the delimiter.
    # The header/body separator itself is kept so an empty body stays a Leaf.
    if delimited and len(lines) > 1 and lines[-1] == "" and "" in lines[:-1]:
        lines = lines[:-1]
    return BoundaryPart(marker=marker, part=_parse_lines(lines, settings=settings))


def _parse_multipart(
    lines: list[str], start: int, boundary: str, *, settings: Settings
) -> Multipart:
    opener = f"--{boundary}"
    closer = f"--{boundary}--"
    parts: list[BoundaryPart] = []
    marker: str | None = None
    buffered: list[str] = []
    terminated = False

    for i in range(start, len(lines)):
        line = lines[i]
        at_boundary = settings.LENIENT_BOUNDARY_DETECTION or (i > 0 and lines[i - 1] == "")

        if at_boundary and _is_delimiter(line, closer):
            if marker is not None:
                parts.append(_boundary_part(marker, buffered, settings=settings))
            marker = None
            terminated = True
            break

        if at_boundary and _is_delimiter(line, opener):
            if marker is not None:
                parts.append(_boundary_part(marker, buffered, settings=settings))
            marker = line[2:].rstrip()
            buffered = []
            log_diagnostic(
                settings=settings,
                event="mime.boundary.found",
                level=logging.DEBUG,
                boundary=marker,
            )
            continue

        if marker is not None:
            buffered.append(line)

    if marker is not None:
        parts.append(_boundary_part(marker, buffered, settings=settings, delimited=False))
    if not terminated:
        log_diagnostic(settings=settings, event="mime.multipart.unterminated", boundary=boundary)

    return Multipart(parts=tuple(parts))
