from __future__ import annotations

import binascii
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from urllib.parse import unquote_to_bytes

from emlformat.codec.charset import (
    UTF8,
    CharsetCodec,
    decode_bytes,
    default_codec,
    has_surrogate_escapes,
    normalize_charset,
    raw_bytes,
)
from emlformat.codec.encoded_word import decode_base64, decode_header_value, decode_quoted_printable
from emlformat.core.config import Settings, get_settings
from emlformat.core.diagnostics import log_diagnostic
from emlformat.core.errors import InvalidInputError
from emlformat.mime.headers import get_charset
from emlformat.mime.parser import parse
from emlformat.mime.types import Attachment, FriendlyMessage, HeaderMap, Leaf, ParseNode

# Sentinels keep FriendlyMessage.date sortable when the Date header is unusable.
DATE_MISSING = datetime(1800, 1, 1, tzinfo=UTC)
DATE_UNPARSABLE = datetime(1900, 1, 1, tzinfo=UTC)

_NAME_RE = re.compile(r'(?<![\w*-])(?:file)?name\s*=\s*(?:"([^"\r\n]*)"|([^";\s]+))', re.IGNORECASE)
_QUOTED_NAME_RE = re.compile(r'(?<![\w*-])(?:file)?name\s*=\s*"([^"]+)"', re.IGNORECASE)
_RFC2231_NAME_RE = re.compile(
    r'(?<![\w*-])(?:file)?name\*(\d*)\*?\s*=\s*(?:"([^"]*)"|([^;\s]*))', re.IGNORECASE
)
_RFC2231_PREFIX_RE = re.compile(r"^([^']*)'[^']*'(.*)$", re.DOTALL)
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f]")
_INLINE_RE = re.compile(r"^\s*inline", re.IGNORECASE)


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError, OverflowError):
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def read_date(value: str | None, *, settings: Settings | None = None) -> datetime:
    if not value:
        return DATE_MISSING
    dt = _parse_date(value)
    if dt is None:
        # Retry without the seconds/zone tail: "... 10:20:5x +0000" -> "... 10:20"
        head, sep, _tail = value.rpartition(":")
        if sep:
            dt = _parse_date(head)
    if dt is None:
        log_diagnostic(
            settings=settings or get_settings(), event="mime.date.unparsable", value=value
        )
        return DATE_UNPARSABLE
    return dt


@dataclass
class _ReadState:
    text: str | None = None
    html: str | None = None
    attachments: list[Attachment] = field(default_factory=list)


def _as_text(
    payload: bytes | str, charset_key: str, *, codec: CharsetCodec, settings: Settings
) -> str:
    if isinstance(payload, str):
        # Octets that were not valid UTF-8 when the message bytes were parsed.
        data = raw_bytes(payload) if has_surrogate_escapes(payload) else None
        if data is None:
            return payload
        payload = data
    return decode_bytes(payload, charset_key, codec=codec, settings=settings)


def _decode_rfc2231(value: str, *, codec: CharsetCodec, settings: Settings) -> str:
    charset_key = UTF8
    m = _RFC2231_PREFIX_RE.match(value)
    if m:
        charset_key = normalize_charset(m.group(1)) or UTF8
        value = m.group(2)
    return decode_bytes(unquote_to_bytes(value), charset_key, codec=codec, settings=settings)


def _find_name(source: str, *, codec: CharsetCodec, settings: Settings) -> str | None:
    m = _NAME_RE.search(source)
    if m and (m.group(1) or m.group(2)):
        return m.group(1) or m.group(2)
    m = _QUOTED_NAME_RE.search(source)
    if m:
        return m.group(1)

    segments: list[tuple[int, str]] = []
    for m in _RFC2231_NAME_RE.finditer(source):
        index = int(m.group(1)) if m.group(1) else 0
        segments.append((index, m.group(2) if m.group(2) is not None else m.group(3)))
    if not segments:
        return None
    joined = "".join(v for _i, v in sorted(segments, key=lambda s: s[0]))
    return _decode_rfc2231(joined, codec=codec, settings=settings) or None


def _sanitize_name(name: str) -> str:
    name = name.replace("/", "_").replace("\\", "_")
    if name.startswith('"'):
        name = name[1:]
    if name.endswith('"'):
        name = name[:-1]
    name = name.replace('"', "_")
    return _CONTROL_CHARS_RE.sub(" ", name)


def _attachment_name(headers: HeaderMap, *, codec: CharsetCodec, settings: Settings) -> str | None:
    for header_name in ("Content-Disposition", "Content-Type"):
        source = headers.get(header_name)
        if not source:
            continue
        name = _find_name(source, codec=codec, settings=settings)
        if name:
            return _sanitize_name(decode_header_value(name, settings=settings, codec=codec))
    return None


def _append(
    state: _ReadState,
    headers: HeaderMap,
    content: str,
    *,
    codec: CharsetCodec,
    settings: Settings,
) -> None:
    content_type = headers.get("Content-Type")
    encoding = headers.get("Content-Transfer-Encoding")
    disposition = headers.get("Content-Disposition")
    if not (content_type or encoding or disposition):
        # Probably a bare 8-bit text body.
        content_type, encoding = "text/plain", "8bit"

    charset_key = normalize_charset(get_charset(content_type) or settings.DEFAULT_CHARSET)
    encoding = (encoding or "").strip().lower()

    payload: bytes | str = content
    if encoding == "base64":
        try:
            payload = decode_base64(content)
        except binascii.Error as e:
            log_diagnostic(settings=settings, event="mime.transfer.invalid_base64", error=str(e))
    elif encoding == "quoted-printable":
        payload = decode_quoted_printable(content, charset_key, codec=codec, settings=settings)
    elif charset_key != UTF8 and encoding.startswith(("8bit", "binary")):
        data = raw_bytes(content)
        if data is not None:
            payload = decode_bytes(data, charset_key, codec=codec, settings=settings)

    mime_hint = (content_type or "").lower()
    if state.html is None and "text/html" in mime_hint:
        state.html = _as_text(payload, charset_key, codec=codec, settings=settings)
    elif state.text is None and "text/plain" in mime_hint:
        state.text = _as_text(payload, charset_key, codec=codec, settings=settings)
    else:
        state.attachments.append(
            Attachment(
                data=payload,
                id=headers.get("Content-ID"),
                name=_attachment_name(headers, codec=codec, settings=settings),
                content_type=headers.get("Content-Type"),
                inline=bool(disposition and _INLINE_RE.match(disposition)),
            )
        )


def read(
    source: ParseNode | str | bytes,
    *,
    settings: Settings | None = None,
    codec: CharsetCodec | None = None,
) -> FriendlyMessage:
    """Turn a parse tree (or raw message text) into text, html and attachments."""
    settings = settings or get_settings()
    codec = codec or default_codec()
    if isinstance(source, (str, bytes, bytearray)):
        node = parse(source, settings=settings)
    elif isinstance(source, ParseNode):
        node = source
    else:
        raise InvalidInputError(
            f"Argument 'source' expected to be ParseNode, str or bytes, got {type(source).__name__}"
        )

    state = _ReadState()
    for leaf in node.walk():
        if isinstance(leaf.body, Leaf):
            _append(state, leaf.headers, leaf.body.text, codec=codec, settings=settings)

    headers = node.headers

    def _decoded(name: str) -> str | None:
        value = headers.get(name)
        return decode_header_value(value, settings=settings, codec=codec) if value else None

    references = headers.get_all("References")
    return FriendlyMessage(
        date=read_date(headers.get("Date"), settings=settings),
        headers=headers,
        subject=_decoded("Subject"),
        from_=_decoded("From"),
        to=_decoded("To"),
        message_id=headers.get("Message-ID"),
        references=" ".join(references) if references else None,
        text=state.text,
        html=state.html,
        attachments=state.attachments,
    )
