from __future__ import annotations

import re
from collections.abc import Sequence

from emlformat.codec.charset import CharsetCodec
from emlformat.codec.encoded_word import decode_header_value
from emlformat.core.config import Settings
from emlformat.mime.types import EmailAddress

_BOUNDARY_RE = re.compile(r'boundary\s*=\s*(?:"([^"\r\n]+)"|([^";\s]+))', re.IGNORECASE)
_CHARSET_RE = re.compile(r"charset\s*=\W*([\w\-]+)", re.IGNORECASE)
_MULTIPART_RE = re.compile(r"^\s*multipart/", re.IGNORECASE)
_WORD_RE = re.compile(r"\w+")
_ADDRESS_RE = re.compile(r"^(.*?)(\s*<(.*?)>)$", re.DOTALL)


def normalize_header_name(name: str) -> str:
    return _WORD_RE.sub(lambda m: m.group()[0].upper() + m.group()[1:], name)


def is_multipart(content_type: str | None) -> bool:
    return bool(content_type and _MULTIPART_RE.match(content_type))


def get_boundary(content_type: str | None) -> str | None:
    if not content_type:
        return None
    m = _BOUNDARY_RE.search(content_type)
    if m is None:
        return None
    boundary = (m.group(1) or m.group(2) or "").strip()
    return boundary or None


def get_charset(content_type: str | None) -> str | None:
    if not content_type:
        return None
    m = _CHARSET_RE.search(content_type)
    return m.group(1) if m else None


def get_mime_type(content_type: str | None) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


def parse_address(
    raw: str,
    *,
    settings: Settings | None = None,
    codec: CharsetCodec | None = None,
) -> EmailAddress:
    m = _ADDRESS_RE.match(raw.strip())
    if m is None:
        return EmailAddress(email=raw.strip())
    name = decode_header_value(m.group(1), settings=settings, codec=codec)
    name = name.replace('"', "").strip()
    return EmailAddress(email=m.group(3).strip(), name=name or None)


def format_address(value: str | EmailAddress | Sequence[str | EmailAddress] | None) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, EmailAddress):
        out = f'"{value.name}"' if value.name else ""
        if value.email:
            out += (" " if out else "") + f"<{value.email}>"
        return out
    return ", ".join(s for s in (format_address(v) for v in value) if s)


def get_file_extension(mime_type: str | None, *, settings: Settings) -> str:
    return settings.FILE_EXTENSIONS.get(get_mime_type(mime_type), "")


def default_attachment_name(index: int, content_type: str | None, *, settings: Settings) -> str:
    return f"attachment_{index + 1}{get_file_extension(content_type, settings=settings)}"
