from __future__ import annotations

import base64
import binascii
import re

from emlformat.codec.charset import (
    UTF8,
    CharsetCodec,
    decode_bytes,
    default_codec,
    normalize_charset,
)
from emlformat.core.config import Settings, get_settings

# RFC 2047 6.2: whitespace between adjacent encoded-words is not displayed.
_ADJACENT_WORDS_RE = re.compile(r"\?=\s+=\?")
_ENCODED_WORD_RE = re.compile(r"=\?([^?]*)\?([BQ])\?(.*?)\?=", re.IGNORECASE)
_SOFT_LINE_BREAK_RE = re.compile(r"=\r?\n")
_ESCAPE_RUN_RE = re.compile(r"(?:=[0-9A-Fa-f]{2})+")
_SURROGATE_RE = re.compile("[\udc80-\udcff]")
_NON_BASE64_RE = re.compile(r"[^A-Za-z0-9+/]")


def decode_base64(data: str) -> bytes:
    """Base64 decode tolerating line breaks, stray characters and missing padding."""
    cleaned = _NON_BASE64_RE.sub("", data)
    if len(cleaned) % 4 == 1:
        raise binascii.Error("truncated base64 input")
    return base64.b64decode(cleaned + "=" * (-len(cleaned) % 4))


def _escapes_to_bytes(run: str) -> bytes:
    return bytes.fromhex(run.replace("=", ""))


def _decode_utf8_run(data: bytes) -> str:
    # Multi-byte sequences reassemble across escapes; stray octets map to the
    # character with the same code point.
    text = data.decode("utf-8", errors="surrogateescape")
    return _SURROGATE_RE.sub(lambda m: chr(ord(m.group()) - 0xDC00), text)


def decode_quoted_printable(
    value: str,
    charset: str,
    *,
    codec: CharsetCodec | None = None,
    header: bool = False,
    settings: Settings | None = None,
) -> str:
    """Decode quoted-printable text whose escapes are octets in ``charset``.

    ``header=True`` applies the encoded-word rule that ``_`` stands for a space.
    """
    codec = codec or default_codec()
    key = normalize_charset(charset)
    if header:
        value = value.replace("_", " ")
    value = _SOFT_LINE_BREAK_RE.sub("", value)

    def _replace(m: re.Match[str]) -> str:
        data = _escapes_to_bytes(m.group())
        if key == UTF8:
            return _decode_utf8_run(data)
        return decode_bytes(data, key, codec=codec, settings=settings)

    return _ESCAPE_RUN_RE.sub(_replace, value)


def decode_header_value(
    value: str | None,
    *,
    settings: Settings | None = None,
    codec: CharsetCodec | None = None,
) -> str:
    """Replace every RFC 2047 encoded-word in a header value with its text."""
    if not isinstance(value, str):
        return ""
    settings = settings or get_settings()
    codec = codec or default_codec()

    def _replace(m: re.Match[str]) -> str:
        charset, kind, payload = m.group(1), m.group(2).upper(), m.group(3)
        # RFC 2231 section 5 allows a language suffix: UTF-8*en
        charset = charset.split("*", 1)[0] or settings.DEFAULT_CHARSET
        key = normalize_charset(charset)
        if kind == "B":
            try:
                data = decode_base64(payload)
            except binascii.Error:
                return m.group()
            return decode_bytes(data, key, codec=codec, settings=settings)
        return decode_quoted_printable(
            payload, key, codec=codec, header=True, settings=settings
        )

    value = _ADJACENT_WORDS_RE.sub("?==?", value)
    return _ENCODED_WORD_RE.sub(_replace, value)
