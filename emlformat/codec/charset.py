from __future__ import annotations

import codecs
import encodings
import pkgutil
import re
from encodings.aliases import aliases
from functools import lru_cache
from typing import Protocol

from emlformat.core.config import Settings
from emlformat.core.diagnostics import log_diagnostic
from emlformat.core.errors import UnsupportedCharsetError

UTF8 = "utf8"

_NON_ALNUM_RE = re.compile(r"[^0-9a-z]")
_SURROGATE_ESCAPE_RE = re.compile("[\udc80-\udcff]")


def normalize_charset(charset: str) -> str:
    """Collapse a charset label to its lookup key: ``ISO_8859-1`` -> ``iso88591``."""
    return _NON_ALNUM_RE.sub("", (charset or "").lower())


def _build_alias_table() -> dict[str, str]:
    table: dict[str, str] = {}
    for module in pkgutil.iter_modules(encodings.__path__):
        table.setdefault(normalize_charset(module.name), module.name)
    for alias, codec_name in aliases.items():
        table.setdefault(normalize_charset(codec_name), codec_name)
        table.setdefault(normalize_charset(alias), codec_name)
    return table


_ALIAS_TABLE = _build_alias_table()


class CharsetCodec(Protocol):
    def decode(self, data: bytes, charset_key: str) -> str:  # pragma: no cover
        ...

    def encode(self, text: str, charset_key: str) -> bytes:  # pragma: no cover
        ...


class StandardCharsetCodec:
    """Charset table backed by the interpreter's codec registry.

    Keys are expected in normalized form (see ``normalize_charset``). Undecodable
    bytes are replaced rather than raised; unknown keys raise
    ``UnsupportedCharsetError``.
    """

    def decode(self, data: bytes, charset_key: str) -> str:
        try:
            return bytes(data).decode(_resolve(charset_key), errors="replace")
        except (LookupError, UnicodeError) as e:
            # Registered but not a text codec (base64_codec, undefined, ...).
            raise UnsupportedCharsetError(charset=charset_key, message=str(e)) from e

    def encode(self, text: str, charset_key: str) -> bytes:
        try:
            return text.encode(_resolve(charset_key), errors="replace")
        except (LookupError, UnicodeError) as e:
            raise UnsupportedCharsetError(charset=charset_key, message=str(e)) from e


@lru_cache(maxsize=256)
def _resolve(charset_key: str) -> str:
    key = normalize_charset(charset_key)
    for candidate in (_ALIAS_TABLE.get(key), key):
        if not candidate:
            continue
        try:
            return codecs.lookup(candidate).name
        except LookupError:
            continue
    raise UnsupportedCharsetError(charset=charset_key)


_DEFAULT_CODEC = StandardCharsetCodec()


def default_codec() -> CharsetCodec:
    return _DEFAULT_CODEC


def decode_bytes(
    data: bytes,
    charset_key: str,
    *,
    codec: CharsetCodec,
    settings: Settings | None = None,
) -> str:
    """Decode through ``codec``; unknown charsets fall back to UTF-8, then latin-1."""
    if charset_key == UTF8:
        return bytes(data).decode("utf-8", errors="replace")
    try:
        return codec.decode(data, charset_key)
    except UnsupportedCharsetError as e:
        if settings is not None:
            log_diagnostic(settings=settings, event="codec.charset.unsupported", charset=e.charset)
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError:
            return bytes(data).decode("latin-1")


def has_surrogate_escapes(content: str) -> bool:
    return _SURROGATE_ESCAPE_RE.search(content) is not None


def raw_bytes(content: str) -> bytes | None:
    """Recover the octets behind a body string, or None if it is already text.

    Bodies read as latin-1 map back one char per byte; bodies decoded from bytes
    by ``parse`` carry undecodable octets as surrogate escapes.
    """
    try:
        return content.encode("latin-1")
    except UnicodeEncodeError:
        pass
    if not has_surrogate_escapes(content):
        return None
    try:
        return content.encode("utf-8", errors="surrogateescape")
    except UnicodeEncodeError:
        return None
